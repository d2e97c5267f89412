"""
Casket Ledger — Inventory summary route
"""
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.core.config import get_settings
from casket_ledger.db import catalog
from casket_ledger.db.database import get_db
from casket_ledger.domain.summary import InventorySummary, summarize

settings = get_settings()
router = APIRouter(tags=["summary"])


@router.get("/summary", response_model=InventorySummary)
async def get_summary(
    as_of: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counts, computed from current rows on every call."""
    return summarize(
        items=await catalog.list_items(db),
        orders=await catalog.list_orders(db),
        special_orders=await catalog.list_special_orders(db),
        supplier_count=await catalog.count_suppliers(db),
        now=as_of or datetime.now(timezone.utc),
        order_urgent_days=settings.ORDER_URGENT_DAYS,
        special_order_urgent_days=settings.SPECIAL_ORDER_URGENT_DAYS,
    )
