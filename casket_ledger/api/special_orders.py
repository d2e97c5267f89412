"""
Casket Ledger — Special order routes

Custom one-off orders for a family, triaged against the service date.
They never touch stock quantities.
"""
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.core.config import get_settings
from casket_ledger.db import catalog
from casket_ledger.db.database import get_db
from casket_ledger.domain.triage import sort_triaged, triage_special_order
from casket_ledger.schemas.order import (
    SpecialOrderCreateRequest,
    SpecialOrderResponse,
    SpecialOrderStatusRequest,
)

settings = get_settings()
router = APIRouter(prefix="/special-orders", tags=["special-orders"])


@router.post("", response_model=SpecialOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_special_order(payload: SpecialOrderCreateRequest, db: AsyncSession = Depends(get_db)):
    order = await catalog.create_special_order(db, **payload.model_dump())
    now = datetime.now(timezone.utc)
    return SpecialOrderResponse.from_order(
        order, triage_special_order(order, now, settings.SPECIAL_ORDER_URGENT_DAYS)
    )


@router.get("", response_model=list[SpecialOrderResponse])
async def list_special_orders(
    active: bool | None = Query(None),
    as_of: date | None = Query(None, description="Triage reference date, defaults to now"),
    db: AsyncSession = Depends(get_db),
):
    now = as_of or datetime.now(timezone.utc)
    orders = await catalog.list_special_orders(db, active=active)
    triaged = sort_triaged(
        (o, triage_special_order(o, now, settings.SPECIAL_ORDER_URGENT_DAYS)) for o in orders
    )
    return [SpecialOrderResponse.from_order(order, result) for order, result in triaged]


@router.post("/{order_id}/status", response_model=SpecialOrderResponse)
async def change_special_order_status(
    order_id: str,
    payload: SpecialOrderStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    order = await catalog.change_special_order_status(
        db, order_id, payload.status, actor=payload.actor, arrival_date=payload.arrival_date
    )
    now = datetime.now(timezone.utc)
    return SpecialOrderResponse.from_order(
        order, triage_special_order(order, now, settings.SPECIAL_ORDER_URGENT_DAYS)
    )
