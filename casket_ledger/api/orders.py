"""
Casket Ledger — Stock order routes
"""
import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.core.config import get_settings
from casket_ledger.db import catalog, ledger_ops
from casket_ledger.db.database import get_db
from casket_ledger.domain.errors import LedgerError
from casket_ledger.domain.triage import sort_triaged, triage_order
from casket_ledger.schemas.order import (
    ArriveRequest,
    CancelRequest,
    LedgerResponse,
    OrderResponse,
    StatusUpdateRequest,
)

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


def _now(as_of: date | None) -> date | datetime:
    return as_of or datetime.now(timezone.utc)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    active: bool | None = Query(None, description="true: open orders only, false: closed only"),
    item_id: str | None = Query(None),
    as_of: date | None = Query(None, description="Triage reference date, defaults to now"),
    db: AsyncSession = Depends(get_db),
):
    """Orders triaged most pressing first: LATE, URGENT, UNSCHEDULED, ON_TIME, then closed."""
    now = _now(as_of)
    orders = await catalog.list_orders(db, active=active, item_id=item_id)
    triaged = sort_triaged((o, triage_order(o, now, settings.ORDER_URGENT_DAYS)) for o in orders)
    return [OrderResponse.from_order(order, result) for order, result in triaged]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    as_of: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    order = await ledger_ops.load_order(db, order_id)
    return OrderResponse.from_order(order, triage_order(order, _now(as_of), settings.ORDER_URGENT_DAYS))


@router.post("/{order_id}/arrive", response_model=LedgerResponse)
async def mark_arrived(order_id: str, payload: ArriveRequest, db: AsyncSession = Depends(get_db)):
    """Receive a PENDING or SHIPPED order into on-hand stock."""
    try:
        entry = await ledger_ops.mark_arrived(
            db, order_id, actor=payload.actor, arrival_date=payload.arrival_date
        )
    except LedgerError:
        raise
    except Exception as e:
        logger.exception("mark_arrived failed for order %s", order_id)
        raise HTTPException(status_code=500, detail=str(e))
    return LedgerResponse.from_entry(entry)


@router.post("/{order_id}/cancel", response_model=LedgerResponse)
async def cancel_order(order_id: str, payload: CancelRequest, db: AsyncSession = Depends(get_db)):
    try:
        entry = await ledger_ops.cancel_order(db, order_id, actor=payload.actor, reason=payload.reason)
    except LedgerError:
        raise
    except Exception as e:
        logger.exception("cancel_order failed for order %s", order_id)
        raise HTTPException(status_code=500, detail=str(e))
    return LedgerResponse.from_entry(entry)


@router.post("/{order_id}/status", response_model=OrderResponse)
async def change_status(order_id: str, payload: StatusUpdateRequest, db: AsyncSession = Depends(get_db)):
    """
    Move an order to SHIPPED, DELAYED or back to PENDING.
    `expected_date` is only touched when the body carries it; an explicit null clears it.
    """
    kwargs = {}
    if "expected_date" in payload.model_fields_set:
        kwargs["expected_date"] = payload.expected_date
    order = await ledger_ops.change_order_status(db, order_id, payload.status, **kwargs)
    return OrderResponse.from_order(order, triage_order(order, _now(None), settings.ORDER_URGENT_DAYS))
