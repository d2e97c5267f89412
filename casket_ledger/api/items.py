"""
Casket Ledger — Stock item routes

Catalogue reads plus the ledger events recorded against a single item:
sale + reorder, return, manual adjustment and supplier backorder.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.db import catalog, ledger_ops
from casket_ledger.db.database import get_db
from casket_ledger.domain import ledger
from casket_ledger.domain.errors import LedgerError
from casket_ledger.domain.models import ItemKind
from casket_ledger.schemas.inventory import (
    AdjustRequest,
    BackorderRequest,
    HistoryResponse,
    ItemCreateRequest,
    ItemResponse,
    OrderingInstructionsResponse,
    PlaceOrderRequest,
    ReturnRequest,
)
from casket_ledger.schemas.order import LedgerResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/items", tags=["items"])


async def _apply(operation: str, item_id: str, call) -> LedgerResponse:
    """Await a ledger operation; domain errors go to the app's LedgerError handler."""
    try:
        entry = await call
    except LedgerError:
        raise
    except Exception as e:
        logger.exception("%s failed for item %s", operation, item_id)
        raise HTTPException(status_code=500, detail=str(e))
    return LedgerResponse.from_entry(entry)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(payload: ItemCreateRequest, db: AsyncSession = Depends(get_db)):
    item = await ledger_ops.create_item(db, **payload.model_dump())
    return ItemResponse.from_item(item)


@router.get("", response_model=list[ItemResponse])
async def list_items(
    kind: ItemKind | None = Query(None, description="CASKET or URN"),
    db: AsyncSession = Depends(get_db),
):
    return [ItemResponse.from_item(item) for item in await catalog.list_items(db, kind)]


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: str, db: AsyncSession = Depends(get_db)):
    return ItemResponse.from_item(await ledger_ops.load_item(db, item_id))


@router.get("/{item_id}/history", response_model=list[HistoryResponse])
async def get_item_history(item_id: str, db: AsyncSession = Depends(get_db)):
    """Audit trail for one item, oldest first."""
    await ledger_ops.load_item(db, item_id)
    return await catalog.item_history(db, item_id)


@router.get("/{item_id}/ordering-instructions", response_model=OrderingInstructionsResponse)
async def get_ordering_instructions(item_id: str, db: AsyncSession = Depends(get_db)):
    item = await ledger_ops.load_item(db, item_id)
    supplier = await catalog.find_supplier_for(db, item)
    return OrderingInstructionsResponse(
        item_id=item.id,
        supplier_id=supplier.id if supplier else None,
        instructions=ledger.resolve_ordering_instructions(item, supplier),
    )


# ─── Ledger events ────────────────────────────────────────────────────────────

@router.post("/{item_id}/order", response_model=LedgerResponse, status_code=status.HTTP_201_CREATED)
async def place_order(item_id: str, payload: PlaceOrderRequest, db: AsyncSession = Depends(get_db)):
    """
    Sell one or more units and order their replacement.
    Uses optimistic locking with exponential backoff retry.
    """
    return await _apply("place_order", item_id, ledger_ops.place_order(db, item_id, **payload.model_dump()))


@router.post("/{item_id}/return", response_model=LedgerResponse)
async def record_return(item_id: str, payload: ReturnRequest, db: AsyncSession = Depends(get_db)):
    return await _apply("record_return", item_id, ledger_ops.record_return(db, item_id, **payload.model_dump()))


@router.post("/{item_id}/adjust", response_model=LedgerResponse)
async def adjust_inventory(item_id: str, payload: AdjustRequest, db: AsyncSession = Depends(get_db)):
    fields = payload.model_dump(exclude={"type"})
    return await _apply(
        "adjust_inventory",
        item_id,
        ledger_ops.adjust_inventory(db, item_id, adjustment_type=payload.type, **fields),
    )


@router.post("/{item_id}/backorder", response_model=LedgerResponse)
async def record_backorder(item_id: str, payload: BackorderRequest, db: AsyncSession = Depends(get_db)):
    return await _apply("record_backorder", item_id, ledger_ops.record_backorder(db, item_id, **payload.model_dump()))
