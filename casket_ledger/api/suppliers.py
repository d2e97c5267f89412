"""
Casket Ledger — Supplier routes
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from casket_ledger.db import catalog
from casket_ledger.db.database import get_db
from casket_ledger.schemas.inventory import SupplierCreateRequest, SupplierResponse

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(payload: SupplierCreateRequest, db: AsyncSession = Depends(get_db)):
    return await catalog.create_supplier(db, **payload.model_dump())


@router.get("", response_model=list[SupplierResponse])
async def list_suppliers(db: AsyncSession = Depends(get_db)):
    return await catalog.list_suppliers(db)


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(supplier_id: str, db: AsyncSession = Depends(get_db)):
    await catalog.delete_supplier(db, supplier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
