"""Inventory listings and stock movements."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.config import settings
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.inventory import (
    ExpiringItem,
    InventoryItem,
    LowStockItem,
    StockMovementCreate,
    StockMovementResponse,
)
from app.services import inventory_service

router = APIRouter()


@router.get("/inventory", response_model=list[InventoryItem])
def list_inventory(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return inventory_service.list_inventory(db, search)


@router.get("/inventory/low-stock", response_model=list[LowStockItem])
def low_stock(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return inventory_service.low_stock(db)


@router.get("/inventory/expiring", response_model=list[ExpiringItem])
def expiring(
    days: int = Query(settings.EXPIRY_ALERT_DAYS, ge=0, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return inventory_service.expiring(db, days)


@router.post("/stock-movements", response_model=StockMovementResponse, status_code=201)
def create_stock_movement(
    data: StockMovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.RECORD_STOCK_MOVEMENT)),
    audit: AuditLog = Depends(get_audit_log),
):
    return inventory_service.record_stock_movement(
        db,
        current_user,
        audit,
        product_id=data.product_id,
        movement_type=data.movement_type,
        quantity=data.quantity,
        batch_number=data.batch_number,
        expiry_date=data.expiry_date,
        reference_number=data.reference_number,
        notes=data.notes,
    )
