"""Suppliers and manufacturers referenced by catalog products."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.exceptions import BusinessError
from app.core.permissions import Operation
from app.models.supplier import Manufacturer, Supplier
from app.models.user import User
from app.schemas.supplier import ManufacturerCreate, ManufacturerResponse, SupplierCreate, SupplierResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/suppliers", response_model=list[SupplierResponse])
def list_suppliers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Supplier).order_by(Supplier.name).all()


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
def create_supplier(
    data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRODUCTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    if db.query(Supplier.id).filter(Supplier.name == data.name).first():
        raise BusinessError.bad_request("A supplier with this name already exists")

    supplier = Supplier(**data.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info(f"Supplier {supplier.id} ({supplier.name}) created by user {current_user.id}")
    audit.record(current_user.id, "CREATE", "supplier", supplier.id, {"name": supplier.name})
    return supplier


@router.get("/manufacturers", response_model=list[ManufacturerResponse])
def list_manufacturers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Manufacturer).order_by(Manufacturer.name).all()


@router.post("/manufacturers", response_model=ManufacturerResponse, status_code=201)
def create_manufacturer(
    data: ManufacturerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRODUCTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    if db.query(Manufacturer.id).filter(Manufacturer.name == data.name).first():
        raise BusinessError.bad_request("A manufacturer with this name already exists")

    manufacturer = Manufacturer(**data.model_dump())
    db.add(manufacturer)
    db.commit()
    db.refresh(manufacturer)
    audit.record(current_user.id, "CREATE", "manufacturer", manufacturer.id, {"name": manufacturer.name})
    return manufacturer
