"""Product catalog."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require
from app.core.audit import AuditLog, get_audit_log
from app.core.exceptions import BusinessError
from app.core.permissions import Operation
from app.models.product import Product
from app.models.supplier import Manufacturer, Supplier
from app.models.user import User
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_references(db: Session, supplier_id, manufacturer_id) -> None:
    if supplier_id is not None and not db.query(Supplier.id).filter(Supplier.id == supplier_id).first():
        raise BusinessError.bad_request("Unknown supplier")
    if manufacturer_id is not None and not (
        db.query(Manufacturer.id).filter(Manufacturer.id == manufacturer_id).first()
    ):
        raise BusinessError.bad_request("Unknown manufacturer")


@router.get("", response_model=list[ProductResponse])
def list_products(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Product)
    if category:
        q = q.filter(Product.category == category)
    return q.order_by(Product.name).all()


@router.get("/search", response_model=list[ProductResponse])
def search_products(
    q: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Match name, generic name or exact barcode (scanner input)."""
    term = f"%{q.strip()}%"
    return (
        db.query(Product)
        .filter(
            or_(
                Product.name.ilike(term),
                Product.generic_name.ilike(term),
                Product.barcode == q.strip(),
            )
        )
        .order_by(Product.name)
        .limit(20)
        .all()
    )


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRODUCTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    if data.barcode and db.query(Product).filter(Product.barcode == data.barcode).first():
        raise BusinessError.bad_request("A product with this barcode already exists")
    _check_references(db, data.supplier_id, data.manufacturer_id)

    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info(f"Product {product.id} ({product.name}) created by user {current_user.id}")
    audit.record(current_user.id, "CREATE", "product", product.id, {"name": product.name})
    return product


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.WRITE_PRODUCTS)),
    audit: AuditLog = Depends(get_audit_log),
):
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise BusinessError.not_found("Product", f"id={product_id}")

    changes = data.model_dump(exclude_unset=True)
    _check_references(db, changes.get("supplier_id"), changes.get("manufacturer_id"))
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    audit.record(current_user.id, "UPDATE", "product", product.id, {"fields": sorted(changes)})
    return product
