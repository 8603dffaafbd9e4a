from app.models.user import User
from app.models.patient import Patient
from app.models.supplier import Supplier, Manufacturer
from app.models.product import Product
from app.models.inventory import InventoryRecord, StockMovement
from app.models.prescription import Prescription, PrescriptionItem
from app.models.sale import Sale, SaleItem, Payment
from app.models.sale_return import SaleReturn, ReturnItem
from app.models.shift import Shift
from app.models.quotation import Quotation, QuotationItem
from app.models.audit_log import AuditLogEntry
from app.models.number_series import NumberSeries

__all__ = [
    "User",
    "Patient",
    "Supplier",
    "Manufacturer",
    "Product",
    "InventoryRecord",
    "StockMovement",
    "Prescription",
    "PrescriptionItem",
    "Sale",
    "SaleItem",
    "Payment",
    "SaleReturn",
    "ReturnItem",
    "Shift",
    "Quotation",
    "QuotationItem",
    "AuditLogEntry",
    "NumberSeries",
]
