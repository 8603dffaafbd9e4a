"""
Role-based permissions.

Roles are a closed enum and every protected operation has exactly one entry in
PERMISSIONS. Routes declare the operation, never a list of role strings.
"""
import enum


class Role(str, enum.Enum):
    ADMINISTRATOR = "administrator"
    PHARMACIST = "pharmacist"
    RECEPTIONIST = "receptionist"
    TECHNICIAN = "technician"
    STORE_MANAGER = "store_manager"


class Operation(str, enum.Enum):
    MANAGE_USERS = "manage_users"
    LIST_PATIENTS = "list_patients"
    WRITE_PATIENTS = "write_patients"
    WRITE_PRODUCTS = "write_products"
    WRITE_PRESCRIPTIONS = "write_prescriptions"
    RECORD_STOCK_MOVEMENT = "record_stock_movement"
    POINT_OF_SALE = "point_of_sale"
    VIEW_AUDIT_LOG = "view_audit_log"


_CLINICAL = frozenset({Role.ADMINISTRATOR, Role.PHARMACIST})
_COUNTER = frozenset({Role.ADMINISTRATOR, Role.RECEPTIONIST})

PERMISSIONS: dict[Operation, frozenset[Role]] = {
    Operation.MANAGE_USERS: frozenset({Role.ADMINISTRATOR}),
    Operation.LIST_PATIENTS: frozenset({Role.ADMINISTRATOR, Role.PHARMACIST, Role.TECHNICIAN}),
    Operation.WRITE_PATIENTS: _CLINICAL,
    Operation.WRITE_PRODUCTS: frozenset({Role.ADMINISTRATOR, Role.STORE_MANAGER}),
    Operation.WRITE_PRESCRIPTIONS: _CLINICAL,
    Operation.RECORD_STOCK_MOVEMENT: frozenset(
        {Role.ADMINISTRATOR, Role.STORE_MANAGER, Role.TECHNICIAN}
    ),
    Operation.POINT_OF_SALE: _COUNTER,
    Operation.VIEW_AUDIT_LOG: _CLINICAL,
}


def is_allowed(role: Role, operation: Operation) -> bool:
    """True when `role` may perform `operation`. Unknown operations are denied."""
    return role in PERMISSIONS.get(operation, frozenset())
