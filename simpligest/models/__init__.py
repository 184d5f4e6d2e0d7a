import importlib

from simpligest.models.business_settings import BusinessSettings
from simpligest.models.invoice import Invoice, InvoiceLine
from simpligest.models.notification import NotificationLog
from simpligest.models.product import Product
from simpligest.models.role_assignment import RoleAssignment
from simpligest.models.sale import Sale
from simpligest.models.transaction import Transaction

_MODEL_MODULES = (
    "simpligest.models.business_settings",
    "simpligest.models.invoice",
    "simpligest.models.notification",
    "simpligest.models.product",
    "simpligest.models.role_assignment",
    "simpligest.models.sale",
    "simpligest.models.transaction",
)


def import_all_models() -> None:
    for module_name in _MODEL_MODULES:
        importlib.import_module(module_name)


__all__ = [
    "BusinessSettings",
    "Invoice",
    "InvoiceLine",
    "NotificationLog",
    "Product",
    "RoleAssignment",
    "Sale",
    "Transaction",
    "import_all_models",
]
