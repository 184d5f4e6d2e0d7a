TRANSACTION_TYPES = ("income", "expense")
ALERT_LEVELS = ("strict", "normal", "relaxed")
SII_ENVIRONMENTS = ("certificacion", "produccion")

DEFAULT_CURRENCY = "CLP"
UNCATEGORIZED = "Uncategorized"
NO_SUPPLIER = "No supplier"
QUICK_SALE_CATEGORY = "Quick sale"
UNKNOWN_SUPPLIER = "Unnamed supplier"
UNKNOWN_INVOICE_NUMBER = "No number"
DEFAULT_MOVEMENT_DESCRIPTION = "Movement"
DEFAULT_MOVEMENT_CATEGORY = "General"
