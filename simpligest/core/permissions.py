from dataclasses import dataclass

PERMISSION_KEYS = (
    "view_inventory",
    "edit_inventory",
    "view_sales",
    "create_sales",
    "view_finance",
    "manage_transactions",
    "manage_users",
)

PERMISSION_LABELS = {
    "view_inventory": "View inventory",
    "edit_inventory": "Create/edit inventory",
    "view_sales": "View sales",
    "create_sales": "Record sales",
    "view_finance": "View finance and reports",
    "manage_transactions": "Record movements and invoices",
    "manage_users": "Assign roles and permissions",
}

ALWAYS_ALLOWED_PAGES = ("home", "dashboard", "settings")


@dataclass(frozen=True)
class RoleDefinition:
    key: str
    name: str
    description: str
    permissions: dict


def _permission_set(*granted):
    unknown = set(granted) - set(PERMISSION_KEYS)
    if unknown:
        raise ValueError("Unknown permissions: {}".format(", ".join(sorted(unknown))))
    return {key: key in granted for key in PERMISSION_KEYS}


ROLE_DEFINITIONS = (
    RoleDefinition(
        key="admin",
        name="Administrator",
        description="Full access to every feature",
        permissions=_permission_set(*PERMISSION_KEYS),
    ),
    RoleDefinition(
        key="seller",
        name="Seller",
        description="Can sell and view inventory without changing it",
        permissions=_permission_set("view_inventory", "view_sales", "create_sales"),
    ),
    RoleDefinition(
        key="accountant",
        name="Accountant",
        description="Access to financial reports and statistics",
        permissions=_permission_set("view_finance"),
    ),
    RoleDefinition(
        key="warehouse",
        name="Warehouse",
        description="Manages inventory without touching sales or finance",
        permissions=_permission_set("view_inventory", "edit_inventory"),
    ),
    RoleDefinition(
        key="custom",
        name="Custom",
        description="Permissions tailored to the operation",
        permissions=_permission_set(
            "view_inventory",
            "edit_inventory",
            "view_sales",
            "create_sales",
            "view_finance",
        ),
    ),
)

ROLE_KEYS = tuple(role.key for role in ROLE_DEFINITIONS)


def get_role_definition(role) -> RoleDefinition:
    for definition in ROLE_DEFINITIONS:
        if definition.key == role:
            return definition
    return ROLE_DEFINITIONS[0]


def merge_permissions(role, overrides=None) -> dict:
    merged = dict(get_role_definition(role).permissions)
    for key, value in (overrides or {}).items():
        if key not in PERMISSION_KEYS:
            raise ValueError("Unknown permission: {}".format(key))
        if value is None:
            continue
        merged[key] = bool(value)
    return merged


def allowed_pages(permissions) -> set:
    pages = set(ALWAYS_ALLOWED_PAGES)
    if permissions.get("view_inventory") or permissions.get("edit_inventory"):
        pages.add("inventory")
    if permissions.get("view_finance"):
        pages.add("finance")
        pages.add("reports")
    return pages


__all__ = [
    "PERMISSION_KEYS",
    "PERMISSION_LABELS",
    "ROLE_DEFINITIONS",
    "ROLE_KEYS",
    "RoleDefinition",
    "allowed_pages",
    "get_role_definition",
    "merge_permissions",
]
