import logging
import math
from pathlib import Path

from openpyxl import load_workbook
from sqlalchemy import func, or_, select

from simpligest.core.dates import utc_now
from simpligest.core.numbers import parse_localized_number
from simpligest.models.product import Product
from simpligest.services.settings_service import get_business_settings

logger = logging.getLogger(__name__)

# Field names used by older records and spreadsheets.
FIELD_ALIASES = {
    "name": "name",
    "nombre": "name",
    "producto": "name",
    "product": "name",
    "category": "category",
    "categoria": "category",
    "supplier": "supplier",
    "proveedor": "supplier",
    "unit": "unit",
    "unidad": "unit",
    "stock": "stock",
    "cantidad": "stock",
    "quantity": "stock",
    "stock_min": "stock_min",
    "stockmin": "stock_min",
    "stockminimo": "stock_min",
    "min_stock": "stock_min",
    "purchase_price": "purchase_price",
    "purchaseprice": "purchase_price",
    "costo": "purchase_price",
    "cost": "purchase_price",
    "cost_price": "purchase_price",
    "sale_price": "sale_price",
    "saleprice": "sale_price",
    "precioventa": "sale_price",
    "precio_venta": "sale_price",
    "precio": "sale_price",
    "price": "sale_price",
}

_TEXT_FIELDS = ("name", "category", "supplier", "unit")
_NUMERIC_FIELDS = ("stock", "stock_min", "purchase_price", "sale_price")


def _normalize_key(value) -> str:
    if value is None:
        return ""
    key = str(value).strip()
    if not key:
        return ""
    # camelCase -> snake_case
    chars = []
    for index, char in enumerate(key):
        if char.isupper() and index and key[index - 1].islower():
            chars.append("_")
        chars.append(char.lower())
    key = "".join(chars)
    for char in (" ", "-", ".", "/"):
        key = key.replace(char, "_")
    key = "_".join(part for part in key.split("_") if part)
    key = key.replace("í", "i").replace("á", "a").replace("ó", "o")
    return FIELD_ALIASES.get(key) or FIELD_ALIASES.get(key.replace("_", ""), "")


def _to_number(value, field):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        number = parse_localized_number(value)
    if not math.isfinite(number):
        raise ValueError(f"{field} must be a number")
    return number


def normalize_product_record(raw: dict) -> dict:
    """Map a raw record (legacy or canonical keys) onto product columns."""
    record = {}
    for key, value in (raw or {}).items():
        field = _normalize_key(key)
        if not field or field in record:
            continue
        if field in _TEXT_FIELDS:
            text = "" if value is None else str(value).strip()
            record[field] = text
        else:
            number = _to_number(value, field)
            if number is not None:
                record[field] = number
    return record


def _validate_values(values: dict) -> None:
    if "name" in values and not (values["name"] or "").strip():
        raise ValueError("name is required")
    for field in _NUMERIC_FIELDS:
        value = values.get(field)
        if value is not None and value < 0:
            raise ValueError(f"{field} must be non-negative")


def list_products(db, search=None) -> list:
    stmt = select(Product)
    if search and search.strip():
        pattern = "%{}%".format(search.strip().lower())
        stmt = stmt.where(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.category).like(pattern),
                func.lower(Product.supplier).like(pattern),
            )
        )
    stmt = stmt.order_by(func.lower(Product.name), Product.id)
    return list(db.execute(stmt).scalars().all())


def get_product(db, product_id) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise LookupError("Product not found")
    return product


def find_product_by_name(db, name):
    if not name:
        return None
    stmt = (
        select(Product)
        .where(func.lower(Product.name) == name.strip().lower())
        .order_by(Product.id)
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def create_product(db, values: dict) -> Product:
    values = {key: value for key, value in values.items() if value is not None}
    if "name" not in values:
        raise ValueError("name is required")
    _validate_values(values)

    business = get_business_settings(db)
    values.setdefault("stock_min", business.default_stock_min or 0)
    if not values.get("unit"):
        values["unit"] = business.default_unit or "unit"
    values["name"] = values["name"].strip()

    product = Product(**values)
    db.add(product)
    db.flush()
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def update_product(db, product_id, changes: dict) -> Product:
    product = get_product(db, product_id)
    changes = {key: value for key, value in changes.items() if value is not None}
    _validate_values(changes)
    for key, value in changes.items():
        if key == "name":
            value = value.strip()
        setattr(product, key, value)
    product.updated_at = utc_now()
    db.flush()
    return product


def delete_product(db, product_id) -> None:
    product = get_product(db, product_id)
    db.delete(product)
    db.flush()
    logger.info("Deleted product %s", product_id)


def import_products(db, records, *, dry_run=False) -> dict:
    """Upsert products by name; rows without a name or with bad numbers are skipped."""
    counts = {"created": 0, "updated": 0, "skipped": 0, "errors": []}
    for index, raw in enumerate(records, start=1):
        try:
            values = normalize_product_record(raw)
            name = values.get("name")
            if not name:
                counts["skipped"] += 1
                continue
            existing = find_product_by_name(db, name)
            if existing is None:
                create_product(db, values)
                counts["created"] += 1
            else:
                values.pop("name", None)
                update_product(db, existing.id, values)
                counts["updated"] += 1
        except ValueError as exc:
            counts["skipped"] += 1
            counts["errors"].append("row {}: {}".format(index, exc))
    if dry_run:
        db.rollback()
    return counts


def load_workbook_records(workbook_path, sheet=None) -> list:
    workbook_path = Path(workbook_path)
    if not workbook_path.exists():
        raise FileNotFoundError(f"File not found: {workbook_path}")
    if workbook_path.suffix.lower() != ".xlsx":
        raise ValueError("Only .xlsx files are supported.")

    workbook = load_workbook(workbook_path, data_only=True, read_only=True)
    try:
        if sheet:
            if sheet not in workbook.sheetnames:
                raise ValueError(f"Sheet not found: {sheet}")
            worksheet = workbook[sheet]
        else:
            worksheet = workbook[workbook.sheetnames[0]]

        rows_iter = worksheet.iter_rows(values_only=True)
        headers = next(rows_iter, None)
        if not headers:
            return []
        records = []
        for row in rows_iter:
            if row is None or all(value is None or str(value).strip() == "" for value in row):
                continue
            records.append(
                {header: row[idx] for idx, header in enumerate(headers) if header is not None and idx < len(row)}
            )
        return records
    finally:
        workbook.close()


def import_products_workbook(db, workbook_path, sheet=None, *, dry_run=False) -> dict:
    records = load_workbook_records(workbook_path, sheet)
    counts = import_products(db, records, dry_run=dry_run)
    logger.info(
        "Imported %s: %s created, %s updated, %s skipped",
        workbook_path,
        counts["created"],
        counts["updated"],
        counts["skipped"],
    )
    return counts


__all__ = [
    "create_product",
    "delete_product",
    "find_product_by_name",
    "get_product",
    "import_products",
    "import_products_workbook",
    "list_products",
    "load_workbook_records",
    "normalize_product_record",
    "update_product",
]
