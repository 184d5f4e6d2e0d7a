import json
import logging

from sqlalchemy import select

from simpligest.core.dates import utc_now
from simpligest.core.invoice_parser import (
    InvoiceLineItem,
    ParsedInvoice,
    build_validation_warnings,
    parse_invoice_text,
)
from simpligest.models.invoice import Invoice, InvoiceLine
from simpligest.models.product import Product
from simpligest.services.finance_service import add_transaction
from simpligest.services.product_service import find_product_by_name
from simpligest.services.settings_service import get_business_settings

logger = logging.getLogger(__name__)

INVOICE_EXPENSE_CATEGORY = "Supplier invoice"


def scan_invoice(db, text, currency=None, file_name="", file_type="") -> ParsedInvoice:
    if not text or not text.strip():
        raise ValueError("Invoice text is empty")
    currency = currency or get_business_settings(db).currency
    invoice = parse_invoice_text(text, default_currency=currency)
    invoice.file_name = file_name or ""
    invoice.file_type = file_type or ""
    for item in invoice.items:
        product = find_product_by_name(db, item.description)
        if product is not None:
            item.product_id = product.id
    return invoice


def _coerce_invoice(data) -> ParsedInvoice:
    if isinstance(data, ParsedInvoice):
        return data
    items = [
        item if isinstance(item, InvoiceLineItem) else InvoiceLineItem(**item)
        for item in data.get("items", [])
    ]
    return ParsedInvoice(
        supplier=data.get("supplier") or "",
        invoice_number=data.get("invoice_number") or "",
        issue_date=data["issue_date"],
        total=data.get("total") or 0,
        currency=data.get("currency") or "CLP",
        items=items,
        raw_text=data.get("raw_text") or "",
        file_name=data.get("file_name") or "",
        file_type=data.get("file_type") or "",
    )


def process_invoice(db, data) -> dict:
    """Store a reviewed invoice, book it as an expense and receive its stock."""
    invoice = _coerce_invoice(data)
    if not invoice.items:
        raise ValueError("The invoice has no items")
    if invoice.total < 0:
        raise ValueError("total must be non-negative")
    for item in invoice.items:
        if item.quantity <= 0:
            raise ValueError("Item quantities must be greater than zero")
        if item.unit_price < 0 or item.total < 0:
            raise ValueError("Item amounts must be non-negative")

    total = invoice.total or sum(item.total for item in invoice.items)
    warnings = build_validation_warnings(invoice)

    record = Invoice(
        supplier=invoice.supplier,
        invoice_number=invoice.invoice_number,
        issue_date=invoice.issue_date,
        total=total,
        currency=invoice.currency,
        file_name=invoice.file_name,
        file_type=invoice.file_type,
        raw_text=invoice.raw_text or None,
        warnings=json.dumps(warnings, ensure_ascii=False),
    )
    now = utc_now()
    for line_number, item in enumerate(invoice.items, start=1):
        product = None
        if item.product_id is not None:
            product = db.get(Product, item.product_id)
            if product is None:
                raise LookupError("Product {} not found".format(item.product_id))
            product.stock = (product.stock or 0) + item.quantity
            product.purchase_price = item.unit_price
            product.updated_at = now
        record.items.append(
            InvoiceLine(
                line_number=line_number,
                product_id=product.id if product else None,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
            )
        )
    db.add(record)
    db.flush()

    transaction = None
    if total > 0:
        transaction = add_transaction(
            db,
            {
                "type": "expense",
                "amount": total,
                "description": "Invoice {} - {}".format(invoice.invoice_number, invoice.supplier),
                "category": INVOICE_EXPENSE_CATEGORY,
            },
            source="invoice",
            invoice_id=record.id,
        )
    logger.info(
        "Processed invoice %s from %s with %s lines", record.invoice_number, record.supplier, len(record.items)
    )
    return {"invoice": record, "transaction": transaction, "warnings": warnings}


def list_invoices(db, limit=50) -> list:
    stmt = select(Invoice).order_by(Invoice.issue_date.desc(), Invoice.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_invoice(db, invoice_id) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if invoice is None:
        raise LookupError("Invoice not found")
    return invoice


def serialize_invoice(record, transaction_id=None) -> dict:
    return {
        "id": record.id,
        "supplier": record.supplier,
        "invoice_number": record.invoice_number,
        "issue_date": record.issue_date,
        "total": record.total,
        "currency": record.currency,
        "items": [
            {
                "description": line.description,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "total": line.total,
                "product_id": line.product_id,
            }
            for line in record.items
        ],
        "file_name": record.file_name,
        "file_type": record.file_type,
        "raw_text": record.raw_text,
        "validation_warnings": json.loads(record.warnings) if record.warnings else [],
        "created_at": record.created_at,
        "transaction_id": transaction_id,
    }


__all__ = [
    "get_invoice",
    "list_invoices",
    "process_invoice",
    "scan_invoice",
    "serialize_invoice",
]
