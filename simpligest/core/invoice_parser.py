"""Best-effort parsing of OCR'd supplier invoices."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from simpligest.core.constants import DEFAULT_CURRENCY, UNKNOWN_INVOICE_NUMBER, UNKNOWN_SUPPLIER
from simpligest.core.numbers import parse_localized_number

_SUPPLIER_HINT_RE = re.compile(r"raz[oó]n|proveedor|empresa", re.IGNORECASE)
_INVOICE_NUMBER_RE = re.compile(
    r"\b(?:factura\s*)?(?:n[°º]|no\.?|nro\.?|folio|factura)\s*[:#]?\s*([A-Za-z0-9-]*\d[A-Za-z0-9-]*)",
    re.IGNORECASE,
)
_DMY_RE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4})\b")
_YMD_RE = re.compile(r"\b(\d{4})[/-](\d{1,2})[/-](\d{1,2})\b")
_TOTAL_RE = re.compile(
    r"(?<![a-z])(?:monto\s+(?:bruto|total)|total)\s*:?\s*\$?\s*([0-9][0-9.,]*)",
    re.IGNORECASE,
)
_AMOUNT = r"(\d{1,3}(?:\.\d{3})+(?:,\d+)?|\d+(?:[.,]\d+)?)"
_ITEM_RE = re.compile(
    r"^(.+?)\s+" + _AMOUNT + r"\s+\$?\s*" + _AMOUNT + r"\s+\$?\s*" + _AMOUNT + r"\s*$"
)

_TOTAL_TOLERANCE = 1.0


@dataclass
class InvoiceLineItem:
    description: str
    quantity: float
    unit_price: float
    total: float
    product_id: Optional[int] = None


@dataclass
class ParsedInvoice:
    supplier: str
    invoice_number: str
    issue_date: date
    total: float
    currency: str = DEFAULT_CURRENCY
    items: list = field(default_factory=list)
    raw_text: str = ""
    file_name: str = ""
    file_type: str = ""
    validation_warnings: list = field(default_factory=list)


def _parse_date(text: str) -> Optional[date]:
    match = _DMY_RE.search(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
    else:
        match = _YMD_RE.search(text)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_total(text: str) -> float:
    matches = _TOTAL_RE.findall(text)
    if not matches:
        return 0.0
    # the grand total is printed after subtotals and taxes
    return parse_localized_number(matches[-1].rstrip(".,"))


def _parse_items(lines) -> list:
    items = []
    for line in lines:
        match = _ITEM_RE.match(line)
        if not match:
            continue
        description = match.group(1).strip()
        quantity = parse_localized_number(match.group(2)) or 1
        unit_price = parse_localized_number(match.group(3))
        line_total = parse_localized_number(match.group(4)) or unit_price * quantity
        items.append(
            InvoiceLineItem(
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                total=line_total,
            )
        )
    return items


def parse_invoice_text(text: str, default_currency: str = DEFAULT_CURRENCY, today: Optional[date] = None) -> ParsedInvoice:
    text = text or ""
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    supplier = next((line for line in lines if _SUPPLIER_HINT_RE.search(line)), None)
    if supplier is None:
        supplier = lines[0] if lines else UNKNOWN_SUPPLIER

    number_match = _INVOICE_NUMBER_RE.search(text)
    invoice_number = number_match.group(1) if number_match else UNKNOWN_INVOICE_NUMBER

    issue_date = _parse_date(text) or today or date.today()
    total = _parse_total(text)

    items = _parse_items(lines)
    if not items and total:
        items.append(
            InvoiceLineItem(
                description="Invoice total",
                quantity=1,
                unit_price=total,
                total=total,
            )
        )

    invoice = ParsedInvoice(
        supplier=supplier,
        invoice_number=invoice_number,
        issue_date=issue_date,
        total=total,
        currency=default_currency,
        items=items,
        raw_text=text,
    )
    invoice.validation_warnings = build_validation_warnings(invoice)
    return invoice


def build_validation_warnings(invoice) -> list:
    warnings = []
    items_total = sum(item.total for item in invoice.items)

    if invoice.total and abs(items_total - invoice.total) > _TOTAL_TOLERANCE:
        warnings.append(
            "The total ({:,.0f}) does not match the sum of the items ({:,.0f}).".format(
                invoice.total, items_total
            )
        )
    if not invoice.supplier or invoice.supplier == UNKNOWN_SUPPLIER:
        warnings.append("Supplier could not be detected. Fill it in manually.")
    if not invoice.invoice_number or invoice.invoice_number == UNKNOWN_INVOICE_NUMBER:
        warnings.append("Invoice number not found.")
    return warnings


def _format_amount(value) -> str:
    value = float(value or 0)
    if value.is_integer():
        return str(int(value))
    return str(value)


def build_sii_xml(invoice) -> str:
    root = ET.Element("Factura")
    header = ET.SubElement(root, "Encabezado")

    id_doc = ET.SubElement(header, "IdDoc")
    ET.SubElement(id_doc, "TipoDTE").text = "33"
    ET.SubElement(id_doc, "Folio").text = str(invoice.invoice_number)
    ET.SubElement(id_doc, "FchEmis").text = invoice.issue_date.isoformat()

    issuer = ET.SubElement(header, "Emisor")
    ET.SubElement(issuer, "RznSoc").text = invoice.supplier

    totals = ET.SubElement(header, "Totales")
    ET.SubElement(totals, "MntTotal").text = _format_amount(invoice.total)

    details = ET.SubElement(root, "DetalleItems")
    for index, item in enumerate(invoice.items, start=1):
        detail = ET.SubElement(details, "Detalle")
        ET.SubElement(detail, "NroLinDet").text = str(index)
        ET.SubElement(detail, "NmbItem").text = item.description
        ET.SubElement(detail, "QtyItem").text = _format_amount(item.quantity)
        ET.SubElement(detail, "PrcItem").text = _format_amount(item.unit_price)
        ET.SubElement(detail, "MontoItem").text = _format_amount(item.total)

    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body


__all__ = [
    "InvoiceLineItem",
    "ParsedInvoice",
    "build_sii_xml",
    "build_validation_warnings",
    "parse_invoice_text",
]
