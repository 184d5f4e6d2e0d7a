"""Sales, stock and supplier reports over a time range, with Excel export."""

import io
from collections import defaultdict
from datetime import timedelta

from openpyxl import Workbook
from sqlalchemy import select

from simpligest.core.constants import NO_SUPPLIER, UNCATEGORIZED
from simpligest.core.dates import as_utc, local_date, utc_now
from simpligest.models.product import Product
from simpligest.models.sale import Sale

TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90, "all": None}
REPORT_METRICS = ("sales", "stock", "suppliers")
LOW_STOCK_MARGIN = 2
# spreadsheet apps evaluate cells starting with these as formulas
_FORMULA_PREFIXES = ("=", "+", "-", "@")


def normalize_metrics(metrics):
    if not metrics:
        return list(REPORT_METRICS)
    if isinstance(metrics, str):
        metrics = [part.strip() for part in metrics.split(",") if part.strip()]
    unknown = [metric for metric in metrics if metric not in REPORT_METRICS]
    if unknown:
        raise ValueError("Unknown report metrics: {}".format(", ".join(unknown)))
    return [metric for metric in REPORT_METRICS if metric in metrics]


def range_start(time_range, now):
    """Earliest sale time inside ``time_range``; ``None`` means no lower bound."""
    if time_range not in TIME_RANGES:
        raise ValueError("time_range must be one of: {}".format(", ".join(TIME_RANGES)))
    days = TIME_RANGES[time_range]
    if days is None:
        return None
    return as_utc(now) - timedelta(days=days)


def sales_by_product(products, sales):
    names = {product.id: product.name for product in products}
    totals = {}
    for sale in sales:
        name = sale.product_name or names.get(sale.product_id) or "Product"
        current = totals.setdefault(sale.product_id, {"name": name, "total": 0.0, "units": 0.0})
        current["total"] += sale.total
        current["units"] += sale.quantity
    return sorted(totals.values(), key=lambda row: row["total"], reverse=True)


def sales_by_category(products, sales):
    categories = {product.id: product.category for product in products}
    totals = {}
    for sale in sales:
        category = categories.get(sale.product_id) or UNCATEGORIZED
        current = totals.setdefault(category, {"category": category, "total": 0.0, "units": 0.0})
        current["total"] += sale.total
        current["units"] += sale.quantity
    return sorted(totals.values(), key=lambda row: row["total"], reverse=True)


def _sorted_series(totals):
    rows = [{"label": label, "value": value} for label, value in totals.items()]
    rows.sort(key=lambda row: row["value"], reverse=True)
    return rows


def sales_by_period(sales, tz=None):
    daily = defaultdict(float)
    weekly = defaultdict(float)
    monthly = defaultdict(float)
    for sale in sales:
        day = local_date(sale.sold_at, tz)
        monday = day - timedelta(days=day.weekday())
        daily[day.isoformat()] += sale.total
        weekly[monday.isoformat()] += sale.total
        monthly[day.strftime("%Y-%m")] += sale.total
    return {
        "daily": _sorted_series(daily),
        "weekly": _sorted_series(weekly),
        "monthly": _sorted_series(monthly),
    }


def low_stock_report(products, margin=LOW_STOCK_MARGIN):
    rows = [
        {
            "product_id": product.id,
            "name": product.name,
            "stock": product.stock or 0,
            "stock_min": product.stock_min or 0,
        }
        for product in products
        if (product.stock or 0) <= (product.stock_min or 0) + margin
    ]
    rows.sort(key=lambda row: row["stock"])
    return rows


def supplier_performance(products, sales):
    suppliers = {}
    product_suppliers = {}
    for product in products:
        supplier = product.supplier or NO_SUPPLIER
        product_suppliers[product.id] = supplier
        current = suppliers.setdefault(
            supplier,
            {"supplier": supplier, "total_sales": 0.0, "units": 0.0, "product_count": 0},
        )
        current["product_count"] += 1

    for sale in sales:
        supplier = product_suppliers.get(sale.product_id)
        if supplier is None:
            continue
        suppliers[supplier]["total_sales"] += sale.total
        suppliers[supplier]["units"] += sale.quantity

    return sorted(suppliers.values(), key=lambda row: row["total_sales"], reverse=True)


def build_report(db, metrics=None, time_range="30d", now=None):
    now = as_utc(now) if now is not None else utc_now()
    metrics = normalize_metrics(metrics)
    products = db.execute(select(Product).order_by(Product.id)).scalars().all()
    start = range_start(time_range, now)
    stmt = select(Sale).order_by(Sale.sold_at)
    if start is not None:
        stmt = stmt.where(Sale.sold_at >= start)
    sales = db.execute(stmt).scalars().all()

    report = {"time_range": time_range, "metrics": metrics, "generated_at": now}
    if "sales" in metrics:
        report["sales"] = {
            "by_product": sales_by_product(products, sales),
            "by_category": sales_by_category(products, sales),
            "by_period": sales_by_period(sales),
        }
    if "stock" in metrics:
        report["stock"] = low_stock_report(products)
    if "suppliers" in metrics:
        report["suppliers"] = supplier_performance(products, sales)
    return report


def _append_row(sheet, values):
    sheet.append(values)
    for cell in sheet[sheet.max_row]:
        if isinstance(cell.value, str) and cell.value.startswith(_FORMULA_PREFIXES):
            cell.data_type = "s"


def export_report_xlsx(report) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)

    if "sales" in report:
        sheet = workbook.create_sheet("Sales by product")
        _append_row(sheet, ["Product", "Total", "Units"])
        for row in report["sales"]["by_product"]:
            _append_row(sheet, [row["name"], row["total"], row["units"]])

        sheet = workbook.create_sheet("Sales by category")
        _append_row(sheet, ["Category", "Total", "Units"])
        for row in report["sales"]["by_category"]:
            _append_row(sheet, [row["category"], row["total"], row["units"]])

        sheet = workbook.create_sheet("Sales by month")
        _append_row(sheet, ["Month", "Total"])
        for row in report["sales"]["by_period"]["monthly"]:
            _append_row(sheet, [row["label"], row["value"]])

    if "stock" in report:
        sheet = workbook.create_sheet("Low stock")
        _append_row(sheet, ["Product", "Stock", "Minimum"])
        for row in report["stock"]:
            _append_row(sheet, [row["name"], row["stock"], row["stock_min"]])

    if "suppliers" in report:
        sheet = workbook.create_sheet("Suppliers")
        _append_row(sheet, ["Supplier", "Sales", "Units", "Products"])
        for row in report["suppliers"]:
            _append_row(sheet, [row["supplier"], row["total_sales"], row["units"], row["product_count"]])

    if not workbook.sheetnames:
        workbook.create_sheet("Report")

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


__all__ = [
    "REPORT_METRICS",
    "TIME_RANGES",
    "build_report",
    "export_report_xlsx",
    "low_stock_report",
    "normalize_metrics",
    "range_start",
    "sales_by_category",
    "sales_by_period",
    "sales_by_product",
    "supplier_performance",
]
