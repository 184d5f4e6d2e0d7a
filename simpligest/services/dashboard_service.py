from collections import defaultdict
from datetime import timedelta

from sqlalchemy import func, select

from simpligest.core.constants import UNCATEGORIZED
from simpligest.core.dates import as_utc, local_date, utc_now
from simpligest.models.product import Product
from simpligest.models.sale import Sale
from simpligest.services.settings_service import get_business_settings

TOP_PRODUCTS_LIMIT = 6
LATEST_SALES_LIMIT = 10
KPI_WINDOW_DAYS = 30
_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

def default_dashboard_layout():
    return [
        {
            "id": "inventory-value",
            "metric": "inventoryValue",
            "view": "number",
            "width": 1,
            "title": "Inventory value",
        },
        {
            "id": "weekly-sales",
            "metric": "weeklySales",
            "view": "chart",
            "width": 2,
            "title": "Sales this week",
        },
        {
            "id": "critical-stock",
            "metric": "criticalStock",
            "view": "table",
            "width": 1,
            "title": "Critical stock",
        },
        {
            "id": "top-products",
            "metric": "topProducts",
            "view": "table",
            "width": 2,
            "title": "Top moving products",
        },
    ]


def weekly_sales_series(sales, today, tz=None, days=7):
    totals = defaultdict(float)
    for sale in sales:
        totals[local_date(sale.sold_at, tz)] += sale.total

    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append(
            {
                "label": _WEEKDAY_LABELS[day.weekday()],
                "date": day.isoformat(),
                "value": totals.get(day, 0.0),
            }
        )
    return series


def sales_by_category(products, sales):
    categories = {product.id: product.category for product in products}
    totals = defaultdict(float)
    for sale in sales:
        category = categories.get(sale.product_id) or UNCATEGORIZED
        totals[category] += sale.total
    rows = [{"category": category, "total": total} for category, total in totals.items()]
    rows.sort(key=lambda row: row["total"], reverse=True)
    return rows


def top_products(sales, limit=TOP_PRODUCTS_LIMIT):
    totals = {}
    for sale in sales:
        key = sale.product_id if sale.product_id is not None else sale.product_name
        current = totals.setdefault(
            key,
            {"product_id": sale.product_id, "name": sale.product_name, "quantity": 0.0, "total": 0.0},
        )
        current["quantity"] += sale.quantity
        current["total"] += sale.total
    rows = sorted(totals.values(), key=lambda row: row["total"], reverse=True)
    return rows[:limit]


def critical_stock(products):
    rows = [
        product
        for product in products
        if (product.stock_min or 0) > 0 and (product.stock or 0) <= product.stock_min
    ]
    rows.sort(key=lambda product: product.stock or 0)
    return [
        {
            "product_id": product.id,
            "name": product.name,
            "stock": product.stock,
            "stock_min": product.stock_min,
            "unit": product.unit,
        }
        for product in rows
    ]


def inventory_value(products):
    return sum((product.sale_price or 0) * (product.stock or 0) for product in products)


def latest_sales(sales, limit=LATEST_SALES_LIMIT):
    rows = sorted(sales, key=lambda sale: as_utc(sale.sold_at), reverse=True)[:limit]
    return [
        {
            "id": sale.id,
            "product_id": sale.product_id,
            "product_name": sale.product_name,
            "quantity": sale.quantity,
            "total": sale.total,
            "sold_at": as_utc(sale.sold_at),
        }
        for sale in rows
    ]


def kpi_overview(products, sales, now):
    since = as_utc(now) - timedelta(days=KPI_WINDOW_DAYS)
    recent = [sale for sale in sales if as_utc(sale.sold_at) >= since]
    return {
        "sku_count": len(products),
        "inventory_value": inventory_value(products),
        "sales_30d": sum(sale.total for sale in recent),
        "sales_count_30d": len(recent),
        "low_stock_count": len(critical_stock(products)),
    }


def product_sales_totals():
    """All-time quantity and revenue per product, shaped like sale rows."""
    return (
        select(
            Sale.product_id.label("product_id"),
            Sale.product_name.label("product_name"),
            func.sum(Sale.quantity).label("quantity"),
            func.sum(Sale.total).label("total"),
        )
        .group_by(Sale.product_id, Sale.product_name)
    )


def dashboard_overview(db, now=None):
    now = as_utc(now) if now is not None else utc_now()
    business = get_business_settings(db)
    products = db.execute(select(Product).order_by(Product.id)).scalars().all()
    # the KPI window also covers the seven local days of the weekly chart
    recent = db.execute(
        select(Sale).where(Sale.sold_at >= now - timedelta(days=KPI_WINDOW_DAYS))
    ).scalars().all()
    newest = db.execute(
        select(Sale).order_by(Sale.sold_at.desc(), Sale.id.desc()).limit(LATEST_SALES_LIMIT)
    ).scalars().all()
    totals = db.execute(product_sales_totals()).all()
    today = local_date(now)

    return {
        "currency": business.currency,
        "layout": default_dashboard_layout(),
        "kpis": kpi_overview(products, recent, now),
        "metrics": {
            "inventoryValue": inventory_value(products),
            "weeklySales": weekly_sales_series(recent, today),
            "criticalStock": critical_stock(products),
            "topProducts": top_products(totals),
            "categorySales": sales_by_category(products, totals),
            "latestSales": latest_sales(newest),
        },
    }


__all__ = [
    "critical_stock",
    "dashboard_overview",
    "default_dashboard_layout",
    "inventory_value",
    "kpi_overview",
    "latest_sales",
    "product_sales_totals",
    "sales_by_category",
    "top_products",
    "weekly_sales_series",
]
