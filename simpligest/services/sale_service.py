import logging
import math

from sqlalchemy import select

from simpligest.core.dates import as_utc, utc_now
from simpligest.models.sale import Sale
from simpligest.services.notification_service import send_low_stock_alert
from simpligest.services.product_service import get_product
from simpligest.services.settings_service import get_business_settings

logger = logging.getLogger(__name__)

_PRICE_TOLERANCE = 1e-9


def is_low_stock(product) -> bool:
    stock_min = product.stock_min or 0
    return stock_min > 0 and (product.stock or 0) <= stock_min


def record_quick_sale(db, product_id, quantity, unit_price=None, now=None, notify=True) -> dict:
    if quantity is None or not math.isfinite(quantity) or quantity <= 0:
        raise ValueError("quantity must be greater than zero")

    product = get_product(db, product_id)
    business = get_business_settings(db)

    list_price = product.sale_price or 0.0
    if unit_price is None:
        unit_price = list_price
    if not math.isfinite(unit_price) or unit_price < 0:
        raise ValueError("unit_price must be non-negative")
    if abs(unit_price - list_price) > _PRICE_TOLERANCE and not business.allow_custom_price_on_sale:
        raise ValueError("Custom prices are disabled for quick sales")

    stock = product.stock or 0
    if quantity > stock and not business.allow_negative_stock:
        raise ValueError(
            "Insufficient stock for {}: {} available".format(product.name, stock)
        )

    sold_at = as_utc(now) if now is not None else utc_now()
    product.stock = stock - quantity
    product.updated_at = sold_at
    sale = Sale(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=unit_price,
        total=quantity * unit_price,
        sold_at=sold_at,
    )
    db.add(sale)
    db.flush()
    logger.info("Recorded sale %s: %s x %s", sale.id, quantity, product.name)

    result = {
        "sale": sale,
        "remaining_stock": product.stock,
        "low_stock": is_low_stock(product),
        "alert_sent": False,
        "alert_error": None,
    }
    if notify and result["low_stock"] and business.alert_stock_enabled and business.whatsapp_enabled:
        try:
            send_low_stock_alert(db, product, business)
            result["alert_sent"] = True
        except (RuntimeError, ValueError) as exc:
            logger.warning("Low stock alert failed for product %s: %s", product.id, exc)
            result["alert_error"] = str(exc)
    return result


def list_sales(db, since=None, limit=None) -> list:
    stmt = select(Sale).order_by(Sale.sold_at.desc(), Sale.id.desc())
    if since is not None:
        stmt = stmt.where(Sale.sold_at >= as_utc(since))
    if limit:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


__all__ = ["is_low_stock", "list_sales", "record_quick_sale"]
