import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy import select

from simpligest.core.dates import as_utc, business_timezone, local_date, parse_hhmm, utc_now
from simpligest.core.numbers import format_currency
from simpligest.database import session_scope
from simpligest.models.notification import NotificationLog
from simpligest.models.sale import Sale
from simpligest.services.settings_service import get_business_settings
from simpligest.services.whatsapp_service import send_whatsapp

logger = logging.getLogger(__name__)

LOW_STOCK = "low_stock"
DAILY_SUMMARY = "daily_summary"


def _format_quantity(value):
    value = float(value or 0)
    if value.is_integer():
        return str(int(value))
    return "{:g}".format(value)


def notification_destination(business):
    destination = (business.whatsapp_number or "").strip() or (business.phone or "").strip()
    return destination or None


def build_low_stock_message(product, business_name):
    return (
        "⚠ Low stock alert ({})\n"
        "Product: {}\n"
        "Remaining stock: {} {}\n"
        "Minimum stock: {}"
    ).format(
        business_name or "SimpliGest",
        product.name,
        _format_quantity(product.stock),
        product.unit or "units",
        _format_quantity(product.stock_min),
    )


def _record(db, notification_type, phone, message, delivered, failure_reason, product_id=None, today=None):
    db.add(
        NotificationLog(
            notification_date=today or local_date(utc_now()),
            notification_type=notification_type,
            product_id=product_id,
            phone_number=phone,
            message=message,
            delivered=delivered,
            failure_reason=failure_reason,
        )
    )


def _deliver(db, notification_type, destination, message, business, product_id=None, today=None):
    try:
        send_whatsapp(message, destination, from_number=business.whatsapp_from)
    except (RuntimeError, ValueError) as exc:
        _record(db, notification_type, destination, message, False, str(exc), product_id, today)
        raise
    _record(db, notification_type, destination, message, True, None, product_id, today)


def send_low_stock_alert(db, product, business=None):
    """Send the low-stock WhatsApp alert for ``product``.

    Raises RuntimeError/ValueError on delivery failure; the attempt is logged
    in the notifications table either way.
    """
    business = business or get_business_settings(db)
    destination = notification_destination(business)
    if not destination:
        raise ValueError("No WhatsApp number is configured for alerts")
    message = build_low_stock_message(product, business.business_name)
    _deliver(db, LOW_STOCK, destination, message, business, product_id=product.id)
    logger.info("Low stock alert sent for product %s", product.id)
    return message


def build_daily_summary_message(sales, today, currency="CLP", business_name=None, tz=None):
    todays_sales = [sale for sale in sales if local_date(sale.sold_at, tz) == today]
    if not todays_sales:
        raise ValueError("There are no sales to summarize today")

    total = sum(sale.total for sale in todays_sales)
    units = sum(sale.quantity for sale in todays_sales)

    by_product = defaultdict(float)
    for sale in todays_sales:
        by_product[sale.product_name] += sale.total
    best_name, best_total = max(by_product.items(), key=lambda item: item[1])

    header = "\U0001F4CA Sales summary"
    if business_name:
        header = "{} - {}".format(header, business_name)
    lines = [
        header,
        "Date: {}".format(today.strftime("%d-%m-%Y")),
        "Total sold: {}".format(format_currency(total, currency)),
        "Units sold: {}".format(_format_quantity(units)),
        "Best seller: {} ({})".format(best_name, format_currency(best_total, currency)),
        "Thanks for using SimpliGest.",
    ]
    return "\n".join(lines)


def should_send_daily_summary(now, target_time=None, tz=None):
    if not target_time:
        return True
    target = parse_hhmm(target_time)
    local_now = as_utc(now).astimezone(tz or business_timezone())
    return local_now.time().replace(second=0, microsecond=0) >= target


def send_daily_sales_summary(db, now=None, business=None):
    now = now or utc_now()
    business = business or get_business_settings(db)
    destination = notification_destination(business)
    if not destination:
        raise ValueError("No WhatsApp number is configured for the summary")

    today = local_date(now)
    start = datetime.combine(today, datetime.min.time(), tzinfo=business_timezone())
    sales = db.execute(
        select(Sale).where(Sale.sold_at >= as_utc(start)).order_by(Sale.sold_at)
    ).scalars().all()
    message = build_daily_summary_message(
        sales,
        today,
        currency=business.currency,
        business_name=business.business_name,
    )
    _deliver(db, DAILY_SUMMARY, destination, message, business, today=today)
    business.whatsapp_last_summary_date = today.isoformat()
    logger.info("Daily sales summary sent for %s", today)
    return message


def run_daily_summary(now=None, session_factory=None):
    """Scheduler entry point: send today's summary once, after the configured time."""
    now = now or utc_now()
    with session_scope(session_factory) as db:
        business = get_business_settings(db)
        if not (business.whatsapp_enabled and business.whatsapp_daily_summary_enabled):
            return {"status": "disabled"}
        today = local_date(now)
        if business.whatsapp_last_summary_date == today.isoformat():
            return {"status": "already_sent"}
        if not should_send_daily_summary(now, business.whatsapp_daily_summary_time):
            return {"status": "waiting"}
        try:
            send_daily_sales_summary(db, now=now, business=business)
        except ValueError as exc:
            logger.debug("Daily summary skipped: %s", exc)
            return {"status": "skipped", "reason": str(exc)}
        except RuntimeError as exc:
            logger.warning("Daily summary delivery failed: %s", exc)
            business.whatsapp_last_summary_date = today.isoformat()
            return {"status": "failed", "reason": str(exc)}
        return {"status": "sent"}


__all__ = [
    "DAILY_SUMMARY",
    "LOW_STOCK",
    "build_daily_summary_message",
    "build_low_stock_message",
    "notification_destination",
    "run_daily_summary",
    "send_daily_sales_summary",
    "send_low_stock_alert",
    "should_send_daily_summary",
]
