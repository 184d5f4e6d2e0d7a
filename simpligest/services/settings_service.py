import json
import logging

from sqlalchemy import select

from simpligest.core.constants import ALERT_LEVELS, SII_ENVIRONMENTS
from simpligest.core.dates import parse_hhmm, utc_now
from simpligest.models.business_settings import BusinessSettings

logger = logging.getLogger(__name__)

_ENUM_FIELDS = {
    "alert_level": ALERT_LEVELS,
    "sii_environment": SII_ENVIRONMENTS,
}
_NON_NEGATIVE_FIELDS = ("default_stock_min", "default_tax_rate")


def get_business_settings(db) -> BusinessSettings:
    """Return the business settings row, creating the default one on first read."""
    row = db.execute(select(BusinessSettings).order_by(BusinessSettings.id).limit(1)).scalars().first()
    if row is None:
        row = BusinessSettings()
        db.add(row)
        db.flush()
        logger.info("Created default business settings")
    return row


def load_categories(row) -> list:
    if not row.categories:
        return []
    try:
        values = json.loads(row.categories)
    except ValueError:
        return []
    return [str(value) for value in values if str(value).strip()]


def _normalize_time(value):
    if value is None:
        return None
    value_text = str(value).strip()
    if not value_text:
        return None
    parsed = parse_hhmm(value_text)
    return parsed.strftime("%H:%M")


def update_business_settings(db, changes: dict) -> BusinessSettings:
    row = get_business_settings(db)
    for key, value in changes.items():
        if not hasattr(BusinessSettings, key) or key in ("id", "created_at", "updated_at"):
            raise ValueError("Unknown setting: {}".format(key))
        if key in _ENUM_FIELDS and value not in _ENUM_FIELDS[key]:
            raise ValueError(
                "{} must be one of: {}".format(key, ", ".join(_ENUM_FIELDS[key]))
            )
        if key in _NON_NEGATIVE_FIELDS and value is not None and value < 0:
            raise ValueError("{} must be non-negative".format(key))
        if key == "whatsapp_daily_summary_time":
            value = _normalize_time(value)
        elif key == "categories":
            value = json.dumps([str(item).strip() for item in (value or []) if str(item).strip()])
        elif value is None:
            # Optional request fields left unset are not cleared.
            continue
        setattr(row, key, value)
    row.updated_at = utc_now()
    db.flush()
    return row


def serialize_business_settings(row) -> dict:
    return {
        "business_name": row.business_name,
        "business_type": row.business_type,
        "tax_id": row.tax_id,
        "address": row.address,
        "city": row.city,
        "country": row.country,
        "phone": row.phone,
        "contact_email": row.contact_email,
        "default_stock_min": row.default_stock_min,
        "default_unit": row.default_unit,
        "categories": load_categories(row),
        "default_tax_rate": row.default_tax_rate,
        "currency": row.currency,
        "allow_negative_stock": row.allow_negative_stock,
        "allow_custom_price_on_sale": row.allow_custom_price_on_sale,
        "alert_stock_enabled": row.alert_stock_enabled,
        "alert_level": row.alert_level,
        "alert_email": row.alert_email,
        "whatsapp_enabled": row.whatsapp_enabled,
        "whatsapp_number": row.whatsapp_number,
        "whatsapp_from": row.whatsapp_from,
        "whatsapp_daily_summary_enabled": row.whatsapp_daily_summary_enabled,
        "whatsapp_daily_summary_time": row.whatsapp_daily_summary_time,
        "sii_enabled": row.sii_enabled,
        "sii_environment": row.sii_environment,
        "sii_api_url": row.sii_api_url,
        "sii_configured": bool(row.sii_api_url and row.sii_api_key),
        "sii_resolution_number": row.sii_resolution_number,
        "sii_office": row.sii_office,
        "plan_name": row.plan_name,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


__all__ = [
    "get_business_settings",
    "load_categories",
    "serialize_business_settings",
    "update_business_settings",
]
