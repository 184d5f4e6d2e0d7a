from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text

from simpligest.database.base import Base


class BusinessSettings(Base):
    __tablename__ = "business_settings"

    id = Column(Integer, primary_key=True)

    business_name = Column(String, nullable=False, default="")
    business_type = Column(String, nullable=False, default="")
    tax_id = Column(String, nullable=False, default="")
    address = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    country = Column(String, nullable=False, default="Chile")
    phone = Column(String, nullable=False, default="")
    contact_email = Column(String, nullable=False, default="")

    default_stock_min = Column(Float, nullable=False, default=0)
    default_unit = Column(String, nullable=False, default="unit")
    # JSON list of category names
    categories = Column(Text, nullable=False, default="[]")
    default_tax_rate = Column(Float, nullable=False, default=19.0)
    currency = Column(String, nullable=False, default="CLP")

    allow_negative_stock = Column(Boolean, nullable=False, default=False)
    allow_custom_price_on_sale = Column(Boolean, nullable=False, default=True)

    alert_stock_enabled = Column(Boolean, nullable=False, default=True)
    alert_level = Column(String, nullable=False, default="normal")
    alert_email = Column(String, nullable=False, default="")

    whatsapp_enabled = Column(Boolean, nullable=False, default=False)
    whatsapp_number = Column(String, nullable=False, default="")
    whatsapp_from = Column(String)
    whatsapp_daily_summary_enabled = Column(Boolean, nullable=False, default=False)
    whatsapp_daily_summary_time = Column(String)
    whatsapp_last_summary_date = Column(String)

    sii_enabled = Column(Boolean, nullable=False, default=False)
    sii_environment = Column(String, nullable=False, default="certificacion")
    sii_api_url = Column(String)
    sii_api_key = Column(String)
    sii_resolution_number = Column(String)
    sii_office = Column(String)

    plan_name = Column(String, nullable=False, default="basic")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


__all__ = ["BusinessSettings"]
