from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class BusinessSettingsUpdate(BaseModel):
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    tax_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    contact_email: Optional[str] = None
    default_stock_min: Optional[float] = Field(None, ge=0)
    default_unit: Optional[str] = None
    categories: Optional[List[str]] = None
    default_tax_rate: Optional[float] = Field(None, ge=0, le=100)
    currency: Optional[str] = None
    allow_negative_stock: Optional[bool] = None
    allow_custom_price_on_sale: Optional[bool] = None
    alert_stock_enabled: Optional[bool] = None
    alert_level: Optional[Literal["strict", "normal", "relaxed"]] = None
    alert_email: Optional[str] = None
    whatsapp_enabled: Optional[bool] = None
    whatsapp_number: Optional[str] = None
    whatsapp_from: Optional[str] = None
    whatsapp_daily_summary_enabled: Optional[bool] = None
    whatsapp_daily_summary_time: Optional[str] = None
    sii_enabled: Optional[bool] = None
    sii_environment: Optional[Literal["certificacion", "produccion"]] = None
    sii_api_url: Optional[str] = None
    sii_api_key: Optional[str] = None
    sii_resolution_number: Optional[str] = None
    sii_office: Optional[str] = None
    plan_name: Optional[str] = None


class BusinessSettingsRead(BaseModel):
    business_name: str
    business_type: str
    tax_id: str
    address: str
    city: str
    country: str
    phone: str
    contact_email: str
    default_stock_min: float
    default_unit: str
    categories: List[str]
    default_tax_rate: float
    currency: str
    allow_negative_stock: bool
    allow_custom_price_on_sale: bool
    alert_stock_enabled: bool
    alert_level: str
    alert_email: str
    whatsapp_enabled: bool
    whatsapp_number: str
    whatsapp_from: Optional[str] = None
    whatsapp_daily_summary_enabled: bool
    whatsapp_daily_summary_time: Optional[str] = None
    sii_enabled: bool
    sii_environment: str
    sii_api_url: Optional[str] = None
    sii_configured: bool = False
    sii_resolution_number: Optional[str] = None
    sii_office: Optional[str] = None
    plan_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
