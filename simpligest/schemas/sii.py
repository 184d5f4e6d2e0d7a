from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SiiDocumentItem(BaseModel):
    description: str
    quantity: float = Field(gt=0)
    unit_price: float = Field(gt=0)
    product_id: Optional[int] = None


class SiiDocumentRequest(BaseModel):
    type: Literal["boleta", "factura"]
    folio: Optional[str] = None
    customer_name: str = Field(min_length=1)
    customer_tax_id: str = Field(min_length=1)
    customer_email: Optional[str] = None
    items: List[SiiDocumentItem] = Field(min_length=1)
    issue_date: Optional[date] = None
    total: Optional[float] = None


class SiiDocumentResponse(BaseModel):
    track_id: str
    status: str
    pdf_url: Optional[str] = None
    sii_folio: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SiiDocumentStatus(BaseModel):
    track_id: str
    status: str
    received_at: Optional[str] = None
    accepted: Optional[bool] = None
    sii_folio: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
