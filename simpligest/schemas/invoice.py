from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InvoiceScanRequest(BaseModel):
    text: str
    currency: Optional[str] = None
    file_name: str = ""
    file_type: str = ""


class InvoiceLineData(BaseModel):
    description: str
    quantity: float = Field(gt=0)
    unit_price: float = Field(ge=0)
    total: float = Field(ge=0)
    product_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceDraft(BaseModel):
    supplier: str
    invoice_number: str
    issue_date: date
    total: float = Field(ge=0)
    currency: str = "CLP"
    items: List[InvoiceLineData] = Field(default_factory=list)
    file_name: str = ""
    file_type: str = ""
    raw_text: Optional[str] = None
    validation_warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class InvoiceRead(InvoiceDraft):
    id: int
    created_at: datetime
    transaction_id: Optional[int] = None
