from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QuickSaleRequest(BaseModel):
    product_id: int
    quantity: float = Field(gt=0)
    unit_price: Optional[float] = Field(None, ge=0)


class SaleRead(BaseModel):
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: float
    unit_price: float
    total: float
    sold_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuickSaleResult(BaseModel):
    sale: SaleRead
    remaining_stock: float
    low_stock: bool
    alert_sent: bool = False
    alert_error: Optional[str] = None
