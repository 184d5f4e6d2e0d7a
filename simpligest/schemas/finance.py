from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionCreate(BaseModel):
    type: Literal["income", "expense"]
    amount: float = Field(gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    date: Optional[datetime] = None


class TransactionRead(BaseModel):
    id: int
    type: str
    amount: float
    description: str
    category: str
    source: str
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FinanceSummary(BaseModel):
    sales_income: float
    manual_income: float
    manual_expense: float
    total_income: float
    balance: float
    estimated_vat: float
    tax_rate: float
    currency: str


class Movement(BaseModel):
    id: str
    type: str
    amount: float
    description: str
    category: str
    date: datetime
    source: str
