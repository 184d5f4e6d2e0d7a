from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductBase(BaseModel):
    name: str = Field(min_length=1)
    category: str = ""
    supplier: str = ""
    unit: Optional[str] = None
    stock: float = Field(0, ge=0)
    stock_min: Optional[float] = Field(None, ge=0)
    purchase_price: float = Field(0, ge=0)
    sale_price: float = Field(0, ge=0)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    supplier: Optional[str] = None
    unit: Optional[str] = None
    stock: Optional[float] = Field(None, ge=0)
    stock_min: Optional[float] = Field(None, ge=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    sale_price: Optional[float] = Field(None, ge=0)


class ProductRead(BaseModel):
    id: int
    name: str
    category: str
    supplier: str
    unit: str
    stock: float
    stock_min: float
    purchase_price: float
    sale_price: float
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductImportRequest(BaseModel):
    records: List[dict] = Field(default_factory=list)
    path: Optional[str] = None
    sheet: Optional[str] = None
    dry_run: bool = False


class ProductImportResult(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)
