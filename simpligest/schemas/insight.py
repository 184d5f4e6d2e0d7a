from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict


class PriceRecommendationRead(BaseModel):
    recommended_price: float
    variation_percentage: float
    rationale: str

    model_config = ConfigDict(from_attributes=True)


class ProductInsightRead(BaseModel):
    product_id: int
    product_name: str
    predicted_weekly_demand: float
    predicted_daily_demand: float
    demand_level: Literal["high", "medium", "low"]
    stockout_in_days: Optional[int]
    purchase_suggestion: int
    price_recommendation: PriceRecommendationRead
    trend_ratio: float
    average_margin: float

    model_config = ConfigDict(from_attributes=True)


class LowStockItem(BaseModel):
    product_id: int
    name: str
    stock: float
    stock_min: float


class ActionCard(BaseModel):
    title: str
    description: str
    severity: Literal["positive", "alert", "info"]


class AssistantSummary(BaseModel):
    revenue_7d: float
    sales_count_7d: int
    best_seller_id: Optional[int] = None
    best_seller_name: Optional[str] = None
    low_stock: List[LowStockItem]
    cash_balance: float
    opportunities: List[ProductInsightRead]
    action_cards: List[ActionCard]
