"""Demand and pricing heuristics over a snapshot of products and sales.

Everything here is pure: callers pass the product list, the sale list and the
reference instant ``now``. Degenerate inputs (no history, zero prices) map to
fallback values instead of raising.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from simpligest.core.dates import as_utc

_SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class InsightPolicy:
    window_days: int = 90
    trend_window_days: int = 30
    safety_days: int = 14
    default_margin: float = 0.25
    trend_threshold: float = 0.05
    high_demand_floor: float = 10.0
    high_demand_factor: float = 1.5
    medium_demand_floor: float = 3.0
    medium_demand_factor: float = 0.8
    high_demand_adjustment: float = 0.05
    low_demand_adjustment: float = -0.03
    growing_adjustment: float = 0.03
    declining_adjustment: float = -0.02
    stable_adjustment: float = 0.01
    good_margin: float = 0.35
    healthy_margin: float = 0.20

    @property
    def history_days(self) -> int:
        """Days of sales needed by both the demand window and the two trend windows."""
        return max(self.window_days, 2 * self.trend_window_days)


DEFAULT_POLICY = InsightPolicy()


@dataclass(frozen=True)
class PriceRecommendation:
    recommended_price: float
    variation_percentage: float
    rationale: str


@dataclass(frozen=True)
class ProductInsight:
    product_id: int
    product_name: str
    predicted_weekly_demand: float
    predicted_daily_demand: float
    demand_level: str
    stockout_in_days: Optional[int]
    purchase_suggestion: int
    price_recommendation: PriceRecommendation
    trend_ratio: float = 0.0
    average_margin: float = 0.0


def policy_from_settings(settings) -> InsightPolicy:
    return InsightPolicy(
        window_days=settings.INSIGHT_WINDOW_DAYS,
        trend_window_days=settings.INSIGHT_TREND_WINDOW_DAYS,
        safety_days=settings.INSIGHT_SAFETY_DAYS,
        default_margin=settings.INSIGHT_DEFAULT_MARGIN,
        trend_threshold=settings.INSIGHT_TREND_THRESHOLD,
    )


# ------------------------------------------------------------------
# Sales window filter
# ------------------------------------------------------------------


def window_start(now: datetime, days: int) -> datetime:
    return as_utc(now) - timedelta(days=days)


def filter_sales_window(sales: Iterable, now: datetime, days: int) -> list:
    start = window_start(now, days)
    return [sale for sale in sales if as_utc(sale.sold_at) >= start]


def windowed_quantity(sales: Iterable, now: datetime, days: int) -> float:
    start = window_start(now, days)
    return sum(sale.quantity for sale in sales if as_utc(sale.sold_at) >= start)


def trend_windows(sales, now: datetime, days: int = 30) -> tuple[float, float]:
    """Return (recent, previous) quantities for two adjacent windows of ``days``."""
    recent = windowed_quantity(sales, now, days)
    previous = windowed_quantity(sales, now, days * 2) - recent
    return recent, previous


# ------------------------------------------------------------------
# Demand
# ------------------------------------------------------------------


def estimate_demand(total_quantity: float, elapsed_days: float) -> tuple[float, float]:
    elapsed_days = max(1.0, elapsed_days)
    weekly = (total_quantity / elapsed_days) * 7
    return weekly, weekly / 7


def classify_demand_level(weekly_demand: float, stock_min: float, policy: InsightPolicy = DEFAULT_POLICY) -> str:
    stock_min = stock_min or 0
    if weekly_demand >= max(policy.high_demand_floor, stock_min * policy.high_demand_factor):
        return "high"
    if weekly_demand >= max(policy.medium_demand_floor, stock_min * policy.medium_demand_factor):
        return "medium"
    return "low"


def stockout_in_days(stock: float, daily_demand: float) -> Optional[int]:
    if daily_demand <= 0:
        return None
    return math.ceil(stock / daily_demand)


# ------------------------------------------------------------------
# Trend
# ------------------------------------------------------------------


def trend_ratio(recent: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (recent - previous) / previous


def classify_trend(ratio: float, policy: InsightPolicy = DEFAULT_POLICY) -> str:
    if ratio > policy.trend_threshold:
        return "growing"
    if ratio < -policy.trend_threshold:
        return "declining"
    return "stable"


# ------------------------------------------------------------------
# Margin
# ------------------------------------------------------------------


def average_margin(sales: Iterable, purchase_price: float, policy: InsightPolicy = DEFAULT_POLICY) -> float:
    sales = list(sales)
    if not sales or purchase_price is None or purchase_price <= 0:
        return policy.default_margin

    margins = []
    for sale in sales:
        margin = (sale.unit_price - purchase_price) / purchase_price
        if math.isfinite(margin):
            margins.append(margin)
    if not margins:
        return policy.default_margin
    return sum(margins) / len(margins)


# ------------------------------------------------------------------
# Price recommendation
# ------------------------------------------------------------------

_DEMAND_TEXT = {
    "high": "projected demand is high",
    "medium": "demand is holding steady",
    "low": "projected demand is low",
}

_TREND_TEXT = {
    "growing": "sales are growing",
    "declining": "sales are slowing down",
    "stable": "volume is stable",
}


def build_rationale(demand_level: str, margin: float, ratio: float, policy: InsightPolicy = DEFAULT_POLICY) -> str:
    demand_text = _DEMAND_TEXT.get(demand_level, _DEMAND_TEXT["low"])
    if margin >= policy.good_margin:
        margin_text = "you historically sell with a good margin"
    elif margin >= policy.healthy_margin:
        margin_text = "the average margin is healthy"
    else:
        margin_text = "the historical margin is tight"
    trend_text = _TREND_TEXT[classify_trend(ratio, policy)]
    sentence = "{}, {} and {}.".format(demand_text, margin_text, trend_text)
    return sentence[0].upper() + sentence[1:]


def recommend_price(
    purchase_price: float,
    sale_price: float,
    margin: float,
    demand_level: str,
    ratio: float,
    policy: InsightPolicy = DEFAULT_POLICY,
) -> PriceRecommendation:
    if demand_level == "high":
        demand_adjustment = policy.high_demand_adjustment
    elif demand_level == "low":
        demand_adjustment = policy.low_demand_adjustment
    else:
        demand_adjustment = 0.0

    trend = classify_trend(ratio, policy)
    if trend == "growing":
        trend_adjustment = policy.growing_adjustment
    elif trend == "declining":
        trend_adjustment = policy.declining_adjustment
    else:
        trend_adjustment = policy.stable_adjustment

    sale_price = sale_price or 0.0
    recommended = None
    if purchase_price is not None and purchase_price > 0:
        recommended = purchase_price * (1 + margin + demand_adjustment + trend_adjustment)
    if recommended is None or not math.isfinite(recommended):
        recommended = sale_price

    if sale_price:
        variation = (recommended - sale_price) / sale_price * 100
    else:
        variation = 0.0

    return PriceRecommendation(
        recommended_price=recommended,
        variation_percentage=variation,
        rationale=build_rationale(demand_level, margin, ratio, policy),
    )


# ------------------------------------------------------------------
# Purchase suggestion
# ------------------------------------------------------------------


def purchase_suggestion(daily_demand: float, stock_min: float, stock: float, safety_days: int = 14) -> int:
    target_coverage = daily_demand * safety_days + (stock_min or 0)
    return max(0, math.ceil(target_coverage - (stock or 0)))


# ------------------------------------------------------------------
# Estimator
# ------------------------------------------------------------------


def calculate_product_insights(
    products: Iterable,
    sales: Iterable,
    now: datetime,
    policy: InsightPolicy = DEFAULT_POLICY,
) -> list[ProductInsight]:
    now = as_utc(now)
    start = window_start(now, policy.window_days)
    elapsed_days = (now - start).total_seconds() / _SECONDS_PER_DAY

    # trend windows may reach further back than the demand window
    history_by_product = defaultdict(list)
    for sale in filter_sales_window(sales, now, policy.history_days):
        history_by_product[sale.product_id].append(sale)

    insights = []
    for product in products:
        history = history_by_product.get(product.id, [])
        product_sales = filter_sales_window(history, now, policy.window_days)
        total_quantity = sum(sale.quantity for sale in product_sales)
        weekly, daily = estimate_demand(total_quantity, elapsed_days)

        recent, previous = trend_windows(history, now, policy.trend_window_days)
        ratio = trend_ratio(recent, previous)

        stock = product.stock or 0
        level = classify_demand_level(weekly, product.stock_min, policy)
        margin = average_margin(product_sales, product.purchase_price, policy)

        insights.append(
            ProductInsight(
                product_id=product.id,
                product_name=product.name,
                predicted_weekly_demand=weekly,
                predicted_daily_demand=daily,
                demand_level=level,
                stockout_in_days=stockout_in_days(stock, daily),
                purchase_suggestion=purchase_suggestion(
                    daily, product.stock_min, stock, policy.safety_days
                ),
                price_recommendation=recommend_price(
                    product.purchase_price,
                    product.sale_price,
                    margin,
                    level,
                    ratio,
                    policy,
                ),
                trend_ratio=ratio,
                average_margin=margin,
            )
        )
    return insights


__all__ = [
    "DEFAULT_POLICY",
    "InsightPolicy",
    "PriceRecommendation",
    "ProductInsight",
    "average_margin",
    "build_rationale",
    "calculate_product_insights",
    "classify_demand_level",
    "classify_trend",
    "estimate_demand",
    "filter_sales_window",
    "policy_from_settings",
    "purchase_suggestion",
    "recommend_price",
    "stockout_in_days",
    "trend_ratio",
    "trend_windows",
    "windowed_quantity",
]
