import math
import unittest
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from simpligest.core.insights import (
    DEFAULT_POLICY,
    InsightPolicy,
    average_margin,
    build_rationale,
    calculate_product_insights,
    classify_demand_level,
    classify_trend,
    estimate_demand,
    filter_sales_window,
    purchase_suggestion,
    recommend_price,
    stockout_in_days,
    trend_ratio,
    trend_windows,
)

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


@dataclass
class FakeProduct:
    id: int
    name: str
    stock: float
    stock_min: float
    purchase_price: float
    sale_price: float


@dataclass
class FakeSale:
    product_id: Optional[int]
    quantity: float
    unit_price: float
    sold_at: datetime


def _sale(product_id, quantity, unit_price, days_ago):
    return FakeSale(product_id, quantity, unit_price, NOW - timedelta(days=days_ago))


class SalesWindowTest(unittest.TestCase):
    def test_filter_keeps_sales_inside_window(self):
        sales = [_sale(1, 1, 10, 10), _sale(1, 1, 10, 89.9), _sale(1, 1, 10, 91)]
        kept = filter_sales_window(sales, NOW, 90)
        self.assertEqual(len(kept), 2)

    def test_window_boundary_is_inclusive(self):
        kept = filter_sales_window([_sale(1, 1, 10, 90)], NOW, 90)
        self.assertEqual(len(kept), 1)

    def test_trend_windows_split_recent_and_previous(self):
        sales = [_sale(1, 4, 10, 5), _sale(1, 2, 10, 40), _sale(1, 7, 10, 70)]
        self.assertEqual(trend_windows(sales, NOW, 30), (4, 2))

    def test_naive_datetimes_are_treated_as_utc(self):
        sale = FakeSale(1, 1, 10, (NOW - timedelta(days=1)).replace(tzinfo=None))
        self.assertEqual(len(filter_sales_window([sale], NOW, 90)), 1)


class DemandTest(unittest.TestCase):
    def test_estimate_demand_scales_to_week(self):
        weekly, daily = estimate_demand(90, 90)
        self.assertAlmostEqual(weekly, 7.0)
        self.assertAlmostEqual(daily, 1.0)

    def test_elapsed_days_floor_is_one(self):
        weekly, _ = estimate_demand(2, 0)
        self.assertAlmostEqual(weekly, 14.0)

    def test_high_boundary(self):
        self.assertEqual(classify_demand_level(15, 10), "high")

    def test_just_below_high_is_medium(self):
        self.assertEqual(classify_demand_level(14.99, 10), "medium")

    def test_floors_apply_without_stock_min(self):
        self.assertEqual(classify_demand_level(10, 0), "high")
        self.assertEqual(classify_demand_level(9.99, 0), "medium")
        self.assertEqual(classify_demand_level(3, 0), "medium")
        self.assertEqual(classify_demand_level(2.99, 0), "low")

    def test_medium_threshold_uses_stock_min(self):
        self.assertEqual(classify_demand_level(7.99, 10), "low")
        self.assertEqual(classify_demand_level(8, 10), "medium")

    def test_stockout_in_days(self):
        self.assertEqual(stockout_in_days(10, 3), 4)
        self.assertIsNone(stockout_in_days(10, 0))


class TrendTest(unittest.TestCase):
    def test_ratio_zero_when_previous_is_zero(self):
        self.assertEqual(trend_ratio(50, 0), 0.0)

    def test_ratio(self):
        self.assertAlmostEqual(trend_ratio(12, 10), 0.2)

    def test_classification_thresholds(self):
        self.assertEqual(classify_trend(0.06), "growing")
        self.assertEqual(classify_trend(0.05), "stable")
        self.assertEqual(classify_trend(-0.05), "stable")
        self.assertEqual(classify_trend(-0.06), "declining")


class MarginTest(unittest.TestCase):
    def test_average_of_sales(self):
        sales = [_sale(1, 1, 150, 1), _sale(1, 1, 120, 2)]
        self.assertAlmostEqual(average_margin(sales, 100), 0.35)

    def test_defaults(self):
        self.assertEqual(average_margin([], 100), 0.25)
        self.assertEqual(average_margin([_sale(1, 1, 150, 1)], 0), 0.25)
        self.assertEqual(average_margin([_sale(1, 1, 150, 1)], -5), 0.25)

    def test_non_finite_margins_are_discarded(self):
        sales = [_sale(1, 1, math.inf, 1), _sale(1, 1, 150, 1)]
        self.assertAlmostEqual(average_margin(sales, 100), 0.5)


class PriceRecommendationTest(unittest.TestCase):
    def test_formula(self):
        recommendation = recommend_price(1000, 1200, 0.3, "high", 0.1)
        self.assertAlmostEqual(recommendation.recommended_price, 1000 * 1.38)
        self.assertAlmostEqual(recommendation.variation_percentage, (1380 - 1200) / 1200 * 100)

    def test_declining_and_low(self):
        recommendation = recommend_price(1000, 1000, 0.25, "low", -0.2)
        self.assertAlmostEqual(recommendation.recommended_price, 1000 * 1.20)

    def test_zero_purchase_price_falls_back_to_sale_price(self):
        recommendation = recommend_price(0, 990, 0.25, "medium", 0)
        self.assertEqual(recommendation.recommended_price, 990)
        self.assertEqual(recommendation.variation_percentage, 0)

    def test_zero_sale_price_has_no_variation(self):
        recommendation = recommend_price(100, 0, 0.25, "medium", 0)
        self.assertAlmostEqual(recommendation.recommended_price, 126)
        self.assertEqual(recommendation.variation_percentage, 0)

    def test_rationale_sentence(self):
        text = build_rationale("high", 0.4, 0.1)
        self.assertEqual(
            text,
            "Projected demand is high, you historically sell with a good margin and sales are growing.",
        )
        self.assertIn("the historical margin is tight", build_rationale("low", 0.1, 0))
        self.assertIn("the average margin is healthy", build_rationale("medium", 0.2, -0.3))


class PurchaseSuggestionTest(unittest.TestCase):
    def test_target_coverage(self):
        self.assertEqual(purchase_suggestion(1.5, 5, 10), 16)

    def test_never_negative(self):
        self.assertEqual(purchase_suggestion(0.1, 0, 500), 0)

    def test_rounds_up(self):
        self.assertEqual(purchase_suggestion(0.05, 0, 0), 1)


class CalculateProductInsightsTest(unittest.TestCase):
    def test_product_without_sales(self):
        product = FakeProduct(1, "Rice", stock=3, stock_min=8, purchase_price=0, sale_price=1500)
        (insight,) = calculate_product_insights([product], [], NOW)

        self.assertEqual(insight.predicted_weekly_demand, 0)
        self.assertEqual(insight.demand_level, "low")
        self.assertIsNone(insight.stockout_in_days)
        self.assertEqual(insight.purchase_suggestion, 5)
        self.assertEqual(insight.average_margin, 0.25)
        self.assertEqual(insight.price_recommendation.recommended_price, 1500)
        self.assertEqual(insight.price_recommendation.variation_percentage, 0)

    def test_example_scenario(self):
        product = FakeProduct(7, "Coffee", stock=20, stock_min=5, purchase_price=1000, sale_price=1500)
        sales = [_sale(7, 2, 1500, days) for days in (1, 3, 6)]
        (insight,) = calculate_product_insights([product], sales, NOW)

        self.assertAlmostEqual(insight.average_margin, 0.5)
        self.assertAlmostEqual(insight.predicted_weekly_demand, 6 / 90 * 7)
        self.assertEqual(insight.demand_level, "low")
        self.assertEqual(insight.trend_ratio, 0.0)
        # low demand -0.03, stable trend +0.01
        self.assertAlmostEqual(insight.price_recommendation.recommended_price, 1480)
        self.assertEqual(insight.stockout_in_days, math.ceil(20 / insight.predicted_daily_demand))
        self.assertEqual(insight.purchase_suggestion, 0)

    def test_sales_outside_window_and_other_products_are_ignored(self):
        product = FakeProduct(1, "Tea", stock=0, stock_min=0, purchase_price=100, sale_price=150)
        sales = [_sale(1, 50, 150, 120), _sale(2, 90, 150, 1)]
        (insight,) = calculate_product_insights([product], sales, NOW)
        self.assertEqual(insight.predicted_weekly_demand, 0)

    def test_output_follows_input_order_and_is_idempotent(self):
        products = [
            FakeProduct(2, "B", stock=5, stock_min=2, purchase_price=100, sale_price=130),
            FakeProduct(1, "A", stock=50, stock_min=10, purchase_price=200, sale_price=260),
        ]
        sales = [_sale(1, 30, 260, day) for day in range(0, 60, 2)] + [_sale(2, 1, 140, 40)]
        first = calculate_product_insights(products, sales, NOW)
        second = calculate_product_insights(products, sales, NOW)

        self.assertEqual([insight.product_id for insight in first], [2, 1])
        self.assertEqual(first, second)
        self.assertTrue(all(insight.purchase_suggestion >= 0 for insight in first))

    def test_custom_policy_changes_safety_days(self):
        policy = InsightPolicy(safety_days=28)
        product = FakeProduct(1, "Flour", stock=0, stock_min=0, purchase_price=10, sale_price=12)
        sales = [_sale(1, 90, 12, 10)]
        (default_insight,) = calculate_product_insights([product], sales, NOW, DEFAULT_POLICY)
        (long_insight,) = calculate_product_insights([product], sales, NOW, policy)
        self.assertEqual(default_insight.purchase_suggestion, 14)
        self.assertEqual(long_insight.purchase_suggestion, 28)

    def test_short_demand_window_keeps_full_trend_windows(self):
        policy = InsightPolicy(window_days=45)
        self.assertEqual(policy.history_days, 60)
        product = FakeProduct(1, "Oil", stock=10, stock_min=0, purchase_price=100, sale_price=150)
        sales = [_sale(1, 10, 150, 5), _sale(1, 1, 150, 40), _sale(1, 9, 150, 55)]
        (insight,) = calculate_product_insights([product], sales, NOW, policy)

        self.assertEqual(insight.trend_ratio, 0.0)
        self.assertAlmostEqual(insight.predicted_weekly_demand, 11 / 45 * 7)

    def test_demand_window_equal_to_trend_window(self):
        policy = InsightPolicy(window_days=30)
        product = FakeProduct(1, "Oil", stock=10, stock_min=0, purchase_price=100, sale_price=150)
        sales = [_sale(1, 15, 150, 5), _sale(1, 10, 150, 45)]
        (insight,) = calculate_product_insights([product], sales, NOW, policy)

        self.assertAlmostEqual(insight.trend_ratio, 0.5)
        self.assertAlmostEqual(insight.predicted_weekly_demand, 15 / 30 * 7)


if __name__ == "__main__":
    unittest.main()
