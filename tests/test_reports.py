import io
import unittest
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from openpyxl import load_workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from simpligest.core.insights import InsightPolicy
from simpligest.database.base import Base
from simpligest.models import import_all_models
from simpligest.services.dashboard_service import (
    critical_stock,
    dashboard_overview,
    top_products,
    weekly_sales_series,
)
from simpligest.services.finance_service import add_transaction
from simpligest.services.insight_service import assistant_summary, build_insights, low_stock_products
from simpligest.services.product_service import create_product
from simpligest.services.report_service import (
    build_report,
    export_report_xlsx,
    low_stock_report,
    normalize_metrics,
    range_start,
    sales_by_period,
    supplier_performance,
)
from simpligest.services.sale_service import record_quick_sale

NOW = datetime(2024, 6, 30, 18, 0, tzinfo=timezone.utc)


def sale(product_id, name, quantity, total, sold_at):
    return SimpleNamespace(
        id=None, product_id=product_id, product_name=name, quantity=quantity, total=total, sold_at=sold_at
    )


def product(product_id, name, stock=0, stock_min=0, category=None, supplier=None, sale_price=0):
    return SimpleNamespace(
        id=product_id,
        name=name,
        stock=stock,
        stock_min=stock_min,
        category=category,
        supplier=supplier,
        sale_price=sale_price,
        unit="unit",
    )


class DashboardFunctionsTest(unittest.TestCase):
    def test_weekly_series_covers_seven_days(self):
        sales = [
            sale(1, "Bread", 1, 1000, datetime(2024, 6, 30, 10, 0, tzinfo=timezone.utc)),
            sale(1, "Bread", 1, 500, datetime(2024, 6, 30, 11, 0, tzinfo=timezone.utc)),
            sale(1, "Bread", 1, 700, datetime(2024, 6, 24, 11, 0, tzinfo=timezone.utc)),
            sale(1, "Bread", 1, 999, datetime(2024, 6, 23, 11, 0, tzinfo=timezone.utc)),
        ]
        series = weekly_sales_series(sales, date(2024, 6, 30), tz=timezone.utc)
        self.assertEqual(len(series), 7)
        self.assertEqual(series[0], {"label": "Mon", "date": "2024-06-24", "value": 700})
        self.assertEqual(series[-1], {"label": "Sun", "date": "2024-06-30", "value": 1500})
        self.assertEqual(sum(point["value"] for point in series), 2200)

    def test_top_products_and_critical_stock(self):
        sales = [
            sale(1, "Bread", 2, 2000, NOW),
            sale(2, "Milk", 1, 900, NOW),
            sale(1, "Bread", 1, 1000, NOW),
            sale(None, "Deleted", 5, 5000, NOW),
        ]
        rows = top_products(sales, limit=2)
        self.assertEqual([row["name"] for row in rows], ["Deleted", "Bread"])
        self.assertEqual(rows[1]["quantity"], 3)

        products = [product(1, "Bread", 1, 5), product(2, "Milk", 0, 2), product(3, "Salt", 9, 2), product(4, "Tea")]
        self.assertEqual([row["name"] for row in critical_stock(products)], ["Milk", "Bread"])

    def test_low_stock_products_uses_business_default(self):
        products = [product(1, "Bread", 3, 0), product(2, "Milk", 10, 5)]
        self.assertEqual(low_stock_products(products, default_stock_min=0), [])
        flagged = low_stock_products(products, default_stock_min=4)
        self.assertEqual([row["name"] for row in flagged], ["Bread"])
        self.assertEqual(flagged[0]["stock_min"], 4)


class ReportFunctionsTest(unittest.TestCase):
    def test_normalize_metrics(self):
        self.assertEqual(normalize_metrics(None), ["sales", "stock", "suppliers"])
        self.assertEqual(normalize_metrics("suppliers, sales"), ["sales", "suppliers"])
        with self.assertRaises(ValueError):
            normalize_metrics(["profit"])

    def test_range_start(self):
        self.assertEqual(range_start("7d", NOW), NOW - timedelta(days=7))
        self.assertEqual(range_start("90d", NOW), NOW - timedelta(days=90))
        self.assertIsNone(range_start("all", NOW))
        with self.assertRaises(ValueError):
            range_start("1y", NOW)

    def test_sales_by_period_groups_and_sorts_by_value(self):
        sales = [
            sale(1, "A", 1, 100, datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)),
            sale(1, "A", 1, 300, datetime(2024, 6, 5, 12, 0, tzinfo=timezone.utc)),
            sale(1, "A", 1, 250, datetime(2024, 5, 31, 12, 0, tzinfo=timezone.utc)),
        ]
        periods = sales_by_period(sales, tz=timezone.utc)
        self.assertEqual(periods["daily"][0], {"label": "2024-06-05", "value": 300})
        self.assertEqual(
            periods["weekly"],
            [{"label": "2024-06-03", "value": 400}, {"label": "2024-05-27", "value": 250}],
        )
        self.assertEqual(
            periods["monthly"],
            [{"label": "2024-06", "value": 400}, {"label": "2024-05", "value": 250}],
        )

    def test_low_stock_report_includes_margin(self):
        products = [product(1, "A", 7, 5), product(2, "B", 8, 5), product(3, "C", 0, 0)]
        self.assertEqual([row["name"] for row in low_stock_report(products)], ["C", "A"])

    def test_supplier_performance(self):
        products = [product(1, "A", supplier="Sur"), product(2, "B", supplier="Sur"), product(3, "C")]
        sales = [sale(1, "A", 2, 200, NOW), sale(3, "C", 1, 500, NOW), sale(None, "X", 1, 50, NOW)]
        rows = supplier_performance(products, sales)
        self.assertEqual(rows[0], {"supplier": "No supplier", "total_sales": 500, "units": 1, "product_count": 1})
        self.assertEqual(rows[1], {"supplier": "Sur", "total_sales": 200, "units": 2, "product_count": 2})


class ReportDatabaseTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(bind=self.engine, expire_on_commit=False)()

        self.bread = create_product(
            self.db,
            {"name": "Bread", "category": "Bakery", "supplier": "Molino", "stock": 20, "stock_min": 5,
             "purchase_price": 500, "sale_price": 1000},
        )
        self.milk = create_product(
            self.db,
            {"name": "Milk", "category": "Dairy", "stock": 3, "stock_min": 4, "purchase_price": 700,
             "sale_price": 1100},
        )
        record_quick_sale(self.db, self.bread.id, 4, now=NOW - timedelta(days=1), notify=False)
        record_quick_sale(self.db, self.milk.id, 1, now=NOW - timedelta(days=2), notify=False)
        record_quick_sale(self.db, self.bread.id, 2, now=NOW - timedelta(days=60), notify=False)
        add_transaction(self.db, {"type": "income", "amount": 1000})

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_dashboard_overview(self):
        overview = dashboard_overview(self.db, NOW)
        kpis = overview["kpis"]
        self.assertEqual(kpis["sku_count"], 2)
        self.assertEqual(kpis["sales_30d"], 5100)
        self.assertEqual(kpis["sales_count_30d"], 2)
        self.assertEqual(kpis["low_stock_count"], 1)
        self.assertEqual(kpis["inventory_value"], 14 * 1000 + 2 * 1100)
        self.assertEqual(len(overview["metrics"]["weeklySales"]), 7)
        self.assertEqual(overview["metrics"]["categorySales"][0]["category"], "Bakery")
        self.assertEqual(overview["layout"][0]["metric"], "inventoryValue")

    def test_build_report_and_export(self):
        report = build_report(self.db, ["sales", "stock"], "30d", now=NOW)
        self.assertNotIn("suppliers", report)
        self.assertEqual(report["sales"]["by_product"][0], {"name": "Bread", "total": 4000, "units": 4})
        self.assertEqual([row["name"] for row in report["stock"]], ["Milk"])

        workbook = load_workbook(io.BytesIO(export_report_xlsx(report)))
        self.assertEqual(workbook.sheetnames, ["Sales by product", "Sales by category", "Sales by month", "Low stock"])
        rows = list(workbook["Sales by product"].iter_rows(values_only=True))
        self.assertEqual(rows[0], ("Product", "Total", "Units"))
        self.assertEqual(rows[1][0], "Bread")

    def test_report_range_is_applied_to_the_query(self):
        week = build_report(self.db, ["sales"], "7d", now=NOW)
        everything = build_report(self.db, ["sales"], "all", now=NOW)
        self.assertEqual(week["sales"]["by_product"][0], {"name": "Bread", "total": 4000, "units": 4})
        self.assertEqual(everything["sales"]["by_product"][0], {"name": "Bread", "total": 6000, "units": 6})
        with self.assertRaises(ValueError):
            build_report(self.db, ["sales"], "1y", now=NOW)

    def test_dashboard_rankings_cover_all_sales(self):
        metrics = dashboard_overview(self.db, NOW)["metrics"]
        bread = metrics["topProducts"][0]
        self.assertEqual((bread["name"], bread["quantity"], bread["total"]), ("Bread", 6, 6000))
        self.assertEqual(metrics["categorySales"][0], {"category": "Bakery", "total": 6000})
        self.assertEqual([row["total"] for row in metrics["latestSales"]], [4000, 1100, 2000])

    def test_export_writes_formula_like_text_as_plain_strings(self):
        name = '=HYPERLINK("http://example.com","click")'
        report = {"stock": [{"name": name, "stock": -1, "stock_min": 2}, {"name": "@SUM(A1)", "stock": 0, "stock_min": 1}]}
        sheet = load_workbook(io.BytesIO(export_report_xlsx(report)))["Low stock"]
        self.assertEqual(sheet["A2"].value, name)
        self.assertEqual(sheet["A2"].data_type, "s")
        self.assertEqual(sheet["A3"].data_type, "s")
        self.assertEqual(sheet["B2"].value, -1)

    def test_insights_read_sales_older_than_a_short_demand_window(self):
        policy = InsightPolicy(window_days=30, trend_window_days=31)
        insights = {insight.product_id: insight for insight in build_insights(self.db, NOW, policy)}
        self.assertAlmostEqual(insights[self.bread.id].trend_ratio, 1.0)
        self.assertAlmostEqual(insights[self.bread.id].predicted_weekly_demand, 4 / 30 * 7)

    def test_assistant_summary(self):
        summary = assistant_summary(self.db, NOW)
        self.assertEqual(summary["revenue_7d"], 5100)
        self.assertEqual(summary["sales_count_7d"], 2)
        self.assertEqual(summary["best_seller_name"], "Bread")
        self.assertEqual([row["name"] for row in summary["low_stock"]], ["Milk"])
        self.assertEqual(summary["cash_balance"], 1000)
        severities = [card["severity"] for card in summary["action_cards"]]
        self.assertIn("alert", severities)
        self.assertIn("positive", severities)


if __name__ == "__main__":
    unittest.main()
