import unittest
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest import mock

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from simpligest.database.base import Base
from simpligest.models import NotificationLog, Sale, import_all_models
from simpligest.services.notification_service import (
    build_daily_summary_message,
    build_low_stock_message,
    notification_destination,
    run_daily_summary,
    should_send_daily_summary,
)
from simpligest.services.settings_service import get_business_settings, update_business_settings

# 14:00 in Santiago (UTC-4 in June)
NOW = datetime(2024, 6, 14, 18, 0, tzinfo=timezone.utc)
SEND = "simpligest.services.notification_service.send_whatsapp"


def sale(name, quantity, total, sold_at):
    return SimpleNamespace(product_name=name, quantity=quantity, total=total, sold_at=sold_at)


class MessageTest(unittest.TestCase):
    def test_low_stock_message(self):
        product = SimpleNamespace(name="Milk", stock=2, stock_min=5, unit="box")
        message = build_low_stock_message(product, "Almacén Rosa")
        self.assertEqual(
            message.splitlines(),
            [
                "⚠ Low stock alert (Almacén Rosa)",
                "Product: Milk",
                "Remaining stock: 2 box",
                "Minimum stock: 5",
            ],
        )

    def test_daily_summary_only_counts_today(self):
        sales = [
            sale("Bread", 2, 3000, datetime(2024, 6, 14, 13, 0, tzinfo=timezone.utc)),
            sale("Milk", 1, 1200, datetime(2024, 6, 14, 15, 0, tzinfo=timezone.utc)),
            sale("Bread", 1, 1500, datetime(2024, 6, 14, 16, 0, tzinfo=timezone.utc)),
            sale("Eggs", 9, 90000, datetime(2024, 6, 13, 12, 0, tzinfo=timezone.utc)),
        ]
        message = build_daily_summary_message(
            sales, date(2024, 6, 14), currency="CLP", business_name="Don Pepe", tz=timezone.utc
        )
        lines = message.splitlines()
        self.assertEqual(lines[0], "\U0001F4CA Sales summary - Don Pepe")
        self.assertEqual(lines[1], "Date: 14-06-2024")
        self.assertEqual(lines[2], "Total sold: $5.700")
        self.assertEqual(lines[3], "Units sold: 4")
        self.assertEqual(lines[4], "Best seller: Bread ($4.500)")
        self.assertEqual(lines[-1], "Thanks for using SimpliGest.")

    def test_daily_summary_without_sales(self):
        with self.assertRaises(ValueError):
            build_daily_summary_message([], date(2024, 6, 14), tz=timezone.utc)

    def test_should_send_after_target_time(self):
        now = datetime(2024, 6, 14, 20, 30, tzinfo=timezone.utc)
        self.assertTrue(should_send_daily_summary(now, "20:30", tz=timezone.utc))
        self.assertFalse(should_send_daily_summary(now, "21:00", tz=timezone.utc))
        self.assertTrue(should_send_daily_summary(now, None, tz=timezone.utc))

    def test_destination_prefers_whatsapp_number(self):
        business = SimpleNamespace(whatsapp_number=" ", phone="+56900000000")
        self.assertEqual(notification_destination(business), "+56900000000")
        business.phone = ""
        self.assertIsNone(notification_destination(business))


class RunDailySummaryTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        db = self.Session()
        update_business_settings(
            db,
            {
                "business_name": "Don Pepe",
                "whatsapp_enabled": True,
                "whatsapp_daily_summary_enabled": True,
                "whatsapp_daily_summary_time": "12:00",
                "whatsapp_number": "+56911112222",
            },
        )
        db.commit()
        db.close()

    def tearDown(self):
        self.engine.dispose()

    def add_sale(self, total, sold_at):
        db = self.Session()
        db.add(Sale(product_name="Bread", quantity=1, unit_price=total, total=total, sold_at=sold_at))
        db.commit()
        db.close()

    def last_summary_date(self):
        db = self.Session()
        try:
            return get_business_settings(db).whatsapp_last_summary_date
        finally:
            db.close()

    def test_sends_once_per_day(self):
        self.add_sale(1500, datetime(2024, 6, 14, 15, 0, tzinfo=timezone.utc))
        with mock.patch(SEND) as send:
            first = run_daily_summary(now=NOW, session_factory=self.Session)
            second = run_daily_summary(now=NOW, session_factory=self.Session)

        self.assertEqual(first, {"status": "sent"})
        self.assertEqual(second, {"status": "already_sent"})
        self.assertEqual(send.call_count, 1)
        self.assertIn("Total sold: $1.500", send.call_args[0][0])
        self.assertEqual(self.last_summary_date(), "2024-06-14")

        db = self.Session()
        log = db.execute(select(NotificationLog)).scalars().one()
        self.assertTrue(log.delivered)
        self.assertEqual(log.notification_type, "daily_summary")
        db.close()

    def test_waits_for_configured_time(self):
        early = datetime(2024, 6, 14, 13, 0, tzinfo=timezone.utc)
        with mock.patch(SEND) as send:
            result = run_daily_summary(now=early, session_factory=self.Session)
        self.assertEqual(result, {"status": "waiting"})
        send.assert_not_called()

    def test_no_sales_does_not_mark_the_day(self):
        with mock.patch(SEND) as send:
            result = run_daily_summary(now=NOW, session_factory=self.Session)
        self.assertEqual(result["status"], "skipped")
        send.assert_not_called()
        self.assertIsNone(self.last_summary_date())

    def test_failed_delivery_marks_the_day(self):
        self.add_sale(1500, datetime(2024, 6, 14, 15, 0, tzinfo=timezone.utc))
        with mock.patch(SEND, side_effect=RuntimeError("WhatsApp API error: HTTP 500")):
            result = run_daily_summary(now=NOW, session_factory=self.Session)
        self.assertEqual(result["status"], "failed")
        self.assertEqual(self.last_summary_date(), "2024-06-14")

    def test_disabled(self):
        db = self.Session()
        update_business_settings(db, {"whatsapp_daily_summary_enabled": False})
        db.commit()
        db.close()
        self.assertEqual(run_daily_summary(now=NOW, session_factory=self.Session), {"status": "disabled"})


if __name__ == "__main__":
    unittest.main()
