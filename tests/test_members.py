import unittest
from types import SimpleNamespace

import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from simpligest.database.base import Base
from simpligest.models import import_all_models
from simpligest.services.member_service import (
    assign_role,
    get_permissions_for,
    issue_token_for_member,
    list_members,
    serialize_member,
    set_member_status,
)
from simpligest.services.settings_service import (
    get_business_settings,
    serialize_business_settings,
    update_business_settings,
)


class DatabaseTestCase(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(bind=self.engine, expire_on_commit=False)()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()


class MemberServiceTest(DatabaseTestCase):
    def test_assign_role_with_overrides(self):
        assign_role(self.db, "u-1", "seller", {"view_finance": True, "create_sales": None}, email="ana@example.com")
        permissions = get_permissions_for(self.db, "u-1")
        self.assertTrue(permissions["create_sales"])
        self.assertTrue(permissions["view_finance"])
        self.assertFalse(permissions["manage_users"])

    def test_reassigning_updates_the_same_member(self):
        assign_role(self.db, "u-1", "seller")
        assign_role(self.db, "u-1", "accountant", assigned_by="owner")
        members = list_members(self.db)
        self.assertEqual(len(members), 1)
        self.assertEqual(members[0].role, "accountant")
        self.assertEqual(members[0].assigned_by, "owner")

    def test_invalid_assignments(self):
        with self.assertRaises(ValueError):
            assign_role(self.db, "u-1", "owner")
        with self.assertRaises(ValueError):
            assign_role(self.db, "", "seller")
        with self.assertRaises(ValueError):
            assign_role(self.db, "u-1", "seller", {"fly": True})

    def test_unknown_and_disabled_users_have_no_permissions(self):
        self.assertFalse(any(get_permissions_for(self.db, "ghost").values()))

        assign_role(self.db, "u-2", "admin")
        set_member_status(self.db, "u-2", "disabled")
        self.assertFalse(any(get_permissions_for(self.db, "u-2").values()))

        with self.assertRaises(ValueError):
            set_member_status(self.db, "u-2", "banned")
        with self.assertRaises(LookupError):
            set_member_status(self.db, "ghost", "active")

    def test_serialize_member_lists_pages(self):
        member = assign_role(self.db, "u-3", "warehouse")
        data = serialize_member(member)
        self.assertEqual(data["role"], "warehouse")
        self.assertEqual(data["status"], "active")
        self.assertIn("home", data["allowed_pages"])
        self.assertEqual(data["allowed_pages"], sorted(data["allowed_pages"]))

    def test_issue_token_for_active_member(self):
        settings = SimpleNamespace(
            JWT_SECRET="member-signing-key-with-enough-length-01",
            JWT_ALGORITHM="HS256",
            JWT_AUDIENCE=None,
            JWT_ISSUER=None,
            JWT_EXPIRE_MINUTES=30,
        )
        assign_role(self.db, "u-4", "seller", email="sofi@example.com")
        token = issue_token_for_member(self.db, "u-4", settings=settings)
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        self.assertEqual(claims["sub"], "u-4")
        self.assertEqual(claims["email"], "sofi@example.com")

        with self.assertRaises(LookupError):
            issue_token_for_member(self.db, "ghost", settings=settings)
        set_member_status(self.db, "u-4", "disabled")
        with self.assertRaises(ValueError):
            issue_token_for_member(self.db, "u-4", settings=settings)


class BusinessSettingsTest(DatabaseTestCase):
    def test_defaults_are_created_once(self):
        first = get_business_settings(self.db)
        second = get_business_settings(self.db)
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.currency, "CLP")
        self.assertEqual(first.alert_level, "normal")
        self.assertFalse(first.whatsapp_enabled)

    def test_update_normalizes_values(self):
        row = update_business_settings(
            self.db,
            {
                "business_name": "Minimarket Rosa",
                "whatsapp_daily_summary_time": "8:05",
                "categories": [" Bakery ", "", "Dairy"],
                "phone": None,
            },
        )
        data = serialize_business_settings(row)
        self.assertEqual(data["business_name"], "Minimarket Rosa")
        self.assertEqual(data["whatsapp_daily_summary_time"], "08:05")
        self.assertEqual(data["categories"], ["Bakery", "Dairy"])
        self.assertEqual(data["phone"], "")
        self.assertFalse(data["sii_configured"])

    def test_clearing_summary_time(self):
        update_business_settings(self.db, {"whatsapp_daily_summary_time": "20:00"})
        row = update_business_settings(self.db, {"whatsapp_daily_summary_time": ""})
        self.assertIsNone(row.whatsapp_daily_summary_time)

    def test_update_rejects_invalid_values(self):
        for changes in (
            {"alert_level": "panic"},
            {"sii_environment": "staging"},
            {"default_tax_rate": -1},
            {"whatsapp_daily_summary_time": "25:00"},
            {"favorite_color": "blue"},
            {"id": 7},
        ):
            with self.subTest(changes=changes):
                with self.assertRaises(ValueError):
                    update_business_settings(self.db, changes)

    def test_sii_configured_needs_url_and_key(self):
        row = update_business_settings(self.db, {"sii_api_url": "https://sii.example.com"})
        self.assertFalse(serialize_business_settings(row)["sii_configured"])
        row = update_business_settings(self.db, {"sii_api_key": "key"})
        self.assertTrue(serialize_business_settings(row)["sii_configured"])


if __name__ == "__main__":
    unittest.main()
