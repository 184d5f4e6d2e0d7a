import unittest
from types import SimpleNamespace
from unittest import mock

import jwt
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from simpligest.database.base import Base
from simpligest.dependencies import get_db, require_auth
from simpligest.models import import_all_models
from simpligest.routers import finance_router, members_router, products_router, sales_router


class ApiTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        Session = sessionmaker(bind=self.engine, expire_on_commit=False)

        def override_get_db():
            db = Session()
            try:
                yield db
            finally:
                db.close()

        app = FastAPI()
        app.include_router(products_router)
        app.include_router(sales_router)
        app.include_router(finance_router)
        app.include_router(members_router)
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[require_auth] = lambda: None
        self.client = TestClient(app)

    def tearDown(self):
        self.engine.dispose()

    def test_product_crud_and_quick_sale(self):
        response = self.client.post(
            "/products",
            json={"name": "Bread", "stock": 10, "stock_min": 2, "purchase_price": 500, "sale_price": 1000},
        )
        self.assertEqual(response.status_code, 201)
        product_id = response.json()["id"]

        response = self.client.patch(f"/products/{product_id}", json={"sale_price": 1200})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["sale_price"], 1200)

        response = self.client.post("/sales", json={"product_id": product_id, "quantity": 3})
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["sale"]["total"], 3600)
        self.assertEqual(body["remaining_stock"], 7)

        response = self.client.get("/finance/summary")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["sales_income"], 3600)

    def test_domain_errors_map_to_http_codes(self):
        self.assertEqual(self.client.get("/products/404").status_code, 404)
        self.assertEqual(self.client.post("/sales", json={"product_id": 1, "quantity": 1}).status_code, 404)

        product_id = self.client.post("/products", json={"name": "Salt", "stock": 1}).json()["id"]
        response = self.client.post("/sales", json={"product_id": product_id, "quantity": 5})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Insufficient stock", response.json()["detail"])

    def test_member_token_endpoint(self):
        response = self.client.put("/members/u-9/role", json={"role": "seller", "email": "leo@example.com"})
        self.assertEqual(response.status_code, 200)

        settings = SimpleNamespace(
            JWT_SECRET="api-signing-key-with-enough-length-000001",
            JWT_ALGORITHM="HS256",
            JWT_AUDIENCE=None,
            JWT_ISSUER=None,
            JWT_EXPIRE_MINUTES=15,
        )
        with mock.patch("simpligest.core.security.get_settings", return_value=settings):
            response = self.client.post("/members/u-9/token")
            self.assertEqual(response.status_code, 200)
            body = response.json()
            self.assertEqual(body["token_type"], "bearer")
            claims = jwt.decode(body["access_token"], settings.JWT_SECRET, algorithms=["HS256"])
            self.assertEqual(claims["sub"], "u-9")
            self.assertEqual(self.client.post("/members/ghost/token").status_code, 404)

        with mock.patch("simpligest.core.security.get_settings", return_value=SimpleNamespace(JWT_SECRET=None)):
            self.assertEqual(self.client.post("/members/u-9/token").status_code, 502)


if __name__ == "__main__":
    unittest.main()
