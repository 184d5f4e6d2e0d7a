import argparse
from datetime import timedelta

from sqlalchemy import delete, select

from simpligest.core.dates import utc_now
from simpligest.core.logging import setup_logging
from simpligest.database import Base, SessionLocal, engine, ensure_sqlite_schema
from simpligest.models import Product, Sale, Transaction, import_all_models
from simpligest.services.settings_service import get_business_settings


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample products, sales and movements.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    db = SessionLocal()
    try:
        if args.reset:
            db.execute(delete(Sale))
            db.execute(delete(Transaction))
            db.execute(delete(Product))
            db.commit()

        has_product = db.execute(select(Product.id).limit(1)).first()
        if has_product:
            print("Seed skipped: products already exist.")
            return

        business = get_business_settings(db)
        business.business_name = business.business_name or "Almacén Demo"
        business.categories = '["Groceries", "Drinks", "Cleaning"]'

        products = [
            Product(
                name="Rice 1kg",
                category="Groceries",
                supplier="Distribuidora Sur",
                unit="unit",
                stock=40,
                stock_min=10,
                purchase_price=900,
                sale_price=1290,
            ),
            Product(
                name="Mineral water 1.5L",
                category="Drinks",
                supplier="Aguas Andinas SpA",
                unit="unit",
                stock=8,
                stock_min=12,
                purchase_price=450,
                sale_price=790,
            ),
            Product(
                name="Dish soap 750ml",
                category="Cleaning",
                supplier="Distribuidora Sur",
                unit="unit",
                stock=15,
                stock_min=5,
                purchase_price=1100,
                sale_price=1690,
            ),
        ]
        db.add_all(products)
        db.flush()

        now = utc_now()
        sales = []
        for days_back in range(0, 60, 3):
            for product, quantity in zip(products, (3, 5, 1)):
                sales.append(
                    Sale(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=quantity,
                        unit_price=product.sale_price,
                        total=quantity * product.sale_price,
                        sold_at=now - timedelta(days=days_back, hours=2),
                    )
                )
        db.add_all(sales)
        db.add_all(
            [
                Transaction(
                    type="income",
                    amount=150000,
                    description="Opening cash",
                    category="Capital",
                    occurred_at=now - timedelta(days=60),
                ),
                Transaction(
                    type="expense",
                    amount=45000,
                    description="Rent",
                    category="Fixed costs",
                    occurred_at=now - timedelta(days=30),
                ),
            ]
        )
        db.commit()
    finally:
        db.close()

    print("Seed complete: {} products, {} sales.".format(len(products), len(sales)))


if __name__ == "__main__":
    main()
