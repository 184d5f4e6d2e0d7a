from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from simpligest.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)

    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="")
    supplier = Column(String, nullable=False, default="")
    unit = Column(String, nullable=False, default="unit")

    stock = Column(Float, nullable=False, default=0)
    stock_min = Column(Float, nullable=False, default=0)

    purchase_price = Column(Float, nullable=False, default=0)
    sale_price = Column(Float, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_products_name", "name"),
        Index("idx_products_category", "category"),
    )


__all__ = ["Product"]
