from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Index, Integer, String

from simpligest.database.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, nullable=False)
    source = Column(String, nullable=False, default="manual")
    invoice_id = Column(Integer)

    occurred_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        Index("idx_transactions_date", "occurred_at"),
    )


__all__ = ["Transaction"]
