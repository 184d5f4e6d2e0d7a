from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from simpligest.database.base import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    supplier = Column(String, nullable=False)
    invoice_number = Column(String, nullable=False)
    issue_date = Column(Date, nullable=False)
    total = Column(Float, nullable=False, default=0)
    currency = Column(String, nullable=False, default="CLP")

    file_name = Column(String, nullable=False, default="")
    file_type = Column(String, nullable=False, default="")
    raw_text = Column(Text)
    warnings = Column(Text)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.line_number",
    )

    __table_args__ = (
        Index("idx_invoices_supplier_number", "supplier", "invoice_number"),
    )


class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    line_number = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))

    description = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    total = Column(Float, nullable=False)

    invoice = relationship("Invoice", back_populates="items")


__all__ = ["Invoice", "InvoiceLine"]
