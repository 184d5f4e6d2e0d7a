from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, String

from simpligest.database.base import Base


class NotificationLog(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    notification_date = Column(Date, nullable=False)
    notification_type = Column(String, nullable=False)

    product_id = Column(Integer)
    phone_number = Column(String, nullable=False)
    message = Column(String, nullable=False)

    delivered = Column(Boolean, nullable=False)
    failure_reason = Column(String)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index(
            "idx_notification_dedup",
            "notification_date",
            "notification_type",
            "product_id",
            "phone_number",
        ),
    )


__all__ = ["NotificationLog"]
