from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from simpligest.database.base import Base


class RoleAssignment(Base):
    __tablename__ = "role_assignments"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, unique=True)
    email = Column(String)
    role = Column(String, nullable=False, default="seller")
    status = Column(String, nullable=False, default="active")
    # JSON object of permission overrides on top of the role defaults
    overrides = Column(Text)
    assigned_by = Column(String)

    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


__all__ = ["RoleAssignment"]
