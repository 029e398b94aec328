# ===== booking/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from booking.models.base import Base
from booking.services.scheduling.time_utils import to_utc
import uuid


class AvailabilityRule(Base):
    """Recurring weekly opening hours, several rows per weekday allowed (split shifts)"""
    __tablename__ = "availability_rules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM, business timezone
    end_time = Column(String(5), nullable=False)  # HH:MM, business timezone

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


class AvailabilityException(Base):
    """Date override (holidays, special hours). Replaces the weekly rules for that day."""
    __tablename__ = "availability_exceptions"
    __table_args__ = (
        UniqueConstraint("business_id", "date", name="uq_availability_exception_day"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)

    # UTC instant of the local start of day in the business timezone
    date = Column(DateTime(timezone=True), nullable=False)
    is_closed = Column(Boolean, default=True, nullable=False)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    reason = Column(String, nullable=True)  # "Holiday", "Vacation", etc.

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "date": to_utc(self.date).isoformat() if self.date else None,
            "is_closed": self.is_closed,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "reason": self.reason,
        }
