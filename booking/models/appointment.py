# booking/models/appointment.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Enum as SQLEnum, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from booking.models.base import Base
from booking.services.scheduling.time_utils import to_utc


class AppointmentStatus(str, enum.Enum):
    """Lifecycle states. Every state except CANCELLED occupies its slot."""
    BOOKED = "BOOKED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Commit-time backstop: two live bookings cannot share business, staff scope and start
        Index(
            "uq_appointments_active_slot",
            "business_id", "staff_key", "start_at",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
        Index("ix_appointments_business_start", "business_id", "start_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    staff_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    staff_key = Column(String(36), nullable=False, default="")  # staff id as text, "" when unscoped

    # Absolute instants, stored in UTC
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)

    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.BOOKED, nullable=False)

    customer_note = Column(Text, nullable=True)
    business_note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    service = relationship("Service", lazy="joined")
    business = relationship("Business", lazy="joined")

    def __repr__(self):
        return f"<Appointment(id={self.id}, start_at={self.start_at}, status={self.status})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "service_id": str(self.service_id),
            "customer_id": str(self.customer_id),
            "staff_id": str(self.staff_id) if self.staff_id else None,
            "start_at": to_utc(self.start_at).isoformat(),
            "end_at": to_utc(self.end_at).isoformat(),
            "status": self.status.value,
            "customer_note": self.customer_note,
            "business_note": self.business_note,
            "service_name": self.service.name if self.service else None,
            "business_name": self.business.name if self.business else None,
            "cancelled_at": to_utc(self.cancelled_at).isoformat() if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
        }
