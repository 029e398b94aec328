# booking/models/business.py
"""
Business Model
The business timezone is the frame for every wall-clock rule and exception.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)

    # System configuration
    timezone = Column(String(50), default="Asia/Tokyo", nullable=False)

    # Bumped inside every booking commit; serializes concurrent writers per business
    booking_version = Column(Integer, default=0, nullable=False)

    services = relationship("Service", back_populates="business", order_by="Service.created_at")

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"

    def to_dict(self, include_services=False):
        """Convert to dictionary for API responses"""
        data = {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "name": self.name,
            "category": self.category,
            "phone": self.phone,
            "address": self.address,
            "timezone": self.timezone,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_services:
            data["services"] = [s.to_dict() for s in self.services if s.is_active]

        return data
