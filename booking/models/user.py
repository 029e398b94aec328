# ============================================================================
# FILE: booking/models/user.py
# Accounts are provisioned by the auth service; this table only carries the
# identity and role the booking engine needs to authorize actors.
# ============================================================================
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
import enum
from booking.models.base import Base


class UserRole(str, enum.Enum):
    """Platform roles. Customers book, owners and staff run businesses."""
    CUSTOMER = "CUSTOMER"
    BUSINESS_OWNER = "BUSINESS_OWNER"
    STAFF = "STAFF"


class ActorKind(str, enum.Enum):
    """Which side of a booking an authenticated user acts on"""
    CLIENT = "client"
    BUSINESS = "business"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    role = Column(
        SQLEnum(UserRole),
        default=UserRole.CUSTOMER,
        nullable=False,
        index=True
    )

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def actor_kind(self) -> ActorKind:
        if self.role == UserRole.CUSTOMER:
            return ActorKind.CLIENT
        return ActorKind.BUSINESS

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class StaffMembership(Base):
    """Links a staff user to the business they serve"""
    __tablename__ = "staff_memberships"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<StaffMembership(business_id={self.business_id}, user_id={self.user_id})>"
