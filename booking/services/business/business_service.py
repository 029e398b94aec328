# booking/services/business/business_service.py
"""Service for managing businesses, their services and availability rules"""
from decimal import Decimal
from typing import List, Optional, Union
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
import logging

from booking.config.settings import get_settings
from booking.core.errors import AuthorizationError, NotFoundError, ValidationError
from booking.models.availability import AvailabilityException, AvailabilityRule
from booking.models.business import Business
from booking.models.service import Service
from booking.models.user import User, UserRole
from booking.services.scheduling.time_utils import (
    day_bounds,
    get_timezone,
    is_valid_timezone,
    parse_calendar_date,
    validate_time_range,
)
from booking.utils.ids import parse_uuid

logger = logging.getLogger(__name__)


class BusinessService:
    """Handles business-related operations"""

    @staticmethod
    def assert_business_access(
            db: Session,
            business_id: Union[str, UUID],
            actor_id: Optional[UUID] = None
    ) -> Business:
        """Return the business; when actor_id is given it must be the owner."""
        business = db.query(Business).filter(
            Business.id == parse_uuid(business_id, "Business")
        ).first()
        if not business:
            raise NotFoundError("Business not found")
        if actor_id and business.owner_id != actor_id:
            raise AuthorizationError("Only the owner can modify this business")
        return business

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    @staticmethod
    def create_business(
            db: Session,
            owner_id: UUID,
            name: str,
            category: str,
            phone: Optional[str] = None,
            address: Optional[str] = None,
            timezone: Optional[str] = None
    ) -> Business:
        owner = db.query(User).filter(User.id == owner_id).first()
        if not owner:
            raise NotFoundError("Business owner not found")
        if owner.role != UserRole.BUSINESS_OWNER:
            raise AuthorizationError("Only a business owner can create businesses")

        timezone = timezone or get_settings().DEFAULT_BUSINESS_TIMEZONE
        if not is_valid_timezone(timezone):
            raise ValidationError(f"Unknown timezone: {timezone}")

        business = Business(
            owner_id=owner.id,
            name=name,
            category=category,
            phone=phone,
            address=address,
            timezone=timezone,
            is_active=True,
        )
        db.add(business)
        db.commit()
        db.refresh(business)

        logger.info(f"Created business {business.id}: {business.name} ({business.timezone})")
        return business

    @staticmethod
    def list_businesses(db: Session, owner_id: Optional[UUID] = None) -> List[Business]:
        query = db.query(Business).options(selectinload(Business.services))
        if owner_id:
            query = query.filter(Business.owner_id == owner_id)
        return query.order_by(Business.created_at.desc()).all()

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @staticmethod
    def create_service(
            db: Session,
            business_id: Union[str, UUID],
            name: str,
            duration: int,
            price: float = 0,
            description: Optional[str] = None,
            is_active: bool = True,
            actor_id: Optional[UUID] = None
    ) -> Service:
        business = BusinessService.assert_business_access(db, business_id, actor_id)

        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValidationError("duration must be a positive number of minutes")
        if price is None or price < 0:
            raise ValidationError("price cannot be negative")

        service = Service(
            business_id=business.id,
            name=name,
            description=description,
            duration=duration,
            price=Decimal(str(price)),
            is_active=is_active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)

        logger.info(f"Created service {service.id}: {service.name} ({service.duration} min)")
        return service

    @staticmethod
    def list_services(db: Session, business_id: Union[str, UUID]) -> List[Service]:
        business = BusinessService.assert_business_access(db, business_id)
        return db.query(Service).filter(
            Service.business_id == business.id,
            Service.is_active == True
        ).order_by(Service.created_at.asc()).all()

    # ------------------------------------------------------------------
    # Availability rules
    # ------------------------------------------------------------------

    @staticmethod
    def add_availability_rule(
            db: Session,
            business_id: Union[str, UUID],
            day_of_week: int,
            start_time: str,
            end_time: str,
            actor_id: Optional[UUID] = None
    ) -> AvailabilityRule:
        """Invalid rules are rejected here and never stored."""
        business = BusinessService.assert_business_access(db, business_id, actor_id)

        if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
            raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
        if not validate_time_range(start_time, end_time):
            raise ValidationError("Invalid time range, expected HH:MM with end after start")

        rule = AvailabilityRule(
            business_id=business.id,
            day_of_week=day_of_week,
            start_time=start_time.strip(),
            end_time=end_time.strip(),
        )
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def list_availability_rules(db: Session, business_id: Union[str, UUID]) -> List[AvailabilityRule]:
        business = BusinessService.assert_business_access(db, business_id)
        return db.query(AvailabilityRule).filter(
            AvailabilityRule.business_id == business.id
        ).order_by(
            AvailabilityRule.day_of_week.asc(),
            AvailabilityRule.start_time.asc()
        ).all()

    # ------------------------------------------------------------------
    # Availability exceptions
    # ------------------------------------------------------------------

    @staticmethod
    def add_availability_exception(
            db: Session,
            business_id: Union[str, UUID],
            date: str,
            is_closed: bool = True,
            start_time: Optional[str] = None,
            end_time: Optional[str] = None,
            reason: Optional[str] = None,
            actor_id: Optional[UUID] = None
    ) -> AvailabilityException:
        """
        Create the exception for a date, or replace the one already stored
        for that date. Only one exception per business day exists.
        """
        business = BusinessService.assert_business_access(db, business_id, actor_id)
        tz = get_timezone(business.timezone)

        day = parse_calendar_date(date, tz)
        if day is None:
            raise ValidationError("Invalid date, expected YYYY-MM-DD")

        if not is_closed:
            if not start_time or not end_time:
                raise ValidationError("start_time and end_time are required when is_closed is false")
            if not validate_time_range(start_time, end_time):
                raise ValidationError("Invalid time range, expected HH:MM with end after start")
        else:
            start_time = end_time = None

        day_start, day_end = day_bounds(day, tz)
        business_pk = business.id
        fields = {
            "is_closed": is_closed,
            "start_time": start_time.strip() if start_time else None,
            "end_time": end_time.strip() if end_time else None,
            "reason": reason,
        }

        exception = BusinessService._find_exception(db, business_pk, day_start, day_end)
        if exception is None:
            exception = AvailabilityException(business_id=business_pk, date=day_start, **fields)
            db.add(exception)
            try:
                db.commit()
            except IntegrityError:
                # a concurrent writer stored this day first; replace its row instead
                db.rollback()
                exception = BusinessService._find_exception(db, business_pk, day_start, day_end)
                if exception is None:
                    raise
                logger.info(f"Availability exception for {day} created concurrently, replacing {exception.id}")
                BusinessService._apply_exception_fields(exception, fields)
                db.commit()
        else:
            logger.info(f"Replacing availability exception {exception.id} for {day}")
            BusinessService._apply_exception_fields(exception, fields)
            db.commit()

        db.refresh(exception)
        return exception

    @staticmethod
    def _find_exception(db: Session, business_id: UUID, day_start, day_end) -> Optional[AvailabilityException]:
        return db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business_id,
            AvailabilityException.date >= day_start,
            AvailabilityException.date < day_end
        ).first()

    @staticmethod
    def _apply_exception_fields(exception: AvailabilityException, fields: dict) -> None:
        for name, value in fields.items():
            setattr(exception, name, value)

    @staticmethod
    def list_availability_exceptions(db: Session, business_id: Union[str, UUID]) -> List[AvailabilityException]:
        business = BusinessService.assert_business_access(db, business_id)
        return db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business.id
        ).order_by(AvailabilityException.date.asc()).all()
