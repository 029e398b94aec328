#!/usr/bin/env python3
"""
Script to create a demo business with weekly opening hours
Usage: python -m booking.scripts.seed_demo
"""
import sys
from datetime import timedelta
from sqlalchemy.orm import Session

from booking.api.dependencies import create_access_token
from booking.config.database import SessionLocal, create_tables
from booking.models.user import User, UserRole
from booking.services.business.business_service import BusinessService

DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def get_or_create_user(db: Session, email: str, name: str, role: UserRole) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(email=email, name=name, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_demo():
    """Create a demo owner, customer, business, services and hours"""
    create_tables()
    db: Session = SessionLocal()

    try:
        owner = get_or_create_user(db, "owner@example.com", "Demo Owner", UserRole.BUSINESS_OWNER)
        customer = get_or_create_user(db, "customer@example.com", "Demo Customer", UserRole.CUSTOMER)

        business = BusinessService.create_business(
            db,
            owner_id=owner.id,
            name="Sakura Hair Studio",
            category="salon",
            phone="+81312345678",
            address="1-2-3 Shibuya, Tokyo",
            timezone="Asia/Tokyo",
        )

        services = [
            {"name": "Haircut", "duration": 60, "price": 4500, "description": "Cut and style"},
            {"name": "Color", "duration": 90, "price": 8000, "description": "Full color"},
            {"name": "Quick Trim", "duration": 30, "price": 2000, "description": None},
        ]
        for service_data in services:
            BusinessService.create_service(db, business.id, actor_id=owner.id, **service_data)

        # 0 = Sunday ... 6 = Saturday
        hours = [
            (1, "09:00", "18:00"),
            (2, "09:00", "18:00"),
            (3, "09:00", "18:00"),
            (4, "09:00", "18:00"),
            (5, "09:00", "18:00"),
            (6, "10:00", "13:00"),
            (6, "14:00", "17:00"),  # split shift
        ]
        for day_of_week, start_time, end_time in hours:
            BusinessService.add_availability_rule(
                db, business.id, day_of_week, start_time, end_time, actor_id=owner.id
            )

        print("\n" + "=" * 60)
        print("BUSINESS CREATED SUCCESSFULLY!")
        print("=" * 60)
        print(f"\nBusiness ID: {business.id}")
        print(f"Name: {business.name}")
        print(f"Timezone: {business.timezone}")
        print(f"\nServices:")
        for service in BusinessService.list_services(db, business.id):
            print(f"  - {service.name} ({service.formatted_duration}) id={service.id}")
        print(f"\nBusiness Hours:")
        for day_of_week, start_time, end_time in hours:
            print(f"  {DAYS[day_of_week]}: {start_time} - {end_time}")

        ttl = timedelta(days=7)
        print("\n" + "=" * 60)
        print("BEARER TOKENS (valid 7 days)")
        print("=" * 60)
        print(f"\nOwner ({owner.email}):")
        print(create_access_token({"sub": str(owner.id)}, expires_delta=ttl))
        print(f"\nCustomer ({customer.email}):")
        print(create_access_token({"sub": str(customer.id)}, expires_delta=ttl))
        print()

        return str(business.id)

    except Exception as e:
        db.rollback()
        print(f"\n❌ Error seeding demo data: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo()
