"""Database configuration and connection setup"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from booking.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def build_engine(database_url: str, **overrides) -> Engine:
    """Create an engine for the given URL with the pool settings that suit it"""
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI (sessions hop between threads)
        options = {
            "echo": settings.DB_ECHO,
            "connect_args": {"check_same_thread": False},
        }
    else:
        options = {
            "poolclass": QueuePool,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "echo": settings.DB_ECHO,
        }
    options.update(overrides)
    return create_engine(database_url, **options)


# Create database engine with connection pooling
engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None):
    """Create all booking tables (development helper; production uses alembic)"""
    from booking.models import Base

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database tables created")


if __name__ == "__main__":
    create_tables()
