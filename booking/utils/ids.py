# booking/utils/ids.py
"""Identifier coercion shared by the service layer"""
from typing import Any
from uuid import UUID

from booking.core.errors import NotFoundError


def parse_uuid(value: Any, label: str) -> UUID:
    """
    Convert to UUID. A malformed identifier cannot name an existing record,
    so it is reported as "<label> not found".
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(f"{label} not found")
