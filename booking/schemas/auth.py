# booking/schemas/auth.py
"""Identity of the caller, as established by the bearer token"""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from booking.models.user import ActorKind


class Actor(BaseModel):
    """Who is acting: a client (customer) or a business user (owner/staff)"""
    id: UUID
    kind: ActorKind
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, kind=user.actor_kind, email=user.email)
