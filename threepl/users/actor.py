"""
Identity context passed into every fulfillment entry point.

The actor is resolved upstream (JWT or session authentication); the engine
trusts it as given and performs no credential checks of its own.
"""

from dataclasses import dataclass
from typing import Optional

from .models import Role, MERCHANT_ROLES


@dataclass(frozen=True)
class Actor:
    id: int
    role: str
    business_id: Optional[int] = None

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.pk, role=user.role, business_id=user.business_id)

    @classmethod
    def resolve(cls, actor_or_user) -> "Actor":
        if isinstance(actor_or_user, cls):
            return actor_or_user
        return cls.from_user(actor_or_user)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_merchant(self) -> bool:
        return self.role in MERCHANT_ROLES

    @property
    def is_logistics(self) -> bool:
        return self.role == Role.LOGISTICS
