"""Who is calling: the authenticated user reduced to ``(id, role)``.

Services never look at ``request.user`` directly; views resolve an
``Identity`` here so role spelling is normalised in exactly one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import UserProfile


@dataclass(frozen=True)
class Identity:
    id: int
    role: str

    @property
    def is_collector(self) -> bool:
        return self.role == UserProfile.COLLECTOR

    @property
    def can_validate(self) -> bool:
        return self.role in UserProfile.VALIDATOR_ROLES


def identity_for_user(user) -> Optional[Identity]:
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if not getattr(user, "is_active", True):
        return None
    profile = getattr(user, "profile", None)
    role = UserProfile.normalize_role(getattr(profile, "role", None))
    if role is None:
        role = UserProfile.ADMIN if user.is_superuser else UserProfile.COLLECTOR
    return Identity(id=user.pk, role=role)


def current_identity(request) -> Optional[Identity]:
    """Return the caller's identity, or ``None`` when unauthenticated."""
    return identity_for_user(getattr(request, "user", None))
