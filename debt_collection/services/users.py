from __future__ import annotations

import logging

from django.contrib.auth.models import User
from django.db.models import Count, Q

from debt_collection.identity import Identity
from debt_collection.models import Assignment, UserProfile

from .assignments import require_validator
from .errors import AuthError, NotFoundError, ValidationError
from .reports import require_identity

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def list_users(identity: Identity | None, role=None):
    """Active users, with how many ACTIVE assignments each one holds."""
    require_validator(identity)
    qs = (
        User.objects.filter(is_active=True)
        .select_related("profile")
        .annotate(
            assigned_count=Count(
                "assignments", filter=Q(assignments__status=Assignment.ACTIVE)
            )
        )
        .order_by("first_name", "username")
    )
    if role:
        canonical = UserProfile.normalize_role(role)
        if canonical is None:
            raise ValidationError(f"Unknown role: {role}")
        qs = qs.filter(profile__role=canonical)
    return qs


def _own_user(identity: Identity | None, user_id, action: str) -> User:
    identity = require_identity(identity)
    try:
        pk = int(user_id)
    except (TypeError, ValueError):
        raise NotFoundError("User not found")
    if pk != identity.id:
        raise AuthError.forbidden(f"You can only {action}")
    user = User.objects.select_related("profile").filter(pk=pk).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_profile(identity: Identity | None, user_id) -> User:
    return _own_user(identity, user_id, "view your own profile")


def update_profile(identity: Identity | None, user_id, data) -> User:
    user = _own_user(identity, user_id, "update your own profile")
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")
    email = (data.get("email") or "").strip()
    if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
        raise ValidationError("Email already in use")

    first, _, last = name.partition(" ")
    user.first_name = first
    user.last_name = last.strip()
    if email:
        user.email = email
    user.save(update_fields=["first_name", "last_name", "email"])

    profile, _ = UserProfile.objects.get_or_create(user=user)
    profile.phone = (data.get("phone") or "").strip()
    profile.address = (data.get("address") or "").strip()
    profile.save(update_fields=["phone", "address"])
    user.profile = profile

    logger.info("User %s updated their profile", user.pk)
    return user


def change_password(identity: Identity | None, user_id, data) -> User:
    user = _own_user(identity, user_id, "change your own password")
    current = data.get("currentPassword") or ""
    new = data.get("newPassword") or ""
    if not current or not new:
        raise ValidationError("Current password and new password are required")
    if len(new) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if not user.check_password(current):
        raise ValidationError("Current password is incorrect")
    user.set_password(new)
    user.save(update_fields=["password"])
    logger.info("User %s changed their password", user.pk)
    return user
