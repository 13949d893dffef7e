from __future__ import annotations

import logging
from uuid import UUID

from django.contrib.auth.models import User
from django.db import transaction

from debt_collection.identity import Identity
from debt_collection.models import Asset, Assignment, UserProfile
from debt_collection.utils.commitment import InvalidCommitmentDate, parse_commitment_date

from .errors import AuthError, ValidationError
from .reports import require_identity

logger = logging.getLogger(__name__)


def require_validator(identity: Identity | None) -> Identity:
    identity = require_identity(identity)
    if not identity.can_validate:
        raise AuthError.forbidden()
    return identity


def get_collector(collector_id) -> User:
    try:
        pk = int(collector_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid collector")
    collector = (
        User.objects.select_related("profile").filter(pk=pk, is_active=True).first()
    )
    profile = getattr(collector, "profile", None) if collector else None
    if not profile or UserProfile.normalize_role(profile.role) != UserProfile.COLLECTOR:
        raise ValidationError("Invalid collector")
    return collector


def _as_uuid(value):
    try:
        return UUID(str(value))
    except ValueError:
        return None


@transaction.atomic
def bulk_assign(identity: Identity | None, asset_ids, collector_id, due_date=None) -> dict:
    """Assign many assets to one collector.

    Pairs that already have an ACTIVE assignment are left untouched; the
    rest are inserted in one batch. Unknown asset ids are reported in
    ``errors`` instead of aborting the batch. Any other collector's ACTIVE
    assignment on a newly assigned asset is deactivated.
    """
    identity = require_validator(identity)
    if not isinstance(asset_ids, list) or not asset_ids:
        raise ValidationError("assetIds array is required")
    if not collector_id:
        raise ValidationError("collectorId is required")
    collector = get_collector(collector_id)
    try:
        due_date = parse_commitment_date(due_date)
    except InvalidCommitmentDate:
        raise ValidationError("dueDate is not a valid date")

    errors = []
    wanted = []
    for raw in dict.fromkeys(str(a) for a in asset_ids):
        pk = _as_uuid(raw)
        if pk is None:
            errors.append(f"{raw}: invalid asset id")
        else:
            wanted.append(pk)

    found = set(Asset.objects.filter(pk__in=wanted).values_list("pk", flat=True))
    for pk in wanted:
        if pk not in found:
            errors.append(f"{pk}: asset not found")
    found_ids = [pk for pk in wanted if pk in found]

    already_active = set(
        Assignment.objects.filter(
            collector=collector, status=Assignment.ACTIVE, asset_id__in=found_ids
        ).values_list("asset_id", flat=True)
    )
    new_ids = [pk for pk in found_ids if pk not in already_active]

    if new_ids:
        Assignment.objects.filter(
            asset_id__in=new_ids, status=Assignment.ACTIVE
        ).exclude(collector=collector).update(status=Assignment.INACTIVE)
        # ignore_conflicts backs the pre-check above with the partial
        # unique constraint when another request inserts the same pair.
        Assignment.objects.bulk_create(
            [
                Assignment(
                    asset_id=pk,
                    collector=collector,
                    assigned_by_id=identity.id,
                    status=Assignment.ACTIVE,
                    due_date=due_date,
                )
                for pk in new_ids
            ],
            ignore_conflicts=True,
        )
    Asset.objects.filter(pk__in=found_ids).exclude(collector=collector).update(
        collector=collector
    )

    name = collector.get_full_name() or collector.username
    logger.info(
        "Assigned %d asset(s) to %s (%d already active, %d error(s))",
        len(new_ids), name, len(already_active), len(errors),
    )
    return {
        "assignedCount": len(new_ids),
        "alreadyAssignedCount": len(already_active),
        "collectorName": name,
        "errors": errors,
    }
