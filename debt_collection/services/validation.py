from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from debt_collection.identity import Identity
from debt_collection.models import FieldReport

from .errors import AuthError, ConflictError, NotFoundError, ValidationError
from .projection import apply_projection
from .reports import find_report

logger = logging.getLogger(__name__)


@transaction.atomic
def decide_report(model, report_id, decision, identity: Identity | None, rejection_reason=None):
    """Approve or reject a PENDING field report.

    - Collectors may never validate (403).
    - The transition is a conditional UPDATE on ``status_validation='PENDING'``;
      when two validators race, only one UPDATE matches and the loser gets
      ``ConflictError``, so asset side effects run at most once.
    - A rejection reason replaces ``notes``; the collector's text moves to
      ``original_notes``.
    - Approval runs the asset projection inside the same transaction.
    """
    if identity is None:
        raise AuthError("Unauthorized")
    if not identity.can_validate:
        raise AuthError.forbidden("Collectors cannot validate reports")
    if decision not in FieldReport.DECISIONS:
        raise ValidationError("Status must be APPROVED or REJECTED")

    report = find_report(model, report_id)
    if report is None:
        raise NotFoundError("Report not found")
    if not report.is_pending:
        raise ConflictError(f"Report already {report.status_validation}")

    updates = {
        "status_validation": decision,
        "decided_by_id": identity.id,
        "decided_at": timezone.now(),
    }
    reason = (rejection_reason or "").strip()
    if decision == FieldReport.REJECTED and reason:
        # original_notes must be assigned before notes (MySQL applies SET
        # clauses left to right).
        updates["original_notes"] = F("notes")
        updates["notes"] = reason
        updates["decision_note"] = reason

    matched = model.objects.filter(
        pk=report.pk, status_validation=FieldReport.PENDING
    ).update(**updates)
    if not matched:
        logger.warning(
            "%s %s was validated concurrently; dropping %s by user %s",
            model.__name__, report.pk, decision, identity.id,
        )
        raise ConflictError("Report was already validated")

    report = find_report(model, report.pk)
    if decision == FieldReport.APPROVED:
        apply_projection(report)
        report = find_report(model, report.pk)

    logger.info(
        "%s %s %s by user %s",
        model.__name__, report.pk, decision.lower(), identity.id,
    )
    return report
