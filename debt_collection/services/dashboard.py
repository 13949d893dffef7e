"""Read-only rollups for the collector app and the management dashboard.

Everything is recomputed per request; nothing here writes.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import datetime, timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.db.models import Count, Sum
from django.utils import timezone

from debt_collection.identity import Identity
from debt_collection.models import (
    Asset,
    Assignment,
    FieldReport,
    PaymentReport,
    UserProfile,
    VisitReport,
)

from .errors import AuthError
from .reports import require_identity


def day_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Local midnight today and local midnight tomorrow."""
    local = timezone.localtime(now or timezone.now())
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def month_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """First and last instant of the current local calendar month, both inclusive."""
    local = timezone.localtime(now or timezone.now())
    last_day = monthrange(local.year, local.month)[1]
    first = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last = local.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)
    return first, last


def approved_payments_in_month(now: datetime | None = None):
    first, last = month_bounds(now)
    return PaymentReport.objects.filter(
        status_validation=FieldReport.APPROVED,
        timestamp__gte=first,
        timestamp__lte=last,
    )


def monthly_collected(collector_id, now: datetime | None = None) -> Decimal:
    total = (
        approved_payments_in_month(now)
        .filter(collector_id=collector_id)
        .aggregate(total=Sum("amount"))["total"]
    )
    return total or Decimal("0")


def _distinct_asset_ids(qs) -> list[str]:
    ids = qs.order_by().values_list("asset_id", flat=True).distinct()
    return sorted(str(pk) for pk in ids)


def collector_dashboard(identity: Identity | None, now: datetime | None = None) -> dict:
    identity = require_identity(identity)
    visits = VisitReport.objects.filter(collector_id=identity.id)

    today, tomorrow = day_bounds(now)
    today_visits = visits.filter(timestamp__gte=today, timestamp__lt=tomorrow).count()

    janji_bayar_ids = sorted(
        str(pk)
        for pk in Asset.objects.filter(
            collector_id=identity.id, status=Asset.JANJI_BAYAR
        ).values_list("id", flat=True)
    )

    return {
        "todayVisits": today_visits,
        "visitedAssetIds": _distinct_asset_ids(visits),
        "janjiBayarAssetIds": janji_bayar_ids,
        "pendingVisitAssetIds": _distinct_asset_ids(
            visits.filter(status_validation=FieldReport.PENDING)
        ),
        "collectedAmount": monthly_collected(identity.id, now),
        "promiseToPayCount": len(janji_bayar_ids),
    }


def _count_by_collector(qs) -> dict:
    rows = qs.order_by().values("collector_id").annotate(n=Count("id"))
    return {row["collector_id"]: row["n"] for row in rows}


def validation_summary(identity: Identity | None, now: datetime | None = None) -> dict:
    """Pending queue sizes and this month's collections, per collector."""
    identity = require_identity(identity)
    if not identity.can_validate:
        raise AuthError.forbidden()

    payments = approved_payments_in_month(now)
    collected = {
        row["collector_id"]: row["total"]
        for row in payments.order_by().values("collector_id").annotate(total=Sum("amount"))
    }
    active = _count_by_collector(Assignment.objects.filter(status=Assignment.ACTIVE))
    pending_visits = _count_by_collector(
        VisitReport.objects.filter(status_validation=FieldReport.PENDING)
    )
    pending_payments = _count_by_collector(
        PaymentReport.objects.filter(status_validation=FieldReport.PENDING)
    )

    collectors = []
    for user in (
        User.objects.filter(profile__role=UserProfile.COLLECTOR, is_active=True)
        .order_by("first_name", "username")
    ):
        collectors.append(
            {
                "id": user.pk,
                "name": user.get_full_name() or user.username,
                "collectedAmount": collected.get(user.pk) or Decimal("0"),
                "activeAssignments": active.get(user.pk, 0),
                "pendingVisits": pending_visits.get(user.pk, 0),
                "pendingPayments": pending_payments.get(user.pk, 0),
            }
        )

    return {
        "pendingVisits": sum(pending_visits.values()),
        "pendingPayments": sum(pending_payments.values()),
        "collectedThisMonth": payments.aggregate(total=Sum("amount"))["total"] or Decimal("0"),
        "janjiBayarCount": Asset.objects.filter(status=Asset.JANJI_BAYAR).count(),
        "collectors": collectors,
    }
