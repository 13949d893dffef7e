from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from django.db.models import QuerySet
from rest_framework import serializers

from debt_collection.identity import Identity
from debt_collection.models import Asset, FieldReport, PaymentReport, VisitReport
from debt_collection.utils.commitment import InvalidCommitmentDate, parse_commitment_date

from .errors import AuthError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

GPS_COLUMN = VisitReport._meta.get_field("gps_lat")


def require_identity(identity: Identity | None) -> Identity:
    if identity is None:
        raise AuthError("Unauthorized")
    return identity


def require_payload(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _clean_text(value) -> str:
    return str(value).strip() if value not in (None, "") else ""


def _optional_decimal(value, field: str, column) -> Decimal | None:
    """Read ``value`` as a number that fits the model ``column``.

    Extra decimal places are rounded away; too many whole digits is an error.
    """
    if value in (None, ""):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number")
    whole_digits = column.max_digits - column.decimal_places
    if number and number.adjusted() >= whole_digits:
        raise ValidationError(f"{field} is out of range")
    number = number.quantize(Decimal(1).scaleb(-column.decimal_places), rounding=ROUND_HALF_UP)
    checker = serializers.DecimalField(
        max_digits=column.max_digits, decimal_places=column.decimal_places
    )
    try:
        return checker.to_internal_value(number)
    except serializers.ValidationError as exc:
        raise ValidationError(f"{field}: {' '.join(str(d) for d in exc.detail)}")


def resolve_asset(asset_ref) -> Asset:
    """Find an asset by primary key, falling back to its account number."""
    qs = Asset.objects.all()
    try:
        asset = qs.filter(pk=UUID(str(asset_ref))).first()
    except ValueError:
        asset = qs.filter(account_number=str(asset_ref)).first()
    if asset is None:
        raise NotFoundError("Asset not found")
    return asset


def find_report(model, report_id):
    try:
        pk = UUID(str(report_id))
    except ValueError:
        return None
    return model.objects.select_related("asset", "collector").filter(pk=pk).first()


def submit_visit_report(identity: Identity | None, data) -> VisitReport:
    """Record a collector's visit as a PENDING report.

    The asset itself is left alone here; a commitment only reaches the asset
    once an admin approves the report. A ``Komitmen:`` marker in the notes is
    picked up by ``VisitReport.save``.
    """
    identity = require_identity(identity)
    data = require_payload(data)
    asset_ref = data.get("assetId")
    outcome = _clean_text(data.get("outcome"))
    if not asset_ref or not outcome:
        raise ValidationError("assetId and outcome are required")

    notes = _clean_text(data.get("notes"))
    try:
        commitment_date = parse_commitment_date(data.get("commitmentDate"))
    except InvalidCommitmentDate as exc:
        raise ValidationError(str(exc))

    gps_lat = _optional_decimal(data.get("gpsLat"), "gpsLat", GPS_COLUMN)
    gps_lng = _optional_decimal(data.get("gpsLng"), "gpsLng", GPS_COLUMN)
    asset = resolve_asset(asset_ref)

    report = VisitReport.objects.create(
        asset=asset,
        collector_id=identity.id,
        outcome=outcome,
        notes=notes,
        gps_lat=gps_lat,
        gps_lng=gps_lng,
        evidence_photo=_clean_text(data.get("evidencePhoto")),
        commitment_date=commitment_date,
        status_validation=VisitReport.PENDING,
    )
    logger.info(
        "Visit report %s submitted for asset %s by user %s (commitment=%s %s)",
        report.pk, asset.account_number, identity.id,
        report.has_commitment, report.commitment_date,
    )
    return report


def submit_payment_report(identity: Identity | None, data) -> PaymentReport:
    """Record a collector's payment claim as a PENDING report."""
    identity = require_identity(identity)
    data = require_payload(data)
    asset_ref = data.get("assetId")
    if not asset_ref or data.get("amount") in (None, ""):
        raise ValidationError("assetId and amount are required")
    amount = _optional_decimal(
        data.get("amount"), "amount", PaymentReport._meta.get_field("amount")
    )
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")

    method = _clean_text(data.get("method")).upper() or PaymentReport.CASH
    if method not in dict(PaymentReport.METHOD_CHOICES):
        raise ValidationError(f"Unknown payment method: {method}")
    payment_status = _clean_text(data.get("paymentStatus")).upper() or PaymentReport.FULL
    if payment_status not in dict(PaymentReport.PAYMENT_STATUS_CHOICES):
        raise ValidationError(f"Unknown payment status: {payment_status}")

    asset = resolve_asset(asset_ref)
    report = PaymentReport.objects.create(
        asset=asset,
        collector_id=identity.id,
        amount=amount,
        method=method,
        payment_status=payment_status,
        notes=_clean_text(data.get("notes")),
        evidence_photo=_clean_text(data.get("evidencePhoto")),
        status_validation=PaymentReport.PENDING,
    )
    logger.info(
        "Payment report %s (%s) submitted for asset %s by user %s",
        report.pk, amount, asset.account_number, identity.id,
    )
    return report


def list_reports(identity: Identity | None, model, status=None) -> QuerySet:
    """Reports visible to the caller, newest first.

    Collectors only ever see their own submissions.
    """
    identity = require_identity(identity)
    qs = model.objects.select_related("asset", "collector")
    if status:
        if status not in dict(FieldReport.STATUS_CHOICES):
            raise ValidationError("status must be PENDING, APPROVED or REJECTED")
        qs = qs.filter(status_validation=status)
    if identity.is_collector:
        qs = qs.filter(collector_id=identity.id)
    return qs.order_by("-timestamp")


def get_report(identity: Identity | None, model, report_id):
    identity = require_identity(identity)
    report = find_report(model, report_id)
    if report is None:
        raise NotFoundError("Report not found")
    if identity.is_collector and report.collector_id != identity.id:
        raise AuthError.forbidden()
    return report
