from __future__ import annotations

import logging

from django.db import transaction

from debt_collection.models import Asset, FieldReport, VisitReport

logger = logging.getLogger(__name__)


def project_asset_status(report: FieldReport, asset: Asset) -> dict | None:
    """Return the field changes an approved report implies for its asset.

    Pure: reads both objects, writes neither. ``None`` means no change.

    - Approved visit carrying a commitment, dated or not -> ``status = JANJI_BAYAR``.
    - Approved payment -> nothing; its amount is summed when dashboards
      are read.
    - Pending or rejected reports never imply a change.
    """
    if report.status_validation != FieldReport.APPROVED:
        return None
    if isinstance(report, VisitReport) and (
        report.has_commitment or report.commitment_date is not None
    ):
        if asset.status != Asset.JANJI_BAYAR:
            return {"status": Asset.JANJI_BAYAR}
    return None


def apply_projection(report: FieldReport) -> Asset | None:
    """Apply ``project_asset_status`` to the report's asset under a row lock.

    Returns the updated asset, or ``None`` when nothing changed.
    """
    with transaction.atomic():
        asset = Asset.objects.select_for_update().get(pk=report.asset_id)
        changes = project_asset_status(report, asset)
        if not changes:
            return None
        for field, value in changes.items():
            setattr(asset, field, value)
        asset.save(update_fields=[*changes.keys(), "updated_at"])
    logger.info(
        "Asset %s updated from report %s: %s",
        asset.account_number, report.pk, changes,
    )
    return asset
