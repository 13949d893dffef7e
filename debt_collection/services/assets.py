from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from dateutil import parser as dateparser
from django.db import IntegrityError, transaction

from debt_collection.identity import Identity
from debt_collection.models import Asset, Branch

from .assignments import require_validator
from .errors import ValidationError

logger = logging.getLogger(__name__)

# Model field -> accepted row keys, in order of preference. Bank exports use
# the Indonesian column names, older clients send the English ones.
FIELD_ALIASES = {
    "account_number": ("account_number", "nomorAccount", "loanId"),
    "debtor_name": ("debtor_name", "namaDebitur", "debtorName"),
    "creditor_name": ("creditor_name", "namaKreditur", "creditorName"),
    "branch_name": ("branch_name", "kantorCabang", "branch"),
    "region": ("region", "kanwil"),
    "spk_status": ("spk_status", "kelolaanTerbitSpk", "spkStatus"),
    "credit_type": ("credit_type", "jenisKredit", "creditType"),
    "collateral_address": ("collateral_address", "alamatAgunan", "collateralAddress"),
    "identity_address": ("identity_address", "alamatKtpDebitur", "identityAddress"),
    "office_address": ("office_address", "alamatKantorDebitur", "officeAddress"),
    "phone": ("phone", "nomorHp1Debitur"),
    "phone_alt": ("phone_alt", "nomorHp2Debitur"),
    "office_phone": ("office_phone", "nomorTeleponKantor", "officePhone"),
    "emergency_name": ("emergency_name", "namaEmergencyKontak", "emergencyName"),
    "emergency_phone": ("emergency_phone", "nomorTeleponEmergency", "emergencyPhone"),
    "emergency_address": ("emergency_address", "alamatEmergencyKontak", "emergencyAddress"),
    "initial_plafond": ("initial_plafond", "plafondAwal", "initialPlafond"),
    "realization_date": ("realization_date", "tanggalRealisasi", "realizationDate"),
    "maturity_date": ("maturity_date", "tanggalJatuhTempo", "maturityDate"),
    "principal_balance": ("principal_balance", "saldoPokok", "principalBalance"),
    "interest_arrears": ("interest_arrears", "tunggakanBunga", "interestArrears"),
    "penalty_arrears": ("penalty_arrears", "tunggakanDenda", "penaltyArrears"),
    "installment_arrears": ("installment_arrears", "tunggakanAngsuran", "principalArrears"),
    "total_arrears": ("total_arrears", "totalTunggakan", "totalArrears"),
    "arrears_payoff": ("arrears_payoff", "lunasTunggakan"),
    "loan_payoff": ("loan_payoff", "lunasKredit", "totalPayoff"),
}

MONEY_FIELDS = (
    "initial_plafond",
    "principal_balance",
    "interest_arrears",
    "penalty_arrears",
    "installment_arrears",
    "total_arrears",
    "arrears_payoff",
    "loan_payoff",
)
DATE_FIELDS = ("realization_date", "maturity_date")

MAX_REPORTED_ERRORS = 5


def _pick(row: dict, field: str):
    for key in FIELD_ALIASES[field]:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _money(value, field):
    if value is None:
        return Decimal("0")
    try:
        number = Decimal(str(value).replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"{field} is not a number: {value!r}")
    if not number.is_finite():
        raise ValueError(f"{field} is not a number: {value!r}")
    return number


def _date(value, field):
    if value is None:
        return None
    try:
        return dateparser.parse(str(value), yearfirst=True).date()
    except (ValueError, OverflowError):
        raise ValueError(f"{field} is not a date: {value!r}")


def branch_for(name: str | None, region: str | None) -> Branch | None:
    if not name:
        return None
    branch, _ = Branch.objects.get_or_create(
        name=name, defaults={"region": region or "Unknown"}
    )
    return branch


def asset_fields_from_row(row: dict) -> dict:
    """Translate one client row into ``Asset`` keyword arguments.

    Raises ``ValueError`` for amounts or dates that cannot be read.
    """
    fields = {}
    for field in FIELD_ALIASES:
        value = _pick(row, field)
        if field in MONEY_FIELDS:
            fields[field] = _money(value, field)
        elif field in DATE_FIELDS:
            fields[field] = _date(value, field)
        else:
            fields[field] = "" if value is None else str(value).strip()

    fields["debtor_name"] = fields["debtor_name"] or "Unknown"
    spk = fields["spk_status"].upper() or Asset.SPK_AKTIF
    if spk not in dict(Asset.SPK_CHOICES):
        raise ValueError(f"Unknown SPK status: {spk}")
    fields["spk_status"] = spk
    fields["branch"] = branch_for(fields["branch_name"], fields["region"])
    return fields


def import_assets(identity: Identity | None, rows) -> dict:
    """Create assets from already-normalised rows, one savepoint per row.

    Rows without an account number and accounts that already exist are
    skipped. A failing row is recorded in ``errors`` and the rest of the
    batch carries on.
    """
    identity = require_validator(identity)
    if not isinstance(rows, list) or not rows:
        raise ValidationError("No assets provided")

    imported = skipped = 0
    errors = []
    for row in rows:
        if not isinstance(row, dict):
            errors.append("unknown: row is not an object")
            continue
        account = _pick(row, "account_number")
        if not account:
            skipped += 1
            continue
        account = str(account).strip()
        if Asset.objects.filter(account_number=account).exists():
            skipped += 1
            continue
        try:
            with transaction.atomic():
                fields = asset_fields_from_row(row)
                fields["account_number"] = account
                Asset.objects.create(**fields)
        except (ValueError, IntegrityError) as exc:
            errors.append(f"{account}: {exc}")
            continue
        imported += 1

    logger.info(
        "Asset import by user %s: %d imported, %d skipped, %d failed",
        identity.id, imported, skipped, len(errors),
    )
    return {
        "importedCount": imported,
        "skippedCount": skipped,
        "errorCount": len(errors),
        "errors": errors[:MAX_REPORTED_ERRORS],
    }
