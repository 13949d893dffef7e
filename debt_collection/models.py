# models.py

import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import User
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .utils.commitment import commitment_from_notes

logger = logging.getLogger(__name__)


def _money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0"), **kwargs)


#
# ——————————————————————————————————————
# Users & Roles
# ——————————————————————————————————————
#
class UserProfile(models.Model):
    """Extend Django's User with a collection role."""
    ADMIN     = "ADMIN"
    MANAGER   = "MANAGER"
    COLLECTOR = "COLLECTOR"
    ROLE_CHOICES = [
        (ADMIN,     "Admin"),
        (MANAGER,   "Manager"),
        (COLLECTOR, "Field Collector"),
    ]
    # Roles allowed to validate field reports
    VALIDATOR_ROLES = (ADMIN, MANAGER)

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=COLLECTOR)
    employee_id = models.CharField(max_length=30, unique=True, null=True, blank=True)
    area = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    avatar_url = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.user.username} ({self.get_role_display()})"

    @classmethod
    def normalize_role(cls, value):
        """Map any spelling of a role ("admin", " Collector ") to its constant.

        Returns ``None`` for unknown or empty values.
        """
        if not value:
            return None
        candidate = str(value).strip().upper()
        return candidate if candidate in dict(cls.ROLE_CHOICES) else None


#
# ——————————————————————————————————————
# Debtor records
# ——————————————————————————————————————
#
class Branch(models.Model):
    """Bank branch office (KCP) that owns a portfolio of loans."""
    name = models.CharField(max_length=150, unique=True)
    region = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "branches"

    def __str__(self):
        return f"{self.name} ({self.region})" if self.region else self.name


class Asset(models.Model):
    """A loan under collection, identified externally by its account number."""
    NORMAL      = "NORMAL"
    LANCAR      = "LANCAR"
    MACET       = "MACET"
    JANJI_BAYAR = "JANJI_BAYAR"
    STATUS_CHOICES = [
        (NORMAL,      "Normal"),
        (LANCAR,      "Lancar"),
        (MACET,       "Macet"),
        (JANJI_BAYAR, "Janji Bayar"),
    ]
    SPK_AKTIF = "AKTIF"
    SPK_PASIF = "PASIF"
    SPK_CHOICES = [
        (SPK_AKTIF, "Aktif"),
        (SPK_PASIF, "Pasif"),
    ]

    id             = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account_number = models.CharField(max_length=50, unique=True)
    debtor_name    = models.CharField(max_length=150)
    creditor_name  = models.CharField(max_length=150, blank=True)

    branch      = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    # Branch/region as printed on the bank's export; kept even when no
    # Branch row matches.
    branch_name = models.CharField(max_length=150, blank=True)
    region      = models.CharField(max_length=150, blank=True)
    spk_status  = models.CharField(max_length=5, choices=SPK_CHOICES, default=SPK_AKTIF)
    credit_type = models.CharField(max_length=100, blank=True)

    collateral_address = models.TextField(blank=True)
    identity_address   = models.TextField(blank=True)
    office_address     = models.TextField(blank=True)
    phone              = models.CharField(max_length=30, blank=True)
    phone_alt          = models.CharField(max_length=30, blank=True)
    office_phone       = models.CharField(max_length=30, blank=True)
    emergency_name     = models.CharField(max_length=150, blank=True)
    emergency_phone    = models.CharField(max_length=30, blank=True)
    emergency_address  = models.TextField(blank=True)

    initial_plafond     = _money()
    realization_date    = models.DateField(null=True, blank=True)
    maturity_date       = models.DateField(null=True, blank=True)
    principal_balance   = _money()
    interest_arrears    = _money()
    penalty_arrears     = _money()
    installment_arrears = _money()
    total_arrears       = _money()
    arrears_payoff      = _money()
    loan_payoff         = _money()

    status    = models.CharField(max_length=12, choices=STATUS_CHOICES, default=NORMAL)
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-total_arrears", "account_number"]

    def __str__(self):
        return f"{self.account_number} – {self.debtor_name}"


class Assignment(models.Model):
    """Links a collector to an asset they are responsible for visiting."""
    ACTIVE   = "ACTIVE"
    INACTIVE = "INACTIVE"
    STATUS_CHOICES = [
        (ACTIVE,   "Active"),
        (INACTIVE, "Inactive"),
    ]

    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="assignments")
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="assignments",
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=ACTIVE)
    due_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["asset", "collector"],
                condition=Q(status="ACTIVE"),
                name="unique_active_assignment",
            ),
        ]

    def __str__(self):
        return f"{self.asset.account_number} → {self.collector} ({self.status})"


#
# ——————————————————————————————————————
# Field reports (validation workflow)
# ——————————————————————————————————————
#
class FieldReport(models.Model):
    """Shared shape of a collector's claim awaiting admin validation.

    ``status_validation`` only ever moves PENDING → APPROVED or
    PENDING → REJECTED; see ``services.validation.decide_report``.
    """

    PENDING  = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    STATUS_CHOICES = [
        (PENDING,  "Pending"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
    ]
    DECISIONS = (APPROVED, REJECTED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    notes = models.TextField(blank=True)
    evidence_photo = models.CharField(max_length=255, blank=True)
    status_validation = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default=PENDING, db_index=True
    )

    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    decision_note = models.TextField(blank=True)
    # Collector's notes as submitted, kept when a rejection reason replaces them
    original_notes = models.TextField(blank=True)

    class Meta:
        abstract = True
        ordering = ["-timestamp"]

    @property
    def is_pending(self) -> bool:
        return self.status_validation == self.PENDING


class VisitReport(FieldReport):
    """One field visit to a debtor."""

    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="visit_reports")
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="visit_reports",
    )
    outcome = models.CharField(max_length=50)
    gps_lat = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    gps_lng = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    has_commitment = models.BooleanField(
        default=False,
        help_text="Debtor promised to pay; approval moves the asset to JANJI_BAYAR",
    )
    commitment_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date the debtor promised to pay, if any",
    )
    commitment_text = models.CharField(
        max_length=100,
        blank=True,
        help_text="Text typed after the Komitmen: marker",
    )

    def __str__(self):
        return f"Visit {self.asset_id} by {self.collector_id} ({self.status_validation})"

    def save(self, *args, **kwargs):
        if self.commitment_date is not None:
            self.has_commitment = True
        elif self.is_pending and not self.has_commitment:
            # Rows written without the structured field (admin, seeds, legacy
            # clients) still carry the marker in their notes.
            commitment = commitment_from_notes(self.notes)
            if commitment is not None:
                self.has_commitment = True
                self.commitment_text = commitment.text[:100]
                self.commitment_date = commitment.date
                if commitment.date is None:
                    logger.warning(
                        "Visit %s on asset %s: commitment %r has no readable date",
                        self.pk, self.asset_id, commitment.text,
                    )
        super().save(*args, **kwargs)


class PaymentReport(FieldReport):
    """A collector's claim that the debtor paid."""

    CASH = "CASH"
    TRANSFER = "TRANSFER"
    VIRTUAL_ACCOUNT = "VIRTUAL_ACCOUNT"
    METHOD_CHOICES = [
        (CASH, "Cash"),
        (TRANSFER, "Transfer"),
        (VIRTUAL_ACCOUNT, "Virtual Account"),
    ]
    FULL = "FULL"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
    PAYMENT_STATUS_CHOICES = [
        (FULL, "Full"),
        (PARTIAL, "Partial"),
        (FAILED, "Failed"),
    ]

    asset = models.ForeignKey(Asset, on_delete=models.CASCADE, related_name="payment_reports")
    collector = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payment_reports",
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=CASH)
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS_CHOICES, default=FULL
    )

    def __str__(self):
        return f"Payment {self.amount} on {self.asset_id} ({self.status_validation})"
