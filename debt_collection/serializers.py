from django.contrib.auth.models import User
from rest_framework import serializers

from .models import Asset, PaymentReport, UserProfile, VisitReport


def display_name(user):
    if user is None:
        return None
    return user.get_full_name() or user.username


class AssetSerializer(serializers.ModelSerializer):
    collector_name = serializers.SerializerMethodField()

    class Meta:
        model = Asset
        fields = [
            "id",
            "account_number",
            "debtor_name",
            "creditor_name",
            "branch",
            "branch_name",
            "region",
            "spk_status",
            "credit_type",
            "collateral_address",
            "identity_address",
            "office_address",
            "phone",
            "phone_alt",
            "office_phone",
            "emergency_name",
            "emergency_phone",
            "emergency_address",
            "initial_plafond",
            "realization_date",
            "maturity_date",
            "principal_balance",
            "interest_arrears",
            "penalty_arrears",
            "installment_arrears",
            "total_arrears",
            "arrears_payoff",
            "loan_payoff",
            "status",
            "collector",
            "collector_name",
            "updated_at",
        ]
        read_only_fields = ["id", "branch", "updated_at"]

    def get_collector_name(self, obj):
        return display_name(obj.collector)

    def validate_status(self, value):
        # JANJI_BAYAR is only ever set by approving a visit with a commitment
        current = self.instance.status if self.instance else None
        if value == Asset.JANJI_BAYAR and current != Asset.JANJI_BAYAR:
            raise serializers.ValidationError("JANJI_BAYAR is set by approving a visit report")
        return value

    def validate_collector(self, value):
        if value is None:
            return value
        profile = getattr(value, "profile", None)
        if not profile or UserProfile.normalize_role(profile.role) != UserProfile.COLLECTOR:
            raise serializers.ValidationError("Assets can only be held by a collector")
        return value


class _AssetSummarySerializer(serializers.ModelSerializer):
    accountNumber = serializers.CharField(source="account_number")
    debtorName = serializers.CharField(source="debtor_name")
    branchName = serializers.CharField(source="branch_name")

    class Meta:
        model = Asset
        fields = ["id", "accountNumber", "debtorName", "branchName", "status"]


class _FieldReportSerializer(serializers.ModelSerializer):
    """Read-only camelCase view shared by visit and payment reports."""

    assetId = serializers.UUIDField(source="asset_id", read_only=True)
    collectorId = serializers.IntegerField(source="collector_id", read_only=True)
    collectorName = serializers.SerializerMethodField()
    asset = _AssetSummarySerializer(read_only=True)
    evidencePhoto = serializers.CharField(source="evidence_photo", read_only=True)
    statusValidation = serializers.CharField(source="status_validation", read_only=True)
    decidedBy = serializers.IntegerField(source="decided_by_id", read_only=True)
    decidedAt = serializers.DateTimeField(source="decided_at", read_only=True)
    decisionNote = serializers.CharField(source="decision_note", read_only=True)
    originalNotes = serializers.CharField(source="original_notes", read_only=True)

    common_fields = [
        "id",
        "assetId",
        "asset",
        "collectorId",
        "collectorName",
        "timestamp",
        "notes",
        "evidencePhoto",
        "statusValidation",
        "decidedBy",
        "decidedAt",
        "decisionNote",
        "originalNotes",
    ]

    def get_collectorName(self, obj):
        return display_name(obj.collector)


class VisitReportSerializer(_FieldReportSerializer):
    gpsLat = serializers.DecimalField(
        source="gps_lat", max_digits=9, decimal_places=6, read_only=True
    )
    gpsLng = serializers.DecimalField(
        source="gps_lng", max_digits=9, decimal_places=6, read_only=True
    )
    hasCommitment = serializers.BooleanField(source="has_commitment", read_only=True)
    commitmentDate = serializers.DateField(source="commitment_date", read_only=True)
    commitmentText = serializers.CharField(source="commitment_text", read_only=True)

    class Meta:
        model = VisitReport
        fields = _FieldReportSerializer.common_fields + [
            "outcome",
            "gpsLat",
            "gpsLng",
            "hasCommitment",
            "commitmentDate",
            "commitmentText",
        ]
        read_only_fields = fields


class PaymentReportSerializer(_FieldReportSerializer):
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)

    class Meta:
        model = PaymentReport
        fields = _FieldReportSerializer.common_fields + [
            "amount",
            "method",
            "paymentStatus",
        ]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    name = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    employeeId = serializers.SerializerMethodField()
    area = serializers.SerializerMethodField()
    isActive = serializers.BooleanField(source="is_active", read_only=True)
    assignedCount = serializers.IntegerField(source="assigned_count", read_only=True, default=0)
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "role",
            "employeeId",
            "area",
            "isActive",
            "assignedCount",
            "createdAt",
        ]

    def _profile(self, obj):
        return getattr(obj, "profile", None)

    def get_name(self, obj):
        return display_name(obj)

    def get_role(self, obj):
        return UserProfile.normalize_role(getattr(self._profile(obj), "role", None))

    def get_employeeId(self, obj):
        return getattr(self._profile(obj), "employee_id", None)

    def get_area(self, obj):
        return getattr(self._profile(obj), "area", "") or "Unassigned"


class ProfileSerializer(UserSerializer):
    phone = serializers.SerializerMethodField()
    address = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = [
            "id",
            "username",
            "name",
            "email",
            "phone",
            "address",
            "role",
            "employeeId",
            "area",
            "createdAt",
        ]

    def get_phone(self, obj):
        return getattr(self._profile(obj), "phone", "")

    def get_address(self, obj):
        return getattr(self._profile(obj), "address", "")
