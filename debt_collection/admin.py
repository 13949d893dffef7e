from django.contrib import admin

from .models import Asset, Assignment, Branch, PaymentReport, UserProfile, VisitReport


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "employee_id", "area", "phone")
    list_filter = ("role",)
    search_fields = ("user__username", "user__first_name", "employee_id")


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("name", "region")
    search_fields = ("name", "region")


@admin.register(Asset)
class AssetAdmin(admin.ModelAdmin):
    list_display = (
        "account_number",
        "debtor_name",
        "branch_name",
        "status",
        "collector",
        "total_arrears",
        "updated_at",
    )
    list_filter = ("status", "spk_status", "branch")
    search_fields = ("account_number", "debtor_name")
    # Status moves to JANJI_BAYAR through report approval only
    readonly_fields = ("status", "created_at", "updated_at")


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("asset", "collector", "status", "due_date", "assigned_by", "created_at")
    list_filter = ("status", "collector")


@admin.register(VisitReport)
class VisitReportAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "asset",
        "collector",
        "outcome",
        "has_commitment",
        "commitment_date",
        "status_validation",
    )
    list_filter = ("status_validation", "outcome", "has_commitment")
    search_fields = ("asset__account_number", "asset__debtor_name", "notes")
    readonly_fields = ("status_validation", "decided_by", "decided_at", "original_notes")


@admin.register(PaymentReport)
class PaymentReportAdmin(admin.ModelAdmin):
    list_display = (
        "timestamp",
        "asset",
        "collector",
        "amount",
        "method",
        "payment_status",
        "status_validation",
    )
    list_filter = ("status_validation", "method", "payment_status")
    search_fields = ("asset__account_number", "asset__debtor_name")
    readonly_fields = ("status_validation", "decided_by", "decided_at", "original_notes")
