import decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _money():
    return models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=18)


REPORT_STATUS_CHOICES = [("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Branch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150, unique=True)),
                ("region", models.CharField(blank=True, max_length=150)),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "branches",
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("ADMIN", "Admin"), ("MANAGER", "Manager"), ("COLLECTOR", "Field Collector")], default="COLLECTOR", max_length=20)),
                ("employee_id", models.CharField(blank=True, max_length=30, null=True, unique=True)),
                ("area", models.CharField(blank=True, max_length=100)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("address", models.TextField(blank=True)),
                ("avatar_url", models.CharField(blank=True, max_length=255)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="profile", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Asset",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("account_number", models.CharField(max_length=50, unique=True)),
                ("debtor_name", models.CharField(max_length=150)),
                ("creditor_name", models.CharField(blank=True, max_length=150)),
                ("branch_name", models.CharField(blank=True, max_length=150)),
                ("region", models.CharField(blank=True, max_length=150)),
                ("spk_status", models.CharField(choices=[("AKTIF", "Aktif"), ("PASIF", "Pasif")], default="AKTIF", max_length=5)),
                ("credit_type", models.CharField(blank=True, max_length=100)),
                ("collateral_address", models.TextField(blank=True)),
                ("identity_address", models.TextField(blank=True)),
                ("office_address", models.TextField(blank=True)),
                ("phone", models.CharField(blank=True, max_length=30)),
                ("phone_alt", models.CharField(blank=True, max_length=30)),
                ("office_phone", models.CharField(blank=True, max_length=30)),
                ("emergency_name", models.CharField(blank=True, max_length=150)),
                ("emergency_phone", models.CharField(blank=True, max_length=30)),
                ("emergency_address", models.TextField(blank=True)),
                ("initial_plafond", _money()),
                ("realization_date", models.DateField(blank=True, null=True)),
                ("maturity_date", models.DateField(blank=True, null=True)),
                ("principal_balance", _money()),
                ("interest_arrears", _money()),
                ("penalty_arrears", _money()),
                ("installment_arrears", _money()),
                ("total_arrears", _money()),
                ("arrears_payoff", _money()),
                ("loan_payoff", _money()),
                ("status", models.CharField(choices=[("NORMAL", "Normal"), ("LANCAR", "Lancar"), ("MACET", "Macet"), ("JANJI_BAYAR", "Janji Bayar")], default="NORMAL", max_length=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("branch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assets", to="debt_collection.branch")),
                ("collector", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assets", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-total_arrears", "account_number"],
            },
        ),
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("INACTIVE", "Inactive")], default="ACTIVE", max_length=10)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("asset", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assignments", to="debt_collection.asset")),
                ("assigned_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("collector", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assignments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "ACTIVE")),
                        fields=("asset", "collector"),
                        name="unique_active_assignment",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="VisitReport",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True)),
                ("evidence_photo", models.CharField(blank=True, max_length=255)),
                ("status_validation", models.CharField(choices=REPORT_STATUS_CHOICES, db_index=True, default="PENDING", max_length=10)),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                ("decision_note", models.TextField(blank=True)),
                ("original_notes", models.TextField(blank=True)),
                ("outcome", models.CharField(max_length=50)),
                ("gps_lat", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("gps_lng", models.DecimalField(blank=True, decimal_places=6, max_digits=9, null=True)),
                ("commitment_date", models.DateField(blank=True, help_text="Date the debtor promised to pay, if any", null=True)),
                ("asset", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="visit_reports", to="debt_collection.asset")),
                ("collector", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="visit_reports", to=settings.AUTH_USER_MODEL)),
                ("decided_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-timestamp"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="PaymentReport",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True)),
                ("evidence_photo", models.CharField(blank=True, max_length=255)),
                ("status_validation", models.CharField(choices=REPORT_STATUS_CHOICES, db_index=True, default="PENDING", max_length=10)),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                ("decision_note", models.TextField(blank=True)),
                ("original_notes", models.TextField(blank=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(choices=[("CASH", "Cash"), ("TRANSFER", "Transfer"), ("VIRTUAL_ACCOUNT", "Virtual Account")], default="CASH", max_length=20)),
                ("payment_status", models.CharField(choices=[("FULL", "Full"), ("PARTIAL", "Partial"), ("FAILED", "Failed")], default="FULL", max_length=10)),
                ("asset", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payment_reports", to="debt_collection.asset")),
                ("collector", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payment_reports", to=settings.AUTH_USER_MODEL)),
                ("decided_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-timestamp"],
                "abstract": False,
            },
        ),
    ]
