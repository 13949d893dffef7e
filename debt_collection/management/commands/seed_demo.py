import os
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from django.utils.crypto import get_random_string

from debt_collection.identity import identity_for_user
from debt_collection.models import Asset, Branch, PaymentReport, UserProfile, VisitReport
from debt_collection.services.assignments import bulk_assign
from debt_collection.services.validation import decide_report

BRANCHES = [
    ("KCP Jakarta Selatan", "DKI Jakarta"),
    ("KCP Bogor Kota", "Jawa Barat"),
]

USERS = [
    # username, first, last, role, employee id, area
    ("admin", "Admin", "Pusat", UserProfile.ADMIN, "WK-001", "Head Office"),
    ("manager", "Pak", "Manager", UserProfile.MANAGER, "WK-002", "Jakarta Selatan"),
    ("budi", "Budi", "Santoso", UserProfile.COLLECTOR, "WK-003", "Jakarta Selatan"),
    ("dewi", "Dewi", "Lestari", UserProfile.COLLECTOR, "WK-004", "Bogor"),
]

ASSETS = [
    # account, debtor, branch index, status, principal, arrears, phone
    ("LOAN-2024-001", "Ahmad Wijaya", 0, Asset.MACET, "25000000", "5000000", "081234567890"),
    ("LOAN-2024-002", "Siti Rahayu", 0, Asset.MACET, "18000000", "3600000", "081298765432"),
    ("LOAN-2024-003", "Rudi Hermawan", 0, Asset.MACET, "32000000", "8000000", "082111222333"),
    ("LOAN-2024-004", "Eko Prasetyo", 1, Asset.LANCAR, "15000000", "2250000", "085333444555"),
    ("LOAN-2024-005", "Maya Sari", 1, Asset.MACET, "22000000", "4400000", "087666777888"),
]


class Command(BaseCommand):
    help = "Populate the database with demo branches, users, assets, assignments and reports."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default=os.environ.get("SEED_DEMO_PASSWORD"),
            help="Password for newly created demo users (default: $SEED_DEMO_PASSWORD, else random)",
        )

    @transaction.atomic
    def handle(self, *args, **opts):
        self.stdout.write(self.style.NOTICE("Seeding demo data..."))
        password = opts["password"]
        generated = not password
        if generated:
            password = get_random_string(12)

        branches = [
            Branch.objects.get_or_create(name=name, defaults={"region": region})[0]
            for name, region in BRANCHES
        ]
        users = {row[0]: self._ensure_user(row, password) for row in USERS}

        assets = []
        for account, debtor, branch_idx, status, principal, arrears, phone in ASSETS:
            branch = branches[branch_idx]
            asset, _ = Asset.objects.get_or_create(
                account_number=account,
                defaults={
                    "debtor_name": debtor,
                    "branch": branch,
                    "branch_name": branch.name,
                    "region": branch.region,
                    "status": status,
                    "principal_balance": Decimal(principal),
                    "total_arrears": Decimal(arrears),
                    "phone": phone,
                },
            )
            assets.append(asset)

        admin = identity_for_user(users["admin"])
        bulk_assign(admin, [str(a.pk) for a in assets[:3]], users["budi"].pk)
        bulk_assign(admin, [str(a.pk) for a in assets[3:]], users["dewi"].pk)

        self._seed_reports(assets, users, admin)

        self.stdout.write(self.style.SUCCESS(
            f"Demo seed complete: branches={len(branches)}, users={len(users)}, assets={len(assets)}"
        ))
        if generated:
            self.stdout.write(self.style.WARNING(f"Generated password for new demo users: {password}"))

    def _ensure_user(self, row, password):
        username, first, last, role, employee_id, area = row
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                "first_name": first,
                "last_name": last,
                "email": f"{username}@example.com",
                "is_staff": role == UserProfile.ADMIN,
                "is_superuser": role == UserProfile.ADMIN,
            },
        )
        if created:
            user.set_password(password)
            user.save(update_fields=["password"])
        profile, _ = UserProfile.objects.get_or_create(user=user)
        profile.role = role
        profile.employee_id = employee_id
        profile.area = area
        profile.save(update_fields=["role", "employee_id", "area"])
        return user

    def _seed_reports(self, assets, users, admin):
        # Only seed once; reports have no natural key
        if VisitReport.objects.filter(asset__in=assets).exists():
            return
        budi = users["budi"]
        promise = (timezone.localdate() + timedelta(days=7)).isoformat()
        approved = VisitReport.objects.create(
            asset=assets[1],
            collector=budi,
            outcome="BERTEMU",
            notes=f"Debitur bersedia bayar. Komitmen: {promise}",
        )
        decide_report(VisitReport, approved.pk, VisitReport.APPROVED, admin)
        VisitReport.objects.create(
            asset=assets[0],
            collector=budi,
            outcome="TIDAK_BERTEMU",
            notes="Tidak ada di rumah",
        )
        payment = PaymentReport.objects.create(
            asset=assets[2],
            collector=budi,
            amount=Decimal("1500000"),
            method=PaymentReport.CASH,
            payment_status=PaymentReport.PARTIAL,
        )
        decide_report(PaymentReport, payment.pk, PaymentReport.APPROVED, admin)
