"""
Remove every asset together with the reports and assignments that point at it.

Users, profiles and branches are kept. Without ``--yes-i-am-sure`` the
command only reports what it would delete.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from debt_collection.models import Asset, Assignment, PaymentReport, VisitReport

# Children first so PROTECT/CASCADE ordering never matters
DELETE_ORDER = (
    ("payment reports", PaymentReport),
    ("visit reports", VisitReport),
    ("assignments", Assignment),
    ("assets", Asset),
)


class Command(BaseCommand):
    help = "Delete all assets and their payment reports, visit reports and assignments."

    def add_arguments(self, parser):
        parser.add_argument(
            "--yes-i-am-sure",
            action="store_true",
            dest="confirm",
            help="Actually delete; otherwise only print the counts",
        )

    def handle(self, *args, **opts):
        if not opts["confirm"]:
            for label, model in DELETE_ORDER:
                self.stdout.write(f"Would delete {model.objects.count()} {label}")
            self.stdout.write(self.style.WARNING("Dry run. Re-run with --yes-i-am-sure to delete."))
            return

        with transaction.atomic():
            for label, model in DELETE_ORDER:
                deleted, _ = model.objects.all().delete()
                self.stdout.write(f"Deleted {deleted} {label}")
        self.stdout.write(self.style.SUCCESS("All assets and related data removed."))
