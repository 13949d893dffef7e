import os
from datetime import date
from decimal import Decimal

import django
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "collection_mgmt.settings_test")
django.setup()
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient
import pytest

pytestmark = pytest.mark.django_db

from debt_collection.identity import identity_for_user
from debt_collection.models import Asset, Branch, UserProfile
from debt_collection.services.assets import import_assets
from debt_collection.services.errors import AuthError, ValidationError


def make_user(username, role):
    user = get_user_model().objects.create_user(username=username, password="pass")
    user.profile.role = role
    user.profile.save()
    return user


class AssetApiTests(TestCase):
    def setUp(self):
        self.admin = make_user("admin", UserProfile.ADMIN)
        self.manager = make_user("manager", UserProfile.MANAGER)
        self.budi = make_user("budi", UserProfile.COLLECTOR)
        self.dewi = make_user("dewi", UserProfile.COLLECTOR)
        self.mine = Asset.objects.create(account_number="A1", debtor_name="Ahmad", collector=self.budi)
        self.theirs = Asset.objects.create(account_number="A2", debtor_name="Siti", collector=self.dewi)
        self.free = Asset.objects.create(account_number="A3", debtor_name="Rudi")
        self.client = APIClient()

    def _accounts(self, resp):
        self.assertEqual(resp.status_code, 200)
        return sorted(row["account_number"] for row in resp.json())

    def test_anonymous_is_401(self):
        self.assertEqual(self.client.get("/api/assets").status_code, 401)

    def test_collector_only_sees_own_assets(self):
        self.client.force_authenticate(user=self.budi)
        self.assertEqual(self._accounts(self.client.get("/api/assets")), ["A1"])
        # Filters cannot widen a collector's view
        resp = self.client.get("/api/assets", {"collectorId": self.dewi.pk})
        self.assertEqual(self._accounts(resp), ["A1"])
        self.assertEqual(self.client.get(f"/api/assets/{self.theirs.pk}").status_code, 404)

    def test_manager_filters(self):
        self.client.force_authenticate(user=self.manager)
        self.assertEqual(self._accounts(self.client.get("/api/assets")), ["A1", "A2", "A3"])
        resp = self.client.get("/api/assets", {"collectorId": self.dewi.pk})
        self.assertEqual(self._accounts(resp), ["A2"])
        resp = self.client.get("/api/assets", {"unassigned": "true"})
        self.assertEqual(self._accounts(resp), ["A3"])

    def test_create_finds_or_creates_branch(self):
        self.client.force_authenticate(user=self.manager)
        resp = self.client.post(
            "/api/assets",
            {
                "account_number": "A4",
                "debtor_name": "Eko Prasetyo",
                "branch_name": "KCP Bogor Kota",
                "region": "Jawa Barat",
                "total_arrears": "2250000.00",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        asset = Asset.objects.get(account_number="A4")
        self.assertEqual(asset.branch.name, "KCP Bogor Kota")
        self.assertEqual(asset.branch.region, "Jawa Barat")
        self.assertEqual(asset.status, Asset.NORMAL)

        duplicate = self.client.post(
            "/api/assets", {"account_number": "A4", "debtor_name": "X"}, format="json"
        )
        self.assertEqual(duplicate.status_code, 400)

    def test_status_cannot_be_forced_to_janji_bayar(self):
        self.client.force_authenticate(user=self.manager)
        resp = self.client.patch(
            f"/api/assets/{self.free.pk}", {"status": Asset.JANJI_BAYAR}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.client.patch(f"/api/assets/{self.free.pk}", {"status": Asset.LANCAR}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.free.refresh_from_db()
        self.assertEqual(self.free.status, Asset.LANCAR)

    def test_collector_cannot_write(self):
        self.client.force_authenticate(user=self.budi)
        resp = self.client.patch(f"/api/assets/{self.mine.pk}", {"debtor_name": "Z"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_only_admin_deletes(self):
        self.client.force_authenticate(user=self.manager)
        self.assertEqual(self.client.delete(f"/api/assets/{self.free.pk}").status_code, 403)
        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.delete(f"/api/assets/{self.free.pk}").status_code, 204)
        self.assertFalse(Asset.objects.filter(pk=self.free.pk).exists())


class ImportAssetsTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", UserProfile.MANAGER)
        self.identity = identity_for_user(self.manager)
        Asset.objects.create(account_number="LOAN-OLD", debtor_name="Existing")

    def test_import_is_fail_soft(self):
        rows = [
            {
                "nomorAccount": "LOAN-1",
                "namaDebitur": "Ahmad Wijaya",
                "kantorCabang": "KCP Jakarta Selatan",
                "kanwil": "DKI Jakarta",
                "totalTunggakan": "5,000,000",
                "tanggalJatuhTempo": "2027-01-31",
            },
            {"loanId": "LOAN-2", "debtorName": "Siti Rahayu", "branch": "KCP Jakarta Selatan"},
            {"namaDebitur": "No Account"},
            {"nomorAccount": "LOAN-OLD", "namaDebitur": "Duplicate"},
            {"nomorAccount": "LOAN-3", "saldoPokok": "lots"},
        ]
        result = import_assets(self.identity, rows)

        self.assertEqual(result["importedCount"], 2)
        self.assertEqual(result["skippedCount"], 2)
        self.assertEqual(result["errorCount"], 1)
        self.assertTrue(result["errors"][0].startswith("LOAN-3:"))

        first = Asset.objects.get(account_number="LOAN-1")
        self.assertEqual(first.total_arrears, Decimal("5000000"))
        self.assertEqual(first.maturity_date, date(2027, 1, 31))
        self.assertEqual(first.branch.region, "DKI Jakarta")
        second = Asset.objects.get(account_number="LOAN-2")
        self.assertEqual(second.branch_id, first.branch_id)
        self.assertEqual(Branch.objects.count(), 1)
        self.assertFalse(Asset.objects.filter(account_number="LOAN-3").exists())

    def test_import_requires_rows_and_validator(self):
        with self.assertRaises(ValidationError):
            import_assets(self.identity, [])
        collector = make_user("budi", UserProfile.COLLECTOR)
        with self.assertRaises(AuthError):
            import_assets(identity_for_user(collector), [{"nomorAccount": "X"}])

    def test_import_endpoint(self):
        client = APIClient()
        client.force_authenticate(user=self.manager)
        resp = client.post(
            "/api/assets/import",
            {"assets": [{"nomorAccount": "LOAN-9", "namaDebitur": "Maya Sari"}]},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["importedCount"], 1)
