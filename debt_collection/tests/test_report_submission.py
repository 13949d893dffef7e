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
from debt_collection.models import Asset, PaymentReport, UserProfile, VisitReport
from debt_collection.services.errors import AuthError, NotFoundError, ValidationError
from debt_collection.services.reports import list_reports, submit_visit_report


class SubmitVisitReportTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.collector = User.objects.create_user(username="budi", password="pass")
        self.other = User.objects.create_user(username="dewi", password="pass")
        self.admin = User.objects.create_user(username="admin", password="pass")
        self.admin.profile.role = UserProfile.ADMIN
        self.admin.profile.save()
        self.asset = Asset.objects.create(
            account_number="LOAN-2024-001", debtor_name="Ahmad Wijaya", status=Asset.MACET
        )
        self.identity = identity_for_user(self.collector)

    def test_creates_single_pending_report_and_leaves_asset(self):
        report = submit_visit_report(
            self.identity,
            {
                "assetId": str(self.asset.pk),
                "outcome": "BERTEMU",
                "notes": "Debitur bersedia bayar. Komitmen: 2026-11-05",
                "gpsLat": "-6.229700",
                "gpsLng": "106.848600",
            },
        )
        self.assertEqual(VisitReport.objects.count(), 1)
        self.assertEqual(report.status_validation, VisitReport.PENDING)
        self.assertEqual(report.collector_id, self.collector.pk)
        self.assertEqual(report.commitment_date, date(2026, 11, 5))
        self.assertEqual(report.gps_lat, Decimal("-6.229700"))
        self.asset.refresh_from_db()
        self.assertEqual(self.asset.status, Asset.MACET)

    def test_structured_commitment_wins_over_notes(self):
        report = submit_visit_report(
            self.identity,
            {
                "assetId": str(self.asset.pk),
                "outcome": "BERTEMU",
                "notes": "Komitmen: 2026-11-05",
                "commitmentDate": "2026-12-24",
            },
        )
        self.assertEqual(report.commitment_date, date(2026, 12, 24))

    def test_marker_without_readable_date_is_accepted(self):
        report = submit_visit_report(
            self.identity,
            {"assetId": str(self.asset.pk), "outcome": "BERTEMU", "notes": "Komitmen: besok"},
        )
        self.assertTrue(report.has_commitment)
        self.assertIsNone(report.commitment_date)
        self.assertEqual(report.commitment_text, "besok")

    def test_gps_is_rounded_to_stored_precision(self):
        report = submit_visit_report(
            self.identity,
            {
                "assetId": str(self.asset.pk),
                "outcome": "BERTEMU",
                "gpsLat": "-6.22970049",
                "gpsLng": 106.8486,
            },
        )
        self.assertEqual(report.gps_lat, Decimal("-6.229700"))
        self.assertEqual(report.gps_lng, Decimal("106.848600"))

    def test_asset_can_be_referenced_by_account_number(self):
        report = submit_visit_report(
            self.identity, {"assetId": "LOAN-2024-001", "outcome": "TIDAK_BERTEMU"}
        )
        self.assertEqual(report.asset_id, self.asset.pk)
        self.assertIsNone(report.commitment_date)

    def test_rejects_bad_input(self):
        with self.assertRaises(AuthError):
            submit_visit_report(None, {"assetId": str(self.asset.pk), "outcome": "BERTEMU"})
        with self.assertRaises(ValidationError):
            submit_visit_report(self.identity, {"assetId": str(self.asset.pk)})
        with self.assertRaises(ValidationError):
            submit_visit_report(self.identity, {"outcome": "BERTEMU"})
        with self.assertRaises(NotFoundError):
            submit_visit_report(self.identity, {"assetId": "LOAN-404", "outcome": "BERTEMU"})
        with self.assertRaises(ValidationError):
            submit_visit_report(
                self.identity,
                {"assetId": str(self.asset.pk), "outcome": "BERTEMU", "commitmentDate": "besok"},
            )
        with self.assertRaises(ValidationError):
            submit_visit_report(self.identity, [{"assetId": str(self.asset.pk)}])
        self.assertEqual(VisitReport.objects.count(), 0)

    def test_collectors_only_list_their_own(self):
        submit_visit_report(self.identity, {"assetId": str(self.asset.pk), "outcome": "BERTEMU"})
        submit_visit_report(
            identity_for_user(self.other), {"assetId": str(self.asset.pk), "outcome": "BERTEMU"}
        )
        mine = list_reports(self.identity, VisitReport)
        self.assertEqual([r.collector_id for r in mine], [self.collector.pk])
        everyone = list_reports(identity_for_user(self.admin), VisitReport)
        self.assertEqual(everyone.count(), 2)
        with self.assertRaises(ValidationError):
            list_reports(self.identity, VisitReport, "DONE")


class ReportApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.collector = User.objects.create_user(username="budi", password="pass")
        self.other = User.objects.create_user(username="dewi", password="pass")
        self.asset = Asset.objects.create(
            account_number="LOAN-2024-003", debtor_name="Rudi Hermawan", status=Asset.MACET
        )
        self.client = APIClient()

    def test_post_visit_returns_201_envelope(self):
        self.client.force_authenticate(user=self.collector)
        resp = self.client.post(
            "/api/reports/visit",
            {"assetId": str(self.asset.pk), "outcome": "BERTEMU", "notes": "Komitmen: 2026-11-05"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["statusValidation"], "PENDING")
        self.assertEqual(body["data"]["assetId"], str(self.asset.pk))
        self.assertEqual(body["data"]["commitmentDate"], "2026-11-05")
        self.assertEqual(body["data"]["asset"]["accountNumber"], "LOAN-2024-003")

    def test_post_visit_errors(self):
        resp = self.client.post("/api/reports/visit", {"outcome": "BERTEMU"}, format="json")
        self.assertEqual(resp.status_code, 401)
        self.client.force_authenticate(user=self.collector)
        resp = self.client.post("/api/reports/visit", {"outcome": "BERTEMU"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"success": False, "error": "assetId and outcome are required"})
        resp = self.client.post(
            "/api/reports/visit", {"assetId": "LOAN-404", "outcome": "BERTEMU"}, format="json"
        )
        self.assertEqual(resp.status_code, 404)

    def test_post_payment(self):
        self.client.force_authenticate(user=self.collector)
        resp = self.client.post(
            "/api/reports/payment",
            {"assetId": str(self.asset.pk), "amount": "1500000", "method": "transfer"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        data = resp.json()["data"]
        self.assertEqual(data["method"], PaymentReport.TRANSFER)
        self.assertEqual(data["paymentStatus"], PaymentReport.FULL)
        self.assertEqual(Decimal(data["amount"]), Decimal("1500000"))

        for bad in ({"assetId": str(self.asset.pk)}, {"assetId": str(self.asset.pk), "amount": "-5"},
                    {"assetId": str(self.asset.pk), "amount": "10", "method": "CHEQUE"}):
            resp = self.client.post("/api/reports/payment", bad, format="json")
            self.assertEqual(resp.status_code, 400)
        self.assertEqual(PaymentReport.objects.count(), 1)

    def test_collector_cannot_read_someone_elses_report(self):
        report = VisitReport.objects.create(
            asset=self.asset, collector=self.other, outcome="BERTEMU"
        )
        self.client.force_authenticate(user=self.collector)
        resp = self.client.get(f"/api/reports/visit/{report.pk}")
        self.assertEqual(resp.status_code, 403)
        self.client.force_authenticate(user=self.other)
        resp = self.client.get(f"/api/reports/visit/{report.pk}")
        self.assertEqual(resp.status_code, 200)

    def test_list_filters_by_status(self):
        VisitReport.objects.create(asset=self.asset, collector=self.collector, outcome="BERTEMU")
        VisitReport.objects.create(
            asset=self.asset,
            collector=self.collector,
            outcome="BERTEMU",
            status_validation=VisitReport.APPROVED,
        )
        self.client.force_authenticate(user=self.collector)
        resp = self.client.get("/api/reports/visit", {"status": "PENDING"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["count"], 1)
        resp = self.client.get("/api/reports/visit", {"status": "NOPE"})
        self.assertEqual(resp.status_code, 400)

    def test_out_of_range_numbers_are_rejected(self):
        self.client.force_authenticate(user=self.collector)
        resp = self.client.post(
            "/api/reports/visit",
            {"assetId": str(self.asset.pk), "outcome": "BERTEMU", "gpsLat": "12345.5"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.json()["success"])
        resp = self.client.post(
            "/api/reports/payment",
            {"assetId": str(self.asset.pk), "amount": "1e30"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(
            "/api/reports/payment",
            {"assetId": str(self.asset.pk), "amount": "NaN"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(VisitReport.objects.count(), 0)
        self.assertEqual(PaymentReport.objects.count(), 0)

    def test_non_object_body_is_rejected(self):
        self.client.force_authenticate(user=self.collector)
        for url in ("/api/reports/visit", "/api/reports/payment"):
            resp = self.client.post(url, [{"assetId": str(self.asset.pk)}], format="json")
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(
                resp.json(), {"success": False, "error": "Request body must be a JSON object"}
            )

    def test_undated_commitment_over_the_api(self):
        self.client.force_authenticate(user=self.collector)
        resp = self.client.post(
            "/api/reports/visit",
            {"assetId": str(self.asset.pk), "outcome": "BERTEMU", "notes": "Komitmen: besok"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        data = resp.json()["data"]
        self.assertTrue(data["hasCommitment"])
        self.assertIsNone(data["commitmentDate"])
        self.assertEqual(data["commitmentText"], "besok")
