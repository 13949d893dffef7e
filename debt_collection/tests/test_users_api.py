import os

import django
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "collection_mgmt.settings_test")
django.setup()
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient
import pytest

pytestmark = pytest.mark.django_db

from debt_collection.identity import identity_for_user
from debt_collection.models import Asset, Assignment, UserProfile


class UserSignalTests(TestCase):
    def test_profiles_are_created_with_default_roles(self):
        User = get_user_model()
        collector = User.objects.create_user(username="budi", password="pass")
        admin = User.objects.create_superuser(username="root", password="pass", email="r@example.com")
        self.assertEqual(collector.profile.role, UserProfile.COLLECTOR)
        self.assertEqual(admin.profile.role, UserProfile.ADMIN)

    def test_role_spelling_is_normalised(self):
        user = get_user_model().objects.create_user(username="mgr", password="pass")
        UserProfile.objects.filter(user=user).update(role=" manager ")
        user = get_user_model().objects.get(pk=user.pk)
        identity = identity_for_user(user)
        self.assertEqual(identity.role, UserProfile.MANAGER)
        self.assertTrue(identity.can_validate)

    def test_inactive_users_have_no_identity(self):
        user = get_user_model().objects.create_user(username="gone", password="pass", is_active=False)
        self.assertIsNone(identity_for_user(user))


class UserApiTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username="admin", password="pass")
        self.admin.profile.role = UserProfile.ADMIN
        self.admin.profile.save()
        self.budi = User.objects.create_user(
            username="budi", password="secret1", first_name="Budi", email="budi@example.com"
        )
        self.dewi = User.objects.create_user(username="dewi", password="pass", email="dewi@example.com")
        asset = Asset.objects.create(account_number="A1", debtor_name="Ahmad")
        Assignment.objects.create(asset=asset, collector=self.budi)
        self.client = APIClient()

    def test_list_by_role_is_case_insensitive(self):
        self.client.force_authenticate(user=self.admin)
        resp = self.client.get("/api/users", {"role": "collector"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["count"], 2)
        rows = {row["username"]: row for row in body["data"]}
        self.assertEqual(rows["budi"]["assignedCount"], 1)
        self.assertEqual(rows["dewi"]["assignedCount"], 0)
        self.assertEqual(rows["budi"]["role"], UserProfile.COLLECTOR)

        self.assertEqual(self.client.get("/api/users", {"role": "pilot"}).status_code, 400)

    def test_collectors_cannot_list_users(self):
        self.client.force_authenticate(user=self.budi)
        self.assertEqual(self.client.get("/api/users").status_code, 403)

    def test_profile_is_self_only(self):
        self.client.force_authenticate(user=self.budi)
        resp = self.client.get(f"/api/users/{self.budi.pk}/profile")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["email"], "budi@example.com")
        resp = self.client.get(f"/api/users/{self.dewi.pk}/profile")
        self.assertEqual(resp.status_code, 403)

    def test_update_profile(self):
        self.client.force_authenticate(user=self.budi)
        url = f"/api/users/{self.budi.pk}/profile"
        resp = self.client.put(url, {"name": " "}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.put(url, {"name": "Budi", "email": "DEWI@example.com"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Email already in use")

        resp = self.client.put(
            url,
            {"name": "Budi Santoso", "phone": "0812", "address": "Jl. Merpati 15"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["name"], "Budi Santoso")
        self.assertEqual(data["phone"], "0812")
        self.budi.refresh_from_db()
        self.assertEqual(self.budi.last_name, "Santoso")
        self.assertEqual(self.budi.email, "budi@example.com")

    def test_change_password(self):
        self.client.force_authenticate(user=self.budi)
        url = f"/api/users/{self.budi.pk}/password"
        resp = self.client.put(url, {"currentPassword": "wrong", "newPassword": "newpass1"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.put(url, {"currentPassword": "secret1", "newPassword": "abc"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.put(
            f"/api/users/{self.dewi.pk}/password",
            {"currentPassword": "pass", "newPassword": "newpass1"},
            format="json",
        )
        self.assertEqual(resp.status_code, 403)

        resp = self.client.put(url, {"currentPassword": "secret1", "newPassword": "newpass1"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.budi.refresh_from_db()
        self.assertTrue(self.budi.check_password("newpass1"))
