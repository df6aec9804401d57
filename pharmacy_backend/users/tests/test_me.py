# users/tests/test_me.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import CAP_ORDERS_CREATE, CAP_ORDERS_MANAGE
from pharmacies.models import Pharmacy

User = get_user_model()


class MeViewTests(TestCase):
    def test_profile_carries_pharmacy_and_capabilities(self):
        pharmacy = Pharmacy.objects.create(name="Central")
        user = User.objects.create_user(
            email="cashier@example.com", password="pass", role="cashier", pharmacy=pharmacy
        )
        client = APIClient()
        client.force_authenticate(user)

        response = client.get("/api/auth/me/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["pharmacy_id"], str(pharmacy.id))
        self.assertEqual(response.data["points_balance"], 0)
        self.assertIn(CAP_ORDERS_CREATE, response.data["capabilities"])
        self.assertNotIn(CAP_ORDERS_MANAGE, response.data["capabilities"])

    def test_username_derived_from_email(self):
        first = User.objects.create_user(email="asha@example.com", password="x")
        second = User.objects.create_user(email="asha@example.org", password="x")

        self.assertEqual(first.username, "asha")
        self.assertEqual(second.username, "asha2")
        self.assertEqual(first.role, User.ROLE_CUSTOMER)

    def test_anonymous_rejected(self):
        response = APIClient().get("/api/auth/me/")
        self.assertEqual(response.status_code, 401)
