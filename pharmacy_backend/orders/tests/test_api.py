# orders/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from orders.models import Order
from pharmacies.models import Pharmacy
from products.models import Product

User = get_user_model()


class OrderApiTests(TestCase):
    """
    GUARANTEES:
    - Cashiers create and view, only managing roles move status
    - Service errors surface as {"code", "detail"}
    - Staff without orders.manage list only their own orders
    """

    def setUp(self):
        self.pharmacy = Pharmacy.objects.create(name="Central")
        self.cashier = User.objects.create_user(
            email="cashier@example.com", password="pass", role="cashier", pharmacy=self.pharmacy
        )
        self.other_cashier = User.objects.create_user(
            email="cashier2@example.com", password="pass", role="cashier", pharmacy=self.pharmacy
        )
        self.pharmacist = User.objects.create_user(
            email="pharmacist@example.com", password="pass", role="pharmacist", pharmacy=self.pharmacy
        )
        self.product = Product.objects.create(
            pharmacy=self.pharmacy,
            sku="PARA-500",
            name="Paracetamol",
            unit_price=Decimal("25.00"),
            stock_quantity=20,
        )
        self.client = APIClient()

    def _create(self, user, **extra):
        self.client.force_authenticate(user)
        payload = {"items": [{"product_id": str(self.product.id), "quantity": 2}]}
        payload.update(extra)
        return self.client.post("/api/orders/", payload, format="json")

    def test_cashier_creates_order(self):
        response = self._create(self.cashier, customer_name="Walk-in")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("50.00"))
        self.assertEqual(len(response.data["items"]), 1)

    def test_validation_error_body(self):
        response = self._create(self.cashier, discount_amount="-1.00")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "VALIDATION_ERROR")

    def test_cashier_cannot_change_status(self):
        order_id = self._create(self.cashier).data["id"]
        response = self.client.post(f"/api/orders/{order_id}/status/", {"status": "confirmed"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_pharmacist_moves_status(self):
        order_id = self._create(self.cashier).data["id"]

        self.client.force_authenticate(self.pharmacist)
        response = self.client.post(f"/api/orders/{order_id}/accept/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "confirmed")

        response = self.client.post(f"/api/orders/{order_id}/status/", {"status": "completed"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("invalid status transition", response.data["detail"])

    def test_list_scoping(self):
        self._create(self.cashier)
        self._create(self.other_cashier)

        self.client.force_authenticate(self.cashier)
        self.assertEqual(len(self.client.get("/api/orders/").data), 1)

        self.client.force_authenticate(self.pharmacist)
        self.assertEqual(len(self.client.get("/api/orders/").data), 2)
        self.assertEqual(Order.objects.count(), 2)
