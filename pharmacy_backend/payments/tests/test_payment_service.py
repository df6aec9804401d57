# payments/tests/test_payment_service.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from common.exceptions import ConflictError, ForbiddenError, ValidationError
from orders.models import Order
from payments.models import Payment
from payments.services import payment_service
from pharmacies.models import Pharmacy

User = get_user_model()


class PaymentServiceTests(TestCase):
    """
    GUARANTEES:
    - Payments start pending and complete once
    - Gateways are pharmacy scoped, codes map onto methods
    """

    def setUp(self):
        self.pharmacy = Pharmacy.objects.create(name="Central")
        self.other = Pharmacy.objects.create(name="Elsewhere")
        self.user = User.objects.create_user(
            email="cashier@example.com", password="pass", role="cashier", pharmacy=self.pharmacy
        )
        self.order = Order.objects.create(
            pharmacy=self.pharmacy,
            created_by=self.user,
            subtotal_amount=Decimal("80.00"),
            total_amount=Decimal("80.00"),
            currency="NPR",
        )

    def test_method_mapping(self):
        self.assertEqual(payment_service.method_for_gateway("Khalti"), Payment.METHOD_WALLET)
        self.assertEqual(payment_service.method_for_gateway("qr"), Payment.METHOD_QR)
        self.assertEqual(payment_service.method_for_gateway("cod"), Payment.METHOD_COD)
        self.assertEqual(payment_service.method_for_gateway("fonepay"), Payment.METHOD_FONEPAY)
        self.assertEqual(payment_service.method_for_gateway("stripe"), Payment.METHOD_OTHER)

    def test_create_then_complete_once(self):
        payment = payment_service.create_payment(order=self.order, amount="80", method=Payment.METHOD_CASH)
        self.assertEqual(payment.status, Payment.STATUS_PENDING)
        self.assertEqual(payment.currency, "NPR")

        completed = payment_service.complete_payment(payment_id=payment.id)
        self.assertEqual(completed.status, Payment.STATUS_COMPLETED)
        self.assertIsNotNone(completed.paid_at)

        with self.assertRaises(ConflictError):
            payment_service.complete_payment(payment_id=payment.id)

    def test_amount_and_method_validated(self):
        with self.assertRaises(ValidationError):
            payment_service.create_payment(order=self.order, amount="0", method=Payment.METHOD_CASH)
        with self.assertRaises(ValidationError):
            payment_service.create_payment(order=self.order, amount="10", method="barter")

    def test_foreign_gateway_forbidden(self):
        gateway = payment_service.create_gateway(pharmacy=self.other, code="qr", name="QR")
        with self.assertRaises(ForbiddenError):
            payment_service.create_payment(
                order=self.order, amount="10", method=Payment.METHOD_QR, gateway=gateway
            )

    def test_duplicate_gateway_code(self):
        payment_service.create_gateway(pharmacy=self.pharmacy, code="cod", name="Cash on delivery")
        with self.assertRaises(ConflictError):
            payment_service.create_gateway(pharmacy=self.pharmacy, code="COD", name="Again")

    def test_inactive_gateway_skips_mock_payment(self):
        gateway = payment_service.create_gateway(
            pharmacy=self.pharmacy, code="fonepay", name="Fonepay", is_active=False
        )
        self.assertIsNone(payment_service.record_mock_payment(order=self.order, gateway_id=gateway.id))
        self.assertFalse(Payment.objects.exists())

    def test_listing(self):
        payment_service.create_payment(order=self.order, amount="30", method=Payment.METHOD_CASH)
        payment_service.create_payment(order=self.order, amount="50", method=Payment.METHOD_CARD)

        self.assertEqual(payment_service.list_payments_by_order(order_id=self.order.id).count(), 2)
        self.assertEqual(payment_service.list_payments_by_pharmacy(pharmacy=self.other).count(), 0)
