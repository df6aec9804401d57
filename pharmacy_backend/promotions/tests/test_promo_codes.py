# promotions/tests/test_promo_codes.py

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from orders.models import Order
from pharmacies.models import Pharmacy
from promotions.models import PromoCode
from promotions.services import promo_codes

User = get_user_model()


class PromoCodeTestMixin:
    def setUp(self):
        self.pharmacy = Pharmacy.objects.create(name="Central")
        self.other = Pharmacy.objects.create(name="Elsewhere")
        self.user = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
            pharmacy=self.pharmacy,
        )
        self.now = timezone.now()

    def make_promo(self, **overrides):
        fields = {
            "pharmacy": self.pharmacy,
            "code": "SAVE10",
            "discount_type": PromoCode.TYPE_PERCENT,
            "discount_value": Decimal("10"),
            "valid_from": self.now - timedelta(days=1),
            "valid_until": self.now + timedelta(days=30),
        }
        fields.update(overrides)
        return promo_codes.create_promo_code(**fields)


class ValidatePromoCodeTests(PromoCodeTestMixin, TestCase):
    """
    GUARANTEES:
    - Checks run in a fixed order, first failure wins
    - Discount is clamped to the subtotal
    - Validation never mutates the promo code
    """

    def test_percent_discount(self):
        self.make_promo()
        result = promo_codes.validate_promo_code(pharmacy=self.pharmacy, code=" save10 ", subtotal="250.00")

        self.assertEqual(result.code, "SAVE10")
        self.assertEqual(result.discount_amount, Decimal("25.00"))

    def test_fixed_discount_clamped_to_subtotal(self):
        self.make_promo(code="FLAT", discount_type=PromoCode.TYPE_FIXED, discount_value=Decimal("500"))
        result = promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="flat", subtotal="120.00")
        self.assertEqual(result.discount_amount, Decimal("120.00"))

    def test_blank_code(self):
        with self.assertRaisesMessage(ValidationError, "promo code is required"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="   ", subtotal="10")

    def test_unknown_code_and_other_pharmacy(self):
        self.make_promo()
        with self.assertRaises(NotFoundError):
            promo_codes.validate_promo_code(pharmacy=self.other, code="SAVE10", subtotal="10")

    def test_inactive(self):
        self.make_promo(is_active=False)
        with self.assertRaisesMessage(ValidationError, "promo code is not active"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="10")

    def test_not_yet_valid_and_expired(self):
        self.make_promo(
            code="LATER",
            valid_from=self.now + timedelta(days=1),
            valid_until=self.now + timedelta(days=2),
        )
        self.make_promo(
            code="GONE",
            valid_from=self.now - timedelta(days=5),
            valid_until=self.now - timedelta(days=1),
        )

        with self.assertRaisesMessage(ValidationError, "promo code is not yet valid"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="LATER", subtotal="10")
        with self.assertRaisesMessage(ValidationError, "promo code has expired"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="GONE", subtotal="10")

    def test_max_uses_reached(self):
        promo = self.make_promo(max_uses=1)
        PromoCode.objects.filter(id=promo.id).update(used_count=1)

        with self.assertRaisesMessage(ValidationError, "promo code has reached maximum uses"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="10")

    def test_minimum_order_amount(self):
        self.make_promo(min_order_amount=Decimal("100"))
        with self.assertRaisesMessage(ValidationError, "order subtotal is below minimum for this promo"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="99.99")

    def test_zero_discount_does_not_apply(self):
        self.make_promo(discount_value=Decimal("1"))
        with self.assertRaisesMessage(ValidationError, "promo does not apply to this order"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="0.20")

    def test_first_order_only(self):
        self.make_promo(first_order_only=True)

        with self.assertRaisesMessage(ValidationError, "please log in"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="50")

        result = promo_codes.validate_promo_code(
            pharmacy=self.pharmacy, code="SAVE10", subtotal="50", user=self.user
        )
        self.assertEqual(result.discount_amount, Decimal("5.00"))

        Order.objects.create(
            pharmacy=self.pharmacy,
            created_by=self.user,
            subtotal_amount=Decimal("10.00"),
            total_amount=Decimal("10.00"),
        )
        with self.assertRaisesMessage(ValidationError, "this code is for first order only"):
            promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="50", user=self.user)

    def test_validation_has_no_side_effects(self):
        promo = self.make_promo(max_uses=5)
        promo_codes.validate_promo_code(pharmacy=self.pharmacy, code="SAVE10", subtotal="50")
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 0)


class IncrementUsedCountTests(PromoCodeTestMixin, TestCase):
    def test_guarded_increment_stops_at_max_uses(self):
        promo = self.make_promo(max_uses=2)

        promo_codes.increment_used_count(promo_code_id=promo.id)
        promo_codes.increment_used_count(promo_code_id=promo.id)
        with self.assertRaises(ValidationError):
            promo_codes.increment_used_count(promo_code_id=promo.id)

        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 2)

    def test_unlimited_when_max_uses_zero(self):
        promo = self.make_promo(max_uses=0)
        for _ in range(3):
            promo_codes.increment_used_count(promo_code_id=promo.id)
        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 3)


class PromoCodeMaintenanceTests(PromoCodeTestMixin, TestCase):
    def test_duplicate_code_conflicts(self):
        self.make_promo()
        with self.assertRaises(ConflictError):
            self.make_promo(code="save10")

    def test_same_code_allowed_in_other_pharmacy(self):
        self.make_promo()
        promo = self.make_promo(pharmacy=self.other)
        self.assertEqual(promo.code, "SAVE10")

    def test_invalid_window_and_type(self):
        with self.assertRaises(ValidationError):
            self.make_promo(valid_until=self.now - timedelta(days=2))
        with self.assertRaises(ValidationError):
            self.make_promo(discount_type="bogus")
        with self.assertRaises(ValidationError):
            self.make_promo(discount_value=Decimal("0"))

    def test_update_preserves_used_count(self):
        promo = self.make_promo(max_uses=10)
        promo_codes.increment_used_count(promo_code_id=promo.id)

        updated = promo_codes.update_promo_code(
            promo_code_id=promo.id, pharmacy=self.pharmacy, discount_value=Decimal("15")
        )

        self.assertEqual(updated.discount_value, Decimal("15.00"))
        updated.refresh_from_db()
        self.assertEqual(updated.used_count, 1)

    def test_cross_tenant_update_forbidden(self):
        promo = self.make_promo()
        with self.assertRaises(ForbiddenError):
            promo_codes.update_promo_code(promo_code_id=promo.id, pharmacy=self.other, is_active=False)


class PromoCodeApiTests(PromoCodeTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_validate_endpoint(self):
        self.make_promo()
        response = self.client.post(
            "/api/promotions/promo-codes/validate/",
            {"code": "save10", "subtotal": "80.00"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.data["discount_amount"]), Decimal("8.00"))

    def test_validate_unknown_code_is_404(self):
        response = self.client.post(
            "/api/promotions/promo-codes/validate/",
            {"code": "NOPE", "subtotal": "80.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["detail"], "promo code not found")

    def test_cashier_cannot_create(self):
        response = self.client.post(
            "/api/promotions/promo-codes/",
            {
                "code": "NEW",
                "discount_type": "fixed",
                "discount_value": "5.00",
                "valid_from": self.now.isoformat(),
                "valid_until": (self.now + timedelta(days=1)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, 403)
