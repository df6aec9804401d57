# loyalty/tests/test_referral_points.py

from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from common.exceptions import ForbiddenError, NotFoundError, ValidationError
from loyalty.models import Customer, PointsTransaction
from loyalty.services import memberships, referral_points, staff_points
from pharmacies.models import Pharmacy

User = get_user_model()


class LoyaltyTestMixin:
    def setUp(self):
        self.pharmacy = Pharmacy.objects.create(name="Central")
        self.other = Pharmacy.objects.create(name="Elsewhere")

    def enable(self, **overrides):
        values = {
            "points_per_currency_unit": Decimal("1"),
            "currency_unit_for_points": Decimal("10"),
            "referral_reward_points": 50,
            "redemption_rate_points": 100,
            "redemption_rate_currency": Decimal("10"),
            "max_redeem_points_per_order": 0,
        }
        values.update(overrides)
        return referral_points.upsert_config(pharmacy=self.pharmacy, **values)

    def customer(self, phone="9800000001", balance=0, **kwargs):
        customer = referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone=phone, **kwargs)
        if balance:
            Customer.objects.filter(id=customer.id).update(points_balance=balance)
            customer.refresh_from_db()
        return customer


class CustomerTests(LoyaltyTestMixin, TestCase):
    """
    GUARANTEES:
    - One customer per (pharmacy, phone)
    - Every customer gets a referral code
    """

    def test_get_or_create_is_idempotent_per_phone(self):
        first = self.customer(name="Asha")
        again = self.customer(name="Asha Rai", email="asha@example.com")

        self.assertEqual(first.id, again.id)
        self.assertEqual(again.name, "Asha Rai")
        self.assertEqual(again.email, "asha@example.com")
        self.assertEqual(len(first.referral_code), referral_points.REFERRAL_CODE_LENGTH)

    def test_insert_race_returns_existing_customer(self):
        existing = self.customer(name="Asha")

        # the first lookup misses, as if a concurrent first order inserted the row after it
        with patch.object(Customer.objects, "select_for_update") as lock:
            lock.side_effect = [Customer.objects.none(), Customer.objects.all()]
            customer = referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone="9800000001")

        self.assertEqual(customer.id, existing.id)
        self.assertEqual(Customer.objects.filter(pharmacy=self.pharmacy).count(), 1)

    def test_same_phone_other_pharmacy_is_a_new_customer(self):
        mine = self.customer()
        theirs = referral_points.get_or_create_customer(pharmacy=self.other, phone="9800000001")
        self.assertNotEqual(mine.id, theirs.id)

    def test_phone_required(self):
        with self.assertRaisesMessage(ValidationError, "phone is required to identify customer"):
            referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone="  ")

    def test_lookup_by_phone(self):
        self.assertIsNone(referral_points.get_customer_by_phone(pharmacy=self.pharmacy, phone="9800000001"))
        customer = self.customer()
        found = referral_points.get_customer_by_phone(pharmacy=self.pharmacy, phone=" 9800000001 ")
        self.assertEqual(found.id, customer.id)

    def test_validate_referral_code(self):
        referrer = self.customer(name="Asha Rai")

        ok = referral_points.validate_referral_code(pharmacy=self.pharmacy, code=referrer.referral_code.lower())
        self.assertTrue(ok.valid)
        self.assertEqual(ok.name, "Asha")

        bad = referral_points.validate_referral_code(pharmacy=self.other, code=referrer.referral_code)
        self.assertFalse(bad.valid)
        self.assertEqual(bad.message, "invalid or expired code")

        blank = referral_points.validate_referral_code(pharmacy=self.pharmacy, code="")
        self.assertEqual(blank.message, "code is required")


class PrepareOrderTests(LoyaltyTestMixin, TestCase):
    """
    GUARANTEES:
    - No config means loyalty is disabled
    - The first referral wins, self-referral is ignored
    """

    def test_disabled_without_config(self):
        prep = referral_points.prepare_order_referral_and_points(
            pharmacy=self.pharmacy, customer_phone="9800000001", points_to_redeem=100, subtotal="100"
        )
        self.assertIsNone(prep.customer)
        self.assertFalse(Customer.objects.exists())

    def test_no_phone_and_nothing_requested_skips(self):
        self.enable()
        prep = referral_points.prepare_order_referral_and_points(pharmacy=self.pharmacy, subtotal="100")
        self.assertIsNone(prep.customer)

    def test_referral_without_phone_fails(self):
        self.enable()
        with self.assertRaisesMessage(ValidationError, "phone is required"):
            referral_points.prepare_order_referral_and_points(
                pharmacy=self.pharmacy, referral_code="ABC", subtotal="100"
            )

    def test_first_referral_wins(self):
        self.enable()
        asha = self.customer(phone="9800000001")
        bikash = self.customer(phone="9800000002")

        prep = referral_points.prepare_order_referral_and_points(
            pharmacy=self.pharmacy,
            customer_phone="9800000003",
            referral_code=asha.referral_code,
            subtotal="100",
        )
        self.assertEqual(prep.referral_code_used, asha.referral_code)

        again = referral_points.prepare_order_referral_and_points(
            pharmacy=self.pharmacy,
            customer_phone="9800000003",
            referral_code=bikash.referral_code,
            subtotal="100",
        )
        self.assertEqual(again.referral_code_used, "")
        self.assertEqual(Customer.objects.get(phone="9800000003").referred_by_id, asha.id)

    def test_self_referral_ignored(self):
        self.enable()
        asha = self.customer()
        prep = referral_points.prepare_order_referral_and_points(
            pharmacy=self.pharmacy,
            customer_phone=asha.phone,
            referral_code=asha.referral_code,
            subtotal="100",
        )
        self.assertEqual(prep.referral_code_used, "")
        asha.refresh_from_db()
        self.assertIsNone(asha.referred_by_id)


class RedeemTests(LoyaltyTestMixin, TestCase):
    """
    GUARANTEES:
    - Only whole multiples of the redemption rate are spent
    - The per-order cap and the subtotal bound the discount
    - Redeem writes exactly one negative ledger row
    """

    def test_partial_multiple_is_rounded_down(self):
        self.enable()
        customer = self.customer(balance=150)

        preview = referral_points.compute_redeem_discount(
            pharmacy=self.pharmacy, customer_id=customer.id, points_requested=120, subtotal="500"
        )

        self.assertEqual(preview.discount_amount, Decimal("10.00"))
        self.assertEqual(preview.points_redeemed, 100)
        self.assertEqual(preview.max_redeemable, 150)
        self.assertEqual(preview.points_balance, 50)

    def test_cap_per_order(self):
        self.enable(max_redeem_points_per_order=200)
        customer = self.customer(balance=1000)

        preview = referral_points.compute_redeem_discount(
            pharmacy=self.pharmacy, customer_id=customer.id, points_requested=900, subtotal="500"
        )
        self.assertEqual(preview.points_redeemed, 200)
        self.assertEqual(preview.discount_amount, Decimal("20.00"))

    def test_discount_bounded_by_subtotal(self):
        self.enable()
        customer = self.customer(balance=1000)

        preview = referral_points.compute_redeem_discount(
            pharmacy=self.pharmacy, customer_id=customer.id, points_requested=1000, subtotal="35"
        )
        self.assertEqual(preview.discount_amount, Decimal("30.00"))
        self.assertEqual(preview.points_redeemed, 300)

    def test_unknown_customer(self):
        self.enable()
        with self.assertRaises(NotFoundError):
            referral_points.compute_redeem_discount(
                pharmacy=self.pharmacy,
                customer_id=Customer(pharmacy=self.pharmacy).id,
                points_requested=100,
                subtotal="10",
            )

    def test_no_config_previews_zero(self):
        customer = self.customer(balance=500)
        preview = referral_points.compute_redeem_discount(
            pharmacy=self.pharmacy, customer_id=customer.id, points_requested=100, subtotal="100"
        )
        self.assertEqual(preview.points_redeemed, 0)
        self.assertEqual(preview.points_balance, 500)

    def test_zero_currency_rate_rejected_on_config(self):
        with self.assertRaisesMessage(ValidationError, "redemption_rate_currency must be positive"):
            self.enable(redemption_rate_currency=Decimal("0"))
        with self.assertRaisesMessage(ValidationError, "redemption_rate_points must be positive"):
            self.enable(redemption_rate_points=0)

    def test_zero_currency_rate_never_spends_points(self):
        config = self.enable()
        # rows written outside upsert_config (admin, data fixes)
        type(config).objects.filter(id=config.id).update(redemption_rate_currency=Decimal("0"))
        customer = self.customer(balance=300)

        with self.assertRaisesMessage(ValidationError, "invalid redemption rate"):
            referral_points.compute_redeem_discount(
                pharmacy=self.pharmacy, customer_id=customer.id, points_requested=200, subtotal="500"
            )
        customer.refresh_from_db()
        self.assertEqual(customer.points_balance, 300)

    def test_apply_redeem_checks_balance(self):
        customer = self.customer(balance=50)
        with self.assertRaisesMessage(ValidationError, "insufficient points balance"):
            referral_points.apply_points_redeem(order=None, customer_id=customer.id, points=100)
        self.assertFalse(PointsTransaction.objects.exists())


class PointsLedgerTests(LoyaltyTestMixin, TestCase):
    def test_rows_are_immutable(self):
        customer = self.customer()
        row = PointsTransaction.objects.create(
            customer=customer, amount=10, type=PointsTransaction.TYPE_EARN_PURCHASE
        )

        row.amount = 99
        with self.assertRaises(DjangoValidationError):
            row.save()
        with self.assertRaises(DjangoValidationError):
            row.delete()

    def test_sign_follows_type(self):
        customer = self.customer()
        with self.assertRaises(DjangoValidationError):
            PointsTransaction.objects.create(customer=customer, amount=5, type=PointsTransaction.TYPE_REDEEM)
        with self.assertRaises(DjangoValidationError):
            PointsTransaction.objects.create(
                customer=customer, amount=-5, type=PointsTransaction.TYPE_EARN_PURCHASE
            )


class MembershipTests(LoyaltyTestMixin, TestCase):
    def test_discount_only_while_active(self):
        customer = self.customer()
        gold = memberships.create_membership(pharmacy=self.pharmacy, name="Gold", discount_percent=Decimal("12.5"))
        memberships.assign_membership(customer_id=customer.id, membership_id=gold.id)

        self.assertEqual(
            memberships.get_active_membership_discount(customer_id=customer.id), Decimal("12.5")
        )

        memberships.update_membership(membership_id=gold.id, pharmacy=self.pharmacy, is_active=False)
        self.assertEqual(memberships.get_active_membership_discount(customer_id=customer.id), Decimal("0"))

    def test_percent_bounds(self):
        with self.assertRaises(ValidationError):
            memberships.create_membership(pharmacy=self.pharmacy, name="Bad", discount_percent=Decimal("101"))

    def test_cross_tenant_assignment_forbidden(self):
        customer = self.customer()
        foreign = memberships.create_membership(pharmacy=self.other, name="Gold", discount_percent=Decimal("5"))
        with self.assertRaises(ForbiddenError):
            memberships.assign_membership(customer_id=customer.id, membership_id=foreign.id)

    def test_reassignment_replaces(self):
        customer = self.customer()
        gold = memberships.create_membership(pharmacy=self.pharmacy, name="Gold", discount_percent=Decimal("10"))
        silver = memberships.create_membership(pharmacy=self.pharmacy, name="Silver", discount_percent=Decimal("5"))

        memberships.assign_membership(customer_id=customer.id, membership_id=gold.id)
        memberships.assign_membership(customer_id=customer.id, membership_id=silver.id)

        found = referral_points.get_customer_by_phone_with_membership(pharmacy=self.pharmacy, phone=customer.phone)
        self.assertEqual(found.membership.id, silver.id)


class StaffPointsTests(LoyaltyTestMixin, TestCase):
    def test_compute(self):
        config = staff_points.upsert_staff_points_config(
            pharmacy=self.pharmacy,
            points_per_currency_unit=Decimal("1"),
            currency_unit_for_points=Decimal("100"),
        )
        self.assertEqual(staff_points.compute_staff_points(config, Decimal("299.99")), 2)
        self.assertEqual(staff_points.compute_staff_points(None, Decimal("1000")), 0)

    def test_config_not_created_on_read(self):
        self.assertIsNone(staff_points.get_staff_points_config(self.pharmacy))


class LoyaltyApiTests(LoyaltyTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.cashier = User.objects.create_user(
            email="cashier@example.com", password="pass", role="cashier", pharmacy=self.pharmacy
        )
        self.manager = User.objects.create_user(
            email="manager@example.com", password="pass", role="manager", pharmacy=self.pharmacy
        )
        self.client = APIClient()

    def test_config_requires_manage(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.put("/api/loyalty/config/", {"referral_reward_points": 25}, format="json")
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.manager)
        response = self.client.put("/api/loyalty/config/", {"referral_reward_points": 25}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["referral_reward_points"], 25)

    def test_missing_config_is_404(self):
        self.client.force_authenticate(self.cashier)
        response = self.client.get("/api/loyalty/config/")
        self.assertEqual(response.status_code, 404)

    def test_redeem_preview(self):
        self.enable()
        customer = self.customer(balance=150)

        self.client.force_authenticate(self.cashier)
        response = self.client.post(
            "/api/loyalty/redeem/preview/",
            {"customer_id": str(customer.id), "points": 120, "subtotal": "100.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["points_redeemed"], 100)

    def test_customer_by_phone(self):
        customer = self.customer()
        self.client.force_authenticate(self.cashier)

        response = self.client.get("/api/loyalty/customers/by-phone/", {"phone": customer.phone})
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data["membership"])

        response = self.client.get("/api/loyalty/customers/by-phone/", {"phone": "000"})
        self.assertEqual(response.status_code, 404)
