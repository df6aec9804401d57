# orders/tests/test_order_service.py

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from common.exceptions import ForbiddenError, NotFoundError, ValidationError
from loyalty.models import Customer, PointsTransaction
from loyalty.services import memberships, referral_points, staff_points
from orders.models import Order, OrderItem
from orders.services import order_service
from orders.services.order_service import OrderItemInput
from payments.models import Payment
from payments.services import payment_service
from pharmacies.models import Pharmacy
from products.models import InventoryBatch, Product
from products.services import inventory
from promotions.models import PromoCode
from promotions.services import promo_codes

User = get_user_model()


class OrderTestMixin:
    def setUp(self):
        self.pharmacy = Pharmacy.objects.create(name="Central", currency="NPR")
        self.other = Pharmacy.objects.create(name="Elsewhere")
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
            pharmacy=self.pharmacy,
        )
        self.product = Product.objects.create(
            pharmacy=self.pharmacy,
            sku="PARA-500",
            name="Paracetamol",
            unit_price=Decimal("100.00"),
            stock_quantity=10,
        )
        self.vitamin = Product.objects.create(
            pharmacy=self.pharmacy,
            sku="VIT-C",
            name="Vitamin C",
            unit_price=Decimal("12.50"),
            stock_quantity=10,
        )

    def place(self, items=None, **kwargs):
        if items is None:
            items = [OrderItemInput(product_id=self.product.id, quantity=2)]
        return order_service.create_order(
            pharmacy=self.pharmacy,
            created_by=self.cashier,
            items=items,
            **kwargs,
        )

    def make_promo(self, **overrides):
        now = timezone.now()
        fields = {
            "pharmacy": self.pharmacy,
            "code": "FLAT30",
            "discount_type": PromoCode.TYPE_FIXED,
            "discount_value": Decimal("30"),
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=1),
        }
        fields.update(overrides)
        return promo_codes.create_promo_code(**fields)

    def enable_loyalty(self, **overrides):
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

    def complete(self, order):
        for target in ("confirmed", "processing", "ready", "completed"):
            order = order_service.update_order_status(order_id=order.id, status=target)
        return order


class CreateOrderPricingTests(OrderTestMixin, TestCase):
    """
    GUARANTEES:
    - subtotal == sum(unit_price * quantity)
    - discount <= subtotal and total == subtotal - discount
    - promo wins over a manual discount
    - currency comes from the pharmacy
    """

    def test_subtotal_and_snapshot_prices(self):
        order = self.place(
            items=[
                OrderItemInput(product_id=self.product.id, quantity=2),
                OrderItemInput(product_id=self.vitamin.id, quantity=3, unit_price=Decimal("11.00")),
            ]
        )

        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertTrue(order.order_number.startswith("ORD-"))
        self.assertEqual(order.subtotal_amount, Decimal("233.00"))
        self.assertEqual(order.discount_amount, Decimal("0.00"))
        self.assertEqual(order.total_amount, Decimal("233.00"))
        self.assertEqual(order.currency, "NPR")

        lines = {item.product_id: item for item in order.items.all()}
        self.assertEqual(lines[self.product.id].unit_price, Decimal("100.00"))
        self.assertEqual(lines[self.vitamin.id].total_price, Decimal("33.00"))

    def test_stock_is_consumed(self):
        self.place()
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 8)

    def test_manual_discount_is_clamped(self):
        order = self.place(discount_amount=Decimal("500"))
        self.assertEqual(order.discount_amount, Decimal("200.00"))
        self.assertEqual(order.total_amount, Decimal("0.00"))

    def test_explicit_zero_manual_discount(self):
        order = self.place(discount_amount=Decimal("0"))
        self.assertEqual(order.discount_amount, Decimal("0.00"))

    def test_negative_manual_discount_rejected(self):
        with self.assertRaises(ValidationError):
            self.place(discount_amount=Decimal("-5"))
        self.assertFalse(Order.objects.exists())

    def test_promo_overrides_manual_discount(self):
        promo = self.make_promo()
        order = self.place(promo_code="flat30", discount_amount=Decimal("50"))

        self.assertEqual(order.discount_amount, Decimal("30.00"))
        self.assertEqual(order.total_amount, Decimal("170.00"))
        self.assertEqual(order.promo_code_id, promo.id)

        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 1)

    def test_membership_promo_and_points_stack(self):
        self.enable_loyalty()
        customer = referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone="9800000001")
        Customer.objects.filter(id=customer.id).update(points_balance=150)
        gold = memberships.create_membership(pharmacy=self.pharmacy, name="Gold", discount_percent=Decimal("10"))
        memberships.assign_membership(customer_id=customer.id, membership_id=gold.id)
        self.make_promo()

        order = self.place(customer_phone="9800000001", promo_code="FLAT30", points_to_redeem=120)

        # 20 membership + 30 promo + 10 points
        self.assertEqual(order.subtotal_amount, Decimal("200.00"))
        self.assertEqual(order.discount_amount, Decimal("60.00"))
        self.assertEqual(order.total_amount, Decimal("140.00"))
        self.assertEqual(order.points_redeemed, 100)
        self.assertEqual(order.customer_id, customer.id)

        customer.refresh_from_db()
        self.assertEqual(customer.points_balance, 50)
        redeem = PointsTransaction.objects.get(customer=customer, type=PointsTransaction.TYPE_REDEEM)
        self.assertEqual(redeem.amount, -100)
        self.assertEqual(redeem.order_id, order.id)

    def test_membership_applies_without_loyalty_config(self):
        customer = Customer.objects.create(pharmacy=self.pharmacy, phone="9800000002", referral_code="SILVER01")
        silver = memberships.create_membership(pharmacy=self.pharmacy, name="Silver", discount_percent=Decimal("5"))
        memberships.assign_membership(customer_id=customer.id, membership_id=silver.id)

        order = self.place(customer_phone="9800000002")

        self.assertEqual(order.customer_id, customer.id)
        self.assertEqual(order.discount_amount, Decimal("10.00"))

    def test_points_require_phone_when_loyalty_enabled(self):
        self.enable_loyalty()
        with self.assertRaisesMessage(ValidationError, "phone is required to identify customer"):
            self.place(points_to_redeem=100)


class CreateOrderValidationTests(OrderTestMixin, TestCase):
    def test_empty_items(self):
        with self.assertRaisesMessage(ValidationError, "order must contain at least one item"):
            self.place(items=[])

    def test_non_positive_quantity(self):
        with self.assertRaises(ValidationError):
            self.place(items=[OrderItemInput(product_id=self.product.id, quantity=0)])

    def test_unknown_product(self):
        missing = Product(pharmacy=self.pharmacy, sku="X", name="X")
        with self.assertRaises(NotFoundError):
            self.place(items=[OrderItemInput(product_id=missing.id, quantity=1)])

    def test_foreign_product(self):
        foreign = Product.objects.create(
            pharmacy=self.other, sku="F-1", name="Foreign", unit_price=Decimal("1"), stock_quantity=5
        )
        with self.assertRaises(ForbiddenError):
            self.place(items=[OrderItemInput(product_id=foreign.id, quantity=1)])

    def test_insufficient_stock(self):
        with self.assertRaisesMessage(ValidationError, "insufficient stock for Paracetamol"):
            self.place(items=[OrderItemInput(product_id=self.product.id, quantity=11)])


class CreateOrderAtomicityTests(OrderTestMixin, TestCase):
    """
    GUARANTEES:
    - A late stock failure rolls back order, items, promo usage,
      points ledger and every earlier stock change
    """

    def test_late_stock_failure_leaves_nothing_behind(self):
        self.enable_loyalty()
        customer = referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone="9800000003")
        Customer.objects.filter(id=customer.id).update(points_balance=300)
        promo = self.make_promo(max_uses=5)

        batched = Product.objects.create(
            pharmacy=self.pharmacy, sku="AMOX", name="Amoxicillin", unit_price=Decimal("50"), stock_quantity=0
        )
        inventory.add_batch(pharmacy=self.pharmacy, product_id=batched.id, batch_number="B1", quantity=5)

        # each line passes the upfront check, the second one cannot be served
        items = [
            OrderItemInput(product_id=self.product.id, quantity=2),
            OrderItemInput(product_id=batched.id, quantity=3),
            OrderItemInput(product_id=batched.id, quantity=3),
        ]
        with self.assertRaises(ValidationError):
            self.place(items=items, customer_phone="9800000003", promo_code="FLAT30", points_to_redeem=100)

        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(PointsTransaction.objects.exists())

        promo.refresh_from_db()
        self.assertEqual(promo.used_count, 0)
        customer.refresh_from_db()
        self.assertEqual(customer.points_balance, 300)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 10)
        batched.refresh_from_db()
        self.assertEqual(batched.stock_quantity, 5)
        self.assertEqual(InventoryBatch.objects.get(product=batched).quantity, 5)

    def test_promo_max_uses_single_use(self):
        self.make_promo(max_uses=1)
        self.place(promo_code="FLAT30")

        with self.assertRaisesMessage(ValidationError, "maximum uses"):
            self.place(promo_code="FLAT30")
        self.assertEqual(Order.objects.count(), 1)


class OrderStatusTests(OrderTestMixin, TestCase):
    """
    GUARANTEES:
    - Only table transitions are allowed
    - Terminal states accept only themselves
    - Completion hooks fire once
    """

    def test_happy_path(self):
        order = self.complete(self.place())
        self.assertEqual(order.status, Order.STATUS_COMPLETED)

    def test_skipping_states_fails(self):
        order = self.place()
        with self.assertRaisesMessage(ValidationError, "invalid status transition from pending to ready"):
            order_service.update_order_status(order_id=order.id, status="ready")

    def test_terminal_states(self):
        completed = self.complete(self.place())
        cancelled = order_service.update_order_status(order_id=self.place().id, status="cancelled")

        for order in (completed, cancelled):
            for target in ("pending", "confirmed", "processing", "ready"):
                with self.assertRaises(ValidationError):
                    order_service.update_order_status(order_id=order.id, status=target)
            same = order_service.update_order_status(order_id=order.id, status=order.status)
            self.assertEqual(same.status, order.status)

    def test_unknown_status(self):
        order = self.place()
        with self.assertRaises(ValidationError):
            order_service.update_order_status(order_id=order.id, status="shipped")

    def test_accept_only_pending(self):
        order = self.place()
        accepted = order_service.accept_order(order_id=order.id)
        self.assertEqual(accepted.status, Order.STATUS_CONFIRMED)

        with self.assertRaisesMessage(ValidationError, "only pending orders can be accepted"):
            order_service.accept_order(order_id=order.id)

    def test_cross_tenant_status_update_forbidden(self):
        order = self.place()
        with self.assertRaises(ForbiddenError):
            order_service.update_order_status(order_id=order.id, status="confirmed", pharmacy=self.other)

    def test_completion_credits_purchase_points_once(self):
        self.enable_loyalty()
        order = self.complete(self.place(customer_phone="9800000010"))

        customer = Customer.objects.get(pharmacy=self.pharmacy, phone="9800000010")
        self.assertEqual(customer.points_balance, 20)

        order_service.update_order_status(order_id=order.id, status="completed")
        customer.refresh_from_db()
        self.assertEqual(customer.points_balance, 20)
        self.assertEqual(
            PointsTransaction.objects.filter(type=PointsTransaction.TYPE_EARN_PURCHASE).count(),
            1,
        )

    def test_referral_reward_only_on_first_completed_order(self):
        self.enable_loyalty(points_per_currency_unit=Decimal("0"))
        referrer = referral_points.get_or_create_customer(pharmacy=self.pharmacy, phone="9800000020", name="Asha Rai")

        first = self.place(customer_phone="9800000021", referral_code=referrer.referral_code.lower())
        self.assertEqual(first.referral_code_used, referrer.referral_code)
        self.complete(first)

        second = self.place(customer_phone="9800000021", referral_code=referrer.referral_code)
        self.complete(second)

        referrer.refresh_from_db()
        self.assertEqual(referrer.points_balance, 50)
        reward = PointsTransaction.objects.get(type=PointsTransaction.TYPE_EARN_REFERRAL)
        self.assertEqual(reward.customer_id, referrer.id)
        self.assertEqual(reward.order_id, first.id)

    def test_staff_points_credited_on_completion(self):
        staff_points.upsert_staff_points_config(
            pharmacy=self.pharmacy,
            points_per_currency_unit=Decimal("2"),
            currency_unit_for_points=Decimal("100"),
        )
        self.complete(self.place())

        self.cashier.refresh_from_db()
        self.assertEqual(self.cashier.points_balance, 4)

    def test_staff_points_failure_does_not_block_completion(self):
        order = self.place()
        with mock.patch(
            "orders.services.order_service.credit_staff_points",
            side_effect=RuntimeError("boom"),
        ):
            order = self.complete(order)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_COMPLETED)


class MockPaymentTests(OrderTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.gateway = payment_service.create_gateway(pharmacy=self.pharmacy, code="eSewa", name="eSewa")

    def test_gateway_records_completed_payment(self):
        order = self.place(payment_gateway_id=self.gateway.id)

        payment = Payment.objects.get(order=order)
        self.assertEqual(payment.status, Payment.STATUS_COMPLETED)
        self.assertEqual(payment.amount, order.total_amount)
        self.assertEqual(payment.method, Payment.METHOD_WALLET)
        self.assertEqual(payment.reference, f"MOCK-{order.order_number}")

    def test_foreign_gateway_is_ignored(self):
        foreign = payment_service.create_gateway(pharmacy=self.other, code="cod", name="Cash")
        order = self.place(payment_gateway_id=foreign.id)

        self.assertTrue(Order.objects.filter(id=order.id).exists())
        self.assertFalse(Payment.objects.exists())

    def test_zero_total_skips_payment(self):
        self.place(payment_gateway_id=self.gateway.id, discount_amount=Decimal("1000"))
        self.assertFalse(Payment.objects.exists())

    @override_settings(MOCK_PAYMENTS_ENABLED=False)
    def test_disabled_by_setting(self):
        self.place(payment_gateway_id=self.gateway.id)
        self.assertFalse(Payment.objects.exists())

    def test_payment_failure_never_fails_the_order(self):
        with mock.patch(
            "orders.services.order_service.record_mock_payment",
            side_effect=RuntimeError("gateway down"),
        ):
            order = self.place(payment_gateway_id=self.gateway.id)

        self.assertTrue(Order.objects.filter(id=order.id).exists())


class OrderQueryTests(OrderTestMixin, TestCase):
    def test_get_order_scoping(self):
        order = self.place()
        self.assertEqual(order_service.get_order(order_id=order.id, pharmacy=self.pharmacy).id, order.id)
        with self.assertRaises(ForbiddenError):
            order_service.get_order(order_id=order.id, pharmacy=self.other)

    def test_list_filters(self):
        first = self.place()
        self.place()
        order_service.update_order_status(order_id=first.id, status="cancelled")

        self.assertEqual(order_service.list_orders(pharmacy=self.pharmacy).count(), 2)
        self.assertEqual(
            list(order_service.list_orders(pharmacy=self.pharmacy, status="cancelled")),
            [Order.objects.get(id=first.id)],
        )
        self.assertEqual(order_service.list_orders(pharmacy=self.other).count(), 0)
