# orders/services/order_service.py

"""
ORDER SERVICE (pricing + creation pipeline, status machine)

PURPOSE:
- Price and persist an order in ONE unit of work:
  items -> loyalty -> membership -> promo/manual -> points -> clamp
  -> order + items -> promo usage -> points redeem -> stock (FEFO)
- Move orders through the lifecycle and fire completion side effects.

Hard rules:
- Any failure before commit leaves NOTHING behind: no order, no items,
  no ledger rows, no promo usage, no stock change.
- A promo code wins over a manual discount; the manual discount is only
  honoured when no promo code is supplied at all.
- discount is clamped to the subtotal, total = subtotal - discount >= 0.
- Completion hooks fire exactly once: entering "completed" from any other
  state. Re-sending the current status is a no-op.

Notes:
- Mock payment recording runs AFTER the order transaction, as an advisory
  step. It can never fail or roll back the order.
- Staff points are advisory too; customer loyalty credit is NOT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from common.advisory import advisory
from common.exceptions import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from common.money import ZERO, money, percent_of, to_int_qty
from loyalty.services.memberships import get_active_membership_discount
from loyalty.services.referral_points import (
    apply_points_redeem,
    get_customer_by_phone,
    on_order_completed,
    prepare_order_referral_and_points,
)
from loyalty.services.staff_points import credit_staff_points
from orders.models import Order, OrderItem
from orders.services.order_lifecycle import ensure_valid_status, validate_transition
from payments.services.payment_service import record_mock_payment
from pharmacies.models import Pharmacy
from products.models import Product
from products.services.stock_fefo import consume_stock
from promotions.services.promo_codes import increment_used_count, validate_promo_code

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderItemInput:
    product_id: object
    quantity: int
    unit_price: Optional[Decimal] = None


@dataclass(frozen=True)
class _PricedLine:
    product: Product
    quantity: int
    unit_price: Decimal
    total_price: Decimal


def _pharmacy_id(pharmacy):
    return getattr(pharmacy, "id", pharmacy)


def _coerce_item(item) -> OrderItemInput:
    if isinstance(item, OrderItemInput):
        return item
    if isinstance(item, dict):
        return OrderItemInput(
            product_id=item.get("product_id"),
            quantity=item.get("quantity"),
            unit_price=item.get("unit_price"),
        )
    raise ValidationError("invalid order item")


# =========================================================
# PRICING HELPERS
# =========================================================
def _price_items(*, pharmacy_id, items: Iterable) -> list[_PricedLine]:
    lines = []
    for raw in items:
        item = _coerce_item(raw)

        qty = to_int_qty(item.quantity, field_name="quantity")
        if qty <= 0:
            raise ValidationError("quantity must be greater than 0")

        product = Product.objects.select_for_update().filter(id=item.product_id).first()
        if product is None:
            raise NotFoundError("product")
        if product.pharmacy_id != pharmacy_id:
            raise ForbiddenError("product does not belong to this pharmacy")
        if product.stock_quantity < qty:
            raise ValidationError(f"insufficient stock for {product.name}")

        unit_price = money(product.unit_price if item.unit_price is None else item.unit_price)
        if unit_price < ZERO:
            raise ValidationError("unit_price cannot be negative")

        lines.append(
            _PricedLine(
                product=product,
                quantity=qty,
                unit_price=unit_price,
                total_price=money(unit_price * qty),
            )
        )
    return lines


def _membership_discount(*, customer_id, subtotal) -> Decimal:
    if customer_id is None:
        return ZERO
    pct = get_active_membership_discount(customer_id=customer_id)
    if pct <= 0:
        return ZERO
    return percent_of(subtotal, pct)


# =========================================================
# CREATE
# =========================================================
def create_order(
    *,
    pharmacy,
    created_by,
    items,
    customer_name: str = "",
    customer_phone: str = "",
    customer_email: str = "",
    notes: str = "",
    discount_amount=None,
    promo_code=None,
    referral_code=None,
    points_to_redeem=None,
    payment_gateway_id=None,
) -> Order:
    try:
        with transaction.atomic():
            order = _create_order_atomic(
                pharmacy=pharmacy,
                created_by=created_by,
                items=items,
                customer_name=(customer_name or "").strip(),
                customer_phone=(customer_phone or "").strip(),
                customer_email=(customer_email or "").strip(),
                notes=notes or "",
                discount_amount=discount_amount,
                promo_code=promo_code,
                referral_code=referral_code,
                points_to_redeem=points_to_redeem,
            )
    except DatabaseError as exc:
        logger.exception(
            "Order creation failed",
            extra={"pharmacy_id": str(_pharmacy_id(pharmacy))},
        )
        raise InternalError("failed to create order") from exc

    if payment_gateway_id:
        with advisory(
            "mock_payment",
            order_id=str(order.id),
            gateway_id=str(payment_gateway_id),
        ):
            record_mock_payment(order=order, gateway_id=payment_gateway_id, created_by=created_by)

    return get_order(order_id=order.id)


def _create_order_atomic(
    *,
    pharmacy,
    created_by,
    items,
    customer_name,
    customer_phone,
    customer_email,
    notes,
    discount_amount,
    promo_code,
    referral_code,
    points_to_redeem,
) -> Order:
    items = list(items or [])
    if not items:
        raise ValidationError("order must contain at least one item")

    pharmacy_id = _pharmacy_id(pharmacy)

    # 1) items + subtotal
    lines = _price_items(pharmacy_id=pharmacy_id, items=items)
    subtotal = money(sum((line.total_price for line in lines), ZERO))

    # 2) loyalty (customer, referral, points)
    loyalty = prepare_order_referral_and_points(
        pharmacy=pharmacy,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_email=customer_email,
        referral_code=referral_code,
        points_to_redeem=points_to_redeem,
        subtotal=subtotal,
    )
    customer = loyalty.customer

    # 3) customer for membership only
    if customer is None and customer_phone:
        with advisory("membership_customer_lookup", pharmacy_id=str(pharmacy_id)):
            customer = get_customer_by_phone(pharmacy=pharmacy, phone=customer_phone)

    customer_id = customer.id if customer is not None else None

    # 4) membership
    discount = _membership_discount(customer_id=customer_id, subtotal=subtotal)

    # 5) promo OR manual discount
    promo_code_id = None
    if promo_code is not None and str(promo_code).strip():
        promo = validate_promo_code(
            pharmacy=pharmacy,
            code=promo_code,
            subtotal=subtotal,
            user=created_by,
        )
        discount += promo.discount_amount
        promo_code_id = promo.promo_code_id
    elif discount_amount is not None:
        manual = money(discount_amount)
        if manual < ZERO:
            raise ValidationError("discount_amount cannot be negative")
        discount += manual

    # 6) points
    discount += loyalty.discount_from_points

    # 7) clamp
    discount = min(money(discount), subtotal)
    total = max(subtotal - discount, ZERO)

    # 8) persist
    order = Order.objects.create(
        pharmacy_id=pharmacy_id,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_email=customer_email,
        customer_id=customer_id,
        status=Order.STATUS_PENDING,
        subtotal_amount=subtotal,
        discount_amount=discount,
        tax_amount=ZERO,
        total_amount=total,
        currency=_pharmacy_currency(pharmacy),
        promo_code_id=promo_code_id,
        referral_code_used=loyalty.referral_code_used,
        points_redeemed=loyalty.points_redeemed,
        notes=notes,
        created_by=created_by,
    )

    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product=line.product,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
            )
            for line in lines
        ]
    )

    # 9) promo usage
    if promo_code_id is not None:
        increment_used_count(promo_code_id=promo_code_id)

    # 10) points redeem
    if loyalty.points_redeemed > 0 and customer_id is not None:
        apply_points_redeem(order=order, customer_id=customer_id, points=loyalty.points_redeemed)

    # 11) stock
    for line in lines:
        consume_stock(product_id=line.product.id, quantity=line.quantity)

    logger.info(
        "Order created",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "pharmacy_id": str(pharmacy_id),
            "subtotal": str(subtotal),
            "discount": str(discount),
            "total": str(total),
        },
    )
    return order


def _pharmacy_currency(pharmacy) -> str:
    currency = getattr(pharmacy, "currency", None)
    if currency is None:
        currency = Pharmacy.objects.filter(id=pharmacy).values_list("currency", flat=True).first()
    return currency or settings.DEFAULT_CURRENCY


# =========================================================
# READ
# =========================================================
def get_order(*, order_id, pharmacy=None) -> Order:
    order = (
        Order.objects.select_related("promo_code", "customer", "pharmacy")
        .prefetch_related("items__product")
        .filter(id=order_id)
        .first()
    )
    if order is None:
        raise NotFoundError("order")
    if pharmacy is not None and order.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("order does not belong to this pharmacy")
    return order


def list_orders(*, pharmacy, created_by=None, status=None):
    qs = Order.objects.filter(pharmacy_id=_pharmacy_id(pharmacy))
    if created_by is not None:
        qs = qs.filter(created_by_id=getattr(created_by, "id", created_by))
    if status:
        qs = qs.filter(status=ensure_valid_status(status))
    return qs.select_related("promo_code", "customer").prefetch_related("items").order_by("-created_at")


# =========================================================
# STATUS MACHINE
# =========================================================
@transaction.atomic
def update_order_status(*, order_id, status, pharmacy=None) -> Order:
    target = ensure_valid_status(status)

    order = Order.objects.select_for_update().filter(id=order_id).first()
    if order is None:
        raise NotFoundError("order")
    if pharmacy is not None and order.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("order does not belong to this pharmacy")

    if order.status == target:
        return order

    validate_transition(order=order, target_status=target)

    previous = order.status
    order.status = target
    order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Order status changed",
        extra={"order_id": str(order.id), "from": previous, "to": target},
    )

    if target == Order.STATUS_COMPLETED:
        on_order_completed(order)
        with advisory("staff_points", order_id=str(order.id), user_id=str(order.created_by_id)):
            credit_staff_points(order)

    return order


@transaction.atomic
def accept_order(*, order_id, pharmacy=None) -> Order:
    order = Order.objects.select_for_update().filter(id=order_id).first()
    if order is None:
        raise NotFoundError("order")
    if pharmacy is not None and order.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("order does not belong to this pharmacy")
    if order.status != Order.STATUS_PENDING:
        raise ValidationError("only pending orders can be accepted")

    return update_order_status(order_id=order_id, status=Order.STATUS_CONFIRMED, pharmacy=pharmacy)
