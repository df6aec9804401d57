# loyalty/services/referral_points.py

"""
REFERRAL & LOYALTY POINTS ENGINE

PURPOSE:
- Resolve (or register) the loyalty Customer behind an order by phone.
- Attach referrals (first referral wins, never self).
- Preview and apply points redemption against an order subtotal.
- Credit purchase + referral points when an order completes.

RULES:
- A pharmacy without a ReferralPointsConfig has loyalty DISABLED: every
  entry point in here degrades to a no-op / empty result.
- Every balance change is written together with exactly one immutable
  PointsTransaction row, under a row lock on the customer.
- Points are whole integers. Money is Decimal 2dp.

REDEMPTION:
    units           = points // redemption_rate_points
    discount        = units * redemption_rate_currency
    points_redeemed = units * redemption_rate_points
  so a request that is not a multiple of the rate only spends the
  multiple (150 balance, rate 100 -> 10, request 120 => 10 off, 100 spent).
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.apps import apps
from django.db import IntegrityError, transaction
from django.db.models import F

from common.exceptions import InternalError, NotFoundError, ValidationError
from common.money import ZERO, earned_points, money, to_int_qty
from loyalty.models import Customer, CustomerMembership, PointsTransaction, ReferralPointsConfig

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_MAX_ATTEMPTS = 20

DEFAULT_CONFIG = {
    "points_per_currency_unit": Decimal("1"),
    "currency_unit_for_points": Decimal("10"),
    "referral_reward_points": 50,
    "redemption_rate_points": 100,
    "redemption_rate_currency": Decimal("10"),
    "max_redeem_points_per_order": 0,
}

DEFAULT_TRANSACTIONS_LIMIT = 50


# =========================================================
# RESULT TYPES
# =========================================================
@dataclass(frozen=True)
class ReferralCodeCheck:
    valid: bool
    name: str = ""
    message: str = ""


@dataclass(frozen=True)
class RedeemPreview:
    discount_amount: Decimal = ZERO
    points_redeemed: int = 0
    max_redeemable: int = 0
    points_balance: int = 0


@dataclass(frozen=True)
class LoyaltyPreparation:
    customer: Optional[Customer] = None
    referral_code_used: str = ""
    points_redeemed: int = 0
    discount_from_points: Decimal = ZERO


@dataclass(frozen=True)
class CustomerWithMembership:
    customer: Customer
    membership: Optional[object] = None


def _pharmacy_id(pharmacy):
    return getattr(pharmacy, "id", pharmacy)


def _normalize_code(code) -> str:
    return (code or "").strip().upper()


# =========================================================
# REFERRAL CODES
# =========================================================
def generate_referral_code(pharmacy) -> str:
    pharmacy_id = _pharmacy_id(pharmacy)
    for _ in range(REFERRAL_CODE_MAX_ATTEMPTS):
        code = "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
        if not Customer.objects.filter(pharmacy_id=pharmacy_id, referral_code=code).exists():
            return code
    raise InternalError("failed to generate unique referral code")


def validate_referral_code(*, pharmacy, code) -> ReferralCodeCheck:
    normalized = _normalize_code(code)
    if not normalized:
        return ReferralCodeCheck(valid=False, message="code is required")

    referrer = Customer.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), referral_code=normalized).first()
    if referrer is None:
        return ReferralCodeCheck(valid=False, message="invalid or expired code")

    name = (referrer.name or "").strip()
    first_name = name.split(" ")[0] if name else "A friend"
    return ReferralCodeCheck(valid=True, name=first_name)


# =========================================================
# CUSTOMERS
# =========================================================
@transaction.atomic
def get_or_create_customer(*, pharmacy, phone, name="", email="") -> Customer:
    phone = (phone or "").strip()
    if not phone:
        raise ValidationError("phone is required to identify customer")

    name = (name or "").strip()
    email = (email or "").strip()
    pharmacy_id = _pharmacy_id(pharmacy)

    customer = Customer.objects.select_for_update().filter(pharmacy_id=pharmacy_id, phone=phone).first()
    if customer is not None:
        update_fields = []
        if name:
            customer.name = name
            update_fields.append("name")
        if email:
            customer.email = email
            update_fields.append("email")
        if not customer.referral_code:
            customer.referral_code = generate_referral_code(pharmacy_id)
            update_fields.append("referral_code")
        if update_fields:
            customer.save(update_fields=[*update_fields, "updated_at"])
        return customer

    try:
        with transaction.atomic():
            return Customer.objects.create(
                pharmacy_id=pharmacy_id,
                name=name,
                phone=phone,
                email=email,
                referral_code=generate_referral_code(pharmacy_id),
                points_balance=0,
            )
    except IntegrityError:
        # lost a race with a concurrent first order for the same phone
        return Customer.objects.select_for_update().get(pharmacy_id=pharmacy_id, phone=phone)


def get_customer_by_phone(*, pharmacy, phone) -> Optional[Customer]:
    phone = (phone or "").strip()
    if not phone:
        return None
    return Customer.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), phone=phone).first()


def get_customer_by_phone_with_membership(*, pharmacy, phone) -> Optional[CustomerWithMembership]:
    customer = get_customer_by_phone(pharmacy=pharmacy, phone=phone)
    if customer is None:
        return None

    assignment = (
        CustomerMembership.objects.select_related("membership").filter(customer=customer).first()
    )
    membership = assignment.membership if assignment and assignment.membership.is_active else None
    return CustomerWithMembership(customer=customer, membership=membership)


def list_customers(*, pharmacy, limit=50, offset=0):
    """Returns (rows, total)."""
    qs = Customer.objects.filter(pharmacy_id=_pharmacy_id(pharmacy)).order_by("-created_at")
    limit = max(int(limit or 0), 1)
    offset = max(int(offset or 0), 0)
    return list(qs[offset:offset + limit]), qs.count()


def list_points_transactions(*, customer_id, limit=DEFAULT_TRANSACTIONS_LIMIT, offset=0):
    limit = int(limit or 0)
    if limit <= 0:
        limit = DEFAULT_TRANSACTIONS_LIMIT
    offset = max(int(offset or 0), 0)
    qs = PointsTransaction.objects.filter(customer_id=customer_id).order_by("-created_at")
    return list(qs[offset:offset + limit])


# =========================================================
# CONFIG
# =========================================================
def get_config(pharmacy) -> Optional[ReferralPointsConfig]:
    return ReferralPointsConfig.objects.filter(pharmacy_id=_pharmacy_id(pharmacy)).first()


def get_or_create_config(pharmacy) -> ReferralPointsConfig:
    config, _ = ReferralPointsConfig.objects.get_or_create(
        pharmacy_id=_pharmacy_id(pharmacy),
        defaults=dict(DEFAULT_CONFIG),
    )
    return config


@transaction.atomic
def upsert_config(*, pharmacy, **values) -> ReferralPointsConfig:
    unknown = set(values) - set(DEFAULT_CONFIG)
    if unknown:
        raise ValidationError(f"unknown config fields: {', '.join(sorted(unknown))}")

    for key in ("redemption_rate_points", "referral_reward_points", "max_redeem_points_per_order"):
        if key in values and to_int_qty(values[key], field_name=key) < 0:
            raise ValidationError(f"{key} cannot be negative")
    for key in ("points_per_currency_unit", "currency_unit_for_points", "redemption_rate_currency"):
        if key in values and Decimal(str(values[key])) < 0:
            raise ValidationError(f"{key} cannot be negative")
    if "redemption_rate_points" in values and to_int_qty(values["redemption_rate_points"], field_name="redemption_rate_points") <= 0:
        raise ValidationError("redemption_rate_points must be positive")
    if "redemption_rate_currency" in values and Decimal(str(values["redemption_rate_currency"])) <= 0:
        raise ValidationError("redemption_rate_currency must be positive")

    config = get_or_create_config(pharmacy)
    config = ReferralPointsConfig.objects.select_for_update().get(id=config.id)
    for key, value in values.items():
        setattr(config, key, value)
    config.save()
    return config


# =========================================================
# REDEMPTION
# =========================================================
def compute_redeem_discount(*, pharmacy, customer_id, points_requested, subtotal) -> RedeemPreview:
    customer = Customer.objects.filter(id=customer_id).first()
    if customer is None:
        raise NotFoundError("customer")

    config = get_config(pharmacy)
    points = to_int_qty(points_requested, field_name="points")
    if config is None or points <= 0:
        return RedeemPreview(points_balance=customer.points_balance)

    balance = int(customer.points_balance)
    cap = int(config.max_redeem_points_per_order or 0)
    max_redeemable = min(balance, cap) if cap > 0 else balance

    points = min(points, max_redeemable)
    if points <= 0:
        return RedeemPreview(max_redeemable=max_redeemable, points_balance=balance)

    rate_points = int(config.redemption_rate_points or 0)
    if rate_points <= 0:
        raise ValidationError("invalid redemption rate")
    rate_currency = money(config.redemption_rate_currency)
    if rate_currency <= ZERO:
        raise ValidationError("invalid redemption rate")
    subtotal = money(subtotal)

    units = points // rate_points
    discount = money(units * rate_currency)

    if discount > subtotal:
        units = int(subtotal // rate_currency)
        discount = money(units * rate_currency)

    points_redeemed = units * rate_points

    return RedeemPreview(
        discount_amount=discount,
        points_redeemed=points_redeemed,
        max_redeemable=max_redeemable,
        points_balance=balance - points_redeemed,
    )


def _attach_referral(*, customer: Customer, pharmacy_id, code: str) -> str:
    """First referral wins; self-referral and unknown codes are ignored."""
    if not code or customer.referred_by_id is not None:
        return ""

    referrer = Customer.objects.filter(pharmacy_id=pharmacy_id, referral_code=code).first()
    if referrer is None or referrer.id == customer.id:
        return ""

    updated = Customer.objects.filter(id=customer.id, referred_by__isnull=True).update(referred_by=referrer)
    if not updated:
        return ""

    customer.referred_by = referrer
    return code


@transaction.atomic
def prepare_order_referral_and_points(
    *,
    pharmacy,
    customer_name="",
    customer_phone="",
    customer_email="",
    referral_code=None,
    points_to_redeem=None,
    subtotal,
) -> LoyaltyPreparation:
    config = get_config(pharmacy)
    if config is None:
        return LoyaltyPreparation()

    wants_points = points_to_redeem is not None and to_int_qty(points_to_redeem, field_name="points") > 0
    if not (customer_phone or "").strip():
        if _normalize_code(referral_code) or wants_points:
            raise ValidationError("phone is required to identify customer")
        return LoyaltyPreparation()

    customer = get_or_create_customer(
        pharmacy=pharmacy,
        phone=customer_phone,
        name=customer_name,
        email=customer_email,
    )

    referral_code_used = _attach_referral(
        customer=customer,
        pharmacy_id=_pharmacy_id(pharmacy),
        code=_normalize_code(referral_code),
    )

    points_redeemed = 0
    discount_from_points = ZERO
    if wants_points:
        preview = compute_redeem_discount(
            pharmacy=pharmacy,
            customer_id=customer.id,
            points_requested=points_to_redeem,
            subtotal=subtotal,
        )
        if preview.points_redeemed > 0:
            points_redeemed = preview.points_redeemed
            discount_from_points = preview.discount_amount

    return LoyaltyPreparation(
        customer=customer,
        referral_code_used=referral_code_used,
        points_redeemed=points_redeemed,
        discount_from_points=discount_from_points,
    )


@transaction.atomic
def apply_points_redeem(*, order, customer_id, points) -> None:
    points = to_int_qty(points, field_name="points")
    if points <= 0:
        return

    customer = Customer.objects.select_for_update().filter(id=customer_id).first()
    if customer is None:
        raise NotFoundError("customer")
    if customer.points_balance < points:
        raise ValidationError("insufficient points balance")

    Customer.objects.filter(id=customer.id).update(points_balance=F("points_balance") - points)
    PointsTransaction.objects.create(
        customer=customer,
        amount=-points,
        type=PointsTransaction.TYPE_REDEEM,
        order=order,
    )

    logger.info(
        "Points redeemed",
        extra={"customer_id": str(customer.id), "order_id": str(order.id), "points": points},
    )


# =========================================================
# COMPLETION HOOK
# =========================================================
def _credit(*, customer_id, amount: int, kind: str, order, referral_customer_id=None) -> None:
    customer = Customer.objects.select_for_update().get(id=customer_id)
    Customer.objects.filter(id=customer.id).update(points_balance=F("points_balance") + amount)
    PointsTransaction.objects.create(
        customer=customer,
        amount=amount,
        type=kind,
        order=order,
        referral_customer_id=referral_customer_id,
    )


@transaction.atomic
def on_order_completed(order) -> None:
    """
    Purchase points for the order's customer, then the one-time referral
    reward when this is the customer's first completed order.
    """
    config = get_config(order.pharmacy_id)
    if config is None or order.customer_id is None:
        return

    earned = earned_points(
        order.total_amount,
        currency_unit=config.currency_unit_for_points,
        points_per_unit=config.points_per_currency_unit,
    )
    if earned > 0:
        _credit(
            customer_id=order.customer_id,
            amount=earned,
            kind=PointsTransaction.TYPE_EARN_PURCHASE,
            order=order,
        )
        logger.info(
            "Purchase points credited",
            extra={"order_id": str(order.id), "customer_id": str(order.customer_id), "points": earned},
        )

    code = _normalize_code(order.referral_code_used)
    if not code:
        return

    Order = apps.get_model("orders", "Order")
    completed = Order.objects.filter(
        pharmacy_id=order.pharmacy_id,
        customer_id=order.customer_id,
        status=Order.STATUS_COMPLETED,
    ).count()
    if completed != 1:
        return

    referrer = Customer.objects.filter(pharmacy_id=order.pharmacy_id, referral_code=code).first()
    if referrer is None or referrer.id == order.customer_id:
        return

    reward = int(config.referral_reward_points or 0)
    if reward > 0:
        _credit(
            customer_id=referrer.id,
            amount=reward,
            kind=PointsTransaction.TYPE_EARN_REFERRAL,
            order=order,
            referral_customer_id=order.customer_id,
        )
        logger.info(
            "Referral reward credited",
            extra={"order_id": str(order.id), "referrer_id": str(referrer.id), "points": reward},
        )
