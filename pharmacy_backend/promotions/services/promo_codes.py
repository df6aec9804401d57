# promotions/services/promo_codes.py

"""
PROMO CODE SERVICE

PURPOSE:
- Validate a promo code against an order subtotal and compute its discount.
- Maintain promo codes (create / update / list).
- Count usages with a guarded atomic UPDATE.

VALIDATION ORDER (first failure wins):
1. code present
2. exists for the pharmacy
3. active
4. inside [valid_from, valid_until]
5. usage limit not reached
6. first-order-only rule
7. minimum order amount

GUARANTEES:
- validate_promo_code() has NO side effects.
- used_count never exceeds max_uses when max_uses > 0, even under
  concurrent checkouts (the limit is enforced in the UPDATE itself).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.apps import apps
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from common.money import ZERO, money
from promotions.models import PromoCode

logger = logging.getLogger(__name__)

VALID_DISCOUNT_TYPES = {PromoCode.TYPE_PERCENT, PromoCode.TYPE_FIXED}

_EDITABLE_FIELDS = (
    "code",
    "discount_type",
    "discount_value",
    "min_order_amount",
    "valid_from",
    "valid_until",
    "max_uses",
    "is_active",
    "first_order_only",
)


@dataclass(frozen=True)
class PromoValidation:
    code: str
    discount_amount: Decimal
    promo_code_id: object


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def _pharmacy_id(pharmacy):
    return getattr(pharmacy, "id", pharmacy)


def _has_orders_at(*, user, pharmacy) -> bool:
    Order = apps.get_model("orders", "Order")
    return Order.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), created_by=user).exists()


def compute_discount(promo: PromoCode, subtotal) -> Decimal:
    subtotal = money(subtotal)
    value = money(promo.discount_value)

    if promo.discount_type == PromoCode.TYPE_PERCENT:
        discount = money(subtotal * value / Decimal("100"))
    else:
        discount = min(value, subtotal)

    return min(discount, subtotal)


# =========================================================
# VALIDATION
# =========================================================
def validate_promo_code(*, pharmacy, code, subtotal, user=None) -> PromoValidation:
    normalized = normalize_code(code)
    if not normalized:
        raise ValidationError("promo code is required")

    promo = PromoCode.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), code=normalized).first()
    if promo is None:
        raise NotFoundError("promo code")

    if not promo.is_active:
        raise ValidationError("promo code is not active")

    now = timezone.now()
    if now < promo.valid_from:
        raise ValidationError("promo code is not yet valid")
    if now > promo.valid_until:
        raise ValidationError("promo code has expired")

    if promo.max_uses > 0 and promo.used_count >= promo.max_uses:
        raise ValidationError("promo code has reached maximum uses")

    if promo.first_order_only:
        if user is None or not getattr(user, "is_authenticated", True):
            raise ValidationError("this code is for first order only; please log in")
        if _has_orders_at(user=user, pharmacy=pharmacy):
            raise ValidationError("this code is for first order only")

    subtotal = money(subtotal)
    min_amount = money(promo.min_order_amount)
    if min_amount > ZERO and subtotal < min_amount:
        raise ValidationError("order subtotal is below minimum for this promo")

    discount = compute_discount(promo, subtotal)
    if discount <= ZERO:
        raise ValidationError("promo does not apply to this order")

    return PromoValidation(code=promo.code, discount_amount=discount, promo_code_id=promo.id)


# =========================================================
# USAGE COUNTER
# =========================================================
def increment_used_count(*, promo_code_id) -> None:
    """
    Single guarded UPDATE: never pushes used_count past max_uses.
    """
    updated = (
        PromoCode.objects.filter(id=promo_code_id)
        .filter(Q(max_uses=0) | Q(used_count__lt=F("max_uses")))
        .update(used_count=F("used_count") + 1)
    )
    if updated == 0:
        raise ValidationError("promo code has reached maximum uses")


# =========================================================
# MAINTENANCE
# =========================================================
def _validate_fields(*, code, discount_type, discount_value, valid_from, valid_until, max_uses, min_order_amount):
    if not code:
        raise ValidationError("code is required")
    if discount_type not in VALID_DISCOUNT_TYPES:
        raise ValidationError("discount_type must be percent or fixed")
    if money(discount_value) <= ZERO:
        raise ValidationError("discount_value must be positive")
    if discount_type == PromoCode.TYPE_PERCENT and money(discount_value) > Decimal("100"):
        raise ValidationError("percent discount cannot exceed 100")
    if money(min_order_amount) < ZERO:
        raise ValidationError("min_order_amount cannot be negative")
    if max_uses is not None and int(max_uses) < 0:
        raise ValidationError("max_uses cannot be negative")
    if valid_from is None or valid_until is None:
        raise ValidationError("valid_from and valid_until are required")
    if valid_until <= valid_from:
        raise ValidationError("valid_until must be after valid_from")


@transaction.atomic
def create_promo_code(
    *,
    pharmacy,
    code,
    discount_type,
    discount_value,
    valid_from,
    valid_until,
    min_order_amount=ZERO,
    max_uses=0,
    is_active=True,
    first_order_only=False,
) -> PromoCode:
    normalized = normalize_code(code)
    _validate_fields(
        code=normalized,
        discount_type=discount_type,
        discount_value=discount_value,
        valid_from=valid_from,
        valid_until=valid_until,
        max_uses=max_uses,
        min_order_amount=min_order_amount,
    )

    if PromoCode.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), code=normalized).exists():
        raise ConflictError("promo code already exists")

    try:
        promo = PromoCode.objects.create(
            pharmacy_id=_pharmacy_id(pharmacy),
            code=normalized,
            discount_type=discount_type,
            discount_value=money(discount_value),
            min_order_amount=money(min_order_amount),
            valid_from=valid_from,
            valid_until=valid_until,
            max_uses=int(max_uses or 0),
            is_active=bool(is_active),
            first_order_only=bool(first_order_only),
        )
    except IntegrityError as exc:
        raise ConflictError("promo code already exists") from exc

    logger.info(
        "Promo code created",
        extra={"promo_code_id": str(promo.id), "pharmacy_id": str(promo.pharmacy_id)},
    )
    return promo


@transaction.atomic
def update_promo_code(*, promo_code_id, pharmacy, **changes) -> PromoCode:
    """
    Full-field update; used_count is never touched.
    """
    promo = PromoCode.objects.select_for_update().filter(id=promo_code_id).first()
    if promo is None:
        raise NotFoundError("promo code")
    if promo.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("promo code does not belong to this pharmacy")

    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    for field, value in changes.items():
        setattr(promo, field, value)
    promo.code = normalize_code(promo.code)

    _validate_fields(
        code=promo.code,
        discount_type=promo.discount_type,
        discount_value=promo.discount_value,
        valid_from=promo.valid_from,
        valid_until=promo.valid_until,
        max_uses=promo.max_uses,
        min_order_amount=promo.min_order_amount,
    )

    clash = (
        PromoCode.objects.filter(pharmacy_id=promo.pharmacy_id, code=promo.code)
        .exclude(id=promo.id)
        .exists()
    )
    if clash:
        raise ConflictError("promo code already exists")

    promo.discount_value = money(promo.discount_value)
    promo.min_order_amount = money(promo.min_order_amount)
    promo.save(update_fields=[*changes.keys(), "code", "updated_at"])
    return promo


def get_promo_code(*, promo_code_id, pharmacy=None) -> PromoCode:
    promo = PromoCode.objects.filter(id=promo_code_id).first()
    if promo is None:
        raise NotFoundError("promo code")
    if pharmacy is not None and promo.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("promo code does not belong to this pharmacy")
    return promo


def list_promo_codes(*, pharmacy, active_only: bool = False):
    qs = PromoCode.objects.filter(pharmacy_id=_pharmacy_id(pharmacy))
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("-created_at")
