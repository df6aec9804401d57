# payments/services/payment_service.py

"""
PAYMENT SERVICE

- create_payment(): records a PENDING payment (amount > 0).
- complete_payment(): pending -> completed, stamps paid_at; completing twice
  is a conflict.
- record_mock_payment(): the checkout convenience used by the order pipeline
  when a payment gateway is chosen. It creates + completes a payment for the
  order total. The pipeline runs it as an advisory step, after commit.

Gateway code -> payment method:
    esewa, khalti -> wallet
    qr            -> qr
    cod           -> cod
    fonepay       -> fonepay
    anything else -> other
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from common.money import ZERO, money
from payments.models import Payment, PaymentGateway

logger = logging.getLogger("payments")

GATEWAY_METHODS = {
    "esewa": Payment.METHOD_WALLET,
    "khalti": Payment.METHOD_WALLET,
    "qr": Payment.METHOD_QR,
    "cod": Payment.METHOD_COD,
    "fonepay": Payment.METHOD_FONEPAY,
}

VALID_METHODS = {choice for choice, _ in Payment.METHOD_CHOICES}


def method_for_gateway(code) -> str:
    return GATEWAY_METHODS.get((code or "").strip().lower(), Payment.METHOD_OTHER)


def _pharmacy_id(pharmacy):
    return getattr(pharmacy, "id", pharmacy)


# =========================================================
# GATEWAYS
# =========================================================
def create_gateway(*, pharmacy, code, name, is_active=True, sort_order=0) -> PaymentGateway:
    code = (code or "").strip().lower()
    if not code:
        raise ValidationError("gateway code is required")
    if PaymentGateway.objects.filter(pharmacy_id=_pharmacy_id(pharmacy), code=code).exists():
        raise ConflictError("payment gateway already exists")

    return PaymentGateway.objects.create(
        pharmacy_id=_pharmacy_id(pharmacy),
        code=code,
        name=(name or code).strip(),
        is_active=is_active,
        sort_order=sort_order or 0,
    )


def list_gateways(*, pharmacy, active_only: bool = True):
    qs = PaymentGateway.objects.filter(pharmacy_id=_pharmacy_id(pharmacy))
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("sort_order", "name")


def get_active_gateway(*, gateway_id, pharmacy):
    """The gateway when it exists, is active and belongs to the pharmacy; else None."""
    return PaymentGateway.objects.filter(
        id=gateway_id,
        pharmacy_id=_pharmacy_id(pharmacy),
        is_active=True,
    ).first()


# =========================================================
# PAYMENTS
# =========================================================
@transaction.atomic
def create_payment(
    *,
    order,
    amount,
    method: str,
    gateway=None,
    reference: str = "",
    currency: str | None = None,
    created_by=None,
) -> Payment:
    amount = money(amount)
    if amount <= ZERO:
        raise ValidationError("amount must be positive")
    if method not in VALID_METHODS:
        raise ValidationError("invalid payment method")
    if gateway is not None and gateway.pharmacy_id != order.pharmacy_id:
        raise ForbiddenError("payment gateway does not belong to this pharmacy")

    payment = Payment.objects.create(
        order=order,
        pharmacy_id=order.pharmacy_id,
        gateway=gateway,
        amount=amount,
        currency=currency or order.currency or settings.DEFAULT_CURRENCY,
        method=method,
        status=Payment.STATUS_PENDING,
        reference=reference or "",
        created_by=created_by,
    )

    logger.info(
        "Payment created",
        extra={
            "payment_id": str(payment.id),
            "order_id": str(order.id),
            "amount": str(amount),
            "method": method,
        },
    )
    return payment


@transaction.atomic
def complete_payment(*, payment_id) -> Payment:
    payment = Payment.objects.select_for_update().filter(id=payment_id).first()
    if payment is None:
        raise NotFoundError("payment")
    if payment.status == Payment.STATUS_COMPLETED:
        raise ConflictError("payment already completed")
    if payment.status != Payment.STATUS_PENDING:
        raise ValidationError(f"cannot complete a {payment.status} payment")

    payment.status = Payment.STATUS_COMPLETED
    payment.paid_at = timezone.now()
    payment.save(update_fields=["status", "paid_at", "updated_at"])

    logger.info("Payment completed", extra={"payment_id": str(payment.id)})
    return payment


def get_payment(*, payment_id, pharmacy=None) -> Payment:
    payment = Payment.objects.filter(id=payment_id).first()
    if payment is None:
        raise NotFoundError("payment")
    if pharmacy is not None and payment.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("payment does not belong to this pharmacy")
    return payment


def list_payments_by_order(*, order_id):
    return Payment.objects.filter(order_id=order_id).order_by("created_at")


def list_payments_by_pharmacy(*, pharmacy):
    return Payment.objects.filter(pharmacy_id=_pharmacy_id(pharmacy)).order_by("-created_at")


@transaction.atomic
def record_mock_payment(*, order, gateway_id, created_by=None):
    """
    Create + complete a payment for the order total through the chosen gateway.

    Returns None (and records nothing) when mock payments are disabled, the
    order total is zero, or the gateway is missing / inactive / foreign.
    """
    if not getattr(settings, "MOCK_PAYMENTS_ENABLED", True):
        return None
    if money(order.total_amount) <= ZERO:
        return None

    gateway = get_active_gateway(gateway_id=gateway_id, pharmacy=order.pharmacy_id)
    if gateway is None:
        logger.info(
            "Mock payment skipped: gateway unavailable",
            extra={"order_id": str(order.id), "gateway_id": str(gateway_id)},
        )
        return None

    payment = create_payment(
        order=order,
        amount=order.total_amount,
        method=method_for_gateway(gateway.code),
        gateway=gateway,
        reference=f"MOCK-{order.order_number}",
        created_by=created_by,
    )
    return complete_payment(payment_id=payment.id)
