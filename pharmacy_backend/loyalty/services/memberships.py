# loyalty/services/memberships.py

"""
MEMBERSHIP SERVICE

- Pharmacy-defined membership tiers with a percentage discount (0..100).
- One membership per customer; assignment must stay within the pharmacy.
- get_active_membership_discount() is what the order pipeline reads.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import transaction

from common.exceptions import ForbiddenError, NotFoundError, ValidationError
from loyalty.models import Customer, CustomerMembership, Membership

_EDITABLE_FIELDS = ("name", "description", "discount_percent", "is_active", "sort_order")


def _pharmacy_id(pharmacy):
    return getattr(pharmacy, "id", pharmacy)


def _validate(*, name, discount_percent):
    if not (name or "").strip():
        raise ValidationError("membership name is required")

    pct = Decimal(str(discount_percent if discount_percent is not None else 0))
    if pct < 0 or pct > 100:
        raise ValidationError("discount percent must be between 0 and 100")


def create_membership(
    *,
    pharmacy,
    name,
    description="",
    discount_percent=Decimal("0"),
    is_active=True,
    sort_order=0,
) -> Membership:
    _validate(name=name, discount_percent=discount_percent)
    return Membership.objects.create(
        pharmacy_id=_pharmacy_id(pharmacy),
        name=name.strip(),
        description=description or "",
        discount_percent=Decimal(str(discount_percent)),
        is_active=is_active,
        sort_order=sort_order or 0,
    )


def get_membership(*, membership_id, pharmacy=None) -> Membership:
    membership = Membership.objects.filter(id=membership_id).first()
    if membership is None:
        raise NotFoundError("membership")
    if pharmacy is not None and membership.pharmacy_id != _pharmacy_id(pharmacy):
        raise ForbiddenError("membership does not belong to this pharmacy")
    return membership


@transaction.atomic
def update_membership(*, membership_id, pharmacy, **changes) -> Membership:
    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"cannot update fields: {', '.join(sorted(unknown))}")

    membership = get_membership(membership_id=membership_id, pharmacy=pharmacy)
    for field, value in changes.items():
        setattr(membership, field, value)

    _validate(name=membership.name, discount_percent=membership.discount_percent)
    membership.name = membership.name.strip()
    membership.save()
    return membership


def list_memberships(*, pharmacy, active_only: bool = False):
    qs = Membership.objects.filter(pharmacy_id=_pharmacy_id(pharmacy))
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("sort_order", "name")


@transaction.atomic
def assign_membership(*, customer_id, membership_id) -> CustomerMembership:
    customer = Customer.objects.filter(id=customer_id).first()
    if customer is None:
        raise NotFoundError("customer")

    membership = get_membership(membership_id=membership_id)
    if membership.pharmacy_id != customer.pharmacy_id:
        raise ForbiddenError("membership belongs to a different pharmacy")

    assignment, _ = CustomerMembership.objects.update_or_create(
        customer=customer,
        defaults={"membership": membership},
    )
    return assignment


def get_active_membership_discount(*, customer_id) -> Decimal:
    """Discount percent of the customer's membership, 0 when none / inactive."""
    assignment = (
        CustomerMembership.objects.select_related("membership")
        .filter(customer_id=customer_id)
        .first()
    )
    if assignment is None or not assignment.membership.is_active:
        return Decimal("0")
    return Decimal(assignment.membership.discount_percent)
