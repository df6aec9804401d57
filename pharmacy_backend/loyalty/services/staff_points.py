# loyalty/services/staff_points.py

"""
STAFF POINTS

Points for the staff member (order.created_by) when an order completes.

    points = floor(total / currency_unit_for_points) * points_per_currency_unit

- No StaffPointsConfig, or a zero rate, means nothing is credited.
- The config is READ here, never created implicitly.
- Called from the order status machine inside common.advisory, so a failure
  here never blocks order completion.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F

from common.exceptions import ValidationError
from common.money import earned_points
from loyalty.models import StaffPointsConfig

logger = logging.getLogger(__name__)


def get_staff_points_config(pharmacy) -> Optional[StaffPointsConfig]:
    return StaffPointsConfig.objects.filter(pharmacy_id=getattr(pharmacy, "id", pharmacy)).first()


@transaction.atomic
def upsert_staff_points_config(*, pharmacy, points_per_currency_unit, currency_unit_for_points) -> StaffPointsConfig:
    ppcu = Decimal(str(points_per_currency_unit))
    unit = Decimal(str(currency_unit_for_points))
    if ppcu < 0 or unit < 0:
        raise ValidationError("staff points rates cannot be negative")

    config, _ = StaffPointsConfig.objects.update_or_create(
        pharmacy_id=getattr(pharmacy, "id", pharmacy),
        defaults={
            "points_per_currency_unit": ppcu,
            "currency_unit_for_points": unit,
        },
    )
    return config


def compute_staff_points(config: Optional[StaffPointsConfig], total) -> int:
    if config is None:
        return 0

    return earned_points(
        total,
        currency_unit=config.currency_unit_for_points,
        points_per_unit=config.points_per_currency_unit,
    )


@transaction.atomic
def credit_staff_points(order) -> int:
    """Returns the number of points credited (0 when nothing applies)."""
    if not order.created_by_id:
        return 0

    points = compute_staff_points(get_staff_points_config(order.pharmacy_id), order.total_amount)
    if points <= 0:
        return 0

    User = get_user_model()
    User.objects.filter(id=order.created_by_id).update(points_balance=F("points_balance") + points)

    logger.info(
        "Staff points credited",
        extra={"order_id": str(order.id), "user_id": str(order.created_by_id), "points": points},
    )
    return points
