"""
PATH: loyalty/models/__init__.py

Loyalty models export surface.
"""

from .config import ReferralPointsConfig, StaffPointsConfig
from .customer import Customer
from .membership import CustomerMembership, Membership
from .points_transaction import PointsTransaction

__all__ = [
    "Customer",
    "Membership",
    "CustomerMembership",
    "PointsTransaction",
    "ReferralPointsConfig",
    "StaffPointsConfig",
]
