# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission

from common.exceptions import ForbiddenError


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# Must stay in step with users.models.User.ROLE_CHOICES.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_PHARMACIST = "pharmacist"
ROLE_CASHIER = "cashier"
ROLE_CUSTOMER = "customer"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_PHARMACIST,
    ROLE_CASHIER,
}


# =========================================================
# CAPABILITIES
# =========================================================
# Views protect capabilities, not raw roles.
CAP_ORDERS_CREATE = "orders.create"
CAP_ORDERS_VIEW = "orders.view"
CAP_ORDERS_MANAGE = "orders.manage"           # accept / status transitions

CAP_PROMOTIONS_VIEW = "promotions.view"
CAP_PROMOTIONS_MANAGE = "promotions.manage"

CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"

CAP_LOYALTY_VIEW = "loyalty.view"
CAP_LOYALTY_MANAGE = "loyalty.manage"         # referral / staff points config, memberships

ALL_CAPABILITIES = {
    CAP_ORDERS_CREATE,
    CAP_ORDERS_VIEW,
    CAP_ORDERS_MANAGE,
    CAP_PROMOTIONS_VIEW,
    CAP_PROMOTIONS_MANAGE,
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_LOYALTY_VIEW,
    CAP_LOYALTY_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        *ALL_CAPABILITIES,
    },
    ROLE_PHARMACIST: {
        CAP_ORDERS_CREATE,
        CAP_ORDERS_VIEW,
        CAP_ORDERS_MANAGE,
        CAP_PROMOTIONS_VIEW,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_LOYALTY_VIEW,
    },
    ROLE_CASHIER: {
        CAP_ORDERS_CREATE,
        CAP_ORDERS_VIEW,
        CAP_PROMOTIONS_VIEW,
        CAP_LOYALTY_VIEW,
    },
    ROLE_CUSTOMER: set(),
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def get_request_pharmacy(request):
    """
    Tenant resolution: staff act on behalf of their own pharmacy.

    Raises ForbiddenError when the caller is not attached to a pharmacy.
    """
    user = getattr(request, "user", None)
    pharmacy = getattr(user, "pharmacy", None) if user else None
    if pharmacy is None:
        raise ForbiddenError("user is not assigned to a pharmacy")
    return pharmacy


# =========================================================
# Capability Permission
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_ORDERS_CREATE
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default
            return False

        return required in effective_capabilities_for(user)


class IsStaff(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return get_user_role(user) in STAFF_ROLES
