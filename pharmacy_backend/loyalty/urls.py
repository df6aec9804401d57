# loyalty/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from loyalty.api.views import (
    CustomerViewSet,
    MembershipViewSet,
    RedeemPreviewView,
    ReferralPointsConfigView,
    ReferralValidateView,
    StaffPointsConfigView,
)

router = DefaultRouter()
router.register("customers", CustomerViewSet, basename="loyalty-customers")
router.register("memberships", MembershipViewSet, basename="memberships")

urlpatterns = [
    path("", include(router.urls)),
    path("config/", ReferralPointsConfigView.as_view(), name="referral-points-config"),
    path("staff-config/", StaffPointsConfigView.as_view(), name="staff-points-config"),
    path("referral/validate/", ReferralValidateView.as_view(), name="referral-validate"),
    path("redeem/preview/", RedeemPreviewView.as_view(), name="redeem-preview"),
]
