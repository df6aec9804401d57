# promotions/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from promotions.api.views import PromoCodeViewSet

router = DefaultRouter()
router.register(r"promo-codes", PromoCodeViewSet, basename="promo-codes")

urlpatterns = [
    path("", include(router.urls)),
]
