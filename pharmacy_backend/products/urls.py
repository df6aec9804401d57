# products/urls.py

"""
PRODUCTS URLS

Registered under /api/products/:
    products/                      product CRUD (no delete)
    batches/                       inventory batches
    batches/expiring-soon/?days=N  expiry dashboard
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import InventoryBatchViewSet, ProductViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"batches", InventoryBatchViewSet, basename="inventory-batches")

urlpatterns = [
    path("", include(router.urls)),
]
