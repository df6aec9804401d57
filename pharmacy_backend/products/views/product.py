# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Staff product management for the caller's pharmacy (list / create / edit).
- Stock is read-only here; see InventoryBatchViewSet and the order pipeline.
"""

from django.db.models import Q
from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from common.exceptions import ConflictError
from permissions.roles import (
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasCapability,
    get_request_pharmacy,
)
from products.models import Product
from products.serializers import ProductSerializer


class ProductViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ProductSerializer
    filterset_fields = ["is_active"]
    permission_classes = [IsAuthenticated]
    required_capability = None

    def get_permissions(self):
        self.required_capability = None

        if self.action in {"list", "retrieve"}:
            self.required_capability = CAP_INVENTORY_VIEW
        else:
            self.required_capability = CAP_INVENTORY_EDIT
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        pharmacy = get_request_pharmacy(self.request)
        qs = Product.objects.filter(pharmacy=pharmacy).order_by("name")

        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(sku__icontains=q))

        return qs

    def perform_create(self, serializer):
        pharmacy = get_request_pharmacy(self.request)
        sku = serializer.validated_data["sku"]
        if Product.objects.filter(pharmacy=pharmacy, sku=sku).exists():
            raise ConflictError(f"product with sku {sku} already exists")

        serializer.save(
            pharmacy=pharmacy,
            currency=serializer.validated_data.get("currency") or pharmacy.currency,
        )
