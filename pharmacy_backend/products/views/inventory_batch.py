"""
======================================================
PATH: products/views/inventory_batch.py
======================================================
INVENTORY BATCH VIEWSET

Purpose:
- Receive / edit / delete InventoryBatch rows for the caller's pharmacy.
- Expiring-soon dashboard listing.

RULES:
- Every quantity change goes through products.services.inventory so that
  Product.stock_quantity stays synchronized with the batches.
- PUT is not supported; PATCH carries quantity and/or expiry_date.
"""

from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.exceptions import ValidationError
from permissions.roles import (
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasCapability,
    get_request_pharmacy,
)
from products.serializers import InventoryBatchSerializer, InventoryBatchWriteSerializer
from products.services import inventory

DEFAULT_EXPIRY_WINDOW_DAYS = 30


class InventoryBatchViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    required_capability = None

    def get_permissions(self):
        # reset per request
        self.required_capability = None

        if self.action in {"list", "retrieve", "expiring_soon"}:
            self.required_capability = CAP_INVENTORY_VIEW
        else:
            self.required_capability = CAP_INVENTORY_EDIT
        return [IsAuthenticated(), HasCapability()]

    def list(self, request):
        pharmacy = get_request_pharmacy(request)

        product_id = (request.query_params.get("product_id") or "").strip()
        if product_id:
            qs = inventory.list_batches_by_product(product_id=product_id).filter(pharmacy=pharmacy)
        else:
            qs = inventory.list_batches_by_pharmacy(pharmacy=pharmacy)

        return Response(InventoryBatchSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        batch = inventory.get_batch(batch_id=pk, pharmacy=get_request_pharmacy(request))
        return Response(InventoryBatchSerializer(batch).data)

    def create(self, request):
        serializer = InventoryBatchWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        batch = inventory.add_batch(
            pharmacy=get_request_pharmacy(request),
            product_id=v["product_id"],
            batch_number=v.get("batch_number", ""),
            quantity=v["quantity"],
            expiry_date=v.get("expiry_date"),
        )
        return Response(InventoryBatchSerializer(batch).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        return Response(
            {"detail": "PUT is not allowed for inventory batches. Use PATCH."},
            status=status.HTTP_405_METHOD_NOT_ALLOWED,
        )

    def partial_update(self, request, pk=None):
        serializer = InventoryBatchWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        batch = inventory.update_batch(
            batch_id=pk,
            quantity=v.get("quantity"),
            expiry_date=v.get("expiry_date"),
            pharmacy=get_request_pharmacy(request),
        )
        return Response(InventoryBatchSerializer(batch).data)

    def destroy(self, request, pk=None):
        inventory.delete_batch(batch_id=pk, pharmacy=get_request_pharmacy(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="expiring-soon")
    def expiring_soon(self, request):
        raw_days = request.query_params.get("days")
        try:
            days = int(raw_days) if raw_days not in (None, "") else DEFAULT_EXPIRY_WINDOW_DAYS
        except (TypeError, ValueError) as exc:
            raise ValidationError("days must be a non-negative integer") from exc

        qs = inventory.list_expiring_soon(pharmacy=get_request_pharmacy(request), days=days)
        return Response(InventoryBatchSerializer(qs, many=True).data)
