"""
======================================================
PATH: orders/api/views.py
======================================================
ORDERS API

- GET  /orders/              list (staff without orders.manage see only
                             the orders they created)
- POST /orders/              price + create an order
- GET  /orders/{id}/         retrieve
- POST /orders/{id}/status/  move through the lifecycle
- POST /orders/{id}/accept/  pending -> confirmed

All business rules live in orders.services.order_service.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orders.api.serializers import OrderCreateSerializer, OrderSerializer, OrderStatusSerializer
from orders.services import order_service
from orders.services.order_service import OrderItemInput
from permissions.roles import (
    CAP_ORDERS_CREATE,
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_VIEW,
    HasCapability,
    effective_capabilities_for,
    get_request_pharmacy,
)


class OrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    required_capability = None

    def get_permissions(self):
        self.required_capability = None

        if self.action == "create":
            self.required_capability = CAP_ORDERS_CREATE
        elif self.action in {"status", "accept"}:
            self.required_capability = CAP_ORDERS_MANAGE
        else:
            self.required_capability = CAP_ORDERS_VIEW
        return [IsAuthenticated(), HasCapability()]

    @extend_schema(
        parameters=[OpenApiParameter("status", str, required=False)],
        responses=OrderSerializer(many=True),
    )
    def list(self, request):
        created_by = None
        if CAP_ORDERS_MANAGE not in effective_capabilities_for(request.user):
            created_by = request.user

        orders = order_service.list_orders(
            pharmacy=get_request_pharmacy(request),
            created_by=created_by,
            status=request.query_params.get("status") or None,
        )
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(request=OrderCreateSerializer, responses=OrderSerializer)
    def create(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        items = [OrderItemInput(**item) for item in data.pop("items")]
        order = order_service.create_order(
            pharmacy=get_request_pharmacy(request),
            created_by=request.user,
            items=items,
            **data,
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses=OrderSerializer)
    def retrieve(self, request, pk=None):
        order = order_service.get_order(order_id=pk, pharmacy=get_request_pharmacy(request))
        return Response(OrderSerializer(order).data)

    @extend_schema(request=OrderStatusSerializer, responses=OrderSerializer)
    @action(detail=True, methods=["post"])
    def status(self, request, pk=None):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pharmacy = get_request_pharmacy(request)
        order_service.update_order_status(
            order_id=pk,
            status=serializer.validated_data["status"],
            pharmacy=pharmacy,
        )
        order = order_service.get_order(order_id=pk, pharmacy=pharmacy)
        return Response(OrderSerializer(order).data)

    @extend_schema(request=None, responses=OrderSerializer)
    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        pharmacy = get_request_pharmacy(request)
        order_service.accept_order(order_id=pk, pharmacy=pharmacy)
        order = order_service.get_order(order_id=pk, pharmacy=pharmacy)
        return Response(OrderSerializer(order).data)
