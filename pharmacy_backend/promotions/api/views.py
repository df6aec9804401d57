"""
======================================================
PATH: promotions/api/views.py
======================================================
PROMO CODE API

- list / retrieve / create / update promo codes for the caller's pharmacy
- POST validate/ : preview a code against a subtotal (no side effects)

Deleting a promo code is not supported; deactivate it instead.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from permissions.roles import (
    CAP_PROMOTIONS_MANAGE,
    CAP_PROMOTIONS_VIEW,
    HasCapability,
    get_request_pharmacy,
)
from promotions.api.serializers import (
    PromoCodeSerializer,
    PromoValidateRequestSerializer,
    PromoValidateResponseSerializer,
)
from promotions.services import promo_codes


class PromoCodeViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    required_capability = None

    def get_permissions(self):
        self.required_capability = None

        if self.action in {"list", "retrieve", "validate"}:
            self.required_capability = CAP_PROMOTIONS_VIEW
        else:
            self.required_capability = CAP_PROMOTIONS_MANAGE
        return [IsAuthenticated(), HasCapability()]

    def list(self, request):
        active_only = (request.query_params.get("active") or "").strip().lower() in ("1", "true", "yes")
        qs = promo_codes.list_promo_codes(pharmacy=get_request_pharmacy(request), active_only=active_only)
        return Response(PromoCodeSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        promo = promo_codes.get_promo_code(promo_code_id=pk, pharmacy=get_request_pharmacy(request))
        return Response(PromoCodeSerializer(promo).data)

    def create(self, request):
        serializer = PromoCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        promo = promo_codes.create_promo_code(
            pharmacy=get_request_pharmacy(request),
            **serializer.validated_data,
        )
        return Response(PromoCodeSerializer(promo).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        return self._update(request, pk, partial=False)

    def partial_update(self, request, pk=None):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, *, partial):
        serializer = PromoCodeSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        promo = promo_codes.update_promo_code(
            promo_code_id=pk,
            pharmacy=get_request_pharmacy(request),
            **serializer.validated_data,
        )
        return Response(PromoCodeSerializer(promo).data)

    @extend_schema(request=PromoValidateRequestSerializer, responses=PromoValidateResponseSerializer)
    @action(detail=False, methods=["post"])
    def validate(self, request):
        serializer = PromoValidateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = promo_codes.validate_promo_code(
            pharmacy=get_request_pharmacy(request),
            code=serializer.validated_data["code"],
            subtotal=serializer.validated_data["subtotal"],
            user=request.user,
        )
        return Response(PromoValidateResponseSerializer(result).data)
