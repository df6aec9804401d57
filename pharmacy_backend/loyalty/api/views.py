"""
======================================================
PATH: loyalty/api/views.py
======================================================
LOYALTY API

- referral points config (GET / PUT)
- staff points config (GET / PUT)
- referral code check, redemption preview
- customer lookups + points ledger
- memberships (list / create / update / assign)

Security:
- read endpoints: loyalty.view
- config + membership writes: loyalty.manage
- every call is scoped to request.user.pharmacy
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.exceptions import ForbiddenError, NotFoundError
from loyalty.api.serializers import (
    CustomerSerializer,
    MembershipAssignSerializer,
    MembershipSerializer,
    PointsTransactionSerializer,
    RedeemPreviewRequestSerializer,
    RedeemPreviewSerializer,
    ReferralPointsConfigSerializer,
    ReferralValidateSerializer,
    StaffPointsConfigSerializer,
)
from loyalty.models import Customer
from loyalty.services import memberships, referral_points, staff_points
from permissions.roles import (
    CAP_LOYALTY_MANAGE,
    CAP_LOYALTY_VIEW,
    HasCapability,
    get_request_pharmacy,
)


class _LoyaltyView(GenericAPIView):
    """GET needs loyalty.view, anything else loyalty.manage."""

    permission_classes = [IsAuthenticated]
    required_capability = None
    write_capability = CAP_LOYALTY_MANAGE

    def get_permissions(self):
        if self.request.method in ("GET", "HEAD", "OPTIONS"):
            self.required_capability = CAP_LOYALTY_VIEW
        else:
            self.required_capability = self.write_capability
        return [IsAuthenticated(), HasCapability()]


class ReferralPointsConfigView(_LoyaltyView):
    serializer_class = ReferralPointsConfigSerializer

    def get(self, request):
        config = referral_points.get_config(get_request_pharmacy(request))
        if config is None:
            raise NotFoundError("referral points config")
        return Response(self.get_serializer(config).data)

    def put(self, request):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        config = referral_points.upsert_config(
            pharmacy=get_request_pharmacy(request),
            **serializer.validated_data,
        )
        return Response(self.get_serializer(config).data)


class StaffPointsConfigView(_LoyaltyView):
    serializer_class = StaffPointsConfigSerializer

    def get(self, request):
        config = staff_points.get_staff_points_config(get_request_pharmacy(request))
        if config is None:
            raise NotFoundError("staff points config")
        return Response(self.get_serializer(config).data)

    def put(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        config = staff_points.upsert_staff_points_config(
            pharmacy=get_request_pharmacy(request),
            points_per_currency_unit=serializer.validated_data["points_per_currency_unit"],
            currency_unit_for_points=serializer.validated_data["currency_unit_for_points"],
        )
        return Response(self.get_serializer(config).data)


class ReferralValidateView(_LoyaltyView):
    serializer_class = ReferralValidateSerializer
    write_capability = CAP_LOYALTY_VIEW

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = referral_points.validate_referral_code(
            pharmacy=get_request_pharmacy(request),
            code=serializer.validated_data["code"],
        )
        return Response({"valid": result.valid, "name": result.name, "message": result.message})


class RedeemPreviewView(_LoyaltyView):
    serializer_class = RedeemPreviewRequestSerializer
    write_capability = CAP_LOYALTY_VIEW

    @extend_schema(request=RedeemPreviewRequestSerializer, responses=RedeemPreviewSerializer)
    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        pharmacy = get_request_pharmacy(request)

        if not Customer.objects.filter(id=data["customer_id"], pharmacy=pharmacy).exists():
            raise NotFoundError("customer")

        preview = referral_points.compute_redeem_discount(
            pharmacy=pharmacy,
            customer_id=data["customer_id"],
            points_requested=data["points"],
            subtotal=data["subtotal"],
        )
        return Response(RedeemPreviewSerializer(preview).data)


class CustomerViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_LOYALTY_VIEW

    def list(self, request):
        try:
            limit = int(request.query_params.get("limit") or 50)
            offset = int(request.query_params.get("offset") or 0)
        except ValueError:
            limit, offset = 50, 0

        rows, total = referral_points.list_customers(
            pharmacy=get_request_pharmacy(request),
            limit=limit,
            offset=offset,
        )
        return Response({"count": total, "results": CustomerSerializer(rows, many=True).data})

    @action(detail=False, methods=["get"], url_path="by-phone")
    def by_phone(self, request):
        found = referral_points.get_customer_by_phone_with_membership(
            pharmacy=get_request_pharmacy(request),
            phone=request.query_params.get("phone"),
        )
        if found is None:
            raise NotFoundError("customer")

        membership = found.membership
        return Response(
            {
                "customer": CustomerSerializer(found.customer).data,
                "membership": (
                    {"id": str(membership.id), "name": membership.name} if membership is not None else None
                ),
            }
        )

    @action(detail=True, methods=["get"])
    def transactions(self, request, pk=None):
        customer = Customer.objects.filter(id=pk).first()
        if customer is None:
            raise NotFoundError("customer")
        if customer.pharmacy_id != get_request_pharmacy(request).id:
            raise ForbiddenError("customer does not belong to this pharmacy")

        try:
            limit = int(request.query_params.get("limit") or 0)
            offset = int(request.query_params.get("offset") or 0)
        except ValueError:
            limit, offset = 0, 0

        rows = referral_points.list_points_transactions(customer_id=customer.id, limit=limit, offset=offset)
        return Response(PointsTransactionSerializer(rows, many=True).data)


class MembershipViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    required_capability = None

    def get_permissions(self):
        self.required_capability = CAP_LOYALTY_VIEW if self.action == "list" else CAP_LOYALTY_MANAGE
        return [IsAuthenticated(), HasCapability()]

    def list(self, request):
        qs = memberships.list_memberships(pharmacy=get_request_pharmacy(request))
        return Response(MembershipSerializer(qs, many=True).data)

    def create(self, request):
        serializer = MembershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        membership = memberships.create_membership(
            pharmacy=get_request_pharmacy(request),
            **serializer.validated_data,
        )
        return Response(MembershipSerializer(membership).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = MembershipSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        membership = memberships.update_membership(
            membership_id=pk,
            pharmacy=get_request_pharmacy(request),
            **serializer.validated_data,
        )
        return Response(MembershipSerializer(membership).data)

    @action(detail=False, methods=["post"])
    def assign(self, request):
        serializer = MembershipAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        pharmacy = get_request_pharmacy(request)

        membership = memberships.get_membership(
            membership_id=serializer.validated_data["membership_id"],
            pharmacy=pharmacy,
        )
        assignment = memberships.assign_membership(
            customer_id=serializer.validated_data["customer_id"],
            membership_id=membership.id,
        )
        return Response(
            {"customer_id": str(assignment.customer_id), "membership_id": str(assignment.membership_id)},
            status=status.HTTP_200_OK,
        )
