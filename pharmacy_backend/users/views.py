"""
PATH: users/views.py

STAFF PROFILE

GET /api/auth/me/ : who am I, which pharmacy do I act for, what may I do,
and how many staff points have my completed orders earned.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import effective_capabilities_for


class MeSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    email = serializers.EmailField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    role = serializers.CharField()
    pharmacy_id = serializers.UUIDField(allow_null=True)
    points_balance = serializers.IntegerField()
    capabilities = serializers.ListField(child=serializers.CharField())


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        responses={200: MeSerializer},
        description="Get current authenticated user profile",
    )
    def get(self, request):
        user = request.user

        return Response(
            MeSerializer(
                {
                    "id": user.id,
                    "email": user.email,
                    "first_name": user.first_name,
                    "last_name": user.last_name,
                    "role": user.role,
                    "pharmacy_id": user.pharmacy_id,
                    "points_balance": user.points_balance,
                    "capabilities": sorted(effective_capabilities_for(user)),
                }
            ).data
        )
