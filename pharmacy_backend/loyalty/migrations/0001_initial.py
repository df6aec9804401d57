# loyalty/migrations/0001_initial.py

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("pharmacies", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(max_length=50)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("referral_code", models.CharField(blank=True, db_index=True, max_length=16)),
                ("points_balance", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customers",
                        to="pharmacies.pharmacy",
                    ),
                ),
                (
                    "referred_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referrals",
                        to="loyalty.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("pharmacy", "phone"),
                        name="uniq_customer_phone_per_pharmacy",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("referral_code", ""), _negated=True),
                        fields=("pharmacy", "referral_code"),
                        name="uniq_customer_referral_code_per_pharmacy",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                (
                    "discount_percent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="pharmacies.pharmacy",
                    ),
                ),
            ],
            options={
                "ordering": ["sort_order", "name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("discount_percent__gte", 0), ("discount_percent__lte", 100)),
                        name="chk_membership_discount_percent_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CustomerMembership",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="membership_assignment",
                        to="loyalty.customer",
                    ),
                ),
                (
                    "membership",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customer_memberships",
                        to="loyalty.membership",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="PointsTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount", models.IntegerField()),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("earn_purchase", "Earned on purchase"),
                            ("earn_referral", "Earned by referral"),
                            ("redeem", "Redeemed"),
                        ],
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="points_transactions",
                        to="loyalty.customer",
                    ),
                ),
                (
                    "referral_customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_rewards",
                        to="loyalty.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "created_at"], name="loyalty_poi_custome_7d41a2_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferralPointsConfig",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("points_per_currency_unit", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=12)),
                ("currency_unit_for_points", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=12)),
                ("referral_reward_points", models.PositiveIntegerField(default=0)),
                ("redemption_rate_points", models.PositiveIntegerField(default=100)),
                ("redemption_rate_currency", models.DecimalField(decimal_places=2, default=Decimal("10"), max_digits=12)),
                ("max_redeem_points_per_order", models.PositiveIntegerField(default=0, help_text="0 = no cap")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_points_config",
                        to="pharmacies.pharmacy",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="StaffPointsConfig",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("points_per_currency_unit", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=12)),
                ("currency_unit_for_points", models.DecimalField(decimal_places=2, default=Decimal("100"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="staff_points_config",
                        to="pharmacies.pharmacy",
                    ),
                ),
            ],
        ),
    ]
