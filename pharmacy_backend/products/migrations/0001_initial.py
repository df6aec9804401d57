# products/migrations/0001_initial.py

import uuid

import django.db.models.deletion
from django.db import migrations, models

import products.models.product


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("pharmacies", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("sku", models.CharField(db_index=True, max_length=128)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "currency",
                    models.CharField(
                        default=products.models.product._default_currency,
                        max_length=10,
                    ),
                ),
                (
                    "stock_quantity",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Units on hand (service-managed only).",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="pharmacies.pharmacy",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["pharmacy", "name"], name="products_pr_pharmac_5c1f0e_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("pharmacy", "sku"),
                        name="uniq_product_sku_per_pharmacy",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_price__gte", 0)),
                        name="chk_product_unit_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryBatch",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "batch_number",
                    models.CharField(help_text="Supplier / lot reference", max_length=100),
                ),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("expiry_date", models.DateField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pharmacy",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_batches",
                        to="pharmacies.pharmacy",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory_batches",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["expiry_date", "created_at"],
                "indexes": [
                    models.Index(fields=["product", "expiry_date"], name="products_in_product_3b9a1d_idx"),
                    models.Index(fields=["pharmacy", "expiry_date"], name="products_in_pharmac_8e2c4f_idx"),
                ],
            },
        ),
    ]
