import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(max_length=64, unique=True)),
                ("customer_name", models.CharField(max_length=255)),
                (
                    "ownership_type",
                    models.CharField(
                        choices=[("OWNED", "OWNED"), ("CONSIGNMENT", "CONSIGNMENT")],
                        default="OWNED",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("CONFIRMED", "Confirmed"),
                            ("DELIVERED", "Delivered"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                        max_length=16,
                    ),
                ),
                ("notes", models.TextField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="core.warehouse",
                    ),
                ),
            ],
            options={
                "db_table": "sales_order",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "created_at"], name="idx_sales_order_status")],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "quantity",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=16,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.0001"))],
                    ),
                ),
                (
                    "unit",
                    models.CharField(
                        choices=[("PIECE", "PIECE"), ("SQM", "SQM"), ("CARTON", "CARTON"), ("PALLET", "PALLET")],
                        default="PIECE",
                        max_length=8,
                    ),
                ),
                ("unit_price", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("stock_quantity", models.DecimalField(blank=True, decimal_places=4, max_digits=16, null=True)),
                ("reserved_quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("pallet_count", models.DecimalField(blank=True, decimal_places=4, max_digits=16, null=True)),
                ("carton_count", models.DecimalField(blank=True, decimal_places=4, max_digits=16, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="order_items",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "db_table": "sales_order_item",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
