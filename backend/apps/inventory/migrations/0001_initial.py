import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


OWNERSHIP_CHOICES = [("OWNED", "OWNED"), ("CONSIGNMENT", "CONSIGNMENT")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("ownership_type", models.CharField(choices=OWNERSHIP_CHOICES, default="OWNED", max_length=16)),
                ("quantity_on_hand", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("quantity_reserved", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("pallet_count", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("carton_count", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_records",
                        to="catalog.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_records",
                        to="core.warehouse",
                    ),
                ),
            ],
            options={
                "db_table": "inventory_record",
                "ordering": ["product__name", "warehouse__code", "ownership_type"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "warehouse", "ownership_type"),
                        name="uq_inventory_record_product_warehouse_ownership",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("ownership_type", models.CharField(choices=OWNERSHIP_CHOICES, default="OWNED", max_length=16)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("IN", "IN"),
                            ("OUT", "OUT"),
                            ("TRANSFER", "TRANSFER"),
                            ("ADJUSTMENT", "ADJUSTMENT"),
                        ],
                        max_length=16,
                    ),
                ),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=16)),
                ("pallet_count", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                ("carton_count", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=16)),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("ORDER", "ORDER"),
                            ("PURCHASE_ORDER", "PURCHASE_ORDER"),
                            ("GOODS_RECEIPT", "GOODS_RECEIPT"),
                            ("MANUAL_ADJUSTMENT", "MANUAL_ADJUSTMENT"),
                            ("TRANSFER", "TRANSFER"),
                            ("IMPORT", "IMPORT"),
                        ],
                        max_length=32,
                        null=True,
                    ),
                ),
                ("reference_id", models.CharField(blank=True, max_length=128, null=True)),
                ("correlation_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_by", models.CharField(blank=True, max_length=150, null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_transactions",
                        to="catalog.product",
                    ),
                ),
                (
                    "warehouse",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_transactions",
                        to="core.warehouse",
                    ),
                ),
            ],
            options={
                "db_table": "inventory_transaction",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="idx_inv_tx_product_created"),
                    models.Index(fields=["warehouse", "created_at"], name="idx_inv_tx_warehouse_created"),
                    models.Index(fields=["reference_type", "reference_id"], name="idx_inv_tx_reference"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductMerge",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("snapshot", models.JSONField(blank=True, default=dict)),
                ("repointed", models.JSONField(blank=True, default=dict)),
                ("performed_by", models.CharField(blank=True, max_length=150, null=True)),
                ("restored_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "drop_product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="merges_dropped",
                        to="catalog.product",
                    ),
                ),
                (
                    "keep_product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="merges_kept",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "db_table": "inventory_product_merge",
                "ordering": ["-created_at"],
            },
        ),
    ]
