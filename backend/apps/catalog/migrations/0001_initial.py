import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


UNIT_CHOICES = [("PIECE", "PIECE"), ("SQM", "SQM"), ("CARTON", "CARTON"), ("PALLET", "PALLET")]
LINE_ITEM_KIND_CHOICES = [
    ("PHYSICAL_GOOD", "PHYSICAL_GOOD"),
    ("SERVICE", "SERVICE"),
    ("REFERENCE_SHEET", "REFERENCE_SHEET"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("vat_number", models.CharField(blank=True, max_length=64, null=True)),
                ("is_consignor", models.BooleanField(default=False)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_supplier",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Brand",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_brand",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=128, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("size", models.CharField(blank=True, max_length=32, null=True)),
                ("calibre", models.CharField(blank=True, max_length=64, null=True)),
                ("choix", models.CharField(blank=True, max_length=64, null=True)),
                ("primary_unit", models.CharField(choices=UNIT_CHOICES, default="PIECE", max_length=8)),
                (
                    "pieces_per_carton",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "cartons_per_pallet",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "line_item_kind",
                    models.CharField(choices=LINE_ITEM_KIND_CHOICES, default="PHYSICAL_GOOD", max_length=16),
                ),
                ("base_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("is_active", models.BooleanField(default=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "brand",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="products",
                        to="catalog.brand",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_product",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active", "name"], name="idx_catalog_product_active")],
            },
        ),
        migrations.CreateModel(
            name="CatalogEntry",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("product_id", models.UUIDField(unique=True)),
                ("product_code", models.CharField(max_length=128)),
                ("product_name", models.CharField(max_length=255)),
                ("brand_id", models.UUIDField(blank=True, null=True)),
                ("famille", models.CharField(blank=True, max_length=255, null=True)),
                ("size", models.CharField(blank=True, max_length=32, null=True)),
                ("calibre", models.CharField(blank=True, max_length=64, null=True)),
                ("choix", models.CharField(blank=True, max_length=64, null=True)),
                ("primary_unit", models.CharField(choices=UNIT_CHOICES, max_length=8)),
                ("line_item_kind", models.CharField(choices=LINE_ITEM_KIND_CHOICES, max_length=16)),
                ("pieces_per_carton", models.DecimalField(decimal_places=4, max_digits=12)),
                ("cartons_per_pallet", models.DecimalField(decimal_places=4, max_digits=12)),
                ("derived_pieces_per_carton", models.DecimalField(decimal_places=4, max_digits=12)),
                ("derived_cartons_per_pallet", models.DecimalField(decimal_places=4, max_digits=12)),
                ("prix_vente", models.DecimalField(decimal_places=2, max_digits=14)),
                ("prix_achat", models.DecimalField(decimal_places=2, max_digits=14)),
                ("total_qty", models.DecimalField(decimal_places=4, max_digits=16)),
                ("nb_palette", models.DecimalField(decimal_places=4, max_digits=16)),
                ("nb_colis", models.DecimalField(decimal_places=4, max_digits=16)),
                ("product_name_lower", models.CharField(max_length=255)),
                ("product_code_lower", models.CharField(max_length=128)),
                ("brand_name_lower", models.CharField(blank=True, default="", max_length=255)),
                ("refreshed_at", models.DateTimeField()),
            ],
            options={
                "db_table": "catalog_projection",
                "ordering": ["product_name"],
                "indexes": [
                    models.Index(fields=["famille"], name="idx_catalog_proj_famille"),
                    models.Index(fields=["choix"], name="idx_catalog_proj_choix"),
                    models.Index(fields=["calibre"], name="idx_catalog_proj_calibre"),
                ],
            },
        ),
    ]
