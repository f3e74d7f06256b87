import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Unit(models.TextChoices):
    PIECE = "PIECE", "PIECE"
    SQM = "SQM", "SQM"
    CARTON = "CARTON", "CARTON"
    PALLET = "PALLET", "PALLET"


class LineItemKind(models.TextChoices):
    PHYSICAL_GOOD = "PHYSICAL_GOOD", "PHYSICAL_GOOD"
    SERVICE = "SERVICE", "SERVICE"
    REFERENCE_SHEET = "REFERENCE_SHEET", "REFERENCE_SHEET"


class Supplier(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    vat_number = models.CharField(max_length=64, blank=True, null=True)
    is_consignor = models.BooleanField(default=False)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_supplier"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Brand(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_brand"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=128, unique=True)
    name = models.CharField(max_length=255)
    brand = models.ForeignKey(
        Brand,
        on_delete=models.SET_NULL,
        related_name="products",
        blank=True,
        null=True,
    )
    size = models.CharField(max_length=32, blank=True, null=True)
    calibre = models.CharField(max_length=64, blank=True, null=True)
    choix = models.CharField(max_length=64, blank=True, null=True)
    primary_unit = models.CharField(max_length=8, choices=Unit.choices, default=Unit.PIECE)
    pieces_per_carton = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    cartons_per_pallet = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    line_item_kind = models.CharField(
        max_length=16,
        choices=LineItemKind.choices,
        default=LineItemKind.PHYSICAL_GOOD,
    )
    base_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    purchase_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    is_active = models.BooleanField(default=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_product"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active", "name"], name="idx_catalog_product_active"),
        ]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        from apps.catalog.services.line_items import classify_line_item, extract_size

        if not self.size:
            self.size = extract_size(self.name)
        if self._state.adding and self.line_item_kind == LineItemKind.PHYSICAL_GOOD:
            self.line_item_kind = classify_line_item(self.code, self.name)
        super().save(*args, **kwargs)

    @property
    def is_stocked(self) -> bool:
        """Service lines (transport, handling) never hold stock."""
        return self.line_item_kind != LineItemKind.SERVICE


class CatalogEntry(models.Model):
    """Read model rebuilt wholesale by ``apps.catalog.services.projection.rebuild``."""

    id = models.BigAutoField(primary_key=True)
    product_id = models.UUIDField(unique=True)
    product_code = models.CharField(max_length=128)
    product_name = models.CharField(max_length=255)
    brand_id = models.UUIDField(blank=True, null=True)
    famille = models.CharField(max_length=255, blank=True, null=True)
    size = models.CharField(max_length=32, blank=True, null=True)
    calibre = models.CharField(max_length=64, blank=True, null=True)
    choix = models.CharField(max_length=64, blank=True, null=True)
    primary_unit = models.CharField(max_length=8, choices=Unit.choices)
    line_item_kind = models.CharField(max_length=16, choices=LineItemKind.choices)
    pieces_per_carton = models.DecimalField(max_digits=12, decimal_places=4)
    cartons_per_pallet = models.DecimalField(max_digits=12, decimal_places=4)
    derived_pieces_per_carton = models.DecimalField(max_digits=12, decimal_places=4)
    derived_cartons_per_pallet = models.DecimalField(max_digits=12, decimal_places=4)
    prix_vente = models.DecimalField(max_digits=14, decimal_places=2)
    prix_achat = models.DecimalField(max_digits=14, decimal_places=2)
    total_qty = models.DecimalField(max_digits=16, decimal_places=4)
    nb_palette = models.DecimalField(max_digits=16, decimal_places=4)
    nb_colis = models.DecimalField(max_digits=16, decimal_places=4)
    product_name_lower = models.CharField(max_length=255)
    product_code_lower = models.CharField(max_length=128)
    brand_name_lower = models.CharField(max_length=255, blank=True, default="")
    refreshed_at = models.DateTimeField()

    class Meta:
        db_table = "catalog_projection"
        ordering = ["product_name"]
        indexes = [
            models.Index(fields=["famille"], name="idx_catalog_proj_famille"),
            models.Index(fields=["choix"], name="idx_catalog_proj_choix"),
            models.Index(fields=["calibre"], name="idx_catalog_proj_calibre"),
        ]

    def __str__(self) -> str:
        return f"{self.product_code} ({self.total_qty})"
