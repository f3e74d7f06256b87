import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from apps.catalog.models import Product
from apps.core.models import Warehouse


class OwnershipType(models.TextChoices):
    OWNED = "OWNED", "OWNED"
    CONSIGNMENT = "CONSIGNMENT", "CONSIGNMENT"


class TransactionType(models.TextChoices):
    IN = "IN", "IN"
    OUT = "OUT", "OUT"
    TRANSFER = "TRANSFER", "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT", "ADJUSTMENT"


class ReferenceType(models.TextChoices):
    ORDER = "ORDER", "ORDER"
    PURCHASE_ORDER = "PURCHASE_ORDER", "PURCHASE_ORDER"
    GOODS_RECEIPT = "GOODS_RECEIPT", "GOODS_RECEIPT"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT", "MANUAL_ADJUSTMENT"
    TRANSFER = "TRANSFER", "TRANSFER"
    IMPORT = "IMPORT", "IMPORT"


class InventoryRecord(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="inventory_records")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="inventory_records")
    ownership_type = models.CharField(max_length=16, choices=OwnershipType.choices, default=OwnershipType.OWNED)
    quantity_on_hand = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    quantity_reserved = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    pallet_count = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    carton_count = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_record"
        ordering = ["product__name", "warehouse__code", "ownership_type"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "warehouse", "ownership_type"],
                name="uq_inventory_record_product_warehouse_ownership",
            )
        ]

    def __str__(self) -> str:
        return f"{self.product_id}@{self.warehouse_id}/{self.ownership_type}: {self.quantity_on_hand}"

    @property
    def quantity_available(self) -> Decimal:
        return self.quantity_on_hand - self.quantity_reserved

    @property
    def is_overdrawn(self) -> bool:
        return self.quantity_on_hand < 0


class InventoryTransaction(models.Model):
    """Append-only ledger entry.

    IN and OUT rows store the positive magnitude; ADJUSTMENT and TRANSFER rows
    store the signed delta. ``signed_quantity`` is what was applied to on-hand.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="inventory_transactions")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="inventory_transactions")
    ownership_type = models.CharField(max_length=16, choices=OwnershipType.choices, default=OwnershipType.OWNED)
    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)
    quantity = models.DecimalField(max_digits=16, decimal_places=4)
    pallet_count = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    carton_count = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    reference_type = models.CharField(max_length=32, choices=ReferenceType.choices, blank=True, null=True)
    reference_id = models.CharField(max_length=128, blank=True, null=True)
    correlation_id = models.UUIDField(blank=True, null=True, db_index=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.CharField(max_length=150, blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "inventory_transaction"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="idx_inv_tx_product_created"),
            models.Index(fields=["warehouse", "created_at"], name="idx_inv_tx_warehouse_created"),
            models.Index(fields=["reference_type", "reference_id"], name="idx_inv_tx_reference"),
        ]

    def __str__(self) -> str:
        return f"{self.transaction_type} {self.quantity} {self.product_id}@{self.warehouse_id}"

    @property
    def signed_quantity(self) -> Decimal:
        if self.transaction_type == TransactionType.OUT:
            return -self.quantity
        return self.quantity

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Inventory transactions are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Inventory transactions are append-only.")


class ProductMerge(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    keep_product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="merges_kept")
    drop_product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="merges_dropped")
    snapshot = models.JSONField(default=dict, blank=True)
    repointed = models.JSONField(default=dict, blank=True)
    performed_by = models.CharField(max_length=150, blank=True, null=True)
    restored_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "inventory_product_merge"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.drop_product_id} -> {self.keep_product_id}"
