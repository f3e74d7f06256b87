import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.catalog.models import Product, Supplier, Unit
from apps.core.models import Warehouse
from apps.inventory.models import OwnershipType


class PurchaseOrderStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    ORDERED = "ORDERED", "Ordered"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED", "Partially received"
    RECEIVED = "RECEIVED", "Received"
    CANCELLED = "CANCELLED", "Cancelled"


class PurchaseOrder(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    po_number = models.CharField(max_length=64, unique=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="purchase_orders")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="purchase_orders")
    ownership_type = models.CharField(max_length=16, choices=OwnershipType.choices, default=OwnershipType.OWNED)
    status = models.CharField(max_length=24, choices=PurchaseOrderStatus.choices, default=PurchaseOrderStatus.ORDERED)
    order_date = models.DateField()
    expected_date = models.DateField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchasing_purchase_order"
        ordering = ["-order_date", "po_number"]

    def __str__(self) -> str:
        return self.po_number

    def refresh_status(self) -> str:
        items = list(self.items.all())
        if not items:
            return self.status
        if all(item.is_fully_received for item in items):
            self.status = PurchaseOrderStatus.RECEIVED
        elif any(item.received_quantity > 0 for item in items):
            self.status = PurchaseOrderStatus.PARTIALLY_RECEIVED
        return self.status


class PurchaseOrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="purchase_order_items")
    quantity = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    unit = models.CharField(max_length=8, choices=Unit.choices, default=Unit.PIECE)
    received_quantity = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchasing_purchase_order_item"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.purchase_order.po_number} - {self.quantity} {self.unit}"

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity >= self.quantity


class GoodsReceipt(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.PROTECT, related_name="goods_receipts")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="goods_receipts")
    delivery_note_number = models.CharField(max_length=128)
    received_at = models.DateTimeField()
    received_by = models.CharField(max_length=150, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchasing_goods_receipt"
        ordering = ["-received_at", "delivery_note_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["purchase_order", "delivery_note_number"],
                name="uq_purchasing_gr_po_delivery_note",
            )
        ]

    def __str__(self) -> str:
        return f"{self.delivery_note_number}"


class GoodsReceiptLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name="lines")
    purchase_order_item = models.ForeignKey(
        PurchaseOrderItem,
        on_delete=models.SET_NULL,
        related_name="receipt_lines",
        blank=True,
        null=True,
    )
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="goods_receipt_lines")
    quantity = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    unit = models.CharField(max_length=8, choices=Unit.choices, default=Unit.PIECE)
    stock_quantity = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    pallet_count = models.DecimalField(max_digits=16, decimal_places=4, blank=True, null=True)
    carton_count = models.DecimalField(max_digits=16, decimal_places=4, blank=True, null=True)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchasing_goods_receipt_line"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.receipt.delivery_note_number} - {self.quantity} {self.unit}"
