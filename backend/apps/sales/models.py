import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.catalog.models import Product, Unit
from apps.core.models import Warehouse
from apps.inventory.models import OwnershipType


class OrderStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    CONFIRMED = "CONFIRMED", "Confirmed"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=64, unique=True)
    customer_name = models.CharField(max_length=255)
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="orders")
    ownership_type = models.CharField(max_length=16, choices=OwnershipType.choices, default=OwnershipType.OWNED)
    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.DRAFT)
    notes = models.TextField(blank=True, null=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales_order"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["status", "created_at"], name="idx_sales_order_status")]

    def __str__(self) -> str:
        return self.order_number


class OrderItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    quantity = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    unit = models.CharField(max_length=8, choices=Unit.choices, default=Unit.PIECE)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True)
    stock_quantity = models.DecimalField(max_digits=16, decimal_places=4, blank=True, null=True)
    reserved_quantity = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal("0"))
    pallet_count = models.DecimalField(max_digits=16, decimal_places=4, blank=True, null=True)
    carton_count = models.DecimalField(max_digits=16, decimal_places=4, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales_order_item"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.order.order_number} - {self.quantity} {self.unit}"
