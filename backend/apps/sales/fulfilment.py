"""Order lifecycle against the inventory ledger.

DRAFT -> CONFIRMED reserves every stocked line, CONFIRMED -> DELIVERED
releases the reservation and posts the OUT movement, and CANCELLED gives
reservations back. Each transition is one atomic unit: a failing line
leaves the order and every record exactly as they were.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.catalog.services.units import PackagingSpec, breakdown, convert
from apps.inventory.models import ReferenceType
from apps.inventory.services import ledger
from apps.sales.models import Order, OrderItem, OrderStatus


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class InvalidOrderState(Exception):
    def __init__(self, order: Order, action: str):
        self.order = order
        self.action = action
        super().__init__(f"Cannot {action} order {order.order_number} in status {order.status}.")


def _stocked_items(order: Order):
    for item in order.items.select_related("product").order_by("created_at", "id"):
        if item.product.is_stocked:
            yield item


def _resolve_quantities(item: OrderItem) -> None:
    product = item.product
    spec = PackagingSpec.for_product(product)
    item.stock_quantity = convert(spec, item.quantity, item.unit, product.primary_unit)
    derived = breakdown(spec, item.stock_quantity, product.primary_unit)
    item.pallet_count = derived.pallets
    item.carton_count = derived.cartons


def _lock(order: Order) -> Order:
    return Order.objects.select_for_update().get(pk=order.pk)


def confirm_order(order: Order) -> Order:
    with transaction.atomic():
        order = _lock(order)
        if order.status != OrderStatus.DRAFT:
            raise InvalidOrderState(order, "confirm")

        for item in _stocked_items(order):
            _resolve_quantities(item)
            ledger.reserve(item.product, order.warehouse_id, order.ownership_type, item.stock_quantity)
            item.reserved_quantity = item.stock_quantity
            item.save(
                update_fields=["stock_quantity", "reserved_quantity", "pallet_count", "carton_count", "updated_at"]
            )

        order.status = OrderStatus.CONFIRMED
        order.confirmed_at = timezone.now()
        order.save(update_fields=["status", "confirmed_at", "updated_at"])

    logger.info("Confirmed order %s", order.order_number)
    return order


def deliver_order(order: Order, created_by: str | None = None) -> Order:
    """Post one OUT per stocked line.

    A DRAFT order is delivered without a prior reservation; stock may go
    negative, which the ledger reports as a warning.
    """
    with transaction.atomic():
        order = _lock(order)
        if order.status not in (OrderStatus.DRAFT, OrderStatus.CONFIRMED):
            raise InvalidOrderState(order, "deliver")

        for item in _stocked_items(order):
            if item.stock_quantity is None:
                _resolve_quantities(item)
            if item.reserved_quantity > 0:
                ledger.release(item.product, order.warehouse_id, order.ownership_type, item.reserved_quantity)
                item.reserved_quantity = ZERO
            ledger.issue(
                item.product,
                order.warehouse_id,
                order.ownership_type,
                item.stock_quantity,
                pallets=item.pallet_count,
                cartons=item.carton_count,
                reference_type=ReferenceType.ORDER,
                reference_id=order.id,
                created_by=created_by,
                notes=f"Order {order.order_number}",
            )
            item.save(
                update_fields=["stock_quantity", "reserved_quantity", "pallet_count", "carton_count", "updated_at"]
            )

        order.status = OrderStatus.DELIVERED
        order.delivered_at = timezone.now()
        order.save(update_fields=["status", "delivered_at", "updated_at"])

    logger.info("Delivered order %s", order.order_number)
    return order


def cancel_order(order: Order) -> Order:
    with transaction.atomic():
        order = _lock(order)
        if order.status not in (OrderStatus.DRAFT, OrderStatus.CONFIRMED):
            raise InvalidOrderState(order, "cancel")

        for item in _stocked_items(order):
            if item.reserved_quantity > 0:
                ledger.release(item.product, order.warehouse_id, order.ownership_type, item.reserved_quantity)
                item.reserved_quantity = ZERO
                item.save(update_fields=["reserved_quantity", "updated_at"])

        order.status = OrderStatus.CANCELLED
        order.save(update_fields=["status", "updated_at"])

    logger.info("Cancelled order %s", order.order_number)
    return order
