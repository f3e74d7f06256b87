"""Inventory ledger: the only code path that changes stock quantities.

Every on-hand mutation updates one ``InventoryRecord`` and appends one
``InventoryTransaction`` inside the same ``transaction.atomic()`` block, so
either both are written or neither is. Records are locked with
``select_for_update()``; concurrent writers on the same
(product, warehouse, ownership) key wait for each other.

Quantities are expressed in the product's ``primary_unit``. Callers holding a
quantity in another unit convert it first with ``apps.catalog.services.units``.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.catalog.models import Product
from apps.catalog.services.units import PackagingSpec, breakdown, to_decimal
from apps.core.models import Warehouse
from apps.inventory.errors import InsufficientStock, InvalidQuantity, InvalidTransfer, NotFound
from apps.inventory.models import (
    InventoryRecord,
    InventoryTransaction,
    OwnershipType,
    ReferenceType,
    TransactionType,
)


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerEntry:
    record: InventoryRecord
    transaction: InventoryTransaction


@dataclass(frozen=True)
class TransferResult:
    correlation_id: uuid.UUID
    source: LedgerEntry
    destination: LedgerEntry


def resolve_product(product: Any) -> Product:
    if isinstance(product, Product):
        product_id = product.pk
    else:
        product_id = product
    try:
        return Product.objects.get(pk=product_id, is_active=True)
    except (Product.DoesNotExist, ValidationError, ValueError, TypeError) as exc:
        raise NotFound(f"Product {product_id} not found.", product=str(product_id)) from exc


def resolve_warehouse(warehouse: Any) -> Warehouse:
    if isinstance(warehouse, Warehouse):
        warehouse_id = warehouse.pk
    else:
        warehouse_id = warehouse
    try:
        return Warehouse.objects.get(pk=warehouse_id, is_active=True)
    except (Warehouse.DoesNotExist, ValidationError, ValueError, TypeError) as exc:
        raise NotFound(f"Warehouse {warehouse_id} not found.", warehouse=str(warehouse_id)) from exc


def _ownership(value: Any) -> str:
    candidate = str(value or OwnershipType.OWNED).strip().upper()
    if candidate not in OwnershipType.values:
        raise InvalidQuantity(f"Unknown ownership type: {value!r}.", ownership_type=value)
    return candidate


def _transaction_type(value: Any) -> str:
    candidate = str(value or "").strip().upper()
    if candidate not in TransactionType.values:
        raise InvalidQuantity(f"Unknown transaction type: {value!r}.", transaction_type=value)
    return candidate


def _positive(quantity: Any, field: str = "quantity") -> Decimal:
    value = to_decimal(quantity, field)
    if value <= 0:
        raise InvalidQuantity(f"{field} must be greater than 0.", value=quantity)
    return value


def _validate_delta(transaction_type: str, delta: Decimal) -> None:
    if transaction_type == TransactionType.IN and delta <= 0:
        raise InvalidQuantity("IN movements require a positive quantity.", delta=str(delta))
    if transaction_type == TransactionType.OUT and delta >= 0:
        raise InvalidQuantity("OUT movements require a positive quantity.", delta=str(delta))
    if delta == 0:
        raise InvalidQuantity(f"{transaction_type} movements require a non-zero quantity.")


def _lock_record(product: Product, warehouse: Warehouse, ownership_type: str) -> InventoryRecord:
    record, created = InventoryRecord.objects.select_for_update().get_or_create(
        product=product,
        warehouse=warehouse,
        ownership_type=ownership_type,
    )
    if created:
        logger.debug("Created inventory record for %s at %s (%s)", product.code, warehouse.code, ownership_type)
    return record


def _append_transaction(**fields) -> InventoryTransaction:
    return InventoryTransaction.objects.create(**fields)


def stock_record(product: Any, warehouse: Any, ownership_type: Any = OwnershipType.OWNED) -> InventoryRecord | None:
    product_id = product.pk if isinstance(product, Product) else product
    warehouse_id = warehouse.pk if isinstance(warehouse, Warehouse) else warehouse
    return InventoryRecord.objects.filter(
        product_id=product_id,
        warehouse_id=warehouse_id,
        ownership_type=_ownership(ownership_type),
    ).first()


def on_hand(product: Any, warehouse: Any, ownership_type: Any = OwnershipType.OWNED) -> Decimal:
    record = stock_record(product, warehouse, ownership_type)
    return record.quantity_on_hand if record else ZERO


def adjust(
    product: Any,
    warehouse: Any,
    ownership_type: Any,
    delta_quantity: Any,
    delta_pallets: Any = None,
    delta_cartons: Any = None,
    *,
    transaction_type: Any = TransactionType.ADJUSTMENT,
    reference_type: str | None = ReferenceType.MANUAL_ADJUSTMENT,
    reference_id: Any = None,
    created_by: str | None = None,
    notes: str | None = None,
    correlation_id: uuid.UUID | None = None,
) -> LedgerEntry:
    """Apply a signed on-hand delta and log it.

    OUT takes a negative delta (``issue`` is the positive-quantity spelling).
    Pallet and carton deltas default to the packaging breakdown of the delta.
    A negative resulting balance is applied and logged, not refused.
    """
    delta = to_decimal(delta_quantity, "delta_quantity")
    movement = _transaction_type(transaction_type)
    _validate_delta(movement, delta)
    ownership = _ownership(ownership_type)

    with transaction.atomic():
        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)

        if delta_pallets is None or delta_cartons is None:
            derived = breakdown(PackagingSpec.for_product(product), delta, product.primary_unit)
        pallets = derived.pallets if delta_pallets is None else to_decimal(delta_pallets, "delta_pallets")
        cartons = derived.cartons if delta_cartons is None else to_decimal(delta_cartons, "delta_cartons")

        record = _lock_record(product, warehouse, ownership)
        record.quantity_on_hand += delta
        record.pallet_count += pallets
        record.carton_count += cartons
        record.save(update_fields=["quantity_on_hand", "pallet_count", "carton_count", "updated_at"])

        signed = movement in (TransactionType.ADJUSTMENT, TransactionType.TRANSFER)
        entry = _append_transaction(
            product=product,
            warehouse=warehouse,
            ownership_type=ownership,
            transaction_type=movement,
            quantity=delta if signed else abs(delta),
            pallet_count=pallets if signed else abs(pallets),
            carton_count=cartons if signed else abs(cartons),
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            correlation_id=correlation_id,
            notes=notes,
            created_by=created_by,
        )

    if record.is_overdrawn:
        logger.warning(
            "Negative stock for %s at %s (%s): on hand %s after %s %s",
            product.code,
            warehouse.code,
            ownership,
            record.quantity_on_hand,
            movement,
            delta,
        )
    else:
        logger.debug("%s %s %s at %s (%s)", movement, delta, product.code, warehouse.code, ownership)
    return LedgerEntry(record=record, transaction=entry)


def receive(product: Any, warehouse: Any, ownership_type: Any, quantity: Any, **kwargs) -> LedgerEntry:
    """IN movement for a positive ``quantity``."""
    kwargs.setdefault("reference_type", ReferenceType.GOODS_RECEIPT)
    delta_pallets = kwargs.pop("pallets", None)
    delta_cartons = kwargs.pop("cartons", None)
    return adjust(
        product,
        warehouse,
        ownership_type,
        _positive(quantity),
        delta_pallets,
        delta_cartons,
        transaction_type=TransactionType.IN,
        **kwargs,
    )


def issue(product: Any, warehouse: Any, ownership_type: Any, quantity: Any, **kwargs) -> LedgerEntry:
    """OUT movement for a positive ``quantity``."""
    kwargs.setdefault("reference_type", ReferenceType.ORDER)
    pallets = kwargs.pop("pallets", None)
    cartons = kwargs.pop("cartons", None)
    return adjust(
        product,
        warehouse,
        ownership_type,
        -_positive(quantity),
        -to_decimal(pallets, "pallets") if pallets is not None else None,
        -to_decimal(cartons, "cartons") if cartons is not None else None,
        transaction_type=TransactionType.OUT,
        **kwargs,
    )


def reserve(product: Any, warehouse: Any, ownership_type: Any, quantity: Any) -> InventoryRecord:
    amount = _positive(quantity)
    ownership = _ownership(ownership_type)
    with transaction.atomic():
        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        record = _lock_record(product, warehouse, ownership)
        available = record.quantity_available
        if amount > available:
            raise InsufficientStock(
                f"Insufficient stock for {product.code} at {warehouse.code}: "
                f"available {available}, requested {amount}.",
                available=str(available),
                requested=str(amount),
            )
        record.quantity_reserved += amount
        record.save(update_fields=["quantity_reserved", "updated_at"])
    logger.debug("Reserved %s %s at %s (%s)", amount, product.code, warehouse.code, ownership)
    return record


def release(product: Any, warehouse: Any, ownership_type: Any, quantity: Any) -> InventoryRecord:
    amount = _positive(quantity)
    ownership = _ownership(ownership_type)
    with transaction.atomic():
        product = resolve_product(product)
        warehouse = resolve_warehouse(warehouse)
        record = _lock_record(product, warehouse, ownership)
        if amount > record.quantity_reserved:
            raise InvalidQuantity(
                f"Cannot release {amount} of {product.code}: only {record.quantity_reserved} reserved.",
                reserved=str(record.quantity_reserved),
                requested=str(amount),
            )
        record.quantity_reserved -= amount
        record.save(update_fields=["quantity_reserved", "updated_at"])
    logger.debug("Released %s %s at %s (%s)", amount, product.code, warehouse.code, ownership)
    return record


def transfer(
    product: Any,
    from_warehouse: Any,
    to_warehouse: Any,
    ownership_type: Any,
    quantity: Any,
    *,
    created_by: str | None = None,
    notes: str | None = None,
    reference_id: Any = None,
) -> TransferResult:
    amount = _positive(quantity)
    ownership = _ownership(ownership_type)
    correlation_id = uuid.uuid4()

    with transaction.atomic():
        product = resolve_product(product)
        source = resolve_warehouse(from_warehouse)
        destination = resolve_warehouse(to_warehouse)
        if source.pk == destination.pk:
            raise InvalidTransfer("Source and destination warehouses must differ.", warehouse=str(source.pk))

        for warehouse in sorted((source, destination), key=lambda item: str(item.pk)):
            _lock_record(product, warehouse, ownership)

        common = {
            "transaction_type": TransactionType.TRANSFER,
            "reference_type": ReferenceType.TRANSFER,
            "reference_id": reference_id if reference_id is not None else correlation_id,
            "created_by": created_by,
            "notes": notes,
            "correlation_id": correlation_id,
        }
        outgoing = adjust(product, source, ownership, -amount, **common)
        incoming = adjust(product, destination, ownership, amount, **common)

    logger.info(
        "Transferred %s %s from %s to %s (%s)",
        amount,
        product.code,
        source.code,
        destination.code,
        correlation_id,
    )
    return TransferResult(correlation_id=correlation_id, source=outgoing, destination=incoming)
