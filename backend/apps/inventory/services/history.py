from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from django.db.models import Case, DecimalField, F, Q, QuerySet, Sum, When
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.inventory.errors import ConsistencyViolation
from apps.inventory.models import InventoryRecord, InventoryTransaction, TransactionType


ZERO = Decimal("0")
PRECISION = Decimal("0.0001")


def parse_bound(value: Any, end_of_day: bool = False) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value).strip()
        parsed = parse_datetime(text)
        if parsed is None:
            day = parse_date(text)
            if day is None:
                raise ValueError(f"Invalid date: {value!r}.")
            parsed = datetime.combine(day, time.max if end_of_day else time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def query_transactions(
    product: Any = None,
    warehouse: Any = None,
    transaction_type: str | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
    date_from: Any = None,
    date_to: Any = None,
    created_by: str | None = None,
    search: str | None = None,
) -> QuerySet:
    queryset = InventoryTransaction.objects.select_related("product", "warehouse")

    if product:
        queryset = queryset.filter(product_id=getattr(product, "pk", product))
    if warehouse:
        queryset = queryset.filter(warehouse_id=getattr(warehouse, "pk", warehouse))
    if transaction_type:
        queryset = queryset.filter(transaction_type=str(transaction_type).upper())
    if reference_type:
        queryset = queryset.filter(reference_type=str(reference_type).upper())
    if reference_id:
        queryset = queryset.filter(reference_id=str(reference_id))

    lower = parse_bound(date_from)
    upper = parse_bound(date_to, end_of_day=True)
    if lower:
        queryset = queryset.filter(created_at__gte=lower)
    if upper:
        queryset = queryset.filter(created_at__lte=upper)

    if created_by:
        queryset = queryset.filter(created_by=created_by)

    term = (search or "").strip()
    if term:
        queryset = queryset.filter(Q(product__code__icontains=term) | Q(product__name__icontains=term))

    return queryset.order_by("-created_at", "-id")


def replay_on_hand(product: Any, warehouse: Any, ownership_type: str) -> Decimal:
    """Fold the transaction log for one key back into an on-hand quantity."""
    signed = Case(
        When(transaction_type=TransactionType.OUT, then=-F("quantity")),
        default=F("quantity"),
        output_field=DecimalField(max_digits=16, decimal_places=4),
    )
    total = InventoryTransaction.objects.filter(
        product_id=getattr(product, "pk", product),
        warehouse_id=getattr(warehouse, "pk", warehouse),
        ownership_type=ownership_type,
    ).aggregate(total=Sum(signed))["total"]
    return total if total is not None else ZERO


def verify_consistency(record: InventoryRecord) -> Decimal:
    replayed = replay_on_hand(record.product_id, record.warehouse_id, record.ownership_type).quantize(PRECISION)
    if replayed != Decimal(record.quantity_on_hand).quantize(PRECISION):
        raise ConsistencyViolation(
            f"Ledger mismatch for record {record.pk}: on hand {record.quantity_on_hand}, log {replayed}.",
            record=str(record.pk),
            on_hand=str(record.quantity_on_hand),
            replayed=str(replayed),
        )
    return replayed
