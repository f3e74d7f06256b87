"""Product merges: fold a duplicate product into the one that survives.

A merge moves every stock record, ledger row and document line of the
dropped product onto the kept product in one atomic unit, then deactivates
the dropped product. The pre-merge state of both products is stored on the
``ProductMerge`` row so ``restore_snapshot`` can undo it while nothing else
has touched either product.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.catalog.models import Product
from apps.catalog.services import projection
from apps.inventory.errors import ConsistencyViolation, InvalidMerge, NotFound
from apps.inventory.models import InventoryRecord, InventoryTransaction, ProductMerge
from apps.purchasing.models import GoodsReceiptLine, PurchaseOrderItem
from apps.sales.models import OrderItem


logger = logging.getLogger(__name__)

QUANTITY_FIELDS = ("quantity_on_hand", "quantity_reserved", "pallet_count", "carton_count")

# (snapshot key, model) for every table holding a product foreign key.
REFERENCING_MODELS = (
    ("inventory_transactions", InventoryTransaction),
    ("order_items", OrderItem),
    ("purchase_order_items", PurchaseOrderItem),
    ("goods_receipt_lines", GoodsReceiptLine),
)


def _load_product(product: Any, active_only: bool = True) -> Product:
    product_id = product.pk if isinstance(product, Product) else product
    queryset = Product.objects.select_for_update()
    if active_only:
        queryset = queryset.filter(is_active=True)
    try:
        return queryset.get(pk=product_id)
    except (Product.DoesNotExist, ValidationError, ValueError, TypeError) as exc:
        raise NotFound(f"Product {product_id} not found.", product=str(product_id)) from exc


def _locked_records(*products: Product) -> list[InventoryRecord]:
    return list(
        InventoryRecord.objects.select_for_update()
        .filter(product__in=products)
        .order_by("product_id", "warehouse_id", "ownership_type")
    )


def _snapshot_record(record: InventoryRecord) -> dict[str, str]:
    row = {
        "warehouse": str(record.warehouse_id),
        "ownership_type": record.ownership_type,
    }
    for field in QUANTITY_FIELDS:
        row[field] = str(getattr(record, field))
    return row


def merge(keep: Any, drop: Any, *, performed_by: str | None = None) -> ProductMerge:
    with transaction.atomic():
        keep_product = _load_product(keep)
        drop_product = _load_product(drop)
        if keep_product.pk == drop_product.pk:
            raise InvalidMerge("A product cannot be merged into itself.", product=str(keep_product.pk))
        if keep_product.primary_unit != drop_product.primary_unit:
            raise InvalidMerge(
                f"Cannot merge {drop_product.code} ({drop_product.primary_unit}) into "
                f"{keep_product.code} ({keep_product.primary_unit}): stock units differ.",
                keep=str(keep_product.pk),
                drop=str(drop_product.pk),
            )

        records = _locked_records(keep_product, drop_product)
        keep_records = {
            (record.warehouse_id, record.ownership_type): record
            for record in records
            if record.product_id == keep_product.pk
        }
        drop_records = [record for record in records if record.product_id == drop_product.pk]
        snapshot = {
            "keep": [_snapshot_record(record) for record in keep_records.values()],
            "drop": [_snapshot_record(record) for record in drop_records],
        }

        for record in drop_records:
            target = keep_records.get((record.warehouse_id, record.ownership_type))
            if target is None:
                target = InventoryRecord.objects.create(
                    product=keep_product,
                    warehouse_id=record.warehouse_id,
                    ownership_type=record.ownership_type,
                )
                keep_records[(record.warehouse_id, record.ownership_type)] = target
            for field in QUANTITY_FIELDS:
                setattr(target, field, getattr(target, field) + getattr(record, field))
            target.save(update_fields=[*QUANTITY_FIELDS, "updated_at"])

        repointed = {}
        for key, model in REFERENCING_MODELS:
            queryset = model.objects.filter(product=drop_product)
            repointed[key] = [str(pk) for pk in queryset.values_list("pk", flat=True)]
            queryset.update(product=keep_product)

        InventoryRecord.objects.filter(pk__in=[record.pk for record in drop_records]).delete()
        drop_product.is_active = False
        drop_product.save(update_fields=["is_active", "updated_at"])

        product_merge = ProductMerge.objects.create(
            keep_product=keep_product,
            drop_product=drop_product,
            snapshot=snapshot,
            repointed=repointed,
            performed_by=performed_by,
        )

    logger.info(
        "Merged product %s into %s: %s records, %s ledger rows re-pointed (by %s)",
        drop_product.code,
        keep_product.code,
        len(drop_records),
        len(repointed["inventory_transactions"]),
        performed_by or "unknown",
    )
    return product_merge


def merge_and_rebuild(keep: Any, drop: Any, *, performed_by: str | None = None) -> ProductMerge:
    product_merge = merge(keep, drop, performed_by=performed_by)
    projection.rebuild()
    return product_merge


def _apply_snapshot(product: Product, rows: list[dict[str, str]]) -> None:
    wanted = {(row["warehouse"], row["ownership_type"]): row for row in rows}
    for record in InventoryRecord.objects.select_for_update().filter(product=product):
        row = wanted.pop((str(record.warehouse_id), record.ownership_type), None)
        if row is None:
            record.delete()
            continue
        for field in QUANTITY_FIELDS:
            setattr(record, field, Decimal(row[field]))
        record.save(update_fields=[*QUANTITY_FIELDS, "updated_at"])

    for (warehouse_id, ownership_type), row in wanted.items():
        InventoryRecord.objects.create(
            product=product,
            warehouse_id=warehouse_id,
            ownership_type=ownership_type,
            **{field: Decimal(row[field]) for field in QUANTITY_FIELDS},
        )


def restore_snapshot(product_merge: ProductMerge, *, performed_by: str | None = None) -> ProductMerge:
    """Undo ``product_merge`` using its recorded pre-merge state.

    Refused once either product has new ledger activity, because the
    recorded quantities would no longer match the log.
    """
    with transaction.atomic():
        product_merge = ProductMerge.objects.select_for_update().get(pk=product_merge.pk)
        if product_merge.restored_at is not None:
            raise InvalidMerge(f"Merge {product_merge.pk} was already restored.", merge=str(product_merge.pk))

        keep_product = _load_product(product_merge.keep_product_id, active_only=False)
        drop_product = _load_product(product_merge.drop_product_id, active_only=False)

        later = InventoryTransaction.objects.filter(
            product__in=[keep_product, drop_product],
            created_at__gt=product_merge.created_at,
        )
        if later.exists():
            raise ConsistencyViolation(
                f"Cannot restore merge {product_merge.pk}: {later.count()} ledger rows were written after it.",
                merge=str(product_merge.pk),
            )

        for key, model in REFERENCING_MODELS:
            ids = product_merge.repointed.get(key) or []
            if ids:
                model.objects.filter(pk__in=ids).update(product=drop_product)

        _apply_snapshot(keep_product, product_merge.snapshot.get("keep", []))
        _apply_snapshot(drop_product, product_merge.snapshot.get("drop", []))

        drop_product.is_active = True
        drop_product.save(update_fields=["is_active", "updated_at"])

        product_merge.restored_at = timezone.now()
        product_merge.save(update_fields=["restored_at"])

    logger.info(
        "Restored merge of %s into %s (by %s)",
        drop_product.code,
        keep_product.code,
        performed_by or "unknown",
    )
    return product_merge
