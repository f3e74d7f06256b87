import logging

from django.db import transaction

from apps.catalog.services.units import PackagingSpec, breakdown, convert
from apps.inventory.models import ReferenceType
from apps.inventory.services import ledger
from apps.purchasing.models import GoodsReceipt


logger = logging.getLogger(__name__)


def post_goods_receipt(receipt: GoodsReceipt, created_by: str | None = None) -> GoodsReceipt:
    """Post one IN movement per receipt line, in the product's stock unit.

    Ownership comes from the purchase order. Ordered quantities on matching
    purchase order items are advanced in the item's own unit. Service lines
    only advance their purchase order item; they never reach the ledger.
    """
    purchase_order = receipt.purchase_order
    with transaction.atomic():
        for line in receipt.lines.select_related("product", "purchase_order_item"):
            product = line.product
            spec = PackagingSpec.for_product(product)
            item = line.purchase_order_item
            if item is not None:
                item.received_quantity += convert(spec, line.quantity, line.unit, item.unit)
                item.save(update_fields=["received_quantity", "updated_at"])
            if not product.is_stocked:
                continue

            stock_quantity = convert(spec, line.quantity, line.unit, product.primary_unit)
            derived = breakdown(spec, stock_quantity, product.primary_unit)
            pallets = line.pallet_count if line.pallet_count is not None else derived.pallets
            cartons = line.carton_count if line.carton_count is not None else derived.cartons

            ledger.receive(
                product,
                receipt.warehouse_id,
                purchase_order.ownership_type,
                stock_quantity,
                pallets=pallets,
                cartons=cartons,
                reference_type=ReferenceType.GOODS_RECEIPT,
                reference_id=receipt.id,
                created_by=created_by,
                notes=f"{purchase_order.po_number} / {receipt.delivery_note_number}",
            )

            line.stock_quantity = stock_quantity
            line.pallet_count = pallets
            line.carton_count = cartons
            line.save(update_fields=["stock_quantity", "pallet_count", "carton_count", "updated_at"])

        purchase_order.refresh_status()
        purchase_order.save(update_fields=["status", "updated_at"])

    logger.info(
        "Posted goods receipt %s for %s (%s lines)",
        receipt.delivery_note_number,
        purchase_order.po_number,
        receipt.lines.count(),
    )
    return receipt
