"""Stock count import from the warehouse spreadsheet export.

Each row states the counted quantity of one product in one warehouse. The
import creates missing brands and products, refreshes packaging ratios and
prices, and posts an ADJUSTMENT (reference IMPORT) for the difference
between the counted and the recorded quantity. A failing row is rolled back
on its own and reported; the others are kept. Rows for inactive (merged)
products are reported, never revived.

``write_stock_csv`` produces the plain ProductCode layout read back by
``parse_stock_csv``.
"""
from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from apps.catalog.models import Brand, Product, Unit
from apps.catalog.services import projection
from apps.inventory.errors import InventoryError, NotFound
from apps.inventory.models import OwnershipType, ProductMerge, ReferenceType
from apps.inventory.services import ledger


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
RATIO_PRECISION = Decimal("0.0001")
SQM_CODE_PATTERN = re.compile(r"\(M²\)|\bM2\b")
MAX_REPORTED_ERRORS = 20
EXPORT_COLUMNS = (
    "ProductCode",
    "ProductName",
    "WarehouseCode",
    "WarehouseName",
    "QuantityOnHand",
    "PalletCount",
    "ColisCount",
    "OwnershipType",
)


@dataclass
class StockRow:
    row: int
    code: str
    name: str
    quantity: Decimal
    pallets: Decimal = ZERO
    cartons: Decimal = ZERO
    brand: str = ""
    base_price: Decimal = ZERO
    purchase_price: Decimal = ZERO
    calibre: str | None = None
    choix: str | None = None
    pieces_per_carton: Decimal = ZERO
    cartons_per_pallet: Decimal = ZERO


@dataclass
class ImportResult:
    successful: int = 0
    failed: int = 0
    created_products: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
    refreshed_at: Any = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "created_products": self.created_products,
            "errors": self.errors[:MAX_REPORTED_ERRORS],
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
        }


def clean_number(value: Any) -> Decimal:
    """Parse "18,403.00 DA" or "1200,50"; blanks and negatives become 0."""
    if value in (None, ""):
        return ZERO
    text = re.sub(r"DA", "", str(value), flags=re.IGNORECASE)
    text = re.sub(r"\s", "", text)
    if "," in text and "." in text:
        text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    text = re.sub(r"[^0-9.\-]", "", text)
    try:
        number = Decimal(text)
    except InvalidOperation:
        return ZERO
    if not number.is_finite():
        return ZERO
    return max(number, ZERO)


def _compact(header: str) -> str:
    return re.sub(r"\s+", "", header).lower()


def _find_column(headers: list[str], *needles: str, exclude: Iterable[str] = ()) -> str | None:
    for needle in needles:
        for header in headers:
            compact = _compact(header)
            if needle in compact and not any(word in compact for word in exclude):
                return header
    return None


def _quantity_column(headers: list[str]) -> str | None:
    for header in headers:
        if header.strip().lower() in ("qté", "qte"):
            return header
    for header in headers:
        lower = header.strip().lower()
        if lower.startswith("qt") and len(lower) <= 4 and "par" not in lower:
            return header
    return _find_column(headers, "qté", "qte", exclude=("par",))


def _text(row: dict[str, str], column: str | None) -> str:
    if not column:
        return ""
    return (row.get(column) or "").strip()


def parse_stock_csv(content: str | bytes) -> list[StockRow]:
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")
    reader = csv.DictReader(io.StringIO(content))
    headers = [header.strip() for header in reader.fieldnames or []]
    reader.fieldnames = headers

    label = _find_column(headers, "libell")
    columns = {
        "quantity": _quantity_column(headers),
        "sell": _find_column(headers, "prixdevente"),
        "buy": _find_column(headers, "prixd'achat", "prixdachat"),
        "pallets": _find_column(headers, "nbpalette", "palette", exclude=("par", "qte")),
        "cartons": _find_column(headers, "nbcolis", "colis", exclude=("par", "qte")),
        "brand": _find_column(headers, "famille", "reference"),
        "calibre": _find_column(headers, "calibre"),
        "choix": _find_column(headers, "choix"),
        "pieces_per_carton": _find_column(headers, "qteparcolis"),
        "cartons_per_pallet": _find_column(headers, "qtecolisparpalette"),
    }

    rows = []
    for index, raw in enumerate(reader, start=1):
        if label and _text(raw, label):
            quantity = clean_number(raw.get(columns["quantity"]))
            cartons = clean_number(raw.get(columns["cartons"]))
            pallets = clean_number(raw.get(columns["pallets"]))
            pieces_per_carton = clean_number(raw.get(columns["pieces_per_carton"]))
            cartons_per_pallet = clean_number(raw.get(columns["cartons_per_pallet"]))

            if pallets == 0 and cartons > 0 and cartons_per_pallet > 0:
                pallets = Decimal(int(cartons / cartons_per_pallet))
            if pieces_per_carton == 0 and cartons > 0 and quantity > 0:
                pieces_per_carton = (quantity / cartons).quantize(RATIO_PRECISION)
            if cartons_per_pallet == 0 and pallets > 0 and cartons > 0:
                cartons_per_pallet = (cartons / pallets).quantize(RATIO_PRECISION)

            code = _text(raw, label)
            rows.append(
                StockRow(
                    row=index,
                    code=code,
                    name=code,
                    quantity=quantity,
                    pallets=pallets,
                    cartons=cartons,
                    brand=_text(raw, columns["brand"]),
                    base_price=clean_number(raw.get(columns["sell"])),
                    purchase_price=clean_number(raw.get(columns["buy"])),
                    calibre=_text(raw, columns["calibre"]) or None,
                    choix=_text(raw, columns["choix"]) or None,
                    pieces_per_carton=pieces_per_carton,
                    cartons_per_pallet=cartons_per_pallet,
                )
            )
        elif (raw.get("ProductCode") or "").strip():
            code = raw["ProductCode"].strip()
            rows.append(
                StockRow(
                    row=index,
                    code=code,
                    name=(raw.get("ProductName") or "").strip() or code,
                    quantity=clean_number(raw.get("QuantityOnHand")),
                    pallets=clean_number(raw.get("PalletCount")),
                    cartons=clean_number(raw.get("ColisCount")),
                    base_price=clean_number(raw.get("BasePrice")),
                    purchase_price=clean_number(raw.get("PurchasePrice")),
                    calibre=(raw.get("Calibre") or "").strip() or None,
                    choix=(raw.get("Choix") or "").strip() or None,
                )
            )
    return rows


def write_stock_csv(records: Iterable[Any], stream: Any) -> int:
    """Write inventory records in the plain layout ``parse_stock_csv`` reads back."""
    writer = csv.writer(stream)
    writer.writerow(EXPORT_COLUMNS)
    count = 0
    for record in records:
        writer.writerow(
            [
                record.product.code,
                record.product.name,
                record.warehouse.code,
                record.warehouse.name,
                record.quantity_on_hand,
                record.pallet_count,
                record.carton_count,
                record.ownership_type,
            ]
        )
        count += 1
    return count


def _brand(name: str) -> Brand | None:
    if not name:
        return None
    brand, _ = Brand.objects.get_or_create(name=name, defaults={"is_active": True})
    return brand


def _inactive_row_error(product: Product) -> NotFound:
    merge = (
        ProductMerge.objects.filter(drop_product=product, restored_at__isnull=True)
        .select_related("keep_product")
        .order_by("-created_at")
        .first()
    )
    if merge is not None:
        return NotFound(
            f"Product {product.code} was merged into {merge.keep_product.code}; count it under that code.",
            product=product.code,
            merged_into=merge.keep_product.code,
        )
    return NotFound(f"Product {product.code} is inactive.", product=product.code)


def _upsert_product(item: StockRow) -> tuple[Product, bool]:
    product = Product.objects.filter(code=item.code).first()
    if product is None:
        product = Product.objects.create(
            code=item.code,
            name=item.name,
            brand=_brand(item.brand),
            calibre=item.calibre,
            choix=item.choix,
            primary_unit=Unit.SQM if SQM_CODE_PATTERN.search(item.code.upper()) else Unit.PIECE,
            pieces_per_carton=item.pieces_per_carton,
            cartons_per_pallet=item.cartons_per_pallet,
            base_price=item.base_price,
            purchase_price=item.purchase_price,
        )
        return product, True

    if not product.is_active:
        raise _inactive_row_error(product)

    # Zero prices and ratios in the file keep the stored values.
    if item.base_price > 0:
        product.base_price = item.base_price
    if item.purchase_price > 0:
        product.purchase_price = item.purchase_price
    if item.pieces_per_carton > 0:
        product.pieces_per_carton = item.pieces_per_carton
    if item.cartons_per_pallet > 0:
        product.cartons_per_pallet = item.cartons_per_pallet
    product.save(
        update_fields=[
            "base_price",
            "purchase_price",
            "pieces_per_carton",
            "cartons_per_pallet",
            "updated_at",
        ]
    )
    return product, False


def _apply_row(item: StockRow, warehouse: Any, created_by: str | None) -> bool:
    product, created = _upsert_product(item)
    record = ledger.stock_record(product, warehouse, OwnershipType.OWNED)
    current = record.quantity_on_hand if record else ZERO
    delta = item.quantity - current
    if delta != 0:
        ledger.adjust(
            product,
            warehouse,
            OwnershipType.OWNED,
            delta,
            item.pallets - (record.pallet_count if record else ZERO),
            item.cartons - (record.carton_count if record else ZERO),
            reference_type=ReferenceType.IMPORT,
            created_by=created_by,
            notes="Stock import",
        )
    return created


def import_stock(rows: Iterable[StockRow], warehouse: Any, *, created_by: str | None = None) -> ImportResult:
    result = ImportResult()
    warehouse = ledger.resolve_warehouse(warehouse)

    with transaction.atomic():
        for item in rows:
            try:
                with transaction.atomic():
                    if _apply_row(item, warehouse, created_by):
                        result.created_products += 1
            except (InventoryError, ValidationError, DatabaseError, ValueError) as exc:
                result.failed += 1
                result.errors.append({"row": item.row, "product": item.code, "error": str(exc)})
                logger.warning("Stock import row %s (%s) failed: %s", item.row, item.code, exc)
            else:
                result.successful += 1

    result.refreshed_at = projection.rebuild().refreshed_at
    logger.info(
        "Stock import into %s: %s rows imported, %s failed",
        warehouse.code,
        result.successful,
        result.failed,
    )
    return result
