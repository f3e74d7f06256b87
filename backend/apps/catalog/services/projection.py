"""Catalog projection: a denormalized product x stock table for browsing.

The projection is never patched row by row. ``rebuild()`` recomputes it from
the active products and the live inventory records and swaps the whole table
inside one transaction, so readers see either the previous or the new
projection. Between rebuilds it lags the ledger; ``refreshed_at`` on every
row tells callers how old it is.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Max, Q, Sum, Window
from django.utils import timezone

from apps.catalog.models import CatalogEntry, Product
from apps.inventory.models import InventoryRecord


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
RATIO_PRECISION = Decimal("0.0001")

SORT_COLUMNS = {
    "productname": "product_name",
    "productcode": "product_code",
    "famille": "famille",
    "prixvente": "prix_vente",
    "prixachat": "prix_achat",
    "nbpalette": "nb_palette",
    "nbcolis": "nb_colis",
    "totalqty": "total_qty",
    "calibre": "calibre",
    "choix": "choix",
}


@dataclass(frozen=True)
class ProjectionRefresh:
    rows: int
    refreshed_at: datetime


@dataclass(frozen=True)
class CatalogPage:
    results: list
    total_count: int
    page: int
    limit: int
    refreshed_at: datetime | None

    @property
    def total_pages(self) -> int:
        if not self.limit:
            return 0
        return (self.total_count + self.limit - 1) // self.limit


def _derived_ratio(configured: Decimal, numerator: Decimal, denominator: Decimal) -> Decimal:
    if configured and configured > 0:
        return configured
    if denominator and denominator > 0:
        return (numerator / denominator).quantize(RATIO_PRECISION)
    return ZERO


def _stock_totals() -> dict[Any, dict[str, Decimal]]:
    rows = (
        InventoryRecord.objects.filter(product__is_active=True)
        .order_by()
        .values("product_id")
        .annotate(
            total_qty=Sum("quantity_on_hand"),
            nb_palette=Sum("pallet_count"),
            nb_colis=Sum("carton_count"),
        )
    )
    return {row["product_id"]: row for row in rows}


def _build_entry(product: Product, totals: dict[str, Decimal] | None, refreshed_at: datetime) -> CatalogEntry:
    totals = totals or {}
    total_qty = totals.get("total_qty") or ZERO
    nb_palette = totals.get("nb_palette") or ZERO
    nb_colis = totals.get("nb_colis") or ZERO
    brand_name = product.brand.name if product.brand_id else None
    return CatalogEntry(
        product_id=product.id,
        product_code=product.code,
        product_name=product.name,
        brand_id=product.brand_id,
        famille=brand_name,
        size=product.size,
        calibre=product.calibre,
        choix=product.choix,
        primary_unit=product.primary_unit,
        line_item_kind=product.line_item_kind,
        pieces_per_carton=product.pieces_per_carton,
        cartons_per_pallet=product.cartons_per_pallet,
        derived_pieces_per_carton=_derived_ratio(product.pieces_per_carton, total_qty, nb_colis),
        derived_cartons_per_pallet=_derived_ratio(product.cartons_per_pallet, nb_colis, nb_palette),
        prix_vente=product.base_price,
        prix_achat=product.purchase_price,
        total_qty=total_qty,
        nb_palette=nb_palette,
        nb_colis=nb_colis,
        product_name_lower=product.name.lower(),
        product_code_lower=product.code.lower(),
        brand_name_lower=(brand_name or "").lower(),
        refreshed_at=refreshed_at,
    )


def rebuild() -> ProjectionRefresh:
    refreshed_at = timezone.now()
    with transaction.atomic():
        totals = _stock_totals()
        products = Product.objects.filter(is_active=True).select_related("brand").order_by("name")
        entries = [_build_entry(product, totals.get(product.id), refreshed_at) for product in products]
        CatalogEntry.objects.all().delete()
        CatalogEntry.objects.bulk_create(entries, batch_size=500)

    logger.info("Catalog projection rebuilt: %s rows at %s", len(entries), refreshed_at.isoformat())
    return ProjectionRefresh(rows=len(entries), refreshed_at=refreshed_at)


def last_refreshed_at() -> datetime | None:
    return CatalogEntry.objects.aggregate(value=Max("refreshed_at"))["value"]


def _parse_ids(ids: str | Iterable[Any] | None) -> list[str]:
    if not ids:
        return []
    raw_items = ids.split(",") if isinstance(ids, str) else list(ids)
    return [str(item).strip() for item in raw_items if str(item).strip()]


def _page_bounds(page: Any, limit: Any) -> tuple[int, int]:
    default_limit = getattr(settings, "CATALOG_PAGE_SIZE", 50)
    max_limit = getattr(settings, "CATALOG_MAX_PAGE_SIZE", 500)
    try:
        page_number = max(int(page), 1)
    except (TypeError, ValueError):
        page_number = 1
    try:
        page_size = int(limit)
    except (TypeError, ValueError):
        page_size = default_limit
    if page_size <= 0:
        page_size = default_limit
    return page_number, min(page_size, max_limit)


def query_catalog(
    search: str | None = None,
    famille: str | None = None,
    choix: str | None = None,
    calibre: str | None = None,
    ids: str | Iterable[Any] | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    page: Any = 1,
    limit: Any = None,
) -> CatalogPage:
    queryset = CatalogEntry.objects.all()

    id_list = _parse_ids(ids)
    if id_list:
        queryset = queryset.filter(product_id__in=id_list)

    term = (search or "").strip().lower()
    if term:
        queryset = queryset.filter(
            Q(product_name_lower__contains=term)
            | Q(product_code_lower__contains=term)
            | Q(brand_name_lower__contains=term)
            | Q(size__icontains=term)
        )
    if famille:
        queryset = queryset.filter(famille=famille)
    if choix:
        queryset = queryset.filter(choix=choix)
    if calibre:
        queryset = queryset.filter(calibre=calibre)

    column = SORT_COLUMNS.get((sort_by or "").lower(), "product_name")
    descending = (sort_order or "").upper() == "DESC"
    ordering = F(column).desc(nulls_last=True) if descending else F(column).asc(nulls_last=True)
    queryset = queryset.order_by(ordering, "product_name", "id").annotate(
        total_count=Window(expression=Count("id"))
    )

    page_number, page_size = _page_bounds(page, limit)
    offset = (page_number - 1) * page_size
    results = list(queryset[offset : offset + page_size])
    if results:
        total_count = results[0].total_count
    elif page_number > 1:
        total_count = queryset.count()
    else:
        total_count = 0

    return CatalogPage(
        results=results,
        total_count=total_count,
        page=page_number,
        limit=page_size,
        refreshed_at=last_refreshed_at(),
    )


def catalog_filters() -> dict[str, list[str]]:
    def distinct(column: str) -> list[str]:
        return list(
            CatalogEntry.objects.exclude(**{f"{column}__isnull": True})
            .exclude(**{column: ""})
            .order_by(column)
            .values_list(column, flat=True)
            .distinct()
        )

    return {
        "familles": distinct("famille"),
        "choix": distinct("choix"),
        "calibres": distinct("calibre"),
        "sizes": distinct("size"),
    }


def catalog_stats() -> dict[str, Any]:
    money = DecimalField(max_digits=20, decimal_places=4)
    totals = CatalogEntry.objects.aggregate(
        total_qty=Sum("total_qty"),
        total_pallets=Sum("nb_palette"),
        total_cartons=Sum("nb_colis"),
        total_purchase_value=Sum(ExpressionWrapper(F("total_qty") * F("prix_achat"), output_field=money)),
        total_sale_value=Sum(ExpressionWrapper(F("total_qty") * F("prix_vente"), output_field=money)),
        total_products=Count("id"),
    )
    for key, value in totals.items():
        if value is None:
            totals[key] = ZERO
    totals["refreshed_at"] = last_refreshed_at()
    return totals
