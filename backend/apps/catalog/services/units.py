"""Packaging-unit conversion for tiles and other catalog products.

Every conversion is routed through PIECE:

* PIECE <-> SQM uses the area of one piece, derived from the product's size
  token ("60x60" is 60cm x 60cm, 0.36 m2).
* PIECE <-> CARTON uses ``pieces_per_carton``.
* CARTON <-> PALLET uses ``cartons_per_pallet``.

Intermediate values keep full ``Decimal`` precision; only the value handed
back to the caller is rounded. Nothing in this module touches the database.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from apps.catalog.models import LineItemKind, Unit
from apps.catalog.services.line_items import SIZE_PATTERN
from apps.inventory.errors import InvalidQuantity, MissingPackagingRatio, UnsupportedConversion


OUTPUT_PRECISION = Decimal("0.01")
CM2_PER_SQM = Decimal("10000")
ZERO = Decimal("0")

UNIT_ALIASES = {
    "PIECE": Unit.PIECE,
    "PIECES": Unit.PIECE,
    "PIÈCE": Unit.PIECE,
    "PIÈCES": Unit.PIECE,
    "PCS": Unit.PIECE,
    "PC": Unit.PIECE,
    "U": Unit.PIECE,
    "UNITE": Unit.PIECE,
    "SQM": Unit.SQM,
    "M2": Unit.SQM,
    "M²": Unit.SQM,
    "CARTON": Unit.CARTON,
    "CARTONS": Unit.CARTON,
    "BOX": Unit.CARTON,
    "CRT": Unit.CARTON,
    "CTN": Unit.CARTON,
    "COLIS": Unit.CARTON,
    "PALLET": Unit.PALLET,
    "PALLETS": Unit.PALLET,
    "PALETTE": Unit.PALLET,
    "PALETTES": Unit.PALLET,
    "PAL": Unit.PALLET,
}


def normalize_unit(raw_unit: Any) -> str:
    candidate = str(raw_unit or "").strip().upper()
    try:
        return UNIT_ALIASES[candidate]
    except KeyError as exc:
        raise UnsupportedConversion(f"Unknown unit: {raw_unit!r}.", unit=raw_unit) from exc


def to_decimal(value: Any, field: str = "quantity") -> Decimal:
    if isinstance(value, bool) or value is None or value == "":
        raise InvalidQuantity(f"{field} must be a number.", value=value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidQuantity(f"{field} must be a number.", value=value) from exc
    if not result.is_finite():
        raise InvalidQuantity(f"{field} must be a finite number.", value=value)
    return result


def quantize(value: Decimal, places: Decimal = OUTPUT_PRECISION) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


def parse_area(size: str | None) -> Decimal | None:
    """Area of one piece in m2, or ``None`` when ``size`` carries no ``AxB`` token."""
    if not size:
        return None
    match = SIZE_PATTERN.search(size)
    if not match:
        return None
    return Decimal(int(match.group(1)) * int(match.group(2))) / CM2_PER_SQM


def _ratio(value: Any) -> Decimal:
    if value in (None, ""):
        return ZERO
    try:
        ratio = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return ratio if ratio.is_finite() and ratio > 0 else ZERO


@dataclass(frozen=True)
class PackagingSpec:
    pieces_per_carton: Decimal = ZERO
    cartons_per_pallet: Decimal = ZERO
    area_per_piece: Decimal | None = None
    line_item_kind: str = LineItemKind.PHYSICAL_GOOD
    label: str = ""

    @classmethod
    def for_product(cls, product) -> "PackagingSpec":
        if product.line_item_kind != LineItemKind.PHYSICAL_GOOD:
            return cls(line_item_kind=product.line_item_kind, label=product.code)
        return cls(
            pieces_per_carton=_ratio(product.pieces_per_carton),
            cartons_per_pallet=_ratio(product.cartons_per_pallet),
            area_per_piece=parse_area(product.size) or parse_area(product.name),
            line_item_kind=product.line_item_kind,
            label=product.code,
        )

    @property
    def is_physical(self) -> bool:
        return self.line_item_kind == LineItemKind.PHYSICAL_GOOD

    def _require_area(self) -> Decimal:
        if not self.area_per_piece:
            raise UnsupportedConversion(
                f"{self.label or 'Product'} has no parseable size; SQM conversions are not available.",
                product=self.label,
            )
        return self.area_per_piece

    def _require_pieces_per_carton(self) -> Decimal:
        if not self.pieces_per_carton:
            raise MissingPackagingRatio(
                f"{self.label or 'Product'} does not define pieces per carton.",
                product=self.label,
            )
        return self.pieces_per_carton

    def _require_cartons_per_pallet(self) -> Decimal:
        if not self.cartons_per_pallet:
            raise MissingPackagingRatio(
                f"{self.label or 'Product'} does not define cartons per pallet.",
                product=self.label,
            )
        return self.cartons_per_pallet

    def to_pieces(self, quantity: Decimal, unit: str) -> Decimal:
        if unit == Unit.PIECE:
            return quantity
        if unit == Unit.SQM:
            return quantity / self._require_area()
        if unit == Unit.CARTON:
            return quantity * self._require_pieces_per_carton()
        if unit == Unit.PALLET:
            return quantity * self._require_cartons_per_pallet() * self._require_pieces_per_carton()
        raise UnsupportedConversion(f"Unknown unit: {unit!r}.", unit=unit)

    def from_pieces(self, pieces: Decimal, unit: str) -> Decimal:
        if unit == Unit.PIECE:
            return pieces
        if unit == Unit.SQM:
            return pieces * self._require_area()
        if unit == Unit.CARTON:
            return pieces / self._require_pieces_per_carton()
        if unit == Unit.PALLET:
            return pieces / self._require_pieces_per_carton() / self._require_cartons_per_pallet()
        raise UnsupportedConversion(f"Unknown unit: {unit!r}.", unit=unit)


def convert(spec: PackagingSpec, quantity: Any, source: Any, target: Any) -> Decimal:
    """Convert a non-negative ``quantity`` from ``source`` to ``target`` unit."""
    value = to_decimal(quantity)
    if value < 0:
        raise InvalidQuantity("quantity must not be negative.", value=quantity)
    source_unit = normalize_unit(source)
    target_unit = normalize_unit(target)
    if source_unit == target_unit:
        return quantize(value)
    if not spec.is_physical:
        raise UnsupportedConversion(
            f"{spec.label or 'Line item'} is not a physical good; quantities stay in {source_unit}.",
            product=spec.label,
        )
    return quantize(spec.from_pieces(spec.to_pieces(value, source_unit), target_unit))


@dataclass(frozen=True)
class Breakdown:
    pieces: Decimal
    cartons: Decimal
    pallets: Decimal


def breakdown(spec: PackagingSpec, quantity: Any, unit: Any) -> Breakdown:
    """Piece / carton / pallet counts for display.

    Unlike ``convert`` this never fails on missing packaging data: counts that
    cannot be derived are reported as zero. Negative quantities keep their sign.
    """
    value = to_decimal(quantity)
    source_unit = normalize_unit(unit)
    if not spec.is_physical:
        return Breakdown(pieces=quantize(value) if source_unit == Unit.PIECE else ZERO, cartons=ZERO, pallets=ZERO)

    sign = -1 if value < 0 else 1
    magnitude = abs(value)
    if source_unit == Unit.SQM and not spec.area_per_piece:
        return Breakdown(pieces=ZERO, cartons=ZERO, pallets=ZERO)
    if source_unit == Unit.CARTON and not spec.pieces_per_carton:
        pallets = magnitude / spec.cartons_per_pallet if spec.cartons_per_pallet else ZERO
        return Breakdown(pieces=ZERO, cartons=quantize(value), pallets=sign * quantize(pallets))
    if source_unit == Unit.PALLET and not (spec.pieces_per_carton and spec.cartons_per_pallet):
        cartons = magnitude * spec.cartons_per_pallet
        return Breakdown(pieces=ZERO, cartons=sign * quantize(cartons), pallets=quantize(value))

    pieces = spec.to_pieces(magnitude, source_unit)
    cartons = pieces / spec.pieces_per_carton if spec.pieces_per_carton else ZERO
    pallets = cartons / spec.cartons_per_pallet if spec.cartons_per_pallet else ZERO
    return Breakdown(
        pieces=sign * quantize(pieces),
        cartons=sign * quantize(cartons),
        pallets=sign * quantize(pallets),
    )
