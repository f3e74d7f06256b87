from __future__ import annotations

import re

from apps.catalog.models import LineItemKind


SIZE_PATTERN = re.compile(r"(\d{2,3})\s*[xX*/]\s*(\d{2,3})")

REFERENCE_SHEET_PREFIXES = ("FICHE",)
SERVICE_CODES = {"MANUAL", "TRANSPORT", "SERVICE", "LIVRAISON"}
SERVICE_KEYWORDS = ("TRANSPORT", "LIVRAISON", "FRAIS DE ", "MAIN D'OEUVRE")


def extract_size(text: str | None) -> str | None:
    """Return the first ``AxB`` size token found in ``text``, normalized to ``60x60``."""
    if not text:
        return None
    match = SIZE_PATTERN.search(text)
    if not match:
        return None
    return f"{match.group(1)}x{match.group(2)}"


def classify_line_item(code: str | None, name: str | None) -> str:
    normalized_code = (code or "").strip().upper()
    normalized_name = (name or "").strip().upper()

    if normalized_name.startswith(REFERENCE_SHEET_PREFIXES) or normalized_code.startswith(REFERENCE_SHEET_PREFIXES):
        return LineItemKind.REFERENCE_SHEET
    if normalized_code in SERVICE_CODES:
        return LineItemKind.SERVICE
    padded_name = f"{normalized_name} "
    if any(keyword in padded_name for keyword in SERVICE_KEYWORDS):
        return LineItemKind.SERVICE
    return LineItemKind.PHYSICAL_GOOD
