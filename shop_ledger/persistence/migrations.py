"""
Document migrations applied on load.

Older saves stored `price_uzs` / `cost_uzs` on USD items as plain copies
of `price` / `cost`. Those copies would be read as real UZS prices, so
they are removed whenever they equal the USD figure.
"""

import copy
from typing import Any

from shop_ledger.models.inventory import Currency


_COPY_FIELDS = (("price_uzs", "price"), ("cost_uzs", "cost"))


def _same_number(a: Any, b: Any) -> bool:
    try:
        return float(a) == float(b)
    except (TypeError, ValueError):
        return False


def _clean_item(item: dict[str, Any]) -> dict[str, Any]:
    if Currency.normalize(item.get("currency")) is not Currency.USD:
        return item
    cleaned = dict(item)
    for copy_field, source_field in _COPY_FIELDS:
        if copy_field in cleaned and _same_number(cleaned[copy_field], cleaned.get(source_field)):
            del cleaned[copy_field]
    return cleaned


def drop_usd_copies(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of `document` with USD copy fields removed from both pools."""
    migrated = copy.deepcopy(document)
    for pool in ("warehouse", "store"):
        items = migrated.get(pool)
        if isinstance(items, list):
            migrated[pool] = [
                _clean_item(item) if isinstance(item, dict) else item
                for item in items
            ]
    return migrated


def migrate_document(document: dict[str, Any]) -> dict[str, Any]:
    """Run every load-time migration in order."""
    return drop_usd_copies(document)
