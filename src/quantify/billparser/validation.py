from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple, TypeVar

from ..logging import get_logger
from .constants import VALID_QTY_MAX, VALID_QTY_MIN, VALID_SKU_RE


LOG = get_logger("billparser-validation")

T = TypeVar("T")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def rejection_reason(item: Any) -> Optional[str]:
    """Return why an item is not trustworthy, or None when it passes."""
    sku = _field(item, "sku")
    if not isinstance(sku, str) or not VALID_SKU_RE.fullmatch(sku):
        return f"Invalid SKU format: {sku!r}"
    qty = _field(item, "qty")
    if qty is None and isinstance(item, dict):
        qty = item.get("quantity")
    if isinstance(qty, bool) or not isinstance(qty, (int, float)) or not VALID_QTY_MIN <= qty <= VALID_QTY_MAX:
        return f"Invalid quantity: {qty!r}"
    return None


def find_rejections(items: Sequence[T]) -> List[Tuple[T, str]]:
    rejected: List[Tuple[T, str]] = []
    for item in items:
        reason = rejection_reason(item)
        if reason:
            rejected.append((item, reason))
    return rejected


def validate_parsed_items(items: Sequence[T]) -> List[T]:
    """Keep items with a well-formed SKU and a quantity in 1..10000.

    Works on ParsedItem objects as well as plain dicts. Items are returned
    as-is; rejected ones are only logged.
    """
    valid: List[T] = []
    for item in items:
        reason = rejection_reason(item)
        if reason:
            LOG.warning("Dropping item %s: %s", _field(item, "sku"), reason)
            continue
        valid.append(item)
    return valid


validate = validate_parsed_items
