from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ..logging import get_logger
from .fallback import parse_fallback_patterns
from .lines import split_lines
from .models import ParsedItem, ParseOutcome
from .strategies import select_strategy_items


LOG = get_logger("billparser-parser")

FALLBACK_STRATEGY = "fallback"


def _int_or_none(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _float_or_none(v: Any) -> Optional[float]:
    if not v:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def clean_items(items: Iterable[ParsedItem]) -> List[ParsedItem]:
    """Normalize candidates and merge duplicate SKUs.

    - Drops items with an empty SKU or a non-positive quantity.
    - Uppercases/trims SKUs and coerces qty/price to numbers.
    - Same SKU seen again: quantities are summed, the first name/price is kept.
    - Output keeps the order in which each SKU first appeared.
    """
    merged: Dict[str, ParsedItem] = {}
    for item in items:
        sku = str(item.sku or "").strip().upper()
        qty = _int_or_none(item.qty)
        if not sku or qty is None or qty <= 0:
            continue
        name = item.name.strip() if isinstance(item.name, str) and item.name.strip() else None
        existing = merged.get(sku)
        if existing is not None:
            existing.qty += qty
            continue
        merged[sku] = ParsedItem(sku=sku, qty=qty, name=name, price=_float_or_none(item.price))
    return list(merged.values())


def parse_with_details(text: str) -> ParseOutcome:
    """Run normalizer → strategies → (fallback) → cleaner and report the source."""
    lines = split_lines(text)
    LOG.debug("Parsing %d non-empty line(s) for items", len(lines))

    raw, strategy = select_strategy_items(lines, text or "")
    if not raw:
        LOG.info("No items found with structured parsing, trying fallback patterns")
        raw = parse_fallback_patterns(text)
        strategy = FALLBACK_STRATEGY if raw else None

    items = clean_items(raw)
    LOG.info("Parsed %d item(s) (strategy=%s)", len(items), strategy)
    return ParseOutcome(items=items, strategy=strategy)


def parse(text: str) -> List[ParsedItem]:
    """Extract deduplicated SKU/quantity items from free-form bill text."""
    return parse_with_details(text).items
