"""Line-level helpers shared by the extraction strategies."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from ..logging import get_logger
from .constants import (
    LINE_DELIMITED_RE,
    LINE_QTY_LIMIT,
    LINE_QTY_SKU_DESC_PRICE_RE,
    LINE_QTY_SKU_RE,
    LINE_SKU_DESC_QTY_PRICE_RE,
    LINE_SKU_QTY_RE,
    LINE_SPACED_RE,
    MIN_NAME_LENGTH,
    NAME_AMOUNT_RE,
    NAME_CODE_RE,
    NAME_DIGITS_RE,
    PRICE_JUNK_RE,
    PRICE_NUMBER_RE,
    WHITESPACE_RE,
)
from .models import ParsedItem


LOG = get_logger("billparser-lines")

# (sku, qty, name, price) as raw strings; name/price may be None
Fields = Tuple[str, str, Optional[str], Optional[str]]


def split_lines(text: str) -> List[str]:
    """Split text on newlines only, trim each line and drop empty ones."""
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def parse_price(raw: Optional[str]) -> Optional[float]:
    """Read the leading number once everything but digits and dots is stripped.

    "45.99." gives 45.99 and "1.2.3" gives 1.2; no number or zero means no price.
    """
    if not raw:
        return None
    m = PRICE_NUMBER_RE.match(PRICE_JUNK_RE.sub("", raw))
    if not m:
        return None
    return float(m.group(0)) or None


def quantity_in_range(qty: Optional[int]) -> bool:
    return qty is not None and 0 < qty < LINE_QTY_LIMIT


def _sku_desc_qty_price(m: re.Match) -> Fields:
    return m.group(1), m.group(3), m.group(2), m.group(4)


def _qty_sku_desc_price(m: re.Match) -> Fields:
    return m.group(2), m.group(1), m.group(3), m.group(4)


def _sku_qty(m: re.Match) -> Fields:
    return m.group(1), m.group(2), None, None


def _qty_sku(m: re.Match) -> Fields:
    return m.group(2), m.group(1), None, None


# Precedence is significant: the first shape that matches with a sane quantity wins.
LINE_SHAPES: Tuple[Tuple[re.Pattern, Callable[[re.Match], Fields]], ...] = (
    (LINE_SKU_DESC_QTY_PRICE_RE, _sku_desc_qty_price),
    (LINE_QTY_SKU_DESC_PRICE_RE, _qty_sku_desc_price),
    (LINE_SKU_QTY_RE, _sku_qty),
    (LINE_QTY_SKU_RE, _qty_sku),
    (LINE_DELIMITED_RE, _sku_desc_qty_price),
    (LINE_SPACED_RE, _sku_desc_qty_price),
)


def extract_item_from_line(line: str) -> Optional[ParsedItem]:
    """Return the first item-like reading of a single line, or None.

    Each shape is tried in order; a shape that matches but yields a quantity
    outside 1..999 is skipped so that prices or codes are not read as counts.
    """
    for pattern, to_fields in LINE_SHAPES:
        m = pattern.search(line)
        if not m:
            continue
        sku, qty_raw, name, price_raw = to_fields(m)
        qty = int(qty_raw)
        if not sku or not quantity_in_range(qty):
            LOG.debug("Shape %s matched %r with rejected qty %s", pattern.pattern, line, qty)
            continue
        name = name.strip() if name else None
        return ParsedItem(
            sku=sku.strip(),
            qty=qty,
            name=name or None,
            price=parse_price(price_raw),
        )
    LOG.debug("No item shape matched line %r", line)
    return None


def extract_product_name(line: str) -> Optional[str]:
    """Best-effort product label: the line minus codes, numbers and amounts."""
    cleaned = NAME_CODE_RE.sub("", line)
    cleaned = NAME_DIGITS_RE.sub("", cleaned)
    cleaned = NAME_AMOUNT_RE.sub("", cleaned)
    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned if len(cleaned) > MIN_NAME_LENGTH else None
