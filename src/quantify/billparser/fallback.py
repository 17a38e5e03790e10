"""Last-resort scan over the whole text when no layout strategy matched.

Trades precision for recall; expect false positives on richly formatted bills.
"""

from __future__ import annotations

from typing import List

from ..logging import get_logger
from .constants import FALLBACK_ALNUM_CODE_RE, FALLBACK_LABELLED_CODE_RE
from .lines import quantity_in_range
from .models import ParsedItem


LOG = get_logger("billparser-fallback")


def parse_fallback_patterns(text: str) -> List[ParsedItem]:
    items: List[ParsedItem] = []
    text = text or ""

    # Letters-then-digits or digits-then-letters, then the next number
    for m in FALLBACK_ALNUM_CODE_RE.finditer(text):
        qty = int(m.group(2))
        if quantity_in_range(qty):
            items.append(ParsedItem(sku=m.group(1), qty=qty))

    # Optional PROD/ITEM/SKU/CODE label glued to a 4+ char token; the label wins as SKU
    for m in FALLBACK_LABELLED_CODE_RE.finditer(text):
        qty = int(m.group(3))
        if quantity_in_range(qty):
            items.append(ParsedItem(sku=m.group(1) or m.group(2), qty=qty))

    LOG.debug("Fallback patterns produced %d candidate(s)", len(items))
    return items
