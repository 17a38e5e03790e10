"""Layout strategies, tried in decreasing order of structural confidence.

Each strategy takes the normalized lines (and the full text, which only some
of them need) and returns raw candidate items. The selector accepts the first
non-empty result and never merges results across strategies.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from .constants import (
    DESCRIPTIVE_LABELLED_RE,
    DESCRIPTIVE_TIMES_RE,
    DESCRIPTIVE_UNITS_OF_RE,
    KEY_VALUE_RE,
    METADATA_LINE_RE,
    TABLE_FOOTER_RE,
    TABLE_HEADER_PATTERNS,
)
from .lines import extract_item_from_line, extract_product_name
from .models import ParsedItem


LOG = get_logger("billparser-strategies")

Strategy = Callable[[Sequence[str], str], List[ParsedItem]]


def find_table_header(lines: Sequence[str]) -> int:
    """Index of the first line that looks like a column header, or -1."""
    for idx, line in enumerate(lines):
        if any(p.search(line) for p in TABLE_HEADER_PATTERNS):
            return idx
    return -1


def parse_table_format(lines: Sequence[str], text: str = "") -> List[ParsedItem]:
    """Invoice tables: rows between a column header and the first footer line."""
    header_idx = find_table_header(lines)
    if header_idx == -1:
        return []
    LOG.debug("Found table header at line %d", header_idx)

    items: List[ParsedItem] = []
    for line in lines[header_idx + 1:]:
        if TABLE_FOOTER_RE.search(line):
            break
        item = extract_item_from_line(line)
        if item:
            items.append(item)
    return items


def parse_line_by_line_format(lines: Sequence[str], text: str = "") -> List[ParsedItem]:
    """One item per line; header/footer style lines are skipped."""
    items: List[ParsedItem] = []
    for line in lines:
        if METADATA_LINE_RE.search(line):
            continue
        item = extract_item_from_line(line)
        if item:
            items.append(item)
    return items


def parse_key_value_format(lines: Sequence[str], text: str = "") -> List[ParsedItem]:
    """Tagged lines such as "Item: SKU123, Quantity: 5" (one item per line)."""
    items: List[ParsedItem] = []
    for line in lines:
        m = KEY_VALUE_RE.search(line)
        if m:
            items.append(ParsedItem(sku=m.group(2), qty=int(m.group(3)), name=extract_product_name(line)))
    return items


def _units_of(m: re.Match) -> Tuple[str, str]:
    return m.group(2), m.group(1)


def _code_then_qty(m: re.Match) -> Tuple[str, str]:
    return m.group(1), m.group(2)


DESCRIPTIVE_PATTERNS: Tuple[Tuple[re.Pattern, Callable[[re.Match], Tuple[str, str]]], ...] = (
    (DESCRIPTIVE_UNITS_OF_RE, _units_of),
    (DESCRIPTIVE_TIMES_RE, _code_then_qty),
    (DESCRIPTIVE_LABELLED_RE, _code_then_qty),
)


def parse_descriptive_format(lines: Sequence[str], text: str = "") -> List[ParsedItem]:
    """Narrative phrasing: "5 units of PROD123", "PROD123 x 3", "PROD123 qty: 3".

    Every pattern is applied globally, so a single line may produce several items.
    """
    items: List[ParsedItem] = []
    for line in lines:
        for pattern, to_fields in DESCRIPTIVE_PATTERNS:
            for m in pattern.finditer(line):
                sku, qty = to_fields(m)
                items.append(ParsedItem(sku=sku, qty=int(qty), name=extract_product_name(line)))
    return items


STRATEGIES: Tuple[Strategy, ...] = (
    parse_table_format,
    parse_line_by_line_format,
    parse_key_value_format,
    parse_descriptive_format,
)


def select_strategy_items(
    lines: Sequence[str],
    text: str = "",
    strategies: Sequence[Strategy] = STRATEGIES,
) -> Tuple[List[ParsedItem], Optional[str]]:
    """Run strategies in order and return (items, strategy name) of the first hit.

    Returns ([], None) when no strategy finds anything.
    """
    for strategy in strategies:
        results = strategy(lines, text)
        if results:
            LOG.info("Found %d items using %s", len(results), strategy.__name__)
            return results, strategy.__name__
    return [], None
