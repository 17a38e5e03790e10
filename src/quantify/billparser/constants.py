from __future__ import annotations

import re
from typing import Tuple

# Quantities read from a single line or from the fallback scan must be < 1000.
LINE_QTY_LIMIT = 1000

# Validator accepts 1..10000 inclusive.
VALID_QTY_MIN = 1
VALID_QTY_MAX = 10000

# Name candidates must be longer than this.
MIN_NAME_LENGTH = 2

CODE = r"[A-Z0-9_-]{3,}"
CURRENCY = r"[$€£]"

TABLE_HEADER_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"(?:item|sku|code|part).{0,20}(?:description|name).{0,20}(?:qty|quantity|amount)", re.I),
    re.compile(r"(?:product|item).{0,30}(?:qty|quantity)", re.I),
    re.compile(r"(?:sku|code).{0,30}(?:qty|quantity)", re.I),
)

# First footer line ends the item table.
TABLE_FOOTER_RE = re.compile(r"total|subtotal|tax|discount|payment|terms|thank you", re.I)

# Document metadata lines skipped by the line-by-line strategy.
METADATA_LINE_RE = re.compile(
    r"invoice|receipt|bill|total|subtotal|tax|date|customer|vendor|address|phone|email"
    r"|thank you|terms|conditions",
    re.I,
)

KEY_VALUE_RE = re.compile(
    r"(sku|item|product|code):\s*([A-Z0-9_-]+).*?(?:qty|quantity|amount):\s*(\d+)",
    re.I,
)

# "5 units of PROD123" -> (qty, sku)
DESCRIPTIVE_UNITS_OF_RE = re.compile(
    rf"(\d+)\s+(?:units?\s+of|pieces?\s+of|qty\s+of)?\s*({CODE})", re.I
)
# "PROD123 x 3" -> (sku, qty)
DESCRIPTIVE_TIMES_RE = re.compile(rf"({CODE})\s*[x×]\s*(\d+)", re.I)
# "PROD123 ... quantity: 3" -> (sku, qty)
DESCRIPTIVE_LABELLED_RE = re.compile(rf"({CODE}).*?(?:quantity|qty|amount):\s*(\d+)", re.I)

# Single-line shapes, tried in this order.
# "PROD123 Widget Name 5 $29.99"
LINE_SKU_DESC_QTY_PRICE_RE = re.compile(rf"({CODE})\s+(.+?)\s+(\d+)\s+{CURRENCY}?([\d.,]+)", re.I)
# "5 PROD123 Widget Name $29.99"
LINE_QTY_SKU_DESC_PRICE_RE = re.compile(rf"\b(\d+)\s+({CODE})\s+(.+?)\s+{CURRENCY}?([\d.,]+)", re.I)
# "PROD123 5"
LINE_SKU_QTY_RE = re.compile(rf"({CODE})\s+(\d+)", re.I)
# "5 PROD123"
LINE_QTY_SKU_RE = re.compile(rf"\b(\d+)\s+({CODE})", re.I)
# "PROD123|Widget|5|$29.99"
LINE_DELIMITED_RE = re.compile(rf"({CODE})[\t|]+(.+?)[\t|]+(\d+)[\t|]+([\d.,]+)", re.I)
# "PROD123    Widget Name    5    $29.99"
LINE_SPACED_RE = re.compile(rf"({CODE})\s{{2,}}(.+?)\s{{2,}}(\d+)\s{{2,}}{CURRENCY}?([\d.,]+)", re.I)

# Fallback scans over the whole text.
FALLBACK_ALNUM_CODE_RE = re.compile(r"([A-Z]{2,}[0-9]{2,}|[0-9]{2,}[A-Z]{2,})[^\d]*(\d+)")
FALLBACK_LABELLED_CODE_RE = re.compile(r"(PROD|ITEM|SKU|CODE)?[_-]?([A-Z0-9]{4,})[^\d]*(\d+)", re.I)

# Name extraction (order matters: codes, digit runs, then leftover amounts)
NAME_CODE_RE = re.compile(r"[A-Z0-9_-]{3,}")
NAME_DIGITS_RE = re.compile(r"\d+")
NAME_AMOUNT_RE = re.compile(rf"{CURRENCY}?[\d.,]+")
WHITESPACE_RE = re.compile(r"\s+")

PRICE_JUNK_RE = re.compile(r"[^0-9.]")
# Leading number of the cleaned amount; trailing dots or extra groups are ignored.
PRICE_NUMBER_RE = re.compile(r"\d*\.?\d+")

VALID_SKU_RE = re.compile(r"[A-Z0-9_-]{3,}", re.I)
