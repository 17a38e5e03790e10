from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

SKU_RE = re.compile(r"[A-Z0-9_-]+")
SKU_MAX_LENGTH = 50
COLOR_MAX_LENGTH = 30
SIZE_MAX_LENGTH = 20

OPERATION_ADD = "add"
OPERATION_SUBTRACT = "subtract"
OPERATION_SET = "set"
OPERATION_CHOICES: Tuple[str, ...] = (OPERATION_ADD, OPERATION_SUBTRACT, OPERATION_SET)
OPERATION_DEFAULT = OPERATION_ADD

SORTABLE_COLUMNS: Tuple[str, ...] = ("sku", "quantity", "color", "size", "last_updated", "created_at")

UPLOAD_MIME_TYPES: Tuple[str, ...] = ("image/jpeg", "image/png", "image/jpg", "application/pdf")

SAMPLE_STOCKS: List[Dict[str, Any]] = [
    {"sku": "TSHIRT-RED-M", "quantity": 25, "color": "Red", "size": "M"},
    {"sku": "TSHIRT-RED-L", "quantity": 18, "color": "Red", "size": "L"},
    {"sku": "TSHIRT-BLUE-M", "quantity": 32, "color": "Blue", "size": "M"},
    {"sku": "TSHIRT-BLUE-L", "quantity": 15, "color": "Blue", "size": "L"},
    {"sku": "JEANS-DARK-32", "quantity": 12, "color": "Dark Blue", "size": "32"},
    {"sku": "JEANS-DARK-34", "quantity": 8, "color": "Dark Blue", "size": "34"},
    {"sku": "HOODIE-GRAY-M", "quantity": 20, "color": "Gray", "size": "M"},
    {"sku": "HOODIE-GRAY-L", "quantity": 14, "color": "Gray", "size": "L"},
    {"sku": "SNEAKERS-WHITE-9", "quantity": 6, "color": "White", "size": "9"},
    {"sku": "SNEAKERS-WHITE-10", "quantity": 4, "color": "White", "size": "10"},
    {"sku": "HAT-BLACK", "quantity": 35, "color": "Black", "size": None},
    {"sku": "SOCKS-WHITE", "quantity": 100, "color": "White", "size": None},
]
