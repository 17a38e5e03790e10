from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..billparser.models import ParsedItem
from .constants import OPERATION_CHOICES, OPERATION_DEFAULT


def items_to_stock_updates(items: Iterable[ParsedItem], operation: str = OPERATION_DEFAULT) -> List[Dict[str, Any]]:
    """Map validated bill items to batch-update instructions."""
    if operation not in OPERATION_CHOICES:
        raise ValueError(f"Unsupported operation: {operation}")
    return [{"sku": item.sku, "quantity": item.qty, "operation": operation} for item in items]
