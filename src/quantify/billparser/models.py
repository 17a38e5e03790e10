from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class ParsedItem:
    sku: str
    qty: int
    name: Optional[str] = None
    price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape used by the API/CLI; absent name/price are omitted."""
        out: Dict[str, Any] = {"sku": self.sku, "qty": self.qty}
        if self.name is not None:
            out["name"] = self.name
        if self.price is not None:
            out["price"] = self.price
        return out


@dataclass
class ParseOutcome:
    items: List[ParsedItem]
    # Strategy function name, "fallback", or None when nothing matched
    strategy: Optional[str] = None
