"""Stock records and their HTTP API.

Modules:
- db: SQLite storage, CRUD, listing and batch quantity adjustments
- updates: bill items → batch-update instructions
- api: Starlette application
"""

from .api import create_app
from .db import DuplicateSkuError, StockDatabase, StockValidationError
from .updates import items_to_stock_updates

__all__ = [
    "DuplicateSkuError",
    "StockDatabase",
    "StockValidationError",
    "create_app",
    "items_to_stock_updates",
]
