from __future__ import annotations

import math
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ..logging import get_logger
from ..paths import find_project_root, var_dir
from .constants import (
    COLOR_MAX_LENGTH,
    OPERATION_ADD,
    OPERATION_CHOICES,
    OPERATION_SET,
    OPERATION_SUBTRACT,
    SIZE_MAX_LENGTH,
    SKU_MAX_LENGTH,
    SKU_RE,
    SORTABLE_COLUMNS,
)


LOG = get_logger("inventory-db")

DEFAULT_DB_FOLDER = "inventory"
DEFAULT_DB_FILENAME = "stock.sqlite3"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS stocks (
  stock_id      INTEGER PRIMARY KEY,
  sku           TEXT NOT NULL UNIQUE,      -- uppercase, [A-Z0-9_-]
  quantity      INTEGER NOT NULL CHECK(quantity >= 0),
  color         TEXT,
  size          TEXT,
  last_updated  TEXT DEFAULT (datetime('now')),
  created_at    TEXT DEFAULT (datetime('now')),
  updated_at    TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_stocks_last_updated ON stocks(last_updated);
"""

STOCK_COLUMNS = "stock_id, sku, quantity, color, size, last_updated, created_at, updated_at"

# Marks "leave unchanged" for optional update fields
_UNSET: Any = object()


class StockValidationError(ValueError):
    pass


class DuplicateSkuError(Exception):
    pass


def normalize_sku(sku: Any) -> str:
    if not isinstance(sku, str) or not sku.strip():
        raise StockValidationError("SKU is required")
    value = sku.strip().upper()
    if len(value) > SKU_MAX_LENGTH:
        raise StockValidationError(f"SKU must be between 1 and {SKU_MAX_LENGTH} characters")
    if not SKU_RE.fullmatch(value):
        raise StockValidationError("SKU must contain only uppercase letters, numbers, hyphens, and underscores")
    return value


def _quantity(value: Any, *, allow_negative: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise StockValidationError("Quantity must be a whole number")
    if value < 0 and not allow_negative:
        raise StockValidationError("Quantity must be a non-negative integer")
    return value


def _detail(value: Any, label: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StockValidationError(f"{label} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise StockValidationError(f"{label} must be less than {max_length} characters")
    return value or None


def _row_to_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    return dict(row) if row is not None else None


class StockDatabase:
    """SQLite-backed stock records keyed by SKU.

    - Places DB under `<repo-root>/var/inventory/stock.sqlite3`.
    - Ensures schema on first use.
    - Provides a context-managed connection method.
    """

    def __init__(self, root_dir: Optional[str] = None) -> None:
        root = find_project_root(root_dir)
        db_folder = os.path.join(var_dir(root), DEFAULT_DB_FOLDER)
        os.makedirs(db_folder, exist_ok=True)
        self.db_path = os.path.join(db_folder, DEFAULT_DB_FILENAME)
        LOG.info(f"Stock DB path: {self.db_path}")
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.OperationalError:
                LOG.debug("WAL mode unavailable; continuing with defaults")
            cur.executescript(SCHEMA_SQL)
            conn.commit()
            LOG.debug("Stock DB schema ensured.")

    def _fetch(self, conn: sqlite3.Connection, sku: str) -> Optional[Dict[str, Any]]:
        cur = conn.execute(f"SELECT {STOCK_COLUMNS} FROM stocks WHERE sku = ?", (sku,))
        return _row_to_dict(cur.fetchone())

    # CRUD

    def create_stock(
        self,
        sku: str,
        quantity: int,
        color: Optional[str] = None,
        size: Optional[str] = None,
    ) -> Dict[str, Any]:
        norm = normalize_sku(sku)
        qty = _quantity(quantity)
        color_v = _detail(color, "Color", COLOR_MAX_LENGTH)
        size_v = _detail(size, "Size", SIZE_MAX_LENGTH)
        with self.connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO stocks (sku, quantity, color, size) VALUES (?, ?, ?, ?)",
                    (norm, qty, color_v, size_v),
                )
                conn.commit()
            except sqlite3.IntegrityError as exc:
                raise DuplicateSkuError(f"SKU already exists: {norm}") from exc
            created = self._fetch(conn, norm)
        LOG.info(f"Created stock {norm} with quantity {qty}")
        return created

    def get_stock(self, sku: str) -> Optional[Dict[str, Any]]:
        norm = normalize_sku(sku)
        with self.connect() as conn:
            return self._fetch(conn, norm)

    def update_stock(
        self,
        sku: str,
        quantity: int,
        color: Optional[str] = _UNSET,
        size: Optional[str] = _UNSET,
    ) -> Optional[Dict[str, Any]]:
        """Set quantity (and optionally color/size). Returns None when SKU is unknown."""
        norm = normalize_sku(sku)
        qty = _quantity(quantity)
        assignments = ["quantity = ?"]
        params: List[Any] = [qty]
        if color is not _UNSET:
            assignments.append("color = ?")
            params.append(_detail(color, "Color", COLOR_MAX_LENGTH))
        if size is not _UNSET:
            assignments.append("size = ?")
            params.append(_detail(size, "Size", SIZE_MAX_LENGTH))
        assignments.append("last_updated = datetime('now'), updated_at = datetime('now')")
        with self.connect() as conn:
            cur = conn.execute(
                f"UPDATE stocks SET {', '.join(assignments)} WHERE sku = ?",
                (*params, norm),
            )
            if cur.rowcount == 0:
                return None
            conn.commit()
            return self._fetch(conn, norm)

    def delete_stock(self, sku: str) -> Optional[Dict[str, Any]]:
        norm = normalize_sku(sku)
        with self.connect() as conn:
            existing = self._fetch(conn, norm)
            if existing is None:
                return None
            conn.execute("DELETE FROM stocks WHERE sku = ?", (norm,))
            conn.commit()
        LOG.info(f"Deleted stock {norm}")
        return existing

    # Queries

    def list_stocks(
        self,
        *,
        page: int = 1,
        limit: int = 100,
        sort_by: str = "sku",
        sort_order: str = "asc",
        search: Optional[str] = None,
        color: Optional[str] = None,
        size: Optional[str] = None,
        min_quantity: Optional[int] = None,
        max_quantity: Optional[int] = None,
    ) -> Dict[str, Any]:
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"Unsupported sort column: {sort_by}")
        direction = "DESC" if (sort_order or "").lower() == "desc" else "ASC"
        page = max(1, page)
        limit = max(1, limit)

        clauses: List[str] = []
        params: List[Any] = []
        if search:
            clauses.append("sku LIKE ?")
            params.append(f"%{search}%")
        if color:
            clauses.append("color = ?")
            params.append(color)
        if size:
            clauses.append("size = ?")
            params.append(size)
        if min_quantity is not None:
            clauses.append("quantity >= ?")
            params.append(min_quantity)
        if max_quantity is not None:
            clauses.append("quantity <= ?")
            params.append(max_quantity)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT {STOCK_COLUMNS} FROM stocks {where} ORDER BY {sort_by} {direction} LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            ).fetchall()
            filtered = conn.execute(f"SELECT COUNT(*) FROM stocks {where}", params).fetchone()[0]
            totals = conn.execute("SELECT COUNT(*), COALESCE(SUM(quantity), 0) FROM stocks").fetchone()

        stocks = [dict(r) for r in rows]
        return {
            "stocks": stocks,
            "pagination": {
                "current": page,
                "total": math.ceil(filtered / limit),
                "count": len(stocks),
                "total_records": filtered,
            },
            "summary": {
                "total_stocks": totals[0],
                "total_quantity": totals[1],
                "filtered_results": filtered,
            },
        }

    # Batch adjustments

    def batch_update(self, updates: Iterable[Mapping[str, Any]], operation: str = OPERATION_ADD) -> Dict[str, Any]:
        """Apply quantity changes to many SKUs.

        Unknown SKUs land in `not_found`; changes that would make a quantity
        negative land in `failed`. Everything else is applied.
        """
        if operation not in OPERATION_CHOICES:
            raise StockValidationError('Operation must be "add", "subtract", or "set"')
        updates = list(updates)
        if not updates:
            raise StockValidationError("Updates must be a non-empty array")
        prepared = []
        for idx, update in enumerate(updates):
            if not isinstance(update, Mapping):
                raise StockValidationError(f"updates[{idx}] must be an object")
            try:
                sku = normalize_sku(update.get("sku"))
                change = _quantity(update.get("quantity"), allow_negative=True)
            except StockValidationError as exc:
                raise StockValidationError(f"updates[{idx}]: {exc}") from exc
            prepared.append((sku, change))

        results: Dict[str, List[Dict[str, Any]]] = {"successful": [], "failed": [], "not_found": []}
        with self.connect() as conn:
            for sku, change in prepared:
                stock = self._fetch(conn, sku)
                if stock is None:
                    results["not_found"].append({"sku": sku, "reason": "SKU not found"})
                    continue
                old_qty = stock["quantity"]
                if operation == OPERATION_SUBTRACT:
                    new_qty = old_qty - change
                elif operation == OPERATION_SET:
                    new_qty = change
                else:
                    new_qty = old_qty + change
                if new_qty < 0:
                    results["failed"].append(
                        {
                            "sku": sku,
                            "reason": "Quantity would become negative",
                            "current_quantity": old_qty,
                            "requested_change": change,
                        }
                    )
                    continue
                conn.execute(
                    "UPDATE stocks SET quantity = ?, last_updated = datetime('now'), updated_at = datetime('now') "
                    "WHERE sku = ?",
                    (new_qty, sku),
                )
                results["successful"].append(
                    {"sku": sku, "old_quantity": old_qty, "new_quantity": new_qty, "change": new_qty - old_qty}
                )
            conn.commit()
        LOG.info(
            "Batch %s: %d successful, %d failed, %d not found",
            operation,
            len(results["successful"]),
            len(results["failed"]),
            len(results["not_found"]),
        )
        return results

    def seed(self, stocks: Iterable[Mapping[str, Any]]) -> int:
        """Replace all stock rows with the given records."""
        rows = [
            (normalize_sku(s.get("sku")), _quantity(s.get("quantity")), s.get("color"), s.get("size"))
            for s in stocks
        ]
        with self.connect() as conn:
            conn.execute("DELETE FROM stocks")
            conn.executemany("INSERT INTO stocks (sku, quantity, color, size) VALUES (?, ?, ?, ?)", rows)
            conn.commit()
        LOG.info(f"Seeded {len(rows)} stock item(s)")
        return len(rows)
