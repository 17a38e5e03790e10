"""
Quantify – stock management with a bill parser.

The package bundles the shared foundations (config, logging, paths), the
bill text extraction engine (`billparser`) and the SQLite-backed inventory
with its HTTP API (`inventory`).
"""

__all__ = [
    "config",
    "logging",
    "paths",
]

__version__ = "1.0.0"
