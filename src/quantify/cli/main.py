from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from ..billparser import BillParsingError, BillParsingService
from ..config import load_settings
from ..inventory.constants import OPERATION_CHOICES, SAMPLE_STOCKS
from ..inventory.db import StockDatabase, StockValidationError
from ..inventory.updates import items_to_stock_updates
from ..logging import get_logger
from ..paths import expand_abs

LOG = get_logger("cli-main")


def _print_json(data: object) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _parse_text(ns: argparse.Namespace) -> int:
    if ns.file:
        with open(expand_abs(ns.file), "r", encoding="utf-8") as f:
            text = f.read()
    else:
        text = ns.text
    svc = BillParsingService(load_settings(os.getcwd()))
    result = svc.parse_text(text, validate=not ns.no_validate)
    _print_json([item.to_dict() for item in result.items])
    return 0


def _parse_bill(ns: argparse.Namespace) -> int:
    svc = BillParsingService(load_settings(os.getcwd()))
    try:
        result = svc.parse_document(expand_abs(ns.source), validate=not ns.no_validate)
    except BillParsingError as exc:
        LOG.error(str(exc))
        return 1
    _print_json([item.to_dict() for item in result.items])
    return 0


def _apply_bill(ns: argparse.Namespace) -> int:
    settings = load_settings(os.getcwd())
    svc = BillParsingService(settings)
    try:
        result = svc.parse_document(expand_abs(ns.source))
    except BillParsingError as exc:
        LOG.error(str(exc))
        return 1
    if not result.items:
        LOG.error("No items found in the bill; nothing to apply.")
        return 1
    db = StockDatabase(root_dir=settings.db_root or os.getcwd())
    try:
        summary = db.batch_update(items_to_stock_updates(result.items, ns.operation), ns.operation)
    except StockValidationError as exc:
        LOG.error(f"Bill items could not be applied: {exc}")
        return 1
    _print_json(summary)
    return 0 if not summary["failed"] else 2


def _seed(_: argparse.Namespace) -> int:
    settings = load_settings(os.getcwd())
    db = StockDatabase(root_dir=settings.db_root or os.getcwd())
    try:
        count = db.seed(SAMPLE_STOCKS)
    except StockValidationError as exc:
        LOG.error(f"Seeding failed: {exc}")
        return 1
    for stock in SAMPLE_STOCKS:
        details = " - ".join(str(v) for v in (stock.get("color"), stock.get("size")) if v)
        LOG.info(f"   {stock['sku']} - Qty: {stock['quantity']}{' - ' + details if details else ''}")
    print(count)
    return 0


def _serve(ns: argparse.Namespace) -> int:
    from ..inventory.api import create_app
    import uvicorn

    settings = load_settings(os.getcwd())
    allow_origins = ns.allow_origins or settings.allow_origins
    app = create_app(root_dir=settings.db_root or os.getcwd(), settings=settings, allow_origins=allow_origins)
    uvicorn.run(
        app,
        host=ns.host or settings.host,
        port=ns.port or settings.port,
        log_level=ns.log_level,
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="quantify",
        description="Stock management toolkit with bill parsing.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    text_cmd = subparsers.add_parser("parse-text", help="Extract SKU quantities from already-extracted bill text.")
    src = text_cmd.add_mutually_exclusive_group(required=True)
    src.add_argument("--file", help="Path to a UTF-8 text file")
    src.add_argument("--text", help="Bill text given inline")
    text_cmd.add_argument("--no-validate", action="store_true", help="Skip SKU/quantity validation")
    text_cmd.set_defaults(handler=_parse_text)

    bill_cmd = subparsers.add_parser("parse-bill", help="OCR/extract an image or PDF bill and print its items.")
    bill_cmd.add_argument("--source", required=True)
    bill_cmd.add_argument("--no-validate", action="store_true", help="Skip SKU/quantity validation")
    bill_cmd.set_defaults(handler=_parse_bill)

    apply_cmd = subparsers.add_parser("apply-bill", help="Parse a bill and apply its items to stock.")
    apply_cmd.add_argument("--source", required=True)
    apply_cmd.add_argument("--operation", choices=list(OPERATION_CHOICES), default="subtract")
    apply_cmd.set_defaults(handler=_apply_bill)

    seed_cmd = subparsers.add_parser("seed", help="Replace stock with the sample catalogue.")
    seed_cmd.set_defaults(handler=_seed)

    serve_cmd = subparsers.add_parser("serve", help="Run the stock API server.")
    serve_cmd.add_argument("--host")
    serve_cmd.add_argument("--port", type=int)
    serve_cmd.add_argument("--log-level", default="info")
    serve_cmd.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve_cmd.set_defaults(handler=_serve)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.debug(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
