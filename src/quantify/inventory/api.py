from __future__ import annotations

from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .. import __version__
from ..billparser import BillParsingService, TextExtractionError, UnsupportedFileError
from ..config import Settings
from ..logging import get_logger
from ..paths import find_project_root
from .constants import OPERATION_CHOICES, OPERATION_DEFAULT, UPLOAD_MIME_TYPES
from .db import DuplicateSkuError, StockDatabase, StockValidationError
from .updates import items_to_stock_updates


LOG = get_logger("inventory-api")


def _parse_int(value: Optional[str], *, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(value) if value is not None else default
    except (TypeError, ValueError):
        parsed = default
    if parsed < minimum:
        return minimum
    if parsed > maximum:
        return maximum
    return parsed


def _optional_int(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {name}") from exc


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _ok(data: Any, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    payload: Dict[str, Any] = {"success": True}
    if message:
        payload["message"] = message
    payload["data"] = data
    return JSONResponse(payload, status_code=status_code)


def _validation_error(exc: Exception) -> JSONResponse:
    return JSONResponse(
        {"success": False, "message": "Validation errors", "errors": [str(exc)]},
        status_code=400,
    )


async def _http_error(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse({"success": False, "message": exc.detail}, status_code=exc.status_code)


def create_app(
    root_dir: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    allow_origins: Optional[List[str]] = None,
    max_upload_bytes: Optional[int] = None,
) -> Starlette:
    """Create a Starlette app exposing stock CRUD and bill parsing."""

    settings = settings or Settings()
    project_root = find_project_root(root_dir or settings.db_root)
    db = StockDatabase(root_dir=project_root)
    bill_service = BillParsingService(settings)
    upload_limit = max_upload_bytes or settings.max_upload_bytes

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"success": True, "status": "ok", "db_path": db.db_path})

    async def api_info(_: Request) -> JSONResponse:
        return JSONResponse(
            {
                "success": True,
                "message": "Quantify Stock Management API",
                "version": __version__,
                "endpoints": {
                    "GET /api/stocks": "List stocks with optional filtering and pagination",
                    "GET /api/stocks/{sku}": "Get single stock by SKU",
                    "POST /api/stocks": "Create new stock item",
                    "PUT /api/stocks/{sku}": "Update stock quantity and details",
                    "PATCH /api/stocks/batch": "Batch update quantities for multiple SKUs",
                    "DELETE /api/stocks/{sku}": "Delete stock item",
                    "POST /api/bills/parse": "Extract SKU quantities from a bill image or PDF",
                },
            }
        )

    async def list_stocks(request: Request) -> JSONResponse:
        qp = request.query_params
        try:
            payload = db.list_stocks(
                page=_parse_int(qp.get("page"), default=1, minimum=1, maximum=100_000),
                limit=_parse_int(qp.get("limit"), default=100, minimum=1, maximum=500),
                sort_by=qp.get("sort_by") or qp.get("sortBy") or "sku",
                sort_order=qp.get("sort_order") or qp.get("sortOrder") or "asc",
                search=qp.get("search") or None,
                color=qp.get("color") or None,
                size=qp.get("size") or None,
                min_quantity=_optional_int(qp.get("min_quantity"), "min_quantity"),
                max_quantity=_optional_int(qp.get("max_quantity"), "max_quantity"),
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _ok(payload)

    async def get_stock(request: Request) -> JSONResponse:
        try:
            stock = db.get_stock(request.path_params["sku"])
        except StockValidationError as exc:
            return _validation_error(exc)
        if stock is None:
            raise HTTPException(status_code=404, detail="Stock not found")
        return _ok(stock)

    async def create_stock(request: Request) -> JSONResponse:
        body = await _json_body(request)
        try:
            stock = db.create_stock(
                body.get("sku"),
                body.get("quantity"),
                color=body.get("color"),
                size=body.get("size"),
            )
        except StockValidationError as exc:
            return _validation_error(exc)
        except DuplicateSkuError as exc:
            raise HTTPException(status_code=409, detail="SKU already exists") from exc
        return _ok(stock, "Stock created successfully", status_code=201)

    async def update_stock(request: Request) -> JSONResponse:
        body = await _json_body(request)
        details = {k: body[k] for k in ("color", "size") if k in body}
        try:
            stock = db.update_stock(request.path_params["sku"], body.get("quantity"), **details)
        except StockValidationError as exc:
            return _validation_error(exc)
        if stock is None:
            raise HTTPException(status_code=404, detail="Stock not found")
        return _ok(stock, "Stock updated successfully")

    async def delete_stock(request: Request) -> JSONResponse:
        try:
            stock = db.delete_stock(request.path_params["sku"])
        except StockValidationError as exc:
            return _validation_error(exc)
        if stock is None:
            raise HTTPException(status_code=404, detail="Stock not found")
        return _ok(stock, "Stock deleted successfully")

    async def batch_update(request: Request) -> JSONResponse:
        body = await _json_body(request)
        updates = body.get("updates")
        if not isinstance(updates, list):
            return _validation_error(ValueError("Updates must be a non-empty array"))
        try:
            results = db.batch_update(updates, body.get("operation") or OPERATION_DEFAULT)
        except StockValidationError as exc:
            return _validation_error(exc)
        return _batch_response(results)

    async def parse_bill(request: Request) -> JSONResponse:
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise HTTPException(status_code=400, detail="No file provided")
        mime_type = (upload.content_type or "").lower()
        if mime_type not in UPLOAD_MIME_TYPES:
            raise HTTPException(status_code=415, detail="Please select a valid image (JPG, PNG) or PDF file.")
        data = await upload.read()
        if len(data) > upload_limit:
            raise HTTPException(
                status_code=413,
                detail=f"File size must be less than {upload_limit // (1024 * 1024)}MB.",
            )
        apply = form.get("apply")
        if apply is not None and apply not in OPERATION_CHOICES:
            raise HTTPException(status_code=400, detail='apply must be "add", "subtract", or "set"')

        LOG.info(f"Parsing uploaded bill {upload.filename} ({mime_type}, {len(data)} bytes)")
        try:
            result = await run_in_threadpool(
                bill_service.parse_document,
                data,
                filename=upload.filename,
                mime_type=mime_type,
            )
        except UnsupportedFileError as exc:
            raise HTTPException(status_code=415, detail=str(exc)) from exc
        except TextExtractionError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        payload: Dict[str, Any] = {
            "items": [item.to_dict() for item in result.items],
            "strategy": result.strategy,
            "rejected": [{"item": item.to_dict(), "reason": reason} for item, reason in result.rejected],
        }
        if apply and result.items:
            try:
                payload["batch"] = db.batch_update(items_to_stock_updates(result.items, apply), apply)
            except StockValidationError as exc:
                return _validation_error(exc)
        message = None if result.items else "No items found in the uploaded bill"
        return _ok(payload, message)

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api", api_info, methods=["GET"]),
        Route("/api/stocks", list_stocks, methods=["GET"]),
        Route("/api/stocks", create_stock, methods=["POST"]),
        Route("/api/stocks/batch", batch_update, methods=["PATCH"]),
        Route("/api/stocks/{sku:str}", get_stock, methods=["GET"]),
        Route("/api/stocks/{sku:str}", update_stock, methods=["PUT"]),
        Route("/api/stocks/{sku:str}", delete_stock, methods=["DELETE"]),
        Route("/api/bills/parse", parse_bill, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes, exception_handlers={HTTPException: _http_error})

    origins = allow_origins or settings.allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    LOG.info(f"Stock API ready (db={db.db_path})")
    return app


def _batch_response(results: Dict[str, Any]) -> JSONResponse:
    failed = len(results["failed"])
    message = (
        f"Batch update completed. {len(results['successful'])} successful, "
        f"{failed} failed, {len(results['not_found'])} not found."
    )
    return JSONResponse(
        {"success": failed == 0, "message": message, "data": results},
        status_code=207 if failed else 200,
    )


__all__ = ["create_app"]
