from __future__ import annotations

from pathlib import Path

import fitz
from starlette.testclient import TestClient

from quantify.inventory import StockDatabase, create_app
from quantify.inventory.constants import SAMPLE_STOCKS


def _seed_database(root: Path) -> None:
    (root / "README.md").write_text("test marker", encoding="utf-8")
    StockDatabase(root_dir=str(root)).seed(SAMPLE_STOCKS)


def _pdf_bytes(text: str) -> bytes:
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _client(root: Path, **kwargs) -> TestClient:
    _seed_database(root)
    return TestClient(create_app(root_dir=str(root), allow_origins=["*"], **kwargs))


def test_stock_crud_endpoints(tmp_path: Path) -> None:
    client = _client(tmp_path)

    assert client.get("/api/health").json()["status"] == "ok"

    listing = client.get("/api/stocks", params={"search": "hoodie", "sortBy": "quantity", "sortOrder": "desc"})
    assert listing.status_code == 200
    data = listing.json()["data"]
    assert [s["sku"] for s in data["stocks"]] == ["HOODIE-GRAY-M", "HOODIE-GRAY-L"]
    assert data["summary"]["total_stocks"] == len(SAMPLE_STOCKS)

    created = client.post("/api/stocks", json={"sku": "cap-blue", "quantity": 3, "color": "Blue"})
    assert created.status_code == 201
    assert created.json()["data"]["sku"] == "CAP-BLUE"

    duplicate = client.post("/api/stocks", json={"sku": "CAP-BLUE", "quantity": 1})
    assert duplicate.status_code == 409
    assert duplicate.json() == {"success": False, "message": "SKU already exists"}

    invalid = client.post("/api/stocks", json={"sku": "CAP-RED", "quantity": -2})
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Validation errors"

    updated = client.put("/api/stocks/cap-blue", json={"quantity": 9, "size": "L"})
    assert updated.status_code == 200
    assert updated.json()["data"]["quantity"] == 9
    assert updated.json()["data"]["color"] == "Blue"

    assert client.get("/api/stocks/CAP-BLUE").json()["data"]["size"] == "L"
    assert client.delete("/api/stocks/CAP-BLUE").status_code == 200
    assert client.get("/api/stocks/CAP-BLUE").status_code == 404


def test_batch_update_reports_partial_failure(tmp_path: Path) -> None:
    client = _client(tmp_path)

    ok = client.patch("/api/stocks/batch", json={"updates": [{"sku": "HAT-BLACK", "quantity": 5}]})
    assert ok.status_code == 200
    assert ok.json()["data"]["successful"][0]["new_quantity"] == 40

    partial = client.patch(
        "/api/stocks/batch",
        json={
            "operation": "subtract",
            "updates": [{"sku": "HAT-BLACK", "quantity": 1}, {"sku": "SNEAKERS-WHITE-10", "quantity": 99}],
        },
    )
    assert partial.status_code == 207
    body = partial.json()
    assert body["success"] is False
    assert len(body["data"]["successful"]) == 1
    assert len(body["data"]["failed"]) == 1

    bad = client.patch("/api/stocks/batch", json={"updates": []})
    assert bad.status_code == 400


def test_bill_upload_parses_and_applies(tmp_path: Path) -> None:
    client = _client(tmp_path)

    response = client.post(
        "/api/bills/parse",
        files={"file": ("bill.pdf", _pdf_bytes("HAT-BLACK 3"), "application/pdf")},
        data={"apply": "add"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["items"] == [{"sku": "HAT-BLACK", "qty": 3}]
    assert data["strategy"] == "parse_line_by_line_format"
    assert data["batch"]["successful"][0]["new_quantity"] == 38


def test_bill_upload_enforces_type_and_size(tmp_path: Path) -> None:
    client = _client(tmp_path, max_upload_bytes=64)

    wrong_type = client.post("/api/bills/parse", files={"file": ("stock.csv", b"a,b", "text/csv")})
    assert wrong_type.status_code == 415

    too_big = client.post("/api/bills/parse", files={"file": ("bill.pdf", b"%PDF" + b"0" * 100, "application/pdf")})
    assert too_big.status_code == 413

    missing = client.post("/api/bills/parse", data={"apply": "add"})
    assert missing.status_code == 400


def test_malformed_pdf_upload_is_unprocessable(tmp_path: Path) -> None:
    client = _client(tmp_path)
    response = client.post("/api/bills/parse", files={"file": ("bill.pdf", b"garbage", "application/pdf")})
    assert response.status_code == 422
    assert response.json()["message"].startswith("PDF processing failed")


def test_bill_upload_with_overlong_sku_is_rejected_not_crashed(tmp_path: Path) -> None:
    client = _client(tmp_path)

    response = client.post(
        "/api/bills/parse",
        files={"file": ("bill.pdf", _pdf_bytes("A" * 60 + " 5"), "application/pdf")},
        data={"apply": "add"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation errors"
    assert "50 characters" in body["errors"][0]
