from decimal import Decimal
from io import BytesIO

import openpyxl
import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from backend.app.services.spreadsheet import XLSX_MEDIA_TYPE, read_workbook


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


LINE = {"description": "Training", "quantity": 3, "rate": 100, "tax_mode": "split", "tax_rate": 18}


def seed(client: TestClient):
    customer = client.post("/customers/", json={"name": "Acme Industries", "email": "accounts@acme.example"}).json()
    resp = client.post(
        "/invoices/",
        json={
            "invoice_date": "2025-01-31",
            "customer_id": customer["id"],
            "customer_address": "12 MG Road, Pune",
            "items": [LINE, {**LINE, "description": "Audit", "tax_mode": "unified"}],
        },
    )
    assert resp.status_code == 201, resp.text
    return customer, resp.json()


def make_workbook(headers, *rows) -> bytes:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def upload(client: TestClient, content: bytes):
    return client.post("/data/import", files={"file": ("invoices.xlsx", content, XLSX_MEDIA_TYPE)})


def test_export_spreadsheet():
    client = TestClient(app)
    seed(client)
    resp = client.get("/data/export.xlsx")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX_MEDIA_TYPE
    assert "invoices.xlsx" in resp.headers["content-disposition"]

    rows = read_workbook(resp.content)
    assert [row["Item Description"] for row in rows] == ["Training", "Audit"]
    assert rows[1]["GST Mode"] == "igst"


def test_import_replaces_data_from_export():
    client = TestClient(app)
    customer, invoice = seed(client)
    exported = client.get("/data/export.xlsx").content

    client.delete(f"/invoices/{invoice['id']}")
    resp = upload(client, exported)
    assert resp.status_code == 200
    assert resp.json() == {"customers": 1, "invoices": 1}

    restored = client.get(f"/invoices/{invoice['id']}").json()
    assert restored["invoice_number"] == invoice["invoice_number"]
    assert restored["customer_id"] == customer["id"]
    assert Decimal(restored["total_amount"]) == Decimal(invoice["total_amount"])
    assert [item["tax_mode"] for item in restored["items"]] == ["split", "unified"]


def test_import_accepts_alternate_headers():
    client = TestClient(app)
    content = make_workbook(
        ["id", "invoice_number", "invoice_date", "customer_name", "customer_address", "email",
         "description", "qty", "rate", "cgst", "sgst"],
        ["x1", "PINV/2025/03/01980001", "2025-03-01", "Delta", "Mumbai", "d@delta.example",
         "Survey", 2, 50, 9, 9],
    )
    resp = upload(client, content)
    assert resp.status_code == 200
    assert resp.json() == {"customers": 0, "invoices": 1}

    invoice = client.get("/invoices/x1").json()
    assert invoice["invoice_number"] == "PINV/2025/03/01980001"
    assert invoice["customer_email"] == "d@delta.example"
    assert Decimal(invoice["total_amount"]) == Decimal("118.00")
    assert Decimal(invoice["items"][0]["cgst_rate"]) == Decimal("9.00")


def test_import_rejects_non_spreadsheet():
    client = TestClient(app)
    resp = upload(client, b"plain text")
    assert resp.status_code == 400


def test_backup_and_restore():
    client = TestClient(app)
    customer, invoice = seed(client)

    backup = client.get("/data/backup.json").json()
    assert backup["schema"] == "peats-v1"
    assert backup["exportedAt"]
    assert [c["id"] for c in backup["customers"]] == [customer["id"]]

    client.delete(f"/invoices/{invoice['id']}")
    client.delete(f"/customers/{customer['id']}")

    resp = client.post("/data/restore", json=backup)
    assert resp.status_code == 200
    assert resp.json() == {"customers": 1, "invoices": 1}
    restored = client.get(f"/invoices/{invoice['id']}").json()
    assert restored["invoice_number"] == invoice["invoice_number"]
    assert restored["created_at"]


def test_restore_rejects_unknown_schema():
    client = TestClient(app)
    resp = client.post("/data/restore", json={"schema": "other-v9", "customers": [], "invoices": []})
    assert resp.status_code == 400


def test_import_rejects_unknown_status():
    client = TestClient(app)
    content = make_workbook(
        ["Invoice ID", "Invoice Date", "Customer Name", "Invoice Status", "Item Description", "Quantity", "Rate"],
        ["x1", "2025-03-01", "Delta", "payed", "Survey", 1, 50],
    )
    resp = upload(client, content)
    assert resp.status_code == 400
    assert client.get("/invoices/").json() == []


def test_restore_requires_schema_tag():
    client = TestClient(app)
    resp = client.post("/data/restore", json={"customers": [], "invoices": []})
    assert resp.status_code == 422
