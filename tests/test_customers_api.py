import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def test_create_and_list_customers():
    client = TestClient(app)
    resp = client.post(
        "/customers/",
        json={"name": "  Acme Industries ", "gstin": "27AAPFU0939F1ZV", "email": "accounts@acme.example"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Acme Industries"
    assert data["id"]

    client.post("/customers/", json={"name": "Beta Works", "phone": "+91 98765 43210"})
    names = [c["name"] for c in client.get("/customers/").json()]
    assert names == ["Acme Industries", "Beta Works"]

    found = client.get("/customers/", params={"q": "98765"}).json()
    assert [c["name"] for c in found] == ["Beta Works"]


def test_customer_name_required():
    client = TestClient(app)
    assert client.post("/customers/", json={"name": " "}).status_code == 400


def test_invalid_gstin_needs_acknowledgement():
    client = TestClient(app)
    resp = client.post("/customers/", json={"name": "Acme", "gstin": "NOTAGSTIN"})
    assert resp.status_code == 409
    resp = client.post("/customers/", json={"name": "Acme", "gstin": "NOTAGSTIN", "acknowledge_warnings": True})
    assert resp.status_code == 201


def test_update_and_delete_customer():
    client = TestClient(app)
    customer = client.post("/customers/", json={"name": "Acme"}).json()

    resp = client.put(f"/customers/{customer['id']}", json={"name": "Acme Ltd", "address": "Pune"})
    assert resp.status_code == 200
    assert resp.json()["address"] == "Pune"

    assert client.delete(f"/customers/{customer['id']}").status_code == 204
    assert client.get(f"/customers/{customer['id']}").status_code == 404
    assert client.put(f"/customers/{customer['id']}", json={"name": "x"}).status_code == 404


def test_long_gstin_saved_after_acknowledgement():
    client = TestClient(app)
    gstin = "27ABCDE1234F1Z5XYZ-EXTRA"
    resp = client.post("/customers/", json={"name": "Acme", "gstin": gstin, "acknowledge_warnings": True})
    assert resp.status_code == 201
    assert client.get(f"/customers/{resp.json()['id']}").json()["gstin"] == gstin


def test_free_text_columns_are_unbounded():
    for column in (Customer.__table__.c.gstin, Invoice.__table__.c.customer_gstin, InvoiceItem.__table__.c.hsn):
        assert getattr(column.type, "length", None) is None
