import re

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.infrastructure.db import get_persistence
from app.infrastructure.local_store import LocalJsonPersistence
from app.domain.errors import PersistenceError

INVOICE = {
    "customer_name": "Asha Traders",
    "customer_address": "12 MG Road, Bengaluru",
    "customer_mobile": "+91 98765 43210",
    "tax_rate_percent": "18",
    "terms_text": "Goods once sold will not be taken back.",
    "items": [{"description": "Router", "quantity": 2, "rate_inclusive_of_tax": "118.00", "serial_numbers": "SN1\nSN2"}],
}

@pytest.fixture
def client(local_store):
    app.dependency_overrides[get_persistence] = lambda: local_store
    yield TestClient(app)
    app.dependency_overrides.clear()

def test_root():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "billing-service"

def test_create_invoice(client):
    client.post("/inventory/", json={"name": "Router", "stock": 5, "unit_rate": "118"})
    resp = client.post("/invoices/", json=INVOICE)
    assert resp.status_code == 201
    body = resp.json()
    assert body["state"] == "stock_reconciled"
    assert body["stock_reconciled"] is True
    assert float(body["invoice"]["grand_total_incl_tax"]) == 236.0
    assert float(body["invoice"]["tax_amount"]) == 36.0
    assert body["invoice"]["customer"]["mobile"] == "9876543210"
    assert re.match(r"^K0001/\d{1,2}/\d{2}/\d{2}$", body["invoice"]["invoice_number"])
    assert body["low_stock_alerts"] == [{"name": "Router", "stock": 3, "threshold": 10, "status": "low_stock"}]

    invoice_id = body["invoice"]["id"]
    assert client.get(f"/invoices/{invoice_id}").json()["invoice_number"] == body["invoice"]["invoice_number"]
    assert [i["id"] for i in client.get("/invoices/", params={"q": "sn2"}).json()] == [invoice_id]

def test_validation_error_is_422(client):
    resp = client.post("/invoices/", json={**INVOICE, "customer_mobile": "12345"})
    assert resp.status_code == 422
    assert resp.json()["detail"] == {
        "kind": "validation",
        "message": "Please enter a valid 10-digit mobile number (starting with 6-9)",
    }
    assert client.get("/invoices/").json() == []

def test_stock_error_is_409(client):
    client.post("/inventory/", json={"name": "Router", "stock": 0, "unit_rate": "118"})
    resp = client.post("/invoices/", json=INVOICE)
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["kind"] == "stock"
    assert detail["reason"] == "out_of_stock"
    assert detail["item_name"] == "Router"

def test_next_number_preview(client):
    first = client.get("/invoices/next-number").json()["invoice_number"]
    assert first.startswith("K0001/")
    client.post("/invoices/", json=INVOICE)
    assert client.get("/invoices/next-number").json()["invoice_number"].startswith("K0002/")

def test_missing_invoice_is_404(client):
    assert client.get("/invoices/nope").status_code == 404
    assert client.delete("/invoices/nope").status_code == 404

def test_delete_invoice(client):
    invoice_id = client.post("/invoices/", json=INVOICE).json()["invoice"]["id"]
    assert client.delete(f"/invoices/{invoice_id}").status_code == 204
    assert client.get(f"/invoices/{invoice_id}").status_code == 404

def test_inventory_endpoints(client):
    assert client.post("/inventory/", json={"name": "Router", "stock": 0, "unit_rate": "118"}).status_code == 201
    assert client.post("/inventory/", json={"name": "Cable", "stock": 40, "unit_rate": "120"}).status_code == 201
    duplicate = client.post("/inventory/", json={"name": "router", "unit_rate": "1"})
    assert duplicate.status_code == 503
    assert duplicate.json()["detail"]["kind"] == "persistence"
    assert [i["name"] for i in client.get("/inventory/").json()] == ["Cable", "Router"]
    assert client.get("/inventory/low-stock").json() == [
        {"name": "Router", "stock": 0, "threshold": 10, "status": "out_of_stock"}
    ]

def test_sales_summary(client):
    client.post("/invoices/", json=INVOICE)
    body = client.get("/reports/sales-summary").json()
    assert body["invoice_count"] == 1
    assert body["total_units"] == 2
    assert float(body["grand_total_incl_tax"]) == 236.0
    assert body["today_invoice_count"] == 1

class BrokenStockStore(LocalJsonPersistence):
    def update_inventory_stock(self, item_name, new_stock):
        raise PersistenceError("Failed to save billing data. Please try again.")

def test_partial_reconciliation_still_returns_invoice(tmp_path):
    store = BrokenStockStore(tmp_path / "store.json")
    app.dependency_overrides[get_persistence] = lambda: store
    try:
        client = TestClient(app)
        client.post("/inventory/", json={"name": "Router", "stock": 5, "unit_rate": "118"})
        resp = client.post("/invoices/", json=INVOICE)
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 201
    body = resp.json()
    assert body["stock_reconciled"] is False
    assert body["state"] == "persisted"
    assert len(body["reconciliation_errors"]) == 1
    assert len(store.list_invoices()) == 1

def test_readiness_reports_store(client):
    resp = client.get("/health/ready")
    assert "store:connectivity" in resp.json()["checks"]

def test_numeric_mobile_reaches_validator(client):
    resp = client.post("/invoices/", json={**INVOICE, "customer_mobile": 9876543210})
    assert resp.status_code == 201
    assert resp.json()["invoice"]["customer"]["mobile"] == "9876543210"

def test_numeric_bad_mobile_gets_validation_message(client):
    resp = client.post("/invoices/", json={**INVOICE, "customer_mobile": 12345})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "validation"
    assert resp.json()["detail"]["message"].startswith("Please enter a valid 10-digit mobile number")
