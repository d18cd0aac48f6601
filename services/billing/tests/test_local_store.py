import json
from decimal import Decimal

import pytest

from app.application.schemas import InventoryItemCreate
from app.application.service import InvoiceService
from app.domain.errors import PersistenceError
from app.infrastructure.local_store import LocalJsonPersistence

def test_missing_file_is_an_empty_store(tmp_path):
    store = LocalJsonPersistence(tmp_path / "nested" / "store.json")
    assert store.list_invoices() == []
    assert store.list_inventory() == []
    store.ping()

def test_data_survives_reopen(tmp_path, settings, clock, make_raw):
    path = tmp_path / "store.json"
    store = LocalJsonPersistence(path)
    store.add_inventory_item(InventoryItemCreate(name="Router", stock=5, unit_rate=Decimal("118")))
    invoice = InvoiceService(store, settings, clock).create_invoice(make_raw()).invoice

    reopened = LocalJsonPersistence(path)
    saved = reopened.get_invoice(invoice.id)
    assert saved.grand_total_incl_tax == Decimal("236.00")
    assert reopened.list_inventory()[0].stock == 3
    assert not (tmp_path / "store.json.tmp").exists()

def test_duplicate_item_names_are_rejected(tmp_path):
    store = LocalJsonPersistence(tmp_path / "store.json")
    store.add_inventory_item(InventoryItemCreate(name="Router", unit_rate=Decimal("118")))
    with pytest.raises(PersistenceError, match='An item named "ROUTER " already exists'):
        store.add_inventory_item(InventoryItemCreate(name="ROUTER ", unit_rate=Decimal("99")))

def test_unknown_item_update_fails(tmp_path):
    store = LocalJsonPersistence(tmp_path / "store.json")
    with pytest.raises(PersistenceError, match="not found"):
        store.update_inventory_stock("Router", 3)

@pytest.mark.parametrize("content", ["[]", "42", "{\"invoices\": {}}", "{\"inventory\": [1, 2]}"])
def test_non_object_documents_raise_persistence_error(tmp_path, content):
    path = tmp_path / "store.json"
    path.write_text(content, encoding="utf-8")
    store = LocalJsonPersistence(path)
    with pytest.raises(PersistenceError, match="might be corrupted"):
        store.list_invoices()
    with pytest.raises(PersistenceError, match="might be corrupted"):
        store.update_inventory_stock("Router", 1)

def test_corrupted_file_raises_persistence_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = LocalJsonPersistence(path)
    with pytest.raises(PersistenceError, match="might be corrupted"):
        store.list_invoices()
    with pytest.raises(PersistenceError):
        store.ping()

def test_malformed_records_raise_persistence_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"inventory": [{"name": "Router"}], "invoices": []}), encoding="utf-8")
    with pytest.raises(PersistenceError, match="malformed"):
        LocalJsonPersistence(path).list_inventory()
