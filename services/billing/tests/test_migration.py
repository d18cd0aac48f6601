from decimal import Decimal

from app.application.migration import load_inventory_csv, migrate_store
from app.application.schemas import InventoryItemCreate
from app.application.service import InvoiceService

def test_local_store_moves_to_database(local_store, sql_store, settings, clock, make_raw):
    local_store.add_inventory_item(InventoryItemCreate(name="Router", stock=5, unit_rate=Decimal("118")))
    InvoiceService(local_store, settings, clock).create_invoice(make_raw())

    report = migrate_store(local_store, sql_store)

    assert (report.migrated_items, report.migrated_invoices, report.skipped) == (1, 1, 0)
    assert report.errors == []
    assert sql_store.list_inventory()[0].stock == 3
    moved = sql_store.list_invoices()[0]
    assert moved.invoice_number == "K0001/6/24/25"
    assert moved.grand_total_incl_tax == Decimal("236.00")
    assert len(moved.items) == 1

def test_migration_can_be_rerun(local_store, sql_store, settings, clock, make_raw):
    local_store.add_inventory_item(InventoryItemCreate(name="Router", stock=5, unit_rate=Decimal("118")))
    InvoiceService(local_store, settings, clock).create_invoice(make_raw())
    migrate_store(local_store, sql_store)

    report = migrate_store(local_store, sql_store)
    assert (report.migrated_items, report.migrated_invoices, report.skipped) == (0, 0, 2)
    assert len(sql_store.list_invoices()) == 1

def test_inventory_csv(tmp_path, store):
    csv_path = tmp_path / "inventory.csv"
    csv_path.write_text(
        "name,description,stock,unit_rate,low_stock_threshold\n"
        "Router,Dual band,12,1499.00,5\n"
        "router,Duplicate,3,99,\n"
        "Cable,,40,120,\n"
        "X,too short,1,10,\n",
        encoding="utf-8",
    )

    report = load_inventory_csv(csv_path, store)

    assert report.migrated_items == 2
    assert report.skipped == 1
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Row 5")
    items = {item.name: item for item in store.list_inventory()}
    assert items["Router"].low_stock_threshold == 5
    assert items["Cable"].low_stock_threshold == 10
    assert items["Cable"].description is None
