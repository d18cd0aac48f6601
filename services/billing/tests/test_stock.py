from decimal import Decimal

import pytest

from app.application.schemas import InventoryItemCreate
from app.domain.errors import StockError, StockReason
from app.domain.stock import StockGuard, as_units

def add(store, name, stock, threshold=10):
    store.add_inventory_item(InventoryItemCreate(
        name=name, stock=stock, unit_rate=Decimal("100"), low_stock_threshold=threshold,
    ))

def test_selling_out_then_out_of_stock(store):
    add(store, "Router", 5)
    guard = StockGuard(store)
    assert guard.check_availability("Router", 5).available_qty == 5
    assert guard.deduct("Router", 5) == 0
    with pytest.raises(StockError) as exc:
        guard.check_availability("Router", 1)
    assert exc.value.reason == StockReason.OUT_OF_STOCK
    assert exc.value.message == '"Router" is out of stock (0 units available)'

def test_insufficient_stock(store):
    add(store, "Router", 3)
    with pytest.raises(StockError) as exc:
        StockGuard(store).check_availability("router", 4)
    assert exc.value.reason == StockReason.INSUFFICIENT
    assert exc.value.message == 'Insufficient stock for "Router". Available: 3, Required: 4'

def test_untracked_item_is_unconstrained(store):
    guard = StockGuard(store)
    check = guard.check_availability("Installation charge", 100)
    assert check.ok
    assert check.available_qty is None
    assert guard.deduct("Installation charge", 1) is None

def test_deduction_clamps_at_zero(store):
    add(store, "Cable", 2)
    guard = StockGuard(store)
    assert guard.deduct("CABLE", 5) == 0
    assert store.list_inventory()[0].stock == 0

def test_reads_are_never_cached(store):
    add(store, "Router", 5)
    guard = StockGuard(store)
    guard.check_availability("Router", 5)
    store.update_inventory_stock("Router", 1)
    with pytest.raises(StockError):
        guard.check_availability("Router", 2)

def test_low_stock_alert_order(store):
    add(store, "Switch", 3)
    add(store, "Router", 0)
    add(store, "Cable", 50)
    add(store, "Modem", 1)
    add(store, "Antenna", 8, threshold=5)
    alerts = StockGuard(store).low_stock_alerts()
    assert [(a.name, a.status) for a in alerts] == [
        ("Router", "out_of_stock"),
        ("Modem", "low_stock"),
        ("Switch", "low_stock"),
    ]

def test_low_stock_alerts_for_named_items(store):
    add(store, "Switch", 3)
    add(store, "Modem", 1)
    alerts = StockGuard(store).low_stock_alerts(["switch"])
    assert [a.name for a in alerts] == ["Switch"]

def test_fractional_units_are_rejected():
    assert as_units(Decimal("3.0")) == 3
    with pytest.raises(ValueError):
        as_units(Decimal("1.5"))
