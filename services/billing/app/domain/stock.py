"""Stock checks before an invoice is saved and deductions after.

Items are matched by case-insensitive name. A line whose description matches
no inventory item is unconstrained: no stock record means nothing to block
and nothing to deduct. Every call re-reads inventory from the store; callers
must not hand in a snapshot taken before an earlier suspension point.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import StockError, StockReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockCheck:
    ok: bool
    # None when the item is not tracked in inventory
    available_qty: Optional[int]


@dataclass(frozen=True)
class LowStockAlert:
    name: str
    stock: int
    threshold: int
    status: str  # "out_of_stock" | "low_stock"


def name_key(name: str) -> str:
    return (name or "").strip().casefold()


def as_units(quantity) -> int:
    value = Decimal(str(quantity))
    if value != value.to_integral_value():
        raise ValueError(f"Stock quantities are whole units, got {quantity}")
    return int(value)


class StockGuard:
    def __init__(self, persistence, default_low_stock_threshold: int = 10):
        self.persistence = persistence
        self.default_low_stock_threshold = default_low_stock_threshold

    def _fresh_inventory(self) -> list:
        return self.persistence.list_inventory()

    @staticmethod
    def find(inventory: Iterable, item_name: str):
        key = name_key(item_name)
        for item in inventory:
            if name_key(item.name) == key:
                return item
        return None

    def check_availability(self, item_name: str, requested_qty, inventory=None) -> StockCheck:
        if inventory is None:
            inventory = self._fresh_inventory()
        item = self.find(inventory, item_name)
        if item is None:
            return StockCheck(ok=True, available_qty=None)

        requested = as_units(requested_qty)
        if item.stock <= 0:
            raise StockError(StockReason.OUT_OF_STOCK, item.name, 0, requested)
        if item.stock < requested:
            raise StockError(StockReason.INSUFFICIENT, item.name, item.stock, requested)
        return StockCheck(ok=True, available_qty=item.stock)

    def check_all(self, requested: Mapping[str, Decimal]) -> Dict[str, StockCheck]:
        """Check several items against a single fresh read of inventory.

        ``requested`` maps item name to the total quantity asked for across
        every line of the submission. The first failing item raises.
        """
        inventory = self._fresh_inventory()
        return {
            name: self.check_availability(name, qty, inventory=inventory)
            for name, qty in requested.items()
        }

    def deduct(self, item_name: str, sold_qty) -> Optional[int]:
        """Set ``stock = max(0, stock - sold_qty)``; returns the new stock.

        Returns None when the item is not tracked. Store failures propagate
        as ``PersistenceError``.
        """
        item = self.find(self._fresh_inventory(), item_name)
        if item is None:
            logger.debug(f"No inventory record for '{item_name}', nothing to deduct")
            return None

        new_stock = max(0, item.stock - as_units(sold_qty))
        self.persistence.update_inventory_stock(item.name, new_stock)
        return new_stock

    def threshold_for(self, item) -> int:
        threshold = getattr(item, "low_stock_threshold", None)
        return threshold if threshold is not None else self.default_low_stock_threshold

    def low_stock_alerts(self, names: Optional[Iterable[str]] = None) -> List[LowStockAlert]:
        """Items that are out of stock or at/below their threshold.

        Out-of-stock items come first, then ascending stock. ``names``
        restricts the report to those items.
        """
        inventory = self._fresh_inventory()
        if names is not None:
            wanted = {name_key(n) for n in names}
            inventory = [item for item in inventory if name_key(item.name) in wanted]

        alerts = []
        for item in inventory:
            threshold = self.threshold_for(item)
            if item.stock <= 0:
                alerts.append(LowStockAlert(item.name, 0, threshold, "out_of_stock"))
            elif item.stock <= threshold:
                alerts.append(LowStockAlert(item.name, item.stock, threshold, "low_stock"))

        alerts.sort(key=lambda a: (a.status != "out_of_stock", a.stock, a.name.casefold()))
        return alerts
