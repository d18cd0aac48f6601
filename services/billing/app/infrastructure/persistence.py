"""Storage contract the billing engine is written against.

Two backends implement it: ``SqlAlchemyPersistence`` (relational database)
and ``LocalJsonPersistence`` (a JSON document on this device). Which one is
used is decided once at startup from ``STORE_BACKEND``. Any backend failure
must surface as ``PersistenceError``; timeouts belong to the backend too.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.application.schemas import InventoryItemCreate, InventoryItemRecord, InvoiceRecord


class PersistenceAdapter(ABC):

    @abstractmethod
    def list_invoices(self) -> List[InvoiceRecord]:
        """All invoices, newest first."""

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        ...

    @abstractmethod
    def save_invoice(self, invoice: InvoiceRecord) -> str:
        """Persist ``invoice`` and return its id.

        A duplicate invoice number raises ``PersistenceError``.
        """

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> bool:
        """False when no invoice has that id."""

    @abstractmethod
    def list_inventory(self) -> List[InventoryItemRecord]:
        ...

    @abstractmethod
    def add_inventory_item(self, item: InventoryItemCreate) -> InventoryItemRecord:
        ...

    @abstractmethod
    def update_inventory_stock(self, item_name: str, new_stock: int) -> None:
        """Set stock for the item matching ``item_name`` (case-insensitive)."""

    @abstractmethod
    def ping(self) -> None:
        """Raise ``PersistenceError`` when the store is unreachable."""
