"""Single-file JSON store for running on one device without a database.

Layout: ``{"inventory": [...], "invoices": [...]}``. Every write rewrites the
whole document through a temporary file and ``os.replace`` so a crash never
leaves a half-written store behind.
"""

import json
import os
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as SchemaError

from app.application.schemas import InventoryItemCreate, InventoryItemRecord, InvoiceRecord
from app.domain.errors import PersistenceError
from app.domain.stock import name_key
from shared.core import get_logger

from .persistence import PersistenceAdapter

logger = get_logger(__name__)


class LocalJsonPersistence(PersistenceAdapter):

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _corrupted(self, reason) -> PersistenceError:
        logger.error(f"Could not read local store {self.path}: {reason}")
        return PersistenceError("Failed to load billing data. The local store might be corrupted.")

    def _read(self) -> dict:
        if not self.path.exists():
            return {"inventory": [], "invoices": []}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise self._corrupted(e) from e
        if not isinstance(data, dict):
            raise self._corrupted(f"expected an object, got {type(data).__name__}")
        for key in ("inventory", "invoices"):
            docs = data.setdefault(key, [])
            if not isinstance(docs, list) or not all(isinstance(doc, dict) for doc in docs):
                raise self._corrupted(f"\"{key}\" must be a list of objects")
        return data

    def _write(self, data: dict) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Could not write local store {self.path}: {e}")
            raise PersistenceError("Failed to save billing data. Please try again.") from e

    def _invoices(self, data: dict) -> List[InvoiceRecord]:
        try:
            return [InvoiceRecord.model_validate(doc) for doc in data["invoices"]]
        except SchemaError as e:
            raise PersistenceError("Stored invoice data is malformed") from e

    def _inventory(self, data: dict) -> List[InventoryItemRecord]:
        try:
            return [InventoryItemRecord.model_validate(doc) for doc in data["inventory"]]
        except SchemaError as e:
            raise PersistenceError("Stored inventory data is malformed") from e

    def list_invoices(self) -> List[InvoiceRecord]:
        with self._lock:
            invoices = self._invoices(self._read())
        return sorted(invoices, key=lambda inv: (inv.created_at, inv.invoice_number), reverse=True)

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        with self._lock:
            invoices = self._invoices(self._read())
        return next((inv for inv in invoices if inv.id == invoice_id), None)

    def save_invoice(self, invoice: InvoiceRecord) -> str:
        with self._lock:
            data = self._read()
            if any(doc.get("invoice_number") == invoice.invoice_number for doc in data["invoices"]):
                raise PersistenceError(
                    f"Invoice number {invoice.invoice_number} already exists. Please resubmit."
                )
            invoice_id = invoice.id or str(uuid.uuid4())
            doc = invoice.model_copy(update={"id": invoice_id}).model_dump(mode="json")
            data["invoices"].append(doc)
            self._write(data)
        return invoice_id

    def delete_invoice(self, invoice_id: str) -> bool:
        with self._lock:
            data = self._read()
            remaining = [doc for doc in data["invoices"] if doc.get("id") != invoice_id]
            if len(remaining) == len(data["invoices"]):
                return False
            data["invoices"] = remaining
            self._write(data)
        return True

    def list_inventory(self) -> List[InventoryItemRecord]:
        with self._lock:
            items = self._inventory(self._read())
        return sorted(items, key=lambda item: item.name.casefold())

    def add_inventory_item(self, item: InventoryItemCreate) -> InventoryItemRecord:
        with self._lock:
            data = self._read()
            key = name_key(item.name)
            if any(name_key(doc.get("name", "")) == key for doc in data["inventory"]):
                raise PersistenceError(f'An item named "{item.name}" already exists')
            now = datetime.utcnow()
            record = InventoryItemRecord(
                id=str(uuid.uuid4()),
                name=item.name.strip(),
                description=item.description,
                stock=item.stock,
                unit_rate=item.unit_rate,
                low_stock_threshold=item.low_stock_threshold,
                created_at=now,
                updated_at=now,
            )
            data["inventory"].append(record.model_dump(mode="json"))
            self._write(data)
        return record

    def update_inventory_stock(self, item_name: str, new_stock: int) -> None:
        with self._lock:
            data = self._read()
            key = name_key(item_name)
            doc = next((d for d in data["inventory"] if name_key(d.get("name", "")) == key), None)
            if doc is None:
                raise PersistenceError(f'Inventory item "{item_name}" not found')
            doc["stock"] = new_stock
            doc["updated_at"] = datetime.utcnow().isoformat()
            self._write(data)

    def ping(self) -> None:
        with self._lock:
            self._read()
