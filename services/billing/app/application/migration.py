"""Copy data between stores and seed inventory from CSV.

Used when a shop moves from the on-device JSON store to the relational
backend. Records already present in the target are skipped, so a migration
can be re-run after a partial failure.
"""

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from pydantic import ValidationError as SchemaError

from app.domain.errors import PersistenceError
from app.domain.stock import name_key
from app.infrastructure.persistence import PersistenceAdapter
from shared.core import get_logger
from .schemas import InventoryItemCreate

logger = get_logger(__name__)

@dataclass
class MigrationReport:
    migrated_items: int = 0
    migrated_invoices: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

def migrate_store(source: PersistenceAdapter, target: PersistenceAdapter) -> MigrationReport:
    report = MigrationReport()

    existing_names = {name_key(item.name) for item in target.list_inventory()}
    for item in source.list_inventory():
        if name_key(item.name) in existing_names:
            report.skipped += 1
            continue
        try:
            target.add_inventory_item(InventoryItemCreate(
                name=item.name,
                description=item.description,
                stock=item.stock,
                unit_rate=item.unit_rate,
                low_stock_threshold=item.low_stock_threshold,
            ))
            report.migrated_items += 1
        except (PersistenceError, SchemaError) as e:
            report.errors.append(f"Inventory item {item.name}: {e}")

    existing_numbers = {inv.invoice_number for inv in target.list_invoices()}
    # oldest first so creation order survives the move
    for invoice in reversed(source.list_invoices()):
        if invoice.invoice_number in existing_numbers:
            report.skipped += 1
            continue
        try:
            target.save_invoice(invoice.model_copy(update={"id": None}))
            report.migrated_invoices += 1
        except PersistenceError as e:
            report.errors.append(f"Invoice {invoice.invoice_number}: {e.message}")

    logger.info(
        "Store migration finished",
        extra={"extra_fields": {
            "migrated_items": report.migrated_items,
            "migrated_invoices": report.migrated_invoices,
            "skipped": report.skipped,
            "errors": len(report.errors),
        }},
    )
    return report

def load_inventory_csv(path, target: PersistenceAdapter) -> MigrationReport:
    """Seed inventory from ``name,description,stock,unit_rate,low_stock_threshold`` rows."""
    report = MigrationReport()
    existing_names = {name_key(item.name) for item in target.list_inventory()}

    with open(Path(path), newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.DictReader(f), start=2):
            name = (row.get("name") or "").strip()
            if name_key(name) in existing_names:
                report.skipped += 1
                continue
            try:
                item = InventoryItemCreate(
                    name=name,
                    description=(row.get("description") or "").strip() or None,
                    stock=row.get("stock") or 0,
                    unit_rate=row.get("unit_rate"),
                    low_stock_threshold=row.get("low_stock_threshold") or 10,
                )
                target.add_inventory_item(item)
            except (SchemaError, PersistenceError) as e:
                report.errors.append(f"Row {line_no}: {e}")
                continue
            existing_names.add(name_key(name))
            report.migrated_items += 1

    logger.info(f"Loaded {report.migrated_items} inventory items from {path}")
    return report
