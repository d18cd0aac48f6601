from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.application.schemas import (
    CustomerRecord,
    InventoryItemCreate,
    InventoryItemRecord,
    InvoiceItemRecord,
    InvoiceRecord,
)
from app.domain.errors import PersistenceError
from app.domain.models import InventoryItem, Invoice, InvoiceItem
from app.domain.stock import name_key
from shared.core import get_logger

from .persistence import PersistenceAdapter

logger = get_logger(__name__)

class SqlAlchemyPersistence(PersistenceAdapter):
    """Relational backend; one instance per request-scoped ``Session``."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: Exception) -> PersistenceError:
        self.db.rollback()
        logger.error(f"Database error while {action}: {exc}", exc_info=True)
        return PersistenceError(f"Could not {action}. Please try again.")

    @staticmethod
    def _to_record(row: Invoice) -> InvoiceRecord:
        return InvoiceRecord(
            id=row.id,
            invoice_number=row.invoice_number,
            date=row.date,
            customer=CustomerRecord(
                name=row.customer_name,
                address=row.customer_address,
                mobile=row.customer_mobile,
                gst_number=row.customer_gst_number,
            ),
            items=[InvoiceItemRecord.model_validate(item) for item in row.items],
            tax_rate_percent=row.tax_rate_percent,
            subtotal_excl_tax=row.subtotal_excl_tax,
            tax_amount=row.tax_amount,
            grand_total_incl_tax=row.grand_total_incl_tax,
            total_units=row.total_units,
            terms_text=row.terms_text,
            created_at=row.created_at,
        )

    def list_invoices(self) -> List[InvoiceRecord]:
        try:
            rows = self.db.scalars(
                select(Invoice)
                .options(selectinload(Invoice.items))
                .order_by(Invoice.created_at.desc(), Invoice.invoice_number.desc())
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("load invoices", e) from e
        return [self._to_record(row) for row in rows]

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        try:
            row = self.db.get(Invoice, invoice_id)
            return self._to_record(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("load the invoice", e) from e

    def save_invoice(self, invoice: InvoiceRecord) -> str:
        row = Invoice(
            invoice_number=invoice.invoice_number,
            date=invoice.date,
            customer_name=invoice.customer.name,
            customer_address=invoice.customer.address,
            customer_mobile=invoice.customer.mobile,
            customer_gst_number=invoice.customer.gst_number,
            tax_rate_percent=invoice.tax_rate_percent,
            subtotal_excl_tax=invoice.subtotal_excl_tax,
            tax_amount=invoice.tax_amount,
            grand_total_incl_tax=invoice.grand_total_incl_tax,
            total_units=invoice.total_units,
            terms_text=invoice.terms_text,
            created_at=invoice.created_at,
            items=[InvoiceItem(**item.model_dump()) for item in invoice.items],
        )
        if invoice.id:
            row.id = invoice.id
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Invoice number {invoice.invoice_number} already exists")
            raise PersistenceError(
                f"Invoice number {invoice.invoice_number} already exists. Please resubmit."
            ) from e
        except SQLAlchemyError as e:
            raise self._fail("save the invoice", e) from e
        return row.id

    def delete_invoice(self, invoice_id: str) -> bool:
        try:
            row = self.db.get(Invoice, invoice_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            raise self._fail("delete the invoice", e) from e

    def list_inventory(self) -> List[InventoryItemRecord]:
        try:
            rows = self.db.scalars(
                select(InventoryItem)
                .order_by(InventoryItem.name)
                .execution_options(populate_existing=True)
            ).all()
        except SQLAlchemyError as e:
            raise self._fail("load inventory", e) from e
        return [InventoryItemRecord.model_validate(row) for row in rows]

    def add_inventory_item(self, item: InventoryItemCreate) -> InventoryItemRecord:
        now = datetime.utcnow()
        row = InventoryItem(
            name=item.name.strip(),
            name_key=name_key(item.name),
            description=item.description,
            stock=item.stock,
            unit_rate=item.unit_rate,
            low_stock_threshold=item.low_stock_threshold,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except IntegrityError as e:
            self.db.rollback()
            raise PersistenceError(f'An item named "{item.name}" already exists') from e
        except SQLAlchemyError as e:
            raise self._fail("add the inventory item", e) from e
        return InventoryItemRecord.model_validate(row)

    def update_inventory_stock(self, item_name: str, new_stock: int) -> None:
        try:
            row = self.db.scalars(
                select(InventoryItem).where(InventoryItem.name_key == name_key(item_name))
            ).first()
            if row is None:
                raise PersistenceError(f'Inventory item "{item_name}" not found')
            row.stock = new_stock
            row.updated_at = datetime.utcnow()
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(f'update stock for "{item_name}"', e) from e

    def ping(self) -> None:
        try:
            self.db.execute(text("SELECT 1")).scalar()
        except SQLAlchemyError as e:
            raise self._fail("reach the database", e) from e
