from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Numeric, DateTime, Text, JSON, ForeignKey, CheckConstraint
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

def _new_id() -> str:
    return str(uuid.uuid4())

class Base(DeclarativeBase):
    pass

class InventoryItem(Base):
    __tablename__ = "inventory"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_inventory_stock_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100))
    # lower-cased name; item names are unique regardless of case
    name_key: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    unit_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class Invoice(Base):
    __tablename__ = "invoices"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    # unique: the number generator does not lock, the table does
    invoice_number: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, index=True)
    customer_name: Mapped[str] = mapped_column(String(100))
    customer_address: Mapped[str] = mapped_column(String(255))
    customer_mobile: Mapped[str] = mapped_column(String(10))
    customer_gst_number: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    tax_rate_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    subtotal_excl_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    grand_total_incl_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    total_units: Mapped[int] = mapped_column(Integer)
    terms_text: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    items: Mapped[list["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.sl_no",
    )

class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_id: Mapped[str] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), index=True)
    sl_no: Mapped[int] = mapped_column(Integer)
    description: Mapped[str] = mapped_column(String(100))
    serial_numbers: Mapped[list] = mapped_column(JSON, default=list)
    quantity: Mapped[int] = mapped_column(Integer)
    rate_inclusive_of_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    rate_exclusive_of_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    amount_exclusive_of_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="items")
