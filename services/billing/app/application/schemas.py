from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from app.domain.entities import RawInvoice, RawLineItem

# Inputs are deliberately loose: the InputValidator owns the rules and their
# messages, so anything the caller typed reaches it untouched.
LooseNumber = Optional[Union[Decimal, str]]
LooseText = Optional[Union[str, int]]

class InvoiceLineItemIn(BaseModel):
    description: LooseText = None
    quantity: LooseNumber = None
    rate_inclusive_of_tax: LooseNumber = None
    serial_numbers: Optional[Union[str, list[str]]] = None

class InvoiceCreate(BaseModel):
    customer_name: LooseText = None
    customer_address: LooseText = None
    customer_mobile: LooseText = None
    customer_gst_number: LooseText = None
    tax_rate_percent: LooseNumber = None
    terms_text: LooseText = None
    items: list[InvoiceLineItemIn] = []

    def to_raw(self) -> RawInvoice:
        return RawInvoice(
            customer_name=self.customer_name,
            customer_address=self.customer_address,
            customer_mobile=self.customer_mobile,
            customer_gst_number=self.customer_gst_number,
            tax_rate_percent=self.tax_rate_percent,
            terms_text=self.terms_text,
            items=[RawLineItem(**item.model_dump()) for item in self.items],
        )

class CustomerRecord(BaseModel):
    name: str
    address: str
    mobile: str
    gst_number: Optional[str] = None

class InvoiceItemRecord(BaseModel):
    sl_no: int
    description: str
    serial_numbers: list[str] = []
    quantity: int
    rate_inclusive_of_tax: Decimal
    rate_exclusive_of_tax: Decimal
    amount_exclusive_of_tax: Decimal

    class Config:
        from_attributes = True

class InvoiceRecord(BaseModel):
    id: Optional[str] = None
    invoice_number: str
    date: datetime
    customer: CustomerRecord
    items: list[InvoiceItemRecord]
    tax_rate_percent: Decimal
    subtotal_excl_tax: Decimal
    tax_amount: Decimal
    grand_total_incl_tax: Decimal
    total_units: int
    terms_text: str
    created_at: datetime

class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    stock: int = Field(0, ge=0)
    unit_rate: Decimal = Field(..., gt=0)
    low_stock_threshold: int = Field(10, ge=0)

class InventoryItemRecord(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    stock: int
    unit_rate: Decimal
    low_stock_threshold: int = 10
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LowStockAlertRead(BaseModel):
    name: str
    stock: int
    threshold: int
    status: str

    class Config:
        from_attributes = True

class InvoiceCreated(BaseModel):
    invoice: InvoiceRecord
    state: str
    stock_reconciled: bool = True
    reconciliation_errors: list[str] = []
    low_stock_alerts: list[LowStockAlertRead] = []

class NextInvoiceNumber(BaseModel):
    invoice_number: str

class TaxRateBreakdown(BaseModel):
    tax_rate_percent: Decimal
    invoice_count: int
    subtotal_excl_tax: Decimal
    tax_amount: Decimal
    grand_total_incl_tax: Decimal

class SalesSummary(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    invoice_count: int
    total_units: int
    subtotal_excl_tax: Decimal
    tax_amount: Decimal
    grand_total_incl_tax: Decimal
    today_invoice_count: int
    today_units: int
    today_sales: Decimal
    by_tax_rate: list[TaxRateBreakdown]
