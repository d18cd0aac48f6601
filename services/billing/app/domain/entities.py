"""In-memory value objects that flow through one invoice submission."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Tuple


@dataclass
class RawLineItem:
    """Line item exactly as the caller typed it; nothing is trusted yet."""
    description: Any = None
    quantity: Any = None
    rate_inclusive_of_tax: Any = None
    # newline separated text or a list of strings
    serial_numbers: Any = None


@dataclass
class RawInvoice:
    customer_name: Any = None
    customer_address: Any = None
    customer_mobile: Any = None
    customer_gst_number: Any = None
    tax_rate_percent: Any = None
    terms_text: Any = None
    items: List[RawLineItem] = field(default_factory=list)


@dataclass(frozen=True)
class Customer:
    name: str
    address: str
    mobile: str
    gst_number: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    sl_no: int
    description: str
    quantity: Decimal
    rate_inclusive_of_tax: Decimal
    serial_numbers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class InvoiceDraft:
    customer: Customer
    items: Tuple[LineItem, ...]
    tax_rate_percent: Decimal
    terms_text: str


@dataclass(frozen=True)
class TaxedLine:
    item: LineItem
    rate_exclusive_of_tax: Decimal
    amount_exclusive_of_tax: Decimal
    amount_inclusive_of_tax: Decimal


@dataclass(frozen=True)
class ComputedInvoice:
    """Draft plus its tax breakdown, carried at full precision."""
    draft: InvoiceDraft
    lines: Tuple[TaxedLine, ...]
    subtotal_excl_tax: Decimal
    tax_amount: Decimal
    grand_total_incl_tax: Decimal
    total_units: Decimal
