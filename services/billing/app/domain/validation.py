"""Validation and normalization of raw invoice input.

Rules run in a fixed order and the first failure wins; its message is shown
to the user verbatim. When a ``StockGuard`` is supplied the validator also
checks requested quantities against current inventory (read only).
"""

import re
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from .entities import Customer, InvoiceDraft, LineItem, RawInvoice, RawLineItem
from .errors import ValidationError
from .stock import StockGuard, name_key
from .tax import CENT

LIMITS = {
    "CUSTOMER_NAME": (2, 100),
    "CUSTOMER_ADDRESS": (5, 255),
    "ITEM_DESCRIPTION": (1, 100),
    "SERIAL_NUMBER": (0, 50),
    "TERMS": (10, 1000),
}
MAX_TAX_RATE = Decimal("50")
MAX_QUANTITY = Decimal("9999")
MAX_RATE = Decimal("9999999")

MOBILE_SEPARATORS = re.compile(r"[\s\-+]")
MOBILE_10 = re.compile(r"^[6-9][0-9]{9}$")
MOBILE_12 = re.compile(r"^91[6-9][0-9]{9}$")
GST_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_decimal(value) -> Optional[Decimal]:
    """Decimal for numeric input, None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _has_cents_precision(value: Decimal) -> bool:
    # amounts and rates are stored with two decimal places
    return value == value.quantize(CENT)


def normalize_mobile(mobile) -> str:
    """Return the 10-digit mobile number, dropping an optional 91 country code."""
    raw = _text(mobile)
    if not raw:
        raise ValidationError("Mobile number is required")

    cleaned = MOBILE_SEPARATORS.sub("", raw)
    if len(cleaned) == 10 and MOBILE_10.match(cleaned):
        return cleaned
    if len(cleaned) == 12 and MOBILE_12.match(cleaned):
        return cleaned[2:]
    raise ValidationError("Please enter a valid 10-digit mobile number (starting with 6-9)")


def normalize_gst_number(gst_number) -> Optional[str]:
    cleaned = _text(gst_number).upper()
    if not cleaned:
        return None
    if not GST_PATTERN.match(cleaned):
        raise ValidationError("Invalid GST format. Example: 22AAAAA0000A1Z5")
    return cleaned


def parse_serial_numbers(serial_numbers) -> Tuple[str, ...]:
    if serial_numbers is None:
        return ()
    if isinstance(serial_numbers, str):
        lines = serial_numbers.splitlines()
    else:
        lines = [str(s) for s in serial_numbers if s is not None]
    return tuple(s.strip() for s in lines if s.strip())


class InputValidator:
    def __init__(self, stock_guard: Optional[StockGuard] = None):
        self.stock_guard = stock_guard

    def _bounded_text(self, value, label: str, limit_key: str) -> str:
        minimum, maximum = LIMITS[limit_key]
        text = _text(value)
        if len(text) < minimum:
            raise ValidationError(f"{label} must be at least {minimum} characters")
        if len(text) > maximum:
            raise ValidationError(f"{label} must not exceed {maximum} characters")
        return text

    def validate_customer(self, raw: RawInvoice) -> Customer:
        name = self._bounded_text(raw.customer_name, "Customer name", "CUSTOMER_NAME")
        address = self._bounded_text(raw.customer_address, "Customer address", "CUSTOMER_ADDRESS")
        mobile = normalize_mobile(raw.customer_mobile)
        gst_number = normalize_gst_number(raw.customer_gst_number)
        return Customer(name=name, address=address, mobile=mobile, gst_number=gst_number)

    def validate_tax_rate(self, tax_rate) -> Decimal:
        rate = parse_decimal(tax_rate)
        if rate is None or rate < 0 or rate > MAX_TAX_RATE:
            raise ValidationError("GST rate must be between 0 and 50")
        if not _has_cents_precision(rate):
            raise ValidationError("GST rate can have at most 2 decimal places")
        return rate

    def validate_terms(self, terms_text) -> str:
        return self._bounded_text(terms_text, "Terms and conditions", "TERMS")

    def validate_item(self, raw: RawLineItem, sl_no: int) -> LineItem:
        prefix = f"Item {sl_no}"

        description = _text(raw.description)
        if not description:
            raise ValidationError(f"{prefix}: Description is required")
        if len(description) > LIMITS["ITEM_DESCRIPTION"][1]:
            raise ValidationError(f"{prefix}: Description too long (max 100 characters)")

        quantity = parse_decimal(raw.quantity)
        if quantity is None or quantity <= 0:
            raise ValidationError(f"{prefix}: Quantity must be greater than 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"{prefix}: Quantity too large (max 9999)")
        if quantity != quantity.to_integral_value():
            raise ValidationError(f"{prefix}: Quantity must be a whole number")

        rate = parse_decimal(raw.rate_inclusive_of_tax)
        if rate is None or rate <= 0:
            raise ValidationError(f"{prefix}: Rate must be greater than 0")
        if rate > MAX_RATE:
            raise ValidationError(f"{prefix}: Rate too large")
        if not _has_cents_precision(rate):
            raise ValidationError(f"{prefix}: Rate can have at most 2 decimal places")

        serials = parse_serial_numbers(raw.serial_numbers)
        for serial in serials:
            if len(serial) > LIMITS["SERIAL_NUMBER"][1]:
                raise ValidationError(f"{prefix}: Serial number too long (max 50 characters)")
        if serials and quantity > 1 and len(serials) != quantity:
            raise ValidationError(
                f"{prefix}: {len(serials)} serial number(s) supplied for quantity "
                f"{int(quantity)}; enter one serial number per unit or leave it blank"
            )

        return LineItem(
            sl_no=sl_no,
            description=description,
            quantity=quantity,
            rate_inclusive_of_tax=rate,
            serial_numbers=serials,
        )

    def validate_items(self, raw_items: List[RawLineItem]) -> Tuple[LineItem, ...]:
        if not raw_items:
            raise ValidationError("At least one item is required")
        return tuple(self.validate_item(raw, index + 1) for index, raw in enumerate(raw_items))

    def check_stock(self, items: Tuple[LineItem, ...]) -> None:
        if self.stock_guard is None:
            return
        requested = OrderedDict()
        names = {}
        for item in items:
            key = name_key(item.description)
            names.setdefault(key, item.description)
            requested[key] = requested.get(key, Decimal("0")) + item.quantity
        self.stock_guard.check_all({names[key]: qty for key, qty in requested.items()})

    def validate(self, raw: RawInvoice) -> InvoiceDraft:
        customer = self.validate_customer(raw)
        tax_rate = self.validate_tax_rate(raw.tax_rate_percent)
        terms = self.validate_terms(raw.terms_text)
        items = self.validate_items(raw.items)
        self.check_stock(items)
        return InvoiceDraft(
            customer=customer,
            items=items,
            tax_rate_percent=tax_rate,
            terms_text=terms,
        )
