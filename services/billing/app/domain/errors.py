"""Error taxonomy for invoice submissions.

Every error is terminal for the submission that raised it. Callers get a
human-readable ``message`` plus the ``kind``; there are no numeric codes.
"""

from enum import Enum
from typing import List, Optional


class BillingError(Exception):
    kind = "billing"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(BillingError):
    """Raw input broke one of the validation rules; nothing was written."""
    kind = "validation"


class StockReason(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    INSUFFICIENT = "insufficient"


class StockError(BillingError):
    """Requested quantity cannot be served from current inventory."""
    kind = "stock"

    def __init__(self, reason: StockReason, item_name: str, available_qty: int, requested_qty: int):
        if reason == StockReason.OUT_OF_STOCK:
            message = f'"{item_name}" is out of stock (0 units available)'
        else:
            message = (
                f'Insufficient stock for "{item_name}". '
                f"Available: {available_qty}, Required: {requested_qty}"
            )
        super().__init__(message)
        self.reason = reason
        self.item_name = item_name
        self.available_qty = available_qty
        self.requested_qty = requested_qty

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail.update({
            "reason": self.reason.value,
            "item_name": self.item_name,
            "available_qty": self.available_qty,
            "requested_qty": self.requested_qty,
        })
        return detail


class PersistenceError(BillingError):
    """The backing store failed; no partial invoice exists."""
    kind = "persistence"


class PartialReconciliationError(BillingError):
    """The invoice was saved but one or more stock deductions failed.

    The invoice is NOT rolled back. ``invoice`` is the persisted record and
    ``failures`` lists one message per line item whose deduction failed.
    """
    kind = "partial_reconciliation"

    def __init__(self, invoice, failures: List[str], low_stock_alerts: Optional[list] = None):
        super().__init__(
            f"Invoice {invoice.invoice_number} was saved but stock could not be "
            f"updated for {len(failures)} item(s)"
        )
        self.invoice = invoice
        self.failures = failures
        self.low_stock_alerts = low_stock_alerts or []
