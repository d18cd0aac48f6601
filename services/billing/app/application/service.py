"""Invoice submission orchestration.

One submission moves linearly through
``draft -> validated -> computed -> numbered -> persisted -> stock_reconciled``
or stops in ``failed``. Nothing is retried. Failures before ``persisted`` leave
no trace in the store. Once the invoice is saved, stock deduction runs for
every line item even if one of them fails, and the invoice is never rolled
back: failed deductions surface as ``PartialReconciliationError``.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, List, Optional

from app.core_settings import Settings, get_settings
from app.domain.entities import ComputedInvoice, RawInvoice
from app.domain.errors import BillingError, PartialReconciliationError, PersistenceError
from app.domain.numbering import InvoiceNumberGenerator
from app.domain.stock import LowStockAlert, StockGuard
from app.domain.tax import TaxCalculator, money
from app.domain.validation import InputValidator
from app.infrastructure.persistence import PersistenceAdapter
from shared.core import generate_request_id, get_logger, set_request_context
from .schemas import (
    CustomerRecord,
    InventoryItemCreate,
    InventoryItemRecord,
    InvoiceItemRecord,
    InvoiceRecord,
)

logger = get_logger(__name__)

class SubmissionState(str, Enum):
    DRAFT = "draft"
    VALIDATED = "validated"
    COMPUTED = "computed"
    NUMBERED = "numbered"
    PERSISTED = "persisted"
    STOCK_RECONCILED = "stock_reconciled"
    FAILED = "failed"

@dataclass
class SubmissionResult:
    invoice: InvoiceRecord
    state: SubmissionState
    low_stock_alerts: List[LowStockAlert] = field(default_factory=list)

def build_invoice_record(computed: ComputedInvoice, invoice_number: str, issued_at: datetime) -> InvoiceRecord:
    """Round the computed invoice for storage; the only rounding step."""
    draft = computed.draft
    subtotal = money(computed.subtotal_excl_tax)
    grand_total = money(computed.grand_total_incl_tax)
    return InvoiceRecord(
        invoice_number=invoice_number,
        date=issued_at,
        customer=CustomerRecord(
            name=draft.customer.name,
            address=draft.customer.address,
            mobile=draft.customer.mobile,
            gst_number=draft.customer.gst_number,
        ),
        items=[
            InvoiceItemRecord(
                sl_no=line.item.sl_no,
                description=line.item.description,
                serial_numbers=list(line.item.serial_numbers),
                quantity=int(line.item.quantity),
                rate_inclusive_of_tax=money(line.item.rate_inclusive_of_tax),
                rate_exclusive_of_tax=money(line.rate_exclusive_of_tax),
                amount_exclusive_of_tax=money(line.amount_exclusive_of_tax),
            )
            for line in computed.lines
        ],
        tax_rate_percent=draft.tax_rate_percent,
        subtotal_excl_tax=subtotal,
        # keeps grand_total == subtotal + tax exact in the stored record
        tax_amount=grand_total - subtotal,
        grand_total_incl_tax=grand_total,
        total_units=int(computed.total_units),
        terms_text=draft.terms_text,
        created_at=datetime.utcnow(),
    )

class InvoiceService:
    def __init__(
        self,
        persistence: PersistenceAdapter,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = settings or get_settings()
        self.persistence = persistence
        self.stock_guard = StockGuard(persistence, settings.DEFAULT_LOW_STOCK_THRESHOLD)
        self.validator = InputValidator(self.stock_guard)
        self.numbering = InvoiceNumberGenerator(
            settings.INVOICE_PREFIX, settings.FINANCIAL_YEAR_START_MONTH
        )
        self.clock = clock or datetime.now

    def _log_state(self, state: SubmissionState, message: str, **fields) -> None:
        fields["state"] = state.value
        log = logger.error if state == SubmissionState.FAILED else logger.info
        log(message, extra={"extra_fields": fields})

    def next_invoice_number(self, today: Optional[date] = None) -> str:
        """Number the next submission would get; nothing is reserved."""
        today = today or self.clock().date()
        return self.numbering.next_number(
            (inv.invoice_number for inv in self.persistence.list_invoices()), today
        )

    def create_invoice(self, raw: RawInvoice) -> SubmissionResult:
        set_request_context(submission_id=generate_request_id())
        state = SubmissionState.DRAFT

        try:
            draft = self.validator.validate(raw)
            state = SubmissionState.VALIDATED
            self._log_state(state, "Invoice input validated", items=len(draft.items))

            computed = TaxCalculator(draft.tax_rate_percent).compute(draft)
            state = SubmissionState.COMPUTED
            self._log_state(
                state,
                "Invoice totals computed",
                grand_total=str(money(computed.grand_total_incl_tax)),
            )

            issued_at = self.clock()
            invoice_number = self.next_invoice_number(issued_at.date())
            state = SubmissionState.NUMBERED
            self._log_state(state, f"Invoice numbered {invoice_number}", invoice_number=invoice_number)

            record = build_invoice_record(computed, invoice_number, issued_at)
            invoice_id = self.persistence.save_invoice(record)
            record = record.model_copy(update={"id": invoice_id})
            state = SubmissionState.PERSISTED
            self._log_state(state, f"Invoice {invoice_number} saved", invoice_number=invoice_number)
        except BillingError as e:
            self._log_state(
                SubmissionState.FAILED,
                f"Invoice submission failed: {e.message}",
                failed_after=state.value,
                error_kind=e.kind,
            )
            raise

        failures = self._reconcile_stock(computed)
        alerts = self._alerts_for(computed)
        if failures:
            self._log_state(
                SubmissionState.FAILED,
                f"Invoice {invoice_number} saved but stock is stale",
                failed_after=state.value,
                error_kind=PartialReconciliationError.kind,
                failures=failures,
            )
            raise PartialReconciliationError(record, failures, alerts)

        state = SubmissionState.STOCK_RECONCILED
        self._log_state(state, f"Stock updated for invoice {invoice_number}", invoice_number=invoice_number)
        return SubmissionResult(invoice=record, state=state, low_stock_alerts=alerts)

    def _reconcile_stock(self, computed: ComputedInvoice) -> List[str]:
        failures = []
        for line in computed.lines:
            item = line.item
            try:
                self.stock_guard.deduct(item.description, item.quantity)
            except PersistenceError as e:
                failures.append(f"Item {item.sl_no} ({item.description}): {e.message}")
        return failures

    def _alerts_for(self, computed: ComputedInvoice) -> List[LowStockAlert]:
        try:
            return self.stock_guard.low_stock_alerts(line.item.description for line in computed.lines)
        except PersistenceError as e:
            logger.warning(f"Low stock alerts unavailable: {e.message}")
            return []

    def list_invoices(
        self,
        query: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[InvoiceRecord]:
        invoices = self.persistence.list_invoices()
        if date_from:
            invoices = [inv for inv in invoices if inv.date.date() >= date_from]
        if date_to:
            invoices = [inv for inv in invoices if inv.date.date() <= date_to]
        if query and query.strip():
            needle = query.strip().casefold()
            invoices = [inv for inv in invoices if _matches(inv, needle)]
        return invoices

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceRecord]:
        return self.persistence.get_invoice(invoice_id)

    def delete_invoice(self, invoice_id: str) -> bool:
        # stock sold on a deleted invoice is not returned to inventory
        deleted = self.persistence.delete_invoice(invoice_id)
        if deleted:
            logger.info(f"Invoice {invoice_id} deleted", extra={"extra_fields": {"invoice_id": invoice_id}})
        return deleted

    def list_inventory(self) -> List[InventoryItemRecord]:
        return self.persistence.list_inventory()

    def add_inventory_item(self, item: InventoryItemCreate) -> InventoryItemRecord:
        return self.persistence.add_inventory_item(item)

    def low_stock_alerts(self) -> List[LowStockAlert]:
        return self.stock_guard.low_stock_alerts()

def _matches(invoice: InvoiceRecord, needle: str) -> bool:
    haystack = [invoice.invoice_number, invoice.customer.name]
    for item in invoice.items:
        haystack.extend(item.serial_numbers)
    return any(needle in value.casefold() for value in haystack)
