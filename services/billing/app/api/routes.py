from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from app.infrastructure.db import get_persistence
from app.infrastructure.persistence import PersistenceAdapter
from app.application.service import InvoiceService, SubmissionState
from app.application.reports import summarize_sales
from app.application.schemas import (
    InvoiceCreate,
    InvoiceCreated,
    InvoiceRecord,
    LowStockAlertRead,
    NextInvoiceNumber,
    SalesSummary,
)
from app.domain.errors import BillingError, PartialReconciliationError

router = APIRouter(prefix="/invoices", tags=["invoices"])
reports_router = APIRouter(prefix="/reports", tags=["reports"])

ERROR_STATUS = {
    "validation": 422,
    "stock": 409,
    "persistence": 503,
}

def http_error(error: BillingError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(error.kind, 500), detail=error.to_detail())

def get_invoice_service(persistence: PersistenceAdapter = Depends(get_persistence)) -> InvoiceService:
    return InvoiceService(persistence)

@router.get("/", response_model=list[InvoiceRecord])
def list_invoices(
    q: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    """Newest first; ``q`` matches invoice number, customer name or serial number."""
    try:
        return service.list_invoices(q, date_from, date_to)
    except BillingError as e:
        raise http_error(e)

@router.post("/", response_model=InvoiceCreated, status_code=201)
def create_invoice(payload: InvoiceCreate, service: InvoiceService = Depends(get_invoice_service)):
    try:
        result = service.create_invoice(payload.to_raw())
    except PartialReconciliationError as e:
        # the invoice exists; only inventory is behind
        return InvoiceCreated(
            invoice=e.invoice,
            state=SubmissionState.PERSISTED.value,
            stock_reconciled=False,
            reconciliation_errors=e.failures,
            low_stock_alerts=[LowStockAlertRead.model_validate(a) for a in e.low_stock_alerts],
        )
    except BillingError as e:
        raise http_error(e)
    return InvoiceCreated(
        invoice=result.invoice,
        state=result.state.value,
        low_stock_alerts=[LowStockAlertRead.model_validate(a) for a in result.low_stock_alerts],
    )

@router.get("/next-number", response_model=NextInvoiceNumber)
def next_invoice_number(service: InvoiceService = Depends(get_invoice_service)):
    """Preview only; the number is not reserved."""
    try:
        return NextInvoiceNumber(invoice_number=service.next_invoice_number())
    except BillingError as e:
        raise http_error(e)

@router.get("/{invoice_id}", response_model=InvoiceRecord)
def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        invoice = service.get_invoice(invoice_id)
    except BillingError as e:
        raise http_error(e)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice

@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        deleted = service.delete_invoice(invoice_id)
    except BillingError as e:
        raise http_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return None

@reports_router.get("/sales-summary", response_model=SalesSummary)
def sales_summary(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        invoices = service.list_invoices()
    except BillingError as e:
        raise http_error(e)
    return summarize_sales(invoices, date_from, date_to, today=service.clock().date())
