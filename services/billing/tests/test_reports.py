from datetime import date, datetime
from decimal import Decimal

from app.application.reports import summarize_sales
from app.application.service import InvoiceService
from app.domain.entities import RawLineItem

def seed(store, settings, make_raw):
    InvoiceService(store, settings, lambda: datetime(2024, 6, 10, 12, 0)).create_invoice(make_raw(
        tax_rate_percent="5",
        items=[RawLineItem(description="Rice", quantity="1", rate_inclusive_of_tax="105")],
    ))
    InvoiceService(store, settings, lambda: datetime(2024, 6, 15, 9, 0)).create_invoice(make_raw())

def test_summary_totals_and_breakdown(local_store, settings, make_raw):
    seed(local_store, settings, make_raw)
    summary = summarize_sales(local_store.list_invoices(), today=date(2024, 6, 15))

    assert summary.invoice_count == 2
    assert summary.total_units == 3
    assert summary.subtotal_excl_tax == Decimal("300.00")
    assert summary.tax_amount == Decimal("41.00")
    assert summary.grand_total_incl_tax == Decimal("341.00")
    assert summary.today_invoice_count == 1
    assert summary.today_units == 2
    assert summary.today_sales == Decimal("236.00")
    assert [(b.tax_rate_percent, b.invoice_count, b.tax_amount) for b in summary.by_tax_rate] == [
        (Decimal("5.00"), 1, Decimal("5.00")),
        (Decimal("18.00"), 1, Decimal("36.00")),
    ]

def test_summary_date_range_is_inclusive(sql_store, settings, make_raw):
    seed(sql_store, settings, make_raw)
    invoices = sql_store.list_invoices()
    assert summarize_sales(invoices, date_from=date(2024, 6, 11)).invoice_count == 1
    assert summarize_sales(invoices, date_from=date(2024, 6, 10), date_to=date(2024, 6, 10)).invoice_count == 1
    assert summarize_sales(invoices, date_to=date(2024, 6, 1)).invoice_count == 0

def test_empty_summary():
    summary = summarize_sales([], today=date(2024, 6, 15))
    assert summary.invoice_count == 0
    assert summary.grand_total_incl_tax == Decimal("0.00")
    assert summary.by_tax_rate == []
