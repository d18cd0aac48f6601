"""Sales summary over stored invoices."""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from app.domain.tax import money
from .schemas import InvoiceRecord, SalesSummary, TaxRateBreakdown

ZERO = Decimal("0")

def summarize_sales(
    invoices: Iterable[InvoiceRecord],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    today: Optional[date] = None,
) -> SalesSummary:
    today = today or date.today()
    selected = [
        inv for inv in invoices
        if (date_from is None or inv.date.date() >= date_from)
        and (date_to is None or inv.date.date() <= date_to)
    ]

    subtotal = tax = grand_total = ZERO
    units = 0
    today_count = today_units = 0
    today_sales = ZERO
    by_rate = OrderedDict()

    for inv in sorted(selected, key=lambda i: i.tax_rate_percent):
        subtotal += inv.subtotal_excl_tax
        tax += inv.tax_amount
        grand_total += inv.grand_total_incl_tax
        units += inv.total_units

        if inv.date.date() == today:
            today_count += 1
            today_units += inv.total_units
            today_sales += inv.grand_total_incl_tax

        bucket = by_rate.setdefault(
            money(inv.tax_rate_percent),
            {"count": 0, "subtotal": ZERO, "tax": ZERO, "total": ZERO},
        )
        bucket["count"] += 1
        bucket["subtotal"] += inv.subtotal_excl_tax
        bucket["tax"] += inv.tax_amount
        bucket["total"] += inv.grand_total_incl_tax

    return SalesSummary(
        date_from=date_from,
        date_to=date_to,
        invoice_count=len(selected),
        total_units=units,
        subtotal_excl_tax=money(subtotal),
        tax_amount=money(tax),
        grand_total_incl_tax=money(grand_total),
        today_invoice_count=today_count,
        today_units=today_units,
        today_sales=money(today_sales),
        by_tax_rate=[
            TaxRateBreakdown(
                tax_rate_percent=rate,
                invoice_count=bucket["count"],
                subtotal_excl_tax=money(bucket["subtotal"]),
                tax_amount=money(bucket["tax"]),
                grand_total_incl_tax=money(bucket["total"]),
            )
            for rate, bucket in by_rate.items()
        ],
    )
