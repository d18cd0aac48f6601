"""Tax-inclusive to tax-exclusive conversion.

Unit rates are entered inclusive of tax. All arithmetic stays in full
``Decimal`` precision through aggregation; ``money()`` rounds to paise only
when a figure leaves the engine (persisted record, API response, report).
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext

from .entities import ComputedInvoice, InvoiceDraft, LineItem, TaxedLine

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
# well above the 28-digit default so aggregation over many lines stays exact
WORKING_PRECISION = 50


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class TaxCalculator:
    def __init__(self, tax_rate_percent):
        self.tax_rate_percent = Decimal(str(tax_rate_percent))
        self.multiplier = 1 + self.tax_rate_percent / HUNDRED

    def exclusive_rate(self, rate_inclusive_of_tax) -> Decimal:
        """rate_exclusive = rate_inclusive / (1 + tax_rate / 100)"""
        with localcontext() as ctx:
            ctx.prec = WORKING_PRECISION
            return Decimal(str(rate_inclusive_of_tax)) / self.multiplier

    def compute_line(self, item: LineItem) -> TaxedLine:
        with localcontext() as ctx:
            ctx.prec = WORKING_PRECISION
            rate_excl = self.exclusive_rate(item.rate_inclusive_of_tax)
            return TaxedLine(
                item=item,
                rate_exclusive_of_tax=rate_excl,
                amount_exclusive_of_tax=item.quantity * rate_excl,
                amount_inclusive_of_tax=item.quantity * item.rate_inclusive_of_tax,
            )

    def compute(self, draft: InvoiceDraft) -> ComputedInvoice:
        with localcontext() as ctx:
            ctx.prec = WORKING_PRECISION
            lines = tuple(self.compute_line(item) for item in draft.items)
            subtotal = sum((line.amount_exclusive_of_tax for line in lines), Decimal("0"))
            grand_total = sum((line.amount_inclusive_of_tax for line in lines), Decimal("0"))
            # tax is the difference of the two sums, never recomputed per line
            tax_amount = grand_total - subtotal
            total_units = sum((item.quantity for item in draft.items), Decimal("0"))

        return ComputedInvoice(
            draft=draft,
            lines=lines,
            subtotal_excl_tax=subtotal,
            tax_amount=tax_amount,
            grand_total_incl_tax=grand_total,
            total_units=total_units,
        )
