from app.domain.models import Invoice

def test_invoice_totals_fit_largest_invoice():
    # eleven lines at maximum quantity and rate exceed 10^12
    for column in ("subtotal_excl_tax", "tax_amount", "grand_total_incl_tax"):
        numeric = Invoice.__table__.c[column].type
        assert (numeric.precision, numeric.scale) == (18, 2)
