from datetime import date

import pytest

from app.domain.numbering import INVOICE_NUMBER_PATTERN, InvoiceNumberGenerator

def test_next_number_follows_highest_sequence():
    gen = InvoiceNumberGenerator()
    existing = ["K0003/5/24/25", "K0007/6/24/25", "K0005/6/24/25"]
    assert gen.next_number(existing, date(2024, 6, 15)) == "K0008/6/24/25"

def test_first_invoice_is_one():
    assert InvoiceNumberGenerator().next_number([], date(2024, 6, 15)) == "K0001/6/24/25"

def test_financial_year_boundary():
    gen = InvoiceNumberGenerator()
    assert gen.next_number([], date(2025, 3, 31)) == "K0001/3/24/25"
    assert gen.next_number([], date(2025, 4, 1)) == "K0001/4/25/26"

def test_sequence_does_not_reset_in_new_financial_year():
    gen = InvoiceNumberGenerator()
    assert gen.next_number(["K0042/3/24/25"], date(2025, 4, 1)) == "K0043/4/25/26"

def test_century_rollover():
    assert InvoiceNumberGenerator().next_number([], date(2100, 1, 5)) == "K0001/1/99/00"

def test_unparseable_numbers_are_ignored():
    gen = InvoiceNumberGenerator()
    assert gen.sequence_of("INV-9") is None
    assert gen.sequence_of("") is None
    assert gen.sequence_of("k0011/4/24/25") == 11
    assert gen.next_sequence(["INV-9", "garbage", "K0002/4/24/25"]) == 3

def test_sequence_grows_past_four_digits(caplog):
    gen = InvoiceNumberGenerator()
    number = gen.next_number(["K9999/4/24/25"], date(2024, 6, 1))
    assert number == "K10000/6/24/25"
    # no longer the four-digit form, but still ordered after K9999
    assert not INVOICE_NUMBER_PATTERN.match(number)
    assert gen.next_number(["K9999/4/24/25", number], date(2024, 6, 1)) == "K10001/6/24/25"
    assert "no longer fits four digits" in caplog.text

def test_four_digit_form_holds_up_to_9999():
    number = InvoiceNumberGenerator().next_number(["K9998/4/24/25"], date(2024, 6, 1))
    assert INVOICE_NUMBER_PATTERN.match(number)

def test_generated_numbers_match_pattern():
    number = InvoiceNumberGenerator().next_number(["K0010/12/24/25"], date(2024, 12, 1))
    assert INVOICE_NUMBER_PATTERN.match(number)

def test_custom_financial_year_start():
    gen = InvoiceNumberGenerator(financial_year_start_month=1)
    assert gen.financial_year(date(2024, 1, 1)) == (24, 25)

@pytest.mark.parametrize("prefix,month", [("KK", 4), ("k", 4), ("1", 4), ("K", 0), ("K", 13)])
def test_invalid_configuration(prefix, month):
    with pytest.raises(ValueError):
        InvoiceNumberGenerator(prefix, month)
