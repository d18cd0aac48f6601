"""Invoice number generation.

Format: ``<P><####>/<M>/<YYs>/<YYe>``, e.g. ``K0008/4/24/25``. The sequence is
``max(existing sequence numbers) + 1`` across all history; it never resets, so
the financial-year tag is decorative. Two submissions reading the same history
compute the same number: uniqueness is the store's job, not this module's.
"""

import logging
import re
from datetime import date
from typing import Iterable, Optional, Tuple

INVOICE_NUMBER_PATTERN = re.compile(r"^[A-Z]\d{4}/\d{1,2}/\d{2}/\d{2}$")
# past this the sequence widens to five digits rather than wrapping
MAX_PADDED_SEQUENCE = 9999

logger = logging.getLogger(__name__)


class InvoiceNumberGenerator:
    def __init__(self, prefix: str = "K", financial_year_start_month: int = 4):
        if len(prefix) != 1 or not prefix.isalpha() or not prefix.isupper():
            raise ValueError(f"Invoice prefix must be a single upper-case letter, got {prefix!r}")
        if not 1 <= financial_year_start_month <= 12:
            raise ValueError("Financial year start month must be between 1 and 12")
        self.prefix = prefix
        self.financial_year_start_month = financial_year_start_month
        self._sequence_re = re.compile(rf"^\s*{re.escape(prefix)}(\d+)(?:/|$)", re.IGNORECASE)

    def financial_year(self, today: date) -> Tuple[int, int]:
        """Two-digit (start, end) years of the financial year containing ``today``."""
        if today.month >= self.financial_year_start_month:
            start = today.year
        else:
            start = today.year - 1
        return start % 100, (start + 1) % 100

    def sequence_of(self, invoice_number: str) -> Optional[int]:
        match = self._sequence_re.match(invoice_number or "")
        if not match:
            return None
        return int(match.group(1))

    def next_sequence(self, existing_numbers: Iterable[str]) -> int:
        sequences = [
            seq for seq in (self.sequence_of(n) for n in existing_numbers) if seq is not None
        ]
        return max(sequences) + 1 if sequences else 1

    def format(self, sequence: int, today: date) -> str:
        if sequence > MAX_PADDED_SEQUENCE:
            logger.warning(f"Invoice sequence {sequence} no longer fits four digits")
        start, end = self.financial_year(today)
        return f"{self.prefix}{sequence:04d}/{today.month}/{start:02d}/{end:02d}"

    def next_number(self, existing_numbers: Iterable[str], today: date) -> str:
        return self.format(self.next_sequence(existing_numbers), today)
