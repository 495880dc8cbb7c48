"""Day-scoped invoice number allocation.

Numbers look like ``PINV/2025/01/31980001``: a literal prefix, the invoice
date as ``YYYY/MM/DD`` and a sequence that restarts at the base value every
day. The next sequence is one past the highest existing sequence for that
day, so numbers freed by deleted invoices are never handed out again.

Allocation is a pure read of the numbers passed in. Two callers working from
the same snapshot will compute the same number; the persistence layer guards
against that with a unique constraint (see ``services.invoices``).
"""

import re
from typing import Iterable, Optional

from backend.app.core.settings import get_settings
from backend.app.core.time import parse_date, utc_today

SEQUENCE_PATTERN = re.compile(r"(\d{6,})$")


def day_prefix(invoice_date=None, prefix: Optional[str] = None) -> str:
    """Return the per-day prefix, using today when the date is missing or unreadable."""
    settings = get_settings()
    token = prefix if prefix is not None else settings.invoice_prefix
    day = parse_date(invoice_date) or utc_today()
    return f"{token}/{day.year:04d}/{day.month:02d}/{day.day:02d}"


def parse_sequence(invoice_number, prefix: str) -> Optional[int]:
    """Extract the trailing sequence of a number issued under ``prefix``."""
    if not isinstance(invoice_number, str) or not invoice_number.startswith(prefix):
        return None
    match = SEQUENCE_PATTERN.search(invoice_number[len(prefix):])
    if not match:
        return None
    return int(match.group(1))


def next_invoice_number(
    invoice_date=None,
    existing_numbers: Iterable[str] = (),
    *,
    prefix: Optional[str] = None,
    base: Optional[int] = None,
) -> str:
    """Compute the next invoice number for ``invoice_date`` given every number already issued."""
    settings = get_settings()
    start = base if base is not None else settings.invoice_sequence_base
    day = day_prefix(invoice_date, prefix)

    sequences = [seq for seq in (parse_sequence(n, day) for n in existing_numbers or ()) if seq is not None]
    next_seq = max(sequences) + 1 if sequences else start
    return f"{day}{next_seq}"
