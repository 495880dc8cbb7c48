"""Invoice and portfolio totals, balances and due-date aging."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from backend.app.core.time import parse_date, utc_today
from backend.app.services.tax import ZERO, LineAmounts, compute_line, non_negative, round2

PENDING = "pending"
PARTIALLY_PAID = "partially-paid"
PAID = "paid"
INVOICE_STATUSES = (PENDING, PARTIALLY_PAID, PAID)

UNKNOWN_CUSTOMER = "—"


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def aggregate_invoice(items: Iterable[Any]) -> dict:
    """Sum line items into invoice totals.

    Items may be precomputed ``LineAmounts`` or raw line items, which are run
    through the tax engine first. Sums are re-rounded at this level.
    """
    lines = [item if isinstance(item, LineAmounts) else compute_line(item) for item in items]

    sub_total = round2(sum((line.taxable_value for line in lines), ZERO))
    total_cgst = round2(sum((line.cgst_amount for line in lines), ZERO))
    total_sgst = round2(sum((line.sgst_amount for line in lines), ZERO))
    total_igst = round2(sum((line.igst_amount for line in lines), ZERO))
    total_tax = round2(total_cgst + total_sgst + total_igst)
    return {
        "sub_total": sub_total,
        "total_cgst": total_cgst,
        "total_sgst": total_sgst,
        "total_igst": total_igst,
        "total_tax": total_tax,
        "grand_total": round2(sub_total + total_tax),
    }


def remaining_amount(grand_total: Any, amount_paid: Any) -> Decimal:
    balance = round2(non_negative(grand_total) - non_negative(amount_paid))
    return balance if balance > 0 else ZERO


def balance_due(invoice: Any) -> Decimal:
    """Outstanding balance of a stored invoice; only partial payments reduce it."""
    status = _field(invoice, "status")
    if status == PAID:
        return ZERO
    total = _field(invoice, "total_amount")
    if status == PARTIALLY_PAID:
        return remaining_amount(total, _field(invoice, "amount_paid"))
    return round2(non_negative(total))


def customer_key(invoice: Any) -> str:
    """Grouping key: customer id, then customer name, then a placeholder."""
    return _field(invoice, "customer_id") or _field(invoice, "customer_name") or UNKNOWN_CUSTOMER


def aggregate_portfolio(invoices: Iterable[Any], customers: Iterable[Any] = ()) -> dict:
    """Dashboard/report totals across invoices.

    ``customers`` is only used to fill in a missing email on the per-customer
    pending rows.
    """
    email_by_customer = {_field(c, "id"): _field(c, "email") or "" for c in customers}

    total_revenue = ZERO
    received = ZERO
    outstanding = ZERO
    pending: Dict[str, dict] = {}

    for inv in invoices:
        total = round2(non_negative(_field(inv, "total_amount")))
        total_revenue += total
        balance = balance_due(inv)
        received += total - balance if total > balance else ZERO
        if _field(inv, "status") == PAID:
            continue
        outstanding += balance

        key = customer_key(inv)
        entry = pending.get(key)
        if entry is None:
            customer_id = _field(inv, "customer_id")
            entry = {
                "customer_key": key,
                "customer_id": customer_id or None,
                "customer_name": _field(inv, "customer_name") or UNKNOWN_CUSTOMER,
                "email": _field(inv, "customer_email") or email_by_customer.get(customer_id, "") or "",
                "total_pending": ZERO,
                "invoices": [],
            }
            pending[key] = entry
        entry["total_pending"] += balance
        entry["invoices"].append(inv)

    per_customer: List[dict] = sorted(pending.values(), key=lambda e: e["total_pending"], reverse=True)
    for entry in per_customer:
        entry["total_pending"] = round2(entry["total_pending"])

    return {
        "total_revenue": round2(total_revenue),
        "received": round2(received),
        "outstanding": round2(outstanding),
        "per_customer_pending": per_customer,
    }


def days_until_due(due_date: Any, today: Optional[date] = None) -> Optional[int]:
    """Whole days from today to the due date; negative when overdue, None when unknown."""
    due = parse_date(due_date)
    if due is None:
        return None
    return (due - (today or utc_today())).days


_STATUS_ALIASES = {
    "pending": PENDING,
    "unpaid": PENDING,
    "partially-paid": PARTIALLY_PAID,
    "partially_paid": PARTIALLY_PAID,
    "partial": PARTIALLY_PAID,
    "paid-half": PARTIALLY_PAID,
    "paid": PAID,
}


def normalize_status(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Map legacy spellings (``paid-half``, ``partial``) onto the status set."""
    key = str(value or "").strip().lower()
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    return default if default is not None else value
