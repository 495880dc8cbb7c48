"""Receivables aging buckets for unpaid invoices."""

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.invoice import Invoice
from backend.app.services.aggregation import PAID, UNKNOWN_CUSTOMER, balance_due, customer_key, days_until_due


def _init_buckets() -> Dict[str, dict]:
    return {
        "current": {"count": 0, "total_balance": Decimal("0.00")},
        "days_1_30": {"count": 0, "total_balance": Decimal("0.00")},
        "days_31_60": {"count": 0, "total_balance": Decimal("0.00")},
        "days_61_90": {"count": 0, "total_balance": Decimal("0.00")},
        "days_90_plus": {"count": 0, "total_balance": Decimal("0.00")},
    }


def _bucket_for_days(days_past_due: int) -> str:
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "days_1_30"
    if days_past_due <= 60:
        return "days_31_60"
    if days_past_due <= 90:
        return "days_61_90"
    return "days_90_plus"


def get_aging_summary(db: Session, as_of: Optional[date] = None) -> dict:
    """Bucket outstanding balances by days past due; undated invoices count as current."""
    as_of_date = as_of or utc_today()

    invoices = db.query(Invoice).filter(Invoice.status != PAID).all()

    totals = _init_buckets()
    per_customer: Dict[str, dict] = {}

    for inv in invoices:
        balance = balance_due(inv)
        if balance <= 0:
            continue
        days = days_until_due(inv.due_date, as_of_date)
        bucket = "current" if days is None else _bucket_for_days(-days)

        totals[bucket]["count"] += 1
        totals[bucket]["total_balance"] += balance
        row = per_customer.setdefault(
            customer_key(inv),
            {"customer_name": inv.customer_name or UNKNOWN_CUSTOMER, "buckets": _init_buckets()},
        )
        row["buckets"][bucket]["count"] += 1
        row["buckets"][bucket]["total_balance"] += balance

    return {
        "as_of": as_of_date.isoformat(),
        "currency": "INR",
        "totals": totals,
        "customers": [
            {"customer_key": key, "customer_name": row["customer_name"], "buckets": row["buckets"]}
            for key, row in per_customer.items()
        ],
    }
