"""Dashboard and receivables reporting built on the aggregation helpers."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.services.aggregation import PAID, aggregate_portfolio, balance_due, days_until_due
from backend.app.services.reminders import aging_text, customer_summary_reminder, invoice_reminder

# Sort key for invoices without a due date: after every dated invoice.
NO_DUE_DATE_SORT = 9999


def get_dashboard_summary(db: Session) -> dict:
    invoices = db.query(Invoice).all()
    portfolio = aggregate_portfolio(invoices)
    return {
        "total_invoices": len(invoices),
        "total_customers": db.query(Customer).count(),
        "total_revenue": portfolio["total_revenue"],
        "outstanding": portfolio["outstanding"],
    }


def get_receivables_report(db: Session, today: Optional[date] = None) -> dict:
    """Received vs remaining, pending totals per customer and pending invoices by urgency."""
    as_of = today or utc_today()
    invoices = db.query(Invoice).all()
    customers = db.query(Customer).all()
    email_by_customer = {c.id: c.email or "" for c in customers}
    portfolio = aggregate_portfolio(invoices, customers)

    customer_rows = []
    for entry in portfolio["per_customer_pending"]:
        customer_rows.append(
            {
                "customer_key": entry["customer_key"],
                "customer_id": entry["customer_id"],
                "customer_name": entry["customer_name"],
                "email": entry["email"],
                "total_pending": entry["total_pending"],
                "invoice_numbers": [inv.invoice_number for inv in entry["invoices"]],
                "reminder": customer_summary_reminder(entry, as_of),
            }
        )

    pending_rows = []
    for inv in invoices:
        if inv.status == PAID:
            continue
        email = inv.customer_email or email_by_customer.get(inv.customer_id, "")
        days = days_until_due(inv.due_date, as_of)
        pending_rows.append(
            {
                "id": inv.id,
                "invoice_number": inv.invoice_number,
                "customer_name": inv.customer_name,
                "customer_email": email,
                "due_date": inv.due_date,
                "amount": balance_due(inv),
                "days_until_due": days,
                "aging": aging_text(days),
                "reminder": invoice_reminder(inv, as_of, email=email),
            }
        )
    pending_rows.sort(key=lambda row: NO_DUE_DATE_SORT if row["days_until_due"] is None else row["days_until_due"])

    return {
        "as_of": as_of,
        "received": portfolio["received"],
        "remaining": portfolio["outstanding"],
        "customers": customer_rows,
        "pending_invoices": pending_rows,
    }
