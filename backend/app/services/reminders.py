"""Payment reminder emails and webmail compose links."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional
from urllib.parse import urlencode

from backend.app.core.settings import get_settings
from backend.app.services.aggregation import balance_due, days_until_due
from backend.app.services.tax import round2

GMAIL_COMPOSE_URL = "https://mail.google.com/mail/?view=cm&fs=1"


def format_inr(amount: Any) -> str:
    """Format an amount as Indian rupees with lakh/crore digit grouping, e.g. ``₹1,23,456.78``."""
    value = round2(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}₹{whole}.{fraction}"


def aging_text(days: Optional[int]) -> str:
    if days is None:
        return "No due date"
    if days < 0:
        return f"{abs(days)} day(s) overdue"
    return f"{days} day(s) remaining"


def gmail_link(to: str, subject: str, body: str) -> str:
    params = urlencode({"to": to or "", "su": subject or "", "body": body or ""})
    return f"{GMAIL_COMPOSE_URL}&{params}"


def _signature() -> list[str]:
    settings = get_settings()
    return ["Best regards,", settings.company_name, settings.company_email]


def invoice_reminder(invoice: Any, today: Optional[date] = None, email: Optional[str] = None) -> dict:
    """Reminder for a single invoice; ``email`` overrides the invoice's snapshot address."""
    number = invoice.invoice_number or ""
    due_part = ""
    if invoice.due_date:
        days = days_until_due(invoice.due_date, today)
        due_part = f" (Due Date: {invoice.due_date.isoformat()}, {aging_text(days)})"

    lines = [
        f"Dear {invoice.customer_name or 'Sir/Madam'},",
        "",
        f"This is a gentle reminder regarding Invoice {number}{due_part}.",
        f"Amount Due: {format_inr(balance_due(invoice))}",
        "",
        "Kindly arrange the payment at your earliest convenience. If it has already been paid, "
        "please ignore this email and accept our thanks.",
        "",
        *_signature(),
    ]
    to = email if email is not None else (invoice.customer_email or "")
    subject = f"Payment Reminder — Invoice {number}"
    body = "\n".join(lines)
    return {"to": to, "subject": subject, "body": body, "link": gmail_link(to, subject, body)}


def customer_summary_reminder(entry: dict, today: Optional[date] = None) -> dict:
    """Reminder listing every pending invoice of one customer (a per-customer pending row)."""
    lines = [
        f"Dear {entry.get('customer_name') or 'Sir/Madam'},",
        "",
        "This is a friendly reminder of your pending payments with us:",
        "",
    ]
    for inv in entry.get("invoices", []):
        due = inv.due_date.isoformat() if inv.due_date else "—"
        aging = aging_text(days_until_due(inv.due_date, today))
        lines.append(f"• {inv.invoice_number} — {format_inr(balance_due(inv))} — Due: {due} ({aging})")
    lines.extend(
        [
            "",
            f"Total pending: {format_inr(entry.get('total_pending', Decimal('0')))}",
            "",
            "Kindly arrange the payment at your earliest convenience.",
            "",
            *_signature(),
        ]
    )
    to = entry.get("email") or ""
    subject = "Payment Reminder — Pending Invoices Summary"
    body = "\n".join(lines)
    return {"to": to, "subject": subject, "body": body, "link": gmail_link(to, subject, body)}
