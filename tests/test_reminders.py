from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

from backend.app.services.reminders import (
    GMAIL_COMPOSE_URL,
    aging_text,
    customer_summary_reminder,
    format_inr,
    invoice_reminder,
)


def make_invoice(**overrides):
    data = {
        "invoice_number": "PINV/2025/01/31980001",
        "customer_name": "Acme Industries",
        "customer_email": "accounts@acme.example",
        "due_date": date(2025, 3, 17),
        "status": "partially-paid",
        "total_amount": Decimal("708.00"),
        "amount_paid": Decimal("300.00"),
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def test_format_inr_uses_indian_grouping():
    assert format_inr(Decimal("123456.78")) == "₹1,23,456.78"
    assert format_inr(1234567) == "₹12,34,567.00"
    assert format_inr(100000) == "₹1,00,000.00"
    assert format_inr(999) == "₹999.00"
    assert format_inr("-1500") == "-₹1,500.00"
    assert format_inr(None) == "₹0.00"


def test_aging_text():
    assert aging_text(None) == "No due date"
    assert aging_text(-5) == "5 day(s) overdue"
    assert aging_text(3) == "3 day(s) remaining"


def test_invoice_reminder_states_balance_and_aging():
    reminder = invoice_reminder(make_invoice(), today=date(2025, 3, 20))
    assert reminder["to"] == "accounts@acme.example"
    assert "PINV/2025/01/31980001" in reminder["subject"]
    assert "Amount Due: ₹408.00" in reminder["body"]
    assert "3 day(s) overdue" in reminder["body"]

    link = reminder["link"]
    assert link.startswith(GMAIL_COMPOSE_URL)
    query = parse_qs(urlparse(link).query)
    assert query["to"] == ["accounts@acme.example"]
    assert query["su"] == [reminder["subject"]]
    assert query["body"] == [reminder["body"]]


def test_invoice_reminder_email_override_and_no_due_date():
    reminder = invoice_reminder(make_invoice(due_date=None, customer_email=None), email="ops@acme.example")
    assert reminder["to"] == "ops@acme.example"
    assert "Due Date" not in reminder["body"]


def test_customer_summary_lists_each_pending_invoice():
    second = make_invoice(invoice_number="PINV/2025/02/01980001", status="pending", total_amount=Decimal("100.00"))
    entry = {
        "customer_name": "Acme Industries",
        "email": "accounts@acme.example",
        "total_pending": Decimal("508.00"),
        "invoices": [make_invoice(), second],
    }
    reminder = customer_summary_reminder(entry, today=date(2025, 3, 10))
    assert reminder["to"] == "accounts@acme.example"
    assert "PINV/2025/01/31980001 — ₹408.00" in reminder["body"]
    assert "PINV/2025/02/01980001 — ₹100.00" in reminder["body"]
    assert "Total pending: ₹508.00" in reminder["body"]
    assert "7 day(s) remaining" in reminder["body"]
