from datetime import date
from decimal import Decimal

from backend.app.services.aggregation import (
    UNKNOWN_CUSTOMER,
    aggregate_invoice,
    aggregate_portfolio,
    balance_due,
    customer_key,
    days_until_due,
    normalize_status,
    remaining_amount,
)
from backend.app.services.tax import compute_line

LINE = {"quantity": 3, "rate": 100, "tax_mode": "split", "tax_rate": 18}


def test_two_line_invoice_totals():
    totals = aggregate_invoice([LINE, LINE])
    assert totals["sub_total"] == Decimal("600.00")
    assert totals["total_cgst"] == Decimal("54.00")
    assert totals["total_sgst"] == Decimal("54.00")
    assert totals["total_igst"] == Decimal("0.00")
    assert totals["total_tax"] == Decimal("108.00")
    assert totals["grand_total"] == Decimal("708.00")
    assert remaining_amount(totals["grand_total"], 300) == Decimal("408.00")


def test_totals_are_summed_from_rounded_lines():
    line = {"quantity": 1, "rate": "0.10", "tax_mode": "unified", "tax_rate": 5}
    totals = aggregate_invoice([line, line, line])
    # Each line rounds 0.005 up to 0.01 before summing.
    assert totals["total_tax"] == Decimal("0.03")
    assert totals["grand_total"] == Decimal("0.33")


def test_aggregate_accepts_precomputed_lines():
    assert aggregate_invoice([compute_line(LINE)])["grand_total"] == Decimal("354.00")
    assert aggregate_invoice([])["grand_total"] == Decimal("0.00")


def test_remaining_never_negative():
    assert remaining_amount(100, 150) == Decimal("0.00")
    assert remaining_amount("abc", 10) == Decimal("0.00")


def test_balance_due_by_status():
    assert balance_due({"status": "paid", "total_amount": 708}) == Decimal("0.00")
    assert balance_due({"status": "partially-paid", "total_amount": 708, "amount_paid": 300}) == Decimal("408.00")
    assert balance_due({"status": "pending", "total_amount": 708, "amount_paid": 300}) == Decimal("708.00")


def test_customer_key_fallback_chain():
    assert customer_key({"customer_id": "c1", "customer_name": "Acme"}) == "c1"
    assert customer_key({"customer_id": None, "customer_name": "Acme"}) == "Acme"
    assert customer_key({"customer_id": "", "customer_name": ""}) == UNKNOWN_CUSTOMER


def test_portfolio_totals_and_pending_per_customer():
    invoices = [
        {"customer_id": "c1", "customer_name": "Acme", "status": "partially-paid", "total_amount": 708, "amount_paid": 300},
        {"customer_id": "c1", "customer_name": "Acme Pvt", "status": "pending", "total_amount": 100},
        {"customer_id": None, "customer_name": "Beta", "status": "paid", "total_amount": 50},
        {"customer_id": None, "customer_name": None, "status": "pending", "total_amount": 20},
    ]
    customers = [{"id": "c1", "email": "accounts@acme.example"}]

    portfolio = aggregate_portfolio(invoices, customers)

    assert portfolio["total_revenue"] == Decimal("878.00")
    assert portfolio["outstanding"] == Decimal("528.00")
    assert portfolio["received"] == Decimal("350.00")

    rows = portfolio["per_customer_pending"]
    assert [row["customer_key"] for row in rows] == ["c1", UNKNOWN_CUSTOMER]
    assert rows[0]["total_pending"] == Decimal("508.00")
    assert rows[0]["customer_name"] == "Acme"
    assert rows[0]["email"] == "accounts@acme.example"
    assert len(rows[0]["invoices"]) == 2
    assert rows[1]["total_pending"] == Decimal("20.00")
    assert rows[1]["customer_name"] == UNKNOWN_CUSTOMER


def test_days_until_due():
    today = date(2025, 3, 10)
    assert days_until_due(date(2025, 3, 5), today) == -5
    assert days_until_due(date(2025, 3, 13), today) == 3
    assert days_until_due("2025-03-10", today) == 0
    assert days_until_due(None, today) is None
    assert days_until_due("soon", today) is None


def test_normalize_status_aliases():
    assert normalize_status("paid-half") == "partially-paid"
    assert normalize_status(" PAID ") == "paid"
    assert normalize_status("weird", default="pending") == "pending"
    assert normalize_status("weird") == "weird"
