from decimal import Decimal

from backend.app.schemas.customer import CustomerCreate
from backend.app.schemas.invoice import InvoiceCreate
from backend.app.services.invoices import check_invoice
from backend.app.services.validation import is_valid_gstin, validate_customer, validate_invoice


def make_invoice(**overrides) -> InvoiceCreate:
    data = {
        "invoice_date": "2025-01-31",
        "customer_name": "Acme Industries",
        "customer_address": "12 MG Road, Pune",
        "customer_email": "accounts@acme.example",
        "items": [{"description": "Training", "quantity": 3, "rate": 100, "tax_mode": "split", "tax_rate": 18}],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


def test_complete_invoice_passes():
    report = check_invoice(make_invoice())
    assert report.ok
    assert report.warnings == []


def test_required_customer_fields_and_items():
    report = check_invoice(make_invoice(customer_name=" ", customer_address="", customer_email=None, items=[]))
    assert not report.ok
    assert len(report.errors) == 4


def test_items_need_description_quantity_and_rate():
    items = [
        {"description": "", "quantity": 1, "rate": 10},
        {"description": "Audit", "quantity": 0, "rate": 10},
        {"description": "Audit", "quantity": 1, "rate": "oops"},
    ]
    report = check_invoice(make_invoice(items=items))
    assert report.errors == ["Add at least one item with description, quantity > 0, and rate > 0."]


def test_partial_payment_bounds():
    assert not check_invoice(make_invoice(status="partially-paid", amount_paid=0)).ok
    # Grand total is 354.00.
    assert not check_invoice(make_invoice(status="partially-paid", amount_paid=354)).ok
    assert check_invoice(make_invoice(status="partially-paid", amount_paid="353.99")).ok
    assert check_invoice(make_invoice(status="paid-half", amount_paid=100)).ok


def test_gstin_format_is_a_warning():
    report = validate_invoice(make_invoice(customer_gstin="27ABCDE1234"), Decimal("354.00"))
    assert report.ok
    assert report.warnings == ["Customer GSTIN does not look valid."]


def test_gstin_pattern():
    assert is_valid_gstin("27AAPFU0939F1ZV")
    assert is_valid_gstin("27aapfu0939f1zv")
    assert is_valid_gstin(" 29ABCDE1234F1Z5 ")
    assert not is_valid_gstin("27AAPFU0939F0ZV")
    assert not is_valid_gstin("")
    assert not is_valid_gstin(None)


def test_off_schedule_rate_warns_unless_halves_entered():
    items = [{"description": "Audit", "quantity": 1, "rate": 100, "tax_rate": 7}]
    report = check_invoice(make_invoice(items=items))
    assert report.ok
    assert len(report.warnings) == 1
    assert "7" in report.warnings[0]

    halves = [{"description": "Audit", "quantity": 1, "rate": 100, "tax_rate": 7, "cgst_rate": 3.5, "sgst_rate": 3.5}]
    assert check_invoice(make_invoice(items=halves)).warnings == []


def test_validate_customer():
    assert not validate_customer(CustomerCreate(name="  ")).ok
    report = validate_customer(CustomerCreate(name="Acme", gstin="bad"))
    assert report.ok
    assert report.warnings
