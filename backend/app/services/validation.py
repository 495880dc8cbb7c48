"""Pre-save checks for invoices and customers.

Errors block the save. Warnings (a GSTIN that does not match the registration
format, a rate outside the GST schedule) only need to be acknowledged.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List

from backend.app.services.aggregation import PARTIALLY_PAID
from backend.app.services.tax import GST_RATES, normalize_tax_mode, non_negative, TaxMode

GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$", re.IGNORECASE)


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def is_valid_gstin(value: str | None) -> bool:
    return bool(value) and bool(GSTIN_PATTERN.match(value.strip()))


def _blank(value: Any) -> bool:
    return not str(value or "").strip()


def validate_customer(payload: Any) -> ValidationReport:
    report = ValidationReport()
    if _blank(payload.name):
        report.errors.append("Customer name is required.")
    if payload.gstin and not is_valid_gstin(payload.gstin):
        report.warnings.append("Customer GSTIN does not look valid.")
    return report


def validate_invoice(payload: Any, grand_total: Decimal) -> ValidationReport:
    """Check an invoice payload against its computed grand total."""
    report = ValidationReport()

    if _blank(payload.customer_name):
        report.errors.append("Customer name is required.")
    if _blank(payload.customer_address):
        report.errors.append("Customer address is required.")
    if _blank(payload.customer_email):
        report.errors.append("Customer email is required.")

    has_valid_item = any(
        not _blank(item.description) and non_negative(item.quantity) > 0 and non_negative(item.rate) > 0
        for item in payload.items
    )
    if not has_valid_item:
        report.errors.append("Add at least one item with description, quantity > 0, and rate > 0.")

    if payload.status == PARTIALLY_PAID:
        paid = non_negative(payload.amount_paid)
        if not paid > 0:
            report.errors.append("Please enter the Amount Paid for partially paid invoices.")
        elif paid >= grand_total:
            report.errors.append("Amount Paid must be less than the Grand Total for partially paid invoices.")

    if payload.customer_gstin and not is_valid_gstin(payload.customer_gstin):
        report.warnings.append("Customer GSTIN does not look valid.")

    for index, item in enumerate(payload.items, start=1):
        # Directly entered halves are not checked against the schedule.
        if normalize_tax_mode(item.tax_mode) is TaxMode.SPLIT and item.cgst_rate is not None:
            continue
        if non_negative(item.tax_rate) not in GST_RATES:
            report.warnings.append(f"Line {index}: GST rate {item.tax_rate}% is not a standard GST rate.")

    return report
