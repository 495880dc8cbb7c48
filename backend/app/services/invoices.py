"""Invoice persistence: numbering, full-replace saves and derived fields."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.core.time import add_days, parse_date, utc_today
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.services.aggregation import (
    PARTIALLY_PAID,
    aggregate_invoice,
    balance_due,
    days_until_due,
    remaining_amount,
)
from backend.app.services.numbering import next_invoice_number
from backend.app.services.tax import TaxMode, apply_tax_mode, compute_line, non_negative, normalize_tax_mode, po_gross_value, round2, round_quantity
from backend.app.services.validation import ValidationReport, validate_invoice

logger = logging.getLogger(__name__)


class InvoiceNumberConflict(Exception):
    """No free invoice number could be committed within the retry budget."""


def line_columns(item: Any) -> dict:
    """Resolve stored rates for a line and compute its cached amounts.

    Quantity and rate are rounded to their column scale first so the cached
    amounts always match a recomputation from the stored row.
    """
    mode = normalize_tax_mode(item.tax_mode)
    tax_rate = round2(non_negative(item.tax_rate))
    rates = apply_tax_mode(tax_rate, mode)
    if mode is TaxMode.SPLIT:
        if getattr(item, "cgst_rate", None) is not None:
            rates["cgst_rate"] = round2(non_negative(item.cgst_rate))
        if getattr(item, "sgst_rate", None) is not None:
            rates["sgst_rate"] = round2(non_negative(item.sgst_rate))

    values = {
        "description": item.description or "",
        "hsn": item.hsn,
        "quantity": round_quantity(non_negative(item.quantity)),
        "rate": round2(non_negative(item.rate)),
        "tax_mode": mode.value,
        "tax_rate": tax_rate,
        **rates,
    }
    values.update(compute_line(values).as_dict())
    return values


def compute_invoice(payload: Any) -> tuple[List[dict], dict]:
    lines = [line_columns(item) for item in payload.items]
    return lines, aggregate_invoice(lines)


def check_invoice(payload: Any) -> ValidationReport:
    _, totals = compute_invoice(payload)
    return validate_invoice(payload, totals["grand_total"])


def default_due_date(invoice_date: Any) -> date:
    return add_days(invoice_date, get_settings().due_days)


def existing_invoice_numbers(db: Session) -> List[str]:
    return [number for (number,) in db.query(Invoice.invoice_number).all()]


def preview_invoice(db: Session, payload: Any) -> dict:
    """Totals for an unsaved invoice, recomputed on every edit."""
    lines, totals = compute_invoice(payload)
    report = validate_invoice(payload, totals["grand_total"])
    invoice_date = parse_date(payload.invoice_date) or utc_today()
    amount_paid = payload.amount_paid if payload.status == PARTIALLY_PAID else Decimal("0")
    return {
        "invoice_number": next_invoice_number(invoice_date, existing_invoice_numbers(db)),
        "due_date": payload.due_date or default_due_date(invoice_date),
        "lines": lines,
        **totals,
        "remaining": remaining_amount(totals["grand_total"], amount_paid),
        "po_gross_value": po_gross_value(payload.po_base_value, payload.po_gst_rate),
        "errors": report.errors,
        "warnings": report.warnings,
    }


def apply_customer_snapshot(db: Session, payload: Any) -> Any:
    """Fill blank customer fields on an invoice payload from the referenced customer."""
    if not payload.customer_id:
        return payload
    customer = db.query(Customer).filter(Customer.id == payload.customer_id).first()
    if customer is None:
        return payload
    updates = {}
    for field, source in (
        ("customer_name", customer.name),
        ("customer_address", customer.address),
        ("customer_gstin", customer.gstin),
        ("customer_email", customer.email),
    ):
        if not (getattr(payload, field) or "").strip() and source:
            updates[field] = source
    return payload.model_copy(update=updates) if updates else payload


def apply_invoice_payload(invoice: Invoice, payload: Any) -> None:
    lines, totals = compute_invoice(payload)
    invoice_date = parse_date(payload.invoice_date) or utc_today()

    invoice.invoice_date = invoice_date
    invoice.due_date = payload.due_date or default_due_date(invoice_date)
    invoice.customer_id = payload.customer_id or None
    invoice.customer_name = (payload.customer_name or "").strip()
    invoice.customer_address = payload.customer_address
    invoice.customer_gstin = payload.customer_gstin
    invoice.customer_email = payload.customer_email
    invoice.po_number = payload.po_number
    invoice.po_image = payload.po_image
    invoice.po_base_value = round2(non_negative(payload.po_base_value))
    invoice.po_gst_mode = normalize_tax_mode(payload.po_gst_mode).value
    invoice.po_gst_rate = round2(non_negative(payload.po_gst_rate))
    invoice.status = payload.status
    invoice.amount_paid = round2(non_negative(payload.amount_paid))
    invoice.sub_total = totals["sub_total"]
    invoice.total_tax = totals["total_tax"]
    invoice.total_amount = totals["grand_total"]

    invoice.items.clear()
    for position, values in enumerate(lines):
        invoice.items.append(InvoiceItem(position=position, **values))


def _is_number_conflict(exc: IntegrityError) -> bool:
    return "invoice_number" in str(exc.orig)


def _commit_with_fresh_number(db: Session, prepare: Callable[[], Invoice]) -> Invoice:
    """Allocate a number and commit, re-allocating when another writer took it first.

    ``prepare`` is called on every attempt because a rollback discards the
    pending changes.
    """
    settings = get_settings()
    for attempt in range(1, settings.number_retries + 1):
        invoice = prepare()
        invoice.invoice_number = next_invoice_number(invoice.invoice_date, existing_invoice_numbers(db))
        db.add(invoice)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if not _is_number_conflict(exc):
                raise
            logger.warning(
                "Invoice number %s already taken (attempt %d/%d)",
                invoice.invoice_number,
                attempt,
                settings.number_retries,
            )
            continue
        db.refresh(invoice)
        return invoice
    raise InvoiceNumberConflict("Could not allocate a free invoice number; please retry.")


def create_invoice(db: Session, payload: Any) -> Invoice:
    def prepare() -> Invoice:
        invoice = Invoice()
        apply_invoice_payload(invoice, payload)
        return invoice

    invoice = _commit_with_fresh_number(db, prepare)
    logger.info("Created invoice %s (%s)", invoice.invoice_number, invoice.id)
    return invoice


def replace_invoice(db: Session, invoice: Invoice, payload: Any, regenerate_number: bool = False) -> Invoice:
    """Overwrite every field and line of a stored invoice.

    The invoice number is kept unless ``regenerate_number`` is set and the
    invoice date changed, in which case a number for the new date is issued.
    """
    previous_date = invoice.invoice_date
    new_date = parse_date(payload.invoice_date) or utc_today()

    def prepare() -> Invoice:
        apply_invoice_payload(invoice, payload)
        return invoice

    if regenerate_number and new_date != previous_date:
        invoice = _commit_with_fresh_number(db, prepare)
    else:
        prepare()
        db.commit()
        db.refresh(invoice)
    logger.info("Replaced invoice %s (%s)", invoice.invoice_number, invoice.id)
    return invoice


def check_status_change(invoice: Invoice, status: str, amount_paid: Optional[Decimal]) -> ValidationReport:
    report = ValidationReport()
    if status == PARTIALLY_PAID:
        paid = non_negative(amount_paid if amount_paid is not None else invoice.amount_paid)
        if not paid > 0:
            report.errors.append("Please enter the Amount Paid for partially paid invoices.")
        elif paid >= invoice.total_amount:
            report.errors.append("Amount Paid must be less than the Grand Total for partially paid invoices.")
    return report


def update_invoice_status(db: Session, invoice: Invoice, status: str, amount_paid: Optional[Decimal] = None) -> Invoice:
    invoice.status = status
    if amount_paid is not None:
        invoice.amount_paid = round2(non_negative(amount_paid))
    db.commit()
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    logger.info("Deleting invoice %s (%s)", invoice.invoice_number, invoice.id)
    db.delete(invoice)
    db.commit()


def duplicate_invoice(invoice: Invoice) -> dict:
    """Unsaved copy of an invoice, numbered ``<number>-COPY`` until it is saved."""
    return {
        "id": None,
        "invoice_number": f"{invoice.invoice_number}-COPY",
        "invoice_date": invoice.invoice_date,
        "due_date": invoice.due_date,
        "customer_id": invoice.customer_id,
        "customer_name": invoice.customer_name,
        "customer_address": invoice.customer_address,
        "customer_gstin": invoice.customer_gstin,
        "customer_email": invoice.customer_email,
        "po_number": invoice.po_number,
        "po_image": invoice.po_image,
        "po_base_value": invoice.po_base_value,
        "po_gst_mode": invoice.po_gst_mode,
        "po_gst_rate": invoice.po_gst_rate,
        "status": invoice.status,
        "amount_paid": invoice.amount_paid,
        "items": [
            {
                "description": item.description,
                "hsn": item.hsn,
                "quantity": item.quantity,
                "rate": item.rate,
                "tax_mode": item.tax_mode,
                "tax_rate": item.tax_rate,
                "cgst_rate": item.cgst_rate if item.tax_mode == TaxMode.SPLIT.value else None,
                "sgst_rate": item.sgst_rate if item.tax_mode == TaxMode.SPLIT.value else None,
            }
            for item in invoice.items
        ],
    }


def attach_derived(invoice: Invoice, today: Optional[date] = None) -> Invoice:
    invoice.remaining = balance_due(invoice)
    invoice.po_gross_value = po_gross_value(invoice.po_base_value, invoice.po_gst_rate)
    invoice.days_until_due = days_until_due(invoice.due_date, today)
    return invoice


def attach_derived_all(invoices: Iterable[Invoice], today: Optional[date] = None) -> List[Invoice]:
    return [attach_derived(inv, today) for inv in invoices]
