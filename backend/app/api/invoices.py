"""Invoice routes."""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session

from backend.app.api.errors import raise_for_report
from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.schemas.invoice import (
    InvoiceCreate,
    InvoiceDraft,
    InvoicePreview,
    InvoiceRead,
    InvoiceStatusUpdate,
    InvoiceUpdate,
    NextNumberRead,
    ReminderRead,
)
from backend.app.services.invoices import (
    InvoiceNumberConflict,
    apply_customer_snapshot,
    attach_derived,
    attach_derived_all,
    check_invoice,
    check_status_change,
    create_invoice,
    default_due_date,
    delete_invoice,
    duplicate_invoice,
    existing_invoice_numbers,
    preview_invoice,
    replace_invoice,
    update_invoice_status,
)
from backend.app.services.numbering import next_invoice_number
from backend.app.services.reminders import invoice_reminder

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _get_invoice(db: Session, invoice_id: str) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("/next-number", response_model=NextNumberRead)
async def get_next_invoice_number(invoice_date: date | None = None, db: Session = Depends(get_db)):
    day = invoice_date or utc_today()
    return {
        "invoice_date": day,
        "invoice_number": next_invoice_number(day, existing_invoice_numbers(db)),
        "due_date": default_due_date(day),
    }


@router.post("/preview", response_model=InvoicePreview)
async def preview(payload: InvoiceCreate, db: Session = Depends(get_db)):
    return preview_invoice(db, apply_customer_snapshot(db, payload))


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create(payload: InvoiceCreate, db: Session = Depends(get_db)):
    payload = apply_customer_snapshot(db, payload)
    raise_for_report(check_invoice(payload), payload.acknowledge_warnings)
    try:
        invoice = create_invoice(db, payload)
    except InvoiceNumberConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return attach_derived(invoice)


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status_filter: str | None = Query(None, alias="status"),
    q: str | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "invoice_date",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
):
    query = db.query(Invoice)
    if status_filter and status_filter != "all":
        query = query.filter(Invoice.status == status_filter)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Invoice.invoice_number.ilike(pattern),
                Invoice.customer_name.ilike(pattern),
                cast(Invoice.invoice_date, String).ilike(pattern),
                cast(Invoice.due_date, String).ilike(pattern),
            )
        )

    supported_sort_fields = {
        "invoice_number": Invoice.invoice_number,
        "customer_name": Invoice.customer_name,
        "invoice_date": Invoice.invoice_date,
        "due_date": Invoice.due_date,
        "total_amount": Invoice.total_amount,
        "status": Invoice.status,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Invoice.invoice_number.asc()]
    else:
        order_by_clause = [sort_column.desc(), Invoice.invoice_number.desc()]

    invoices = query.order_by(*order_by_clause).offset(skip).limit(limit).all()
    return attach_derived_all(invoices)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(invoice_id: str, db: Session = Depends(get_db)):
    return attach_derived(_get_invoice(db, invoice_id))


@router.put("/{invoice_id}", response_model=InvoiceRead)
async def replace(invoice_id: str, payload: InvoiceUpdate, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    payload = apply_customer_snapshot(db, payload)
    raise_for_report(check_invoice(payload), payload.acknowledge_warnings)
    try:
        invoice = replace_invoice(db, invoice, payload, regenerate_number=payload.regenerate_number)
    except InvoiceNumberConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return attach_derived(invoice)


@router.patch("/{invoice_id}/status", response_model=InvoiceRead)
async def change_status(invoice_id: str, payload: InvoiceStatusUpdate, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    raise_for_report(check_status_change(invoice, payload.status, payload.amount_paid))
    invoice = update_invoice_status(db, invoice, payload.status, payload.amount_paid)
    return attach_derived(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(invoice_id: str, db: Session = Depends(get_db)):
    delete_invoice(db, _get_invoice(db, invoice_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{invoice_id}/duplicate", response_model=InvoiceDraft)
async def duplicate(invoice_id: str, db: Session = Depends(get_db)):
    return duplicate_invoice(_get_invoice(db, invoice_id))


@router.get("/{invoice_id}/reminder", response_model=ReminderRead)
async def get_reminder(invoice_id: str, db: Session = Depends(get_db)):
    invoice = _get_invoice(db, invoice_id)
    email = invoice.customer_email
    if not email and invoice.customer_id:
        customer = db.query(Customer).filter(Customer.id == invoice.customer_id).first()
        email = customer.email if customer else None
    return invoice_reminder(invoice, email=email or "")
