"""Whole-dataset repositories used for import, backup and restore.

A repository loads every customer and invoice at once and replaces them all
on save, mirroring how a spreadsheet import or backup restore behaves.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Set

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.time import utc_now, utc_today
from backend.app.models.customer import Customer
from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.schemas.backup import BACKUP_SCHEMA, BackupFile, CustomerRecord, InvoiceRecord
from backend.app.schemas.customer import CustomerRead
from backend.app.schemas.invoice import InvoiceRead
from backend.app.services.invoices import apply_invoice_payload, attach_derived
from backend.app.services.numbering import next_invoice_number
from backend.app.services.spreadsheet import ImportFormatError

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    customers: List[dict] = field(default_factory=list)
    invoices: List[dict] = field(default_factory=list)


def _records(model, items: Iterable[Any]) -> list:
    try:
        return [item if isinstance(item, model) else model.model_validate(item) for item in items]
    except ValidationError as exc:
        raise ImportFormatError(f"Invalid {model.__name__}: {exc.errors()[0]['msg']}") from exc


class InvoiceRepository(ABC):
    @abstractmethod
    def load(self) -> Snapshot:
        """Return every customer and invoice as JSON-ready dicts."""

    @abstractmethod
    def save_all(self, customers: Iterable[Any], invoices: Iterable[Any]) -> Snapshot:
        """Replace the stored dataset."""


class SqlAlchemyRepository(InvoiceRepository):
    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Snapshot:
        customers = self.db.query(Customer).order_by(Customer.created_at.asc()).all()
        invoices = self.db.query(Invoice).order_by(Invoice.created_at.asc()).all()
        today = utc_today()
        return Snapshot(
            customers=[CustomerRead.model_validate(c).model_dump(mode="json") for c in customers],
            invoices=[InvoiceRead.model_validate(attach_derived(inv, today)).model_dump(mode="json") for inv in invoices],
        )

    def save_all(self, customers: Iterable[Any], invoices: Iterable[Any]) -> Snapshot:
        customer_records = _records(CustomerRecord, customers)
        invoice_records = _records(InvoiceRecord, invoices)

        self.db.query(InvoiceItem).delete()
        self.db.query(Invoice).delete()
        self.db.query(Customer).delete()

        for record in customer_records:
            data = record.model_dump()
            if not data.get("id"):
                data.pop("id")
            self.db.add(Customer(**data))

        issued: Set[str] = set()
        for record in invoice_records:
            invoice = Invoice(id=record.id) if record.id else Invoice()
            apply_invoice_payload(invoice, record)
            number = record.invoice_number
            if not number or number in issued:
                fresh = next_invoice_number(invoice.invoice_date, issued)
                if number:
                    logger.warning("Duplicate invoice number %s renumbered to %s", number, fresh)
                number = fresh
            invoice.invoice_number = number
            issued.add(number)
            self.db.add(invoice)

        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ImportFormatError("Duplicate customer or invoice ids in imported data") from exc
        logger.info("Stored %d customer(s) and %d invoice(s)", len(customer_records), len(invoice_records))
        return self.load()


class JsonFileRepository(InvoiceRepository):
    """Backup file in the ``peats-v1`` layout."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Snapshot:
        if not self.path.exists():
            return Snapshot()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ImportFormatError(f"Backup file {self.path} is not valid JSON") from exc
        return Snapshot(customers=payload.get("customers", []), invoices=payload.get("invoices", []))

    def save_all(self, customers: Iterable[Any], invoices: Iterable[Any]) -> Snapshot:
        backup = BackupFile(
            customers=_records(CustomerRecord, customers),
            invoices=_records(InvoiceRecord, invoices),
        )
        snapshot = Snapshot(
            customers=[c.model_dump(mode="json") for c in backup.customers],
            invoices=[i.model_dump(mode="json") for i in backup.invoices],
        )
        self.path.write_text(json.dumps(backup_payload(snapshot), indent=2, ensure_ascii=False), encoding="utf-8")
        return snapshot


def backup_payload(snapshot: Snapshot) -> dict:
    return {
        "schema": BACKUP_SCHEMA,
        "exportedAt": utc_now().isoformat(),
        "invoices": snapshot.invoices,
        "customers": snapshot.customers,
    }


def copy_dataset(source: InvoiceRepository, target: InvoiceRepository) -> Snapshot:
    snapshot = source.load()
    return target.save_all(snapshot.customers, snapshot.invoices)
