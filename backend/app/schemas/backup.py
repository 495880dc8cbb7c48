"""Backup/restore record schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.customer import CustomerBase
from backend.app.schemas.invoice import InvoiceBase

BACKUP_SCHEMA = "peats-v1"


class CustomerRecord(CustomerBase):
    id: Optional[str] = None


class InvoiceRecord(InvoiceBase):
    id: Optional[str] = None
    invoice_number: Optional[str] = None


class BackupFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field(default=BACKUP_SCHEMA, alias="schema")
    exported_at: Optional[datetime] = Field(default=None, alias="exportedAt")
    customers: List[CustomerRecord] = Field(default_factory=list)
    invoices: List[InvoiceRecord] = Field(default_factory=list)


class RestoreRequest(BackupFile):
    """Backup upload; the schema tag must be present."""

    schema_name: str = Field(alias="schema")
