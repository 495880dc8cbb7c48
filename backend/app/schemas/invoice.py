"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from backend.app.schemas.common import LenientDecimal, LenientTaxMode
from backend.app.schemas.invoice_item import InvoiceItemCreate, InvoiceItemRead, LineComputation
from backend.app.services.aggregation import normalize_status
from backend.app.services.tax import TaxMode

InvoiceStatus = Annotated[Literal["pending", "partially-paid", "paid"], BeforeValidator(normalize_status)]


class InvoiceBase(BaseModel):
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None

    customer_id: Optional[str] = None
    customer_name: str = ""
    customer_address: Optional[str] = None
    customer_gstin: Optional[str] = None
    customer_email: Optional[str] = None

    po_number: Optional[str] = None
    po_image: Optional[str] = None
    po_base_value: LenientDecimal = Decimal("0")
    po_gst_mode: LenientTaxMode = TaxMode.SPLIT
    po_gst_rate: LenientDecimal = Decimal("18")

    status: InvoiceStatus = "pending"
    amount_paid: LenientDecimal = Decimal("0")
    items: List[InvoiceItemCreate] = Field(default_factory=list)


class InvoiceCreate(InvoiceBase):
    acknowledge_warnings: bool = False


class InvoiceUpdate(InvoiceCreate):
    """Full replacement of a stored invoice."""

    regenerate_number: bool = False


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus
    amount_paid: Optional[LenientDecimal] = None


class InvoiceDraft(InvoiceBase):
    """Unsaved invoice, e.g. a duplicate waiting to be edited."""

    id: Optional[str] = None
    invoice_number: str


class InvoicePreview(BaseModel):
    invoice_number: str
    due_date: date
    lines: List[LineComputation]
    sub_total: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_tax: Decimal
    grand_total: Decimal
    remaining: Decimal
    po_gross_value: Decimal
    errors: List[str] = []
    warnings: List[str] = []


class NextNumberRead(BaseModel):
    invoice_date: date
    invoice_number: str
    due_date: date


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_number: str
    invoice_date: date
    due_date: Optional[date]

    customer_id: Optional[str]
    customer_name: str
    customer_address: Optional[str]
    customer_gstin: Optional[str]
    customer_email: Optional[str]

    po_number: Optional[str]
    po_image: Optional[str]
    po_base_value: Decimal
    po_gst_mode: TaxMode
    po_gst_rate: Decimal
    po_gross_value: Decimal

    status: str
    sub_total: Decimal
    total_tax: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    remaining: Decimal
    days_until_due: Optional[int]

    items: List[InvoiceItemRead]

    created_at: datetime
    updated_at: datetime


class ReminderRead(BaseModel):
    to: str
    subject: str
    body: str
    link: str
