"""Reporting schemas."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from backend.app.schemas.invoice import ReminderRead


class DashboardSummary(BaseModel):
    total_invoices: int
    total_customers: int
    total_revenue: Decimal
    outstanding: Decimal


class CustomerPendingRow(BaseModel):
    customer_key: str
    customer_id: Optional[str] = None
    customer_name: str
    email: str
    total_pending: Decimal
    invoice_numbers: List[str]
    reminder: ReminderRead


class PendingInvoiceRow(BaseModel):
    id: str
    invoice_number: str
    customer_name: str
    customer_email: str
    due_date: Optional[date] = None
    amount: Decimal
    days_until_due: Optional[int] = None
    aging: str
    reminder: ReminderRead


class ReceivablesReport(BaseModel):
    as_of: date
    received: Decimal
    remaining: Decimal
    customers: List[CustomerPendingRow]
    pending_invoices: List[PendingInvoiceRow]


class AgingBucket(BaseModel):
    count: int
    total_balance: Decimal


class CustomerAgingRow(BaseModel):
    customer_key: str
    customer_name: str
    buckets: Dict[str, AgingBucket]


class AgingSummary(BaseModel):
    as_of: date
    currency: str
    totals: Dict[str, AgingBucket]
    customers: List[CustomerAgingRow]
