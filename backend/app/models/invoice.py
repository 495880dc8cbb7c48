"""GST invoice with an inlined customer snapshot."""

import uuid

from sqlalchemy import Column, Date, DateTime, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.core.time import utc_now
from backend.app.db.base_class import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    invoice_number = Column(String(64), nullable=False, unique=True, index=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    # Not a foreign key: invoices keep their snapshot when the customer is deleted.
    customer_id = Column(String(36), nullable=True, index=True)
    customer_name = Column(String(255), nullable=False, default="")
    customer_address = Column(Text, nullable=True)
    customer_gstin = Column(Text, nullable=True)
    customer_email = Column(String(255), nullable=True)

    po_number = Column(String(100), nullable=True)
    po_image = Column(Text, nullable=True)
    po_base_value = Column(Numeric(12, 2), nullable=False, default=0)
    po_gst_mode = Column(String(16), nullable=False, default="split")
    po_gst_rate = Column(Numeric(5, 2), nullable=False, default=18)

    status = Column(String(20), nullable=False, default="pending")
    sub_total = Column(Numeric(12, 2), nullable=False, default=0)
    total_tax = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )
