"""Invoice line item schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.common import LenientDecimal, LenientTaxMode
from backend.app.services.tax import TaxMode


class InvoiceItemBase(BaseModel):
    description: str = ""
    hsn: Optional[str] = None
    quantity: LenientDecimal = Decimal("1")
    rate: LenientDecimal = Decimal("0")
    tax_mode: LenientTaxMode = TaxMode.SPLIT
    tax_rate: LenientDecimal = Decimal("18")


class InvoiceItemCreate(InvoiceItemBase):
    # Independently entered CGST/SGST halves; derived from tax_rate when omitted.
    cgst_rate: Optional[LenientDecimal] = None
    sgst_rate: Optional[LenientDecimal] = None


class LineComputation(BaseModel):
    taxable_value: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    line_total: Decimal


class InvoiceItemRead(InvoiceItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    cgst_rate: Decimal
    sgst_rate: Decimal
    igst_rate: Decimal
    taxable_value: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    line_total: Decimal
