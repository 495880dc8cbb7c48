"""Shared field types."""

from decimal import Decimal
from typing import Annotated

from pydantic import BeforeValidator

from backend.app.services.tax import TaxMode, normalize_tax_mode, to_decimal

# Form-style numbers: anything unreadable is taken as zero rather than rejected.
LenientDecimal = Annotated[Decimal, BeforeValidator(to_decimal)]
LenientTaxMode = Annotated[TaxMode, BeforeValidator(normalize_tax_mode)]
