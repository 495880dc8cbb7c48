"""GST line-item tax engine.

All arithmetic is Decimal based. Every stage is rounded half away from zero
to two places on its own: the taxable value, each tax amount, and the line
total. Totals are therefore built from already-rounded parts.

Nothing in this module raises on bad input; unreadable or negative numbers
are treated as zero so a half-typed form still produces a figure.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

TWO_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.001")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Regulatory GST rate bands offered when entering a line.
GST_RATES = tuple(
    Decimal(r) for r in ("0", "0.1", "0.25", "2.5", "3", "5", "8", "9", "12", "18", "28")
)


class TaxMode(str, Enum):
    SPLIT = "split"  # CGST + SGST, intra-state
    UNIFIED = "unified"  # IGST, inter-state


_MODE_ALIASES = {
    "split": TaxMode.SPLIT,
    "cgst_sgst": TaxMode.SPLIT,
    "cgst+sgst": TaxMode.SPLIT,
    "unified": TaxMode.UNIFIED,
    "igst": TaxMode.UNIFIED,
}


def to_decimal(value: Any) -> Decimal:
    """Read a number leniently; anything unreadable or non-finite becomes zero."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError):
            return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def non_negative(value: Any) -> Decimal:
    amount = to_decimal(value)
    return amount if amount > 0 else Decimal("0")


def round2(value: Any) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_quantity(value: Any) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def normalize_tax_mode(value: Any) -> TaxMode:
    if isinstance(value, TaxMode):
        return value
    key = str(value or "").strip().lower()
    return _MODE_ALIASES.get(key, TaxMode.SPLIT)


def apply_tax_mode(tax_rate: Any, mode: Any) -> dict:
    """Derive the stored CGST/SGST/IGST rates for a nominal rate and mode."""
    rate = non_negative(tax_rate)
    if normalize_tax_mode(mode) is TaxMode.UNIFIED:
        return {"cgst_rate": ZERO, "sgst_rate": ZERO, "igst_rate": round2(rate)}
    half = round2(rate / 2)
    return {"cgst_rate": half, "sgst_rate": half, "igst_rate": ZERO}


def infer_tax_mode(cgst_rate: Any, sgst_rate: Any, igst_rate: Any) -> tuple[TaxMode, Decimal]:
    """Rebuild mode and nominal rate from directly entered component rates."""
    igst = non_negative(igst_rate)
    if igst > 0:
        return TaxMode.UNIFIED, round2(igst)
    return TaxMode.SPLIT, round2(non_negative(cgst_rate) + non_negative(sgst_rate))


@dataclass(frozen=True)
class LineAmounts:
    taxable_value: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    line_total: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount + self.igst_amount

    def as_dict(self) -> dict:
        return {
            "taxable_value": self.taxable_value,
            "cgst_amount": self.cgst_amount,
            "sgst_amount": self.sgst_amount,
            "igst_amount": self.igst_amount,
            "line_total": self.line_total,
        }


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _tax_on(taxable: Decimal, rate: Any) -> Decimal:
    return round2(taxable * non_negative(rate) / HUNDRED)


def compute_line(item: Any) -> LineAmounts:
    """Compute taxable value, tax split and line total for one line item.

    ``item`` may be a mapping, a Pydantic model or an ORM row exposing
    ``quantity``, ``rate``, ``tax_mode``, ``tax_rate`` and optionally
    ``cgst_rate``/``sgst_rate`` (independently entered halves) or
    ``igst_rate``.
    """
    quantity = non_negative(_field(item, "quantity"))
    rate = non_negative(_field(item, "rate"))
    taxable = round2(quantity * rate)

    mode = normalize_tax_mode(_field(item, "tax_mode"))
    nominal = _field(item, "tax_rate")
    if mode is TaxMode.UNIFIED:
        if nominal is None:
            nominal = _field(item, "igst_rate")
        cgst = sgst = ZERO
        igst = _tax_on(taxable, nominal)
    else:
        cgst_rate = _field(item, "cgst_rate")
        sgst_rate = _field(item, "sgst_rate")
        if cgst_rate is None or sgst_rate is None:
            halves = apply_tax_mode(nominal, TaxMode.SPLIT)
            cgst_rate = halves["cgst_rate"] if cgst_rate is None else cgst_rate
            sgst_rate = halves["sgst_rate"] if sgst_rate is None else sgst_rate
        cgst = _tax_on(taxable, cgst_rate)
        sgst = _tax_on(taxable, sgst_rate)
        igst = ZERO

    total = round2(taxable + cgst + sgst + igst)
    return LineAmounts(
        taxable_value=taxable,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        line_total=total,
    )


def po_gross_value(base_value: Any, gst_rate: Any) -> Decimal:
    """Gross purchase-order value: base plus GST at the PO rate."""
    base = non_negative(base_value)
    return round2(base * (1 + non_negative(gst_rate) / HUNDRED))
