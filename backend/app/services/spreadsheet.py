"""Flat spreadsheet rows for invoices: export, and import with header aliases.

Each row is one line item together with its invoice and customer snapshot.
Import accepts several spellings per column; ``FIELD_ALIASES`` lists them in
priority order and the first header present in a row wins. Rows are grouped
back into invoices by the invoice id column.
"""

import logging
import zipfile
from io import BytesIO
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

from backend.app.core.time import parse_date
from backend.app.services.aggregation import PENDING, normalize_status
from backend.app.services.tax import TaxMode, compute_line, infer_tax_mode, non_negative, normalize_tax_mode, round2, to_decimal

logger = logging.getLogger(__name__)

SHEET_TITLE = "Invoices"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Legacy spreadsheet spelling of the tax modes.
SHEET_TAX_MODES = {TaxMode.SPLIT: "cgst_sgst", TaxMode.UNIFIED: "igst"}

EXPORT_HEADERS = [
    "Invoice ID",
    "Invoice #",
    "Invoice Date",
    "Due Date",
    "Customer ID",
    "Customer Name",
    "Customer Address",
    "Customer GSTIN",
    "Customer Email",
    "Invoice Status",
    "Amount Paid",
    "PO Number",
    "PO Image",
    "PO Base Value",
    "PO GST Mode",
    "PO GST %",
    "Item Description",
    "HSN/SAC",
    "Quantity",
    "Rate",
    "GST Mode",
    "GST %",
    "Taxable Value",
    "CGST Rate (%)",
    "CGST Amount",
    "SGST Rate (%)",
    "SGST Amount",
    "IGST Rate (%)",
    "IGST Amount",
    "Total Item Value",
    "Invoice Total",
]

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "invoice_id": ("Invoice ID", "invoice_id", "id"),
    "invoice_number": ("Invoice #", "invoice_number"),
    "invoice_date": ("Invoice Date", "invoice_date"),
    "due_date": ("Due Date", "due_date"),
    "customer_id": ("Customer ID", "customer_id"),
    "customer_name": ("Customer Name", "customer_name"),
    "customer_address": ("Customer Address", "customer_address"),
    "customer_gstin": ("Customer GSTIN", "customer_gstin"),
    "customer_email": ("Customer Email", "customer_email", "email"),
    "customer_phone": ("Customer Phone", "phone"),
    "status": ("Invoice Status", "status"),
    "amount_paid": ("Amount Paid", "amount_paid"),
    "po_number": ("PO Number", "po_number"),
    "po_image": ("PO Image", "po_image"),
    "po_base_value": ("PO Base Value", "po_base_value"),
    "po_gst_mode": ("PO GST Mode", "po_gst_mode"),
    "po_gst_rate": ("PO GST %", "po_gst_rate"),
    "description": ("Item Description", "description"),
    "hsn": ("HSN/SAC", "hsn"),
    "quantity": ("Quantity", "qty"),
    "rate": ("Rate", "rate"),
    "tax_mode": ("GST Mode", "gst_mode"),
    "tax_rate": ("GST %", "gst_rate"),
    "cgst_rate": ("CGST Rate (%)", "cgst"),
    "sgst_rate": ("SGST Rate (%)", "sgst"),
    "igst_rate": ("IGST Rate (%)", "igst"),
}


class ImportFormatError(ValueError):
    """The uploaded file could not be read as an invoice spreadsheet or backup."""


def resolve_field(row: Mapping[str, Any], field: str, default: Any = None) -> Any:
    """Value of ``field`` from the first of its header aliases present in ``row``."""
    for header in FIELD_ALIASES[field]:
        value = row.get(header)
        if value is not None:
            return value
    return default


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _status(value: Any) -> str:
    # Blank means pending; unknown values fail record validation.
    if not _text(value):
        return PENDING
    return normalize_status(_text(value))


def _date_text(value: Any) -> str:
    day = parse_date(value)
    return day.isoformat() if day else ""


def invoice_rows(invoices: Iterable[Any]) -> List[dict]:
    """One row per line item; invoices without items still get one row."""
    rows: List[dict] = []
    for inv in invoices:
        base = {
            "Invoice ID": inv.id,
            "Invoice #": inv.invoice_number,
            "Invoice Date": _date_text(inv.invoice_date),
            "Due Date": _date_text(inv.due_date),
            "Customer ID": inv.customer_id or "",
            "Customer Name": inv.customer_name or "",
            "Customer Address": inv.customer_address or "",
            "Customer GSTIN": inv.customer_gstin or "",
            "Customer Email": inv.customer_email or "",
            "Invoice Status": inv.status,
            "Amount Paid": round2(inv.amount_paid),
            "PO Number": inv.po_number or "",
            "PO Image": inv.po_image or "",
            "PO Base Value": round2(inv.po_base_value),
            "PO GST Mode": SHEET_TAX_MODES[normalize_tax_mode(inv.po_gst_mode)],
            "PO GST %": round2(inv.po_gst_rate),
            "Invoice Total": round2(inv.total_amount),
        }
        if not inv.items:
            rows.append(base)
            continue
        for item in inv.items:
            amounts = compute_line(item)
            rows.append(
                {
                    **base,
                    "Item Description": item.description,
                    "HSN/SAC": item.hsn or "",
                    "Quantity": item.quantity,
                    "Rate": item.rate,
                    "GST Mode": SHEET_TAX_MODES[normalize_tax_mode(item.tax_mode)],
                    "GST %": round2(item.tax_rate),
                    "Taxable Value": amounts.taxable_value,
                    "CGST Rate (%)": item.cgst_rate,
                    "CGST Amount": amounts.cgst_amount,
                    "SGST Rate (%)": item.sgst_rate,
                    "SGST Amount": amounts.sgst_amount,
                    "IGST Rate (%)": item.igst_rate,
                    "IGST Amount": amounts.igst_amount,
                    "Total Item Value": amounts.line_total,
                }
            )
    return rows


def _item_from_row(row: Mapping[str, Any]) -> Optional[dict]:
    description = _text(resolve_field(row, "description"))
    quantity = non_negative(resolve_field(row, "quantity", 0))
    rate = non_negative(resolve_field(row, "rate", 0))
    if not description and quantity == 0 and rate == 0:
        return None

    cgst = resolve_field(row, "cgst_rate")
    sgst = resolve_field(row, "sgst_rate")
    igst = resolve_field(row, "igst_rate")
    halves = {"cgst_rate": None, "sgst_rate": None}
    if cgst is None and sgst is None and igst is None:
        mode = normalize_tax_mode(resolve_field(row, "tax_mode"))
        tax_rate = round2(non_negative(resolve_field(row, "tax_rate", 0)))
    else:
        # Component rates win over the GST Mode / GST % columns.
        mode, tax_rate = infer_tax_mode(cgst, sgst, igst)
        if mode is TaxMode.SPLIT:
            halves = {"cgst_rate": round2(non_negative(cgst)), "sgst_rate": round2(non_negative(sgst))}

    return {
        "description": description,
        "hsn": _text(resolve_field(row, "hsn")) or None,
        "quantity": quantity,
        "rate": rate,
        "tax_mode": mode.value,
        "tax_rate": tax_rate,
        **halves,
    }


def parse_rows(rows: Iterable[Mapping[str, Any]]) -> Tuple[List[dict], List[dict]]:
    """Rebuild customers and invoices from flat rows.

    Rows without an invoice id are skipped. Invoice-level columns are taken
    from the first row of each invoice.
    """
    invoices: Dict[str, dict] = {}
    customers: Dict[str, dict] = {}
    skipped = 0

    for row in rows:
        invoice_id = _text(resolve_field(row, "invoice_id"))
        if not invoice_id:
            skipped += 1
            continue

        customer_id = _text(resolve_field(row, "customer_id"))
        if invoice_id not in invoices:
            invoices[invoice_id] = {
                "id": invoice_id,
                "invoice_number": _text(resolve_field(row, "invoice_number")) or None,
                "invoice_date": parse_date(resolve_field(row, "invoice_date")),
                "due_date": parse_date(resolve_field(row, "due_date")),
                "customer_id": customer_id or None,
                "customer_name": _text(resolve_field(row, "customer_name")),
                "customer_address": _text(resolve_field(row, "customer_address")),
                "customer_gstin": _text(resolve_field(row, "customer_gstin")),
                "customer_email": _text(resolve_field(row, "customer_email")),
                "status": _status(resolve_field(row, "status")),
                "amount_paid": non_negative(resolve_field(row, "amount_paid", 0)),
                "po_number": _text(resolve_field(row, "po_number")) or None,
                "po_image": _text(resolve_field(row, "po_image")) or None,
                "po_base_value": non_negative(resolve_field(row, "po_base_value", 0)),
                "po_gst_mode": normalize_tax_mode(resolve_field(row, "po_gst_mode")).value,
                "po_gst_rate": to_decimal(resolve_field(row, "po_gst_rate", 18)),
                "items": [],
            }
        item = _item_from_row(row)
        if item is not None:
            invoices[invoice_id]["items"].append(item)

        if customer_id and customer_id not in customers:
            customers[customer_id] = {
                "id": customer_id,
                "name": _text(resolve_field(row, "customer_name")),
                "address": _text(resolve_field(row, "customer_address")),
                "gstin": _text(resolve_field(row, "customer_gstin")),
                "email": _text(resolve_field(row, "customer_email")),
                "phone": _text(resolve_field(row, "customer_phone")),
            }

    if skipped:
        logger.warning("Skipped %d spreadsheet row(s) without an invoice id", skipped)
    return list(customers.values()), list(invoices.values())


def write_workbook(rows: List[dict]) -> bytes:
    workbook = openpyxl.Workbook()
    ws = workbook.active
    ws.title = SHEET_TITLE

    ws.append(EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([row.get(header, "") for header in EXPORT_HEADERS])

    for column in ws.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def read_workbook(content: bytes) -> List[dict]:
    """Rows of the first sheet as dicts keyed by the header row."""
    try:
        workbook = openpyxl.load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ImportFormatError("Failed to import. Please verify file format.") from exc

    ws = workbook[workbook.sheetnames[0]]
    rows = ws.iter_rows(values_only=True)
    header_row = next(rows, None)
    if header_row is None:
        workbook.close()
        return []
    headers = [_text(h) for h in header_row]

    records = []
    for values in rows:
        if all(v is None or _text(v) == "" for v in values):
            continue
        records.append({h: v for h, v in zip(headers, values) if h and v is not None and _text(v) != ""})
    workbook.close()
    return records
