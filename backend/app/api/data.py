"""Spreadsheet export/import and JSON backup/restore."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.models.invoice import Invoice
from backend.app.schemas.backup import BACKUP_SCHEMA, RestoreRequest
from backend.app.services.repository import SqlAlchemyRepository, backup_payload
from backend.app.services.spreadsheet import (
    XLSX_MEDIA_TYPE,
    ImportFormatError,
    invoice_rows,
    parse_rows,
    read_workbook,
    write_workbook,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


def _import_summary(snapshot) -> dict:
    return {"customers": len(snapshot.customers), "invoices": len(snapshot.invoices)}


@router.get("/export.xlsx")
async def export_spreadsheet(db: Session = Depends(get_db)):
    invoices = db.query(Invoice).order_by(Invoice.invoice_date.asc(), Invoice.invoice_number.asc()).all()
    content = write_workbook(invoice_rows(invoices))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="invoices.xlsx"'},
    )


@router.post("/import")
async def import_spreadsheet(file: UploadFile = File(...), db: Session = Depends(get_db)):
    content = await file.read()
    try:
        customers, invoices = parse_rows(read_workbook(content))
        snapshot = SqlAlchemyRepository(db).save_all(customers, invoices)
    except ImportFormatError as exc:
        logger.warning("Spreadsheet import failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _import_summary(snapshot)


@router.get("/backup.json")
async def backup(db: Session = Depends(get_db)):
    return backup_payload(SqlAlchemyRepository(db).load())


@router.post("/restore")
async def restore(payload: RestoreRequest, db: Session = Depends(get_db)):
    if payload.schema_name != BACKUP_SCHEMA:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported backup schema: {payload.schema_name}")
    try:
        snapshot = SqlAlchemyRepository(db).save_all(payload.customers, payload.invoices)
    except ImportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return _import_summary(snapshot)
