from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.schemas.reports import AgingSummary, DashboardSummary, ReceivablesReport
from backend.app.services.aging_reporting import get_aging_summary
from backend.app.services.reports import get_dashboard_summary, get_receivables_report

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(db: Session = Depends(get_db)):
    return get_dashboard_summary(db)


@router.get("/summary", response_model=ReceivablesReport)
async def receivables_summary(as_of: date | None = None, db: Session = Depends(get_db)):
    return get_receivables_report(db, today=as_of)


@router.get("/aging", response_model=AgingSummary)
async def aging_summary(as_of: date | None = None, db: Session = Depends(get_db)):
    return get_aging_summary(db, as_of=as_of)
