"""Translate pre-save validation reports into HTTP errors."""

from fastapi import HTTPException, status

from backend.app.services.validation import ValidationReport


def raise_for_report(report: ValidationReport, acknowledge_warnings: bool = False) -> None:
    if report.errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"errors": report.errors})
    if report.warnings and not acknowledge_warnings:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"warnings": report.warnings, "hint": "Resend with acknowledge_warnings=true to save anyway."},
        )
