"""Fees router: student ledger and statement, school dues reports and exports."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ExportFormat
from app.db.session import get_db

from .schemas import (
    BatchDuesReport,
    DuesFilter,
    DuesReportSummary,
    DuesSummary,
    LedgerEntry,
    StudentFinancialRecord,
)
from .rollup import filter_dues
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])

EXPORT_MEDIA_TYPES = {
    ExportFormat.csv: ("text/csv; charset=utf-8", "csv"),
    ExportFormat.excel: ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    ExportFormat.pdf: ("application/pdf", "pdf"),
}


# --- Student ---
@router.get(
    "/students/{student_id}/ledger",
    response_model=List[LedgerEntry],
)
async def get_student_ledger(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[LedgerEntry]:
    return await service.build_ledger(db, student_id)


@router.get(
    "/students/{student_id}/record",
    response_model=StudentFinancialRecord,
)
async def get_student_financial_record(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> StudentFinancialRecord:
    record = await service.get_financial_record(db, student_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
        )
    return record


@router.get(
    "/students/{student_id}/dues",
    response_model=DuesSummary,
)
async def get_student_dues(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> DuesSummary:
    row = await service.classify(db, student_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No fees assigned to student",
        )
    return row


@router.get("/students/{student_id}/statement")
async def download_student_statement(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Fee statement PDF with the student's full ledger."""
    content = await service.export_student_statement(db, student_id)
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
        )
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=fee_statement_{student_id}.pdf"},
    )


# --- School ---
@router.get(
    "/schools/{school_id}/records",
    response_model=List[StudentFinancialRecord],
)
async def list_student_financial_records(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[StudentFinancialRecord]:
    return await service.get_student_financial_records(db, school_id)


@router.get(
    "/schools/{school_id}/batches",
    response_model=List[str],
)
async def list_batches(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[str]:
    return await service.get_available_batches(db, school_id)


# --- Dues reports ---
@router.get(
    "/schools/{school_id}/dues",
    response_model=List[DuesSummary],
)
async def get_dues(
    school_id: UUID,
    batch: Optional[str] = Query(None, description="Batch name, or 'all'"),
    dues_status: Optional[str] = Query(None, alias="status", description="paid, partial, overdue or 'all'"),
    search: Optional[str] = Query(None, description="Matches student name, admission number or batch"),
    db: AsyncSession = Depends(get_db),
) -> List[DuesSummary]:
    rows = await service.get_dues_summary(db, school_id)
    return filter_dues(rows, DuesFilter(batch=batch, status=dues_status, search=search))


@router.get(
    "/schools/{school_id}/dues/summary",
    response_model=DuesReportSummary,
)
async def get_dues_summary(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> DuesReportSummary:
    return await service.get_dues_report_summary(db, school_id)


@router.get(
    "/schools/{school_id}/dues/batches",
    response_model=List[BatchDuesReport],
)
async def get_batch_dues(
    school_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[BatchDuesReport]:
    return await service.get_batch_dues_report(db, school_id)


@router.get("/schools/{school_id}/dues/export")
async def export_dues(
    school_id: UUID,
    fmt: str = Query("csv", description="csv, excel or pdf"),
    batch: Optional[str] = Query(None),
    dues_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> Response:
    content = await service.export_dues_report(
        db,
        school_id,
        fmt,
        DuesFilter(batch=batch, status=dues_status, search=search),
    )
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported export format. Use csv, excel or pdf",
        )
    media_type, extension = EXPORT_MEDIA_TYPES[ExportFormat(fmt.strip().lower())]
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=dues_report.{extension}"},
    )
