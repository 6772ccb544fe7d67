"""Fees report service: student ledgers, dues classification, rollups, exports. Read-only."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ExportFormat
from app.core.exceptions import StoreUnavailable

from . import export
from .dues import (
    UNKNOWN_BATCH,
    admission_display,
    build_dues_summaries,
    classify_student,
    group_by_student,
    latest_payment_date,
    student_display_name,
    sum_assignments,
)
from .ledger import UNKNOWN_STRUCTURE, build_ledger_entries
from .rollup import filter_dues, group_by_batch, summarize
from .schemas import (
    BatchDuesReport,
    DuesFilter,
    DuesReportSummary,
    DuesSummary,
    LedgerEntry,
    StudentFinancialRecord,
)
from .store import FeeRecordStore

logger = logging.getLogger(__name__)


# --- Ledger ---
async def _student_ledger(store: FeeRecordStore, student_id: UUID):
    """(assignments, payments, ledger entries, applied structure names) of one student."""
    assignments = await store.get_assignments(student_id=student_id)
    if not assignments:
        return assignments, [], [], []
    payments = await store.get_payments(a.id for a in assignments)
    allocations = await store.get_allocations(p.id for p in payments)
    structure_names = await store.get_fee_structure_names(a.fee_structure_id for a in assignments)
    component_names = await store.get_fee_component_names(a.fee_component_id for a in allocations)
    entries = build_ledger_entries(
        assignments,
        payments,
        allocations,
        structure_names=structure_names,
        component_names=component_names,
    )
    applied = list(dict.fromkeys(structure_names.get(a.fee_structure_id) or UNKNOWN_STRUCTURE for a in assignments))
    return assignments, payments, entries, applied


async def build_ledger(db: AsyncSession, student_id: UUID) -> List[LedgerEntry]:
    """Chronological debit/credit history of one student with running balances."""
    try:
        _, _, entries, _ = await _student_ledger(FeeRecordStore(db), student_id)
    except StoreUnavailable:
        logger.exception("Could not build ledger for student %s", student_id)
        return []
    return entries


async def get_financial_record(db: AsyncSession, student_id: UUID) -> Optional[StudentFinancialRecord]:
    """Totals, applied structures and full ledger of one student. None if the student does not exist."""
    store = FeeRecordStore(db)
    try:
        students = await store.get_students([student_id])
        student = students.get(student_id)
        if student is None:
            return None
        batches = await store.get_current_batch([student_id])
        assignments, payments, entries, applied = await _student_ledger(store, student_id)
    except StoreUnavailable:
        logger.exception("Could not load financial record for student %s", student_id)
        return None

    total, paid, balance = sum_assignments(assignments)
    return StudentFinancialRecord(
        student_id=student_id,
        student_name=student_display_name(student),
        admission_number=admission_display(student),
        batch_name=batches.get(student_id) or UNKNOWN_BATCH,
        applied_structures=applied,
        total_fees=total,
        paid_amount=paid,
        balance=balance,
        last_payment_date=latest_payment_date(payments),
        transactions=entries,
    )


async def get_student_financial_records(db: AsyncSession, school_id: UUID) -> List[StudentFinancialRecord]:
    """Per-student totals for a whole school. Transactions are left empty; load them per student."""
    store = FeeRecordStore(db)
    try:
        assignments = await store.get_assignments(school_id=school_id)
        if not assignments:
            logger.info("No student fees found for school %s", school_id)
            return []
        student_ids = [a.student_id for a in assignments]
        students = await store.get_students(student_ids)
        structure_names = await store.get_fee_structure_names(a.fee_structure_id for a in assignments)
        batches = await store.get_current_batch(student_ids)
        payments = await store.get_payments(a.id for a in assignments)
    except StoreUnavailable:
        logger.exception("Could not load financial records for school %s", school_id)
        return []

    assignments_by_student, payments_by_student = group_by_student(assignments, payments)
    records = []
    for student_id, student_assignments in assignments_by_student.items():
        student = students.get(student_id)
        if student is None:
            logger.warning("Skipping fees of student %s: student record not found", student_id)
            continue
        total, paid, balance = sum_assignments(student_assignments)
        records.append(
            StudentFinancialRecord(
                student_id=student_id,
                student_name=student_display_name(student),
                admission_number=admission_display(student),
                batch_name=batches.get(student_id) or UNKNOWN_BATCH,
                applied_structures=list(
                    dict.fromkeys(
                        structure_names.get(a.fee_structure_id) or UNKNOWN_STRUCTURE
                        for a in student_assignments
                    )
                ),
                total_fees=total,
                paid_amount=paid,
                balance=balance,
                last_payment_date=latest_payment_date(payments_by_student.get(student_id, [])),
            )
        )
    return records


# --- Dues ---
async def classify(
    db: AsyncSession,
    student_id: UUID,
    today: Optional[date] = None,
) -> Optional[DuesSummary]:
    """Dues row of one student. None if the student is unknown or has no fees assigned."""
    store = FeeRecordStore(db)
    try:
        students = await store.get_students([student_id])
        if student_id not in students:
            return None
        assignments = await store.get_assignments(student_id=student_id)
        if not assignments:
            return None
        batches = await store.get_current_batch([student_id])
        payments = await store.get_payments(a.id for a in assignments)
    except StoreUnavailable:
        logger.exception("Could not classify dues for student %s", student_id)
        return None
    return classify_student(
        student_id,
        assignments,
        payments,
        student=students[student_id],
        batch_name=batches.get(student_id),
        today=today,
    )


async def get_dues_summary(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> List[DuesSummary]:
    store = FeeRecordStore(db)
    try:
        assignments = await store.get_assignments(school_id=school_id)
        if not assignments:
            logger.info("No student fees found for school %s", school_id)
            return []
        student_ids = [a.student_id for a in assignments]
        students = await store.get_students(student_ids)
        batches = await store.get_current_batch(student_ids)
        payments = await store.get_payments(a.id for a in assignments)
    except StoreUnavailable:
        logger.exception("Could not load dues summary for school %s", school_id)
        return []
    return build_dues_summaries(assignments, payments, students, batches, today=today)


async def get_dues_report_summary(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> DuesReportSummary:
    return summarize(await get_dues_summary(db, school_id, today=today))


async def get_batch_dues_report(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> List[BatchDuesReport]:
    return group_by_batch(await get_dues_summary(db, school_id, today=today))


async def get_available_batches(db: AsyncSession, school_id: UUID) -> List[str]:
    try:
        return await FeeRecordStore(db).get_batch_names(school_id)
    except StoreUnavailable:
        logger.exception("Could not load batches for school %s", school_id)
        return []


# --- Export ---
async def export_dues_report(
    db: AsyncSession,
    school_id: UUID,
    fmt: str,
    filters: Optional[DuesFilter] = None,
    today: Optional[date] = None,
) -> Optional[bytes]:
    """Filtered dues rows rendered as csv, excel or pdf. None for an unknown format."""
    try:
        export_format = ExportFormat((fmt or "").strip().lower())
    except ValueError:
        logger.warning("Unsupported dues export format %r", fmt)
        return None

    rows = filter_dues(await get_dues_summary(db, school_id, today=today), filters)
    logger.info("Exporting %d dues rows for school %s as %s", len(rows), school_id, export_format.value)
    if export_format == ExportFormat.csv:
        return export.export_csv(rows)
    if export_format == ExportFormat.excel:
        return export.export_excel(rows)
    return export.export_pdf(rows)


async def export_student_statement(db: AsyncSession, student_id: UUID) -> Optional[bytes]:
    record = await get_financial_record(db, student_id)
    if record is None:
        return None
    return export.export_statement_pdf(record)
