"""Dues classification: one paid / partial / overdue row per student with fee assignments."""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from app.core.enums import DuesStatus

from .schemas import AssignmentRecord, DuesSummary, PaymentRecord, StudentInfo

logger = logging.getLogger(__name__)

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_ADMISSION = "N/A"
UNKNOWN_BATCH = "Unknown Batch"


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def student_display_name(info: Optional[StudentInfo]) -> str:
    if info is None:
        return UNKNOWN_STUDENT
    name = f"{info.first_name or ''} {info.last_name or ''}".strip()
    return name or UNKNOWN_STUDENT


def admission_display(info: Optional[StudentInfo]) -> str:
    return (info.admission_number if info else None) or UNKNOWN_ADMISSION


def assignment_balance(sfa: AssignmentRecord) -> Decimal:
    """Stored balance, or total - paid when the stored value is missing or has drifted."""
    expected = _to_decimal(sfa.total_amount) - _to_decimal(sfa.paid_amount)
    if sfa.balance is None:
        return expected
    stored = _to_decimal(sfa.balance)
    if stored != expected:
        logger.warning(
            "Balance drift on assignment %s: stored %s, total - paid = %s", sfa.id, stored, expected
        )
        return expected
    return stored


def sum_assignments(assignments: Iterable[AssignmentRecord]) -> Tuple[Decimal, Decimal, Decimal]:
    """(total_fees, paid_amount, balance) over a student's assignments."""
    total = paid = balance = Decimal("0")
    for sfa in assignments:
        total += _to_decimal(sfa.total_amount)
        paid += _to_decimal(sfa.paid_amount)
        balance += assignment_balance(sfa)
    return total, paid, balance


def earliest_due_date(assignments: Iterable[AssignmentRecord]) -> Optional[date]:
    earliest: Optional[date] = None
    for sfa in assignments:
        if sfa.due_date is not None and (earliest is None or sfa.due_date < earliest):
            earliest = sfa.due_date
    return earliest


def latest_payment_date(payments: Iterable[PaymentRecord]) -> Optional[date]:
    latest: Optional[date] = None
    for p in payments:
        if latest is None or p.payment_date > latest:
            latest = p.payment_date
    return latest


def dues_status(
    balance: Decimal,
    due_date: Optional[date],
    today: date,
) -> Tuple[DuesStatus, Optional[int]]:
    """
    Status and days past due, first match wins:
    balance <= 0 is paid; a due date before today is overdue; anything else is partial.
    A missing due date is never overdue.
    """
    if balance <= 0:
        return DuesStatus.paid, None
    if due_date is not None and due_date < today:
        return DuesStatus.overdue, (today - due_date).days
    return DuesStatus.partial, None


def classify_student(
    student_id: UUID,
    assignments: List[AssignmentRecord],
    payments: Iterable[PaymentRecord] = (),
    student: Optional[StudentInfo] = None,
    batch_name: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[DuesSummary]:
    """Collapse one student's assignments into a DuesSummary. None if the student has no assignments."""
    if not assignments:
        return None
    today = today or date.today()
    total, paid, balance = sum_assignments(assignments)
    due = earliest_due_date(assignments)
    status, days_past_due = dues_status(balance, due, today)
    return DuesSummary(
        student_id=student_id,
        student_name=student_display_name(student),
        admission_number=admission_display(student),
        batch_name=batch_name or UNKNOWN_BATCH,
        total_fees=total,
        paid_amount=paid,
        balance=balance,
        due_date=due,
        last_payment_date=latest_payment_date(payments),
        status=status,
        days_past_due=days_past_due,
    )


def group_by_student(
    assignments: Iterable[AssignmentRecord],
    payments: Iterable[PaymentRecord],
) -> Tuple[Dict[UUID, List[AssignmentRecord]], Dict[UUID, List[PaymentRecord]]]:
    """Index assignments and their payments by student, keeping first-seen student order."""
    assignments_by_student: Dict[UUID, List[AssignmentRecord]] = {}
    owner: Dict[UUID, UUID] = {}
    for sfa in assignments:
        assignments_by_student.setdefault(sfa.student_id, []).append(sfa)
        owner[sfa.id] = sfa.student_id

    payments_by_student: Dict[UUID, List[PaymentRecord]] = {}
    for p in payments:
        student_id = owner.get(p.student_fee_id)
        if student_id is None:
            logger.warning("Skipping payment %s: assignment %s not found", p.id, p.student_fee_id)
            continue
        payments_by_student.setdefault(student_id, []).append(p)
    return assignments_by_student, payments_by_student


def build_dues_summaries(
    assignments: Iterable[AssignmentRecord],
    payments: Iterable[PaymentRecord],
    students: Mapping[UUID, StudentInfo],
    batches: Mapping[UUID, str],
    today: Optional[date] = None,
) -> List[DuesSummary]:
    """One DuesSummary per student that has assignments and a student record."""
    today = today or date.today()
    assignments_by_student, payments_by_student = group_by_student(assignments, payments)
    rows: List[DuesSummary] = []
    for student_id, student_assignments in assignments_by_student.items():
        student = students.get(student_id)
        if student is None:
            logger.warning("Skipping fees of student %s: student record not found", student_id)
            continue
        row = classify_student(
            student_id,
            student_assignments,
            payments_by_student.get(student_id, []),
            student=student,
            batch_name=batches.get(student_id),
            today=today,
        )
        if row is not None:
            rows.append(row)
    return rows
