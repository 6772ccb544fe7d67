"""School and batch rollups over DuesSummary rows, and the report filters."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from app.core.enums import DuesStatus

from .dues import UNKNOWN_BATCH
from .schemas import BatchDuesReport, DuesFilter, DuesReportSummary, DuesSummary

ALL = "all"


def collection_rate(paid_students: int, total_students: int) -> int:
    """Percent of students fully paid, rounded half up. 0 for an empty set."""
    if total_students <= 0:
        return 0
    rate = Decimal(paid_students) * 100 / Decimal(total_students)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def summarize(rows: Iterable[DuesSummary]) -> DuesReportSummary:
    rows = list(rows)
    counts = {s: 0 for s in DuesStatus}
    total_collected = Decimal("0")
    total_outstanding = Decimal("0")
    for row in rows:
        counts[row.status] += 1
        total_collected += row.paid_amount
        total_outstanding += row.balance
    return DuesReportSummary(
        total_students=len(rows),
        paid_students=counts[DuesStatus.paid],
        partial_payments=counts[DuesStatus.partial],
        overdue_students=counts[DuesStatus.overdue],
        total_collected=total_collected,
        total_outstanding=total_outstanding,
        collection_rate=collection_rate(counts[DuesStatus.paid], len(rows)),
    )


def group_by_batch(rows: Iterable[DuesSummary]) -> List[BatchDuesReport]:
    """Per-batch totals sorted by batch name. Rows without a batch fall in "Unknown Batch"."""
    groups: Dict[str, List[DuesSummary]] = {}
    for row in rows:
        groups.setdefault(row.batch_name or UNKNOWN_BATCH, []).append(row)

    reports = []
    for batch_name, members in groups.items():
        paid_students = sum(1 for m in members if m.status == DuesStatus.paid)
        reports.append(
            BatchDuesReport(
                batch_name=batch_name,
                total_students=len(members),
                paid_students=paid_students,
                total_fees=sum((m.total_fees for m in members), Decimal("0")),
                collected_amount=sum((m.paid_amount for m in members), Decimal("0")),
                outstanding_amount=sum((m.balance for m in members), Decimal("0")),
                collection_rate=collection_rate(paid_students, len(members)),
            )
        )
    return sorted(reports, key=lambda r: r.batch_name)


def _criterion(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value == ALL:
        return None
    return value


def filter_dues(rows: Iterable[DuesSummary], filters: Optional[DuesFilter] = None) -> List[DuesSummary]:
    """
    Apply batch, status and search criteria (ANDed).
    An unknown status value is ignored rather than rejected.
    """
    rows = list(rows)
    if filters is None:
        return rows

    batch = _criterion(filters.batch)
    status = _criterion(filters.status)
    if status is not None and status not in {s.value for s in DuesStatus}:
        status = None
    search = _criterion(filters.search)
    term = search.lower() if search else None

    out = []
    for row in rows:
        if batch is not None and row.batch_name != batch:
            continue
        if status is not None and row.status.value != status:
            continue
        if term is not None and not (
            term in row.student_name.lower()
            or term in row.admission_number.lower()
            or term in row.batch_name.lower()
        ):
            continue
        out.append(row)
    return out
