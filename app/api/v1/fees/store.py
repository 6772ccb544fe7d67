"""Read-only access to fee records. Every method returns DTOs or plain maps, never ORM rows."""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreUnavailable
from app.core.models import (
    Batch,
    BatchStudent,
    FeeComponent,
    FeePayment,
    FeePaymentAllocation,
    FeeStructure,
    Student,
    StudentFeeAssignment,
)

from .schemas import AllocationRecord, AssignmentRecord, PaymentRecord, StudentInfo

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[UUID]) -> List[UUID]:
    return list(dict.fromkeys(i for i in ids if i is not None))


class FeeRecordStore:
    """
    Queries against the fee tables for one AsyncSession.
    Statements are independent reads; there is no snapshot across them.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _all(self, stmt, what: str) -> list:
        # asyncpg connect failures (refused, DNS, timeout) arrive unwrapped
        try:
            result = await self.db.execute(stmt)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.error("Fee store query failed (%s): %s", what, e)
            raise StoreUnavailable(f"Could not read {what}") from e
        return list(result.all())

    async def get_assignments(
        self,
        school_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
    ) -> List[AssignmentRecord]:
        if school_id is None and student_id is None:
            raise ValueError("school_id or student_id is required")
        stmt = select(StudentFeeAssignment)
        if school_id is not None:
            stmt = stmt.where(StudentFeeAssignment.school_id == school_id)
        if student_id is not None:
            stmt = stmt.where(StudentFeeAssignment.student_id == student_id)
        stmt = stmt.order_by(StudentFeeAssignment.assignment_date, StudentFeeAssignment.created_at)
        rows = await self._all(stmt, "student fees")
        return [AssignmentRecord.model_validate(sfa) for (sfa,) in rows]

    async def get_payments(self, assignment_ids: Iterable[UUID]) -> List[PaymentRecord]:
        ids = _unique(assignment_ids)
        if not ids:
            return []
        stmt = (
            select(FeePayment)
            .where(FeePayment.student_fee_id.in_(ids))
            .order_by(FeePayment.payment_date, FeePayment.created_at)
        )
        rows = await self._all(stmt, "fee payments")
        return [PaymentRecord.model_validate(p) for (p,) in rows]

    async def get_allocations(self, payment_ids: Iterable[UUID]) -> List[AllocationRecord]:
        ids = _unique(payment_ids)
        if not ids:
            return []
        stmt = select(FeePaymentAllocation).where(FeePaymentAllocation.payment_id.in_(ids))
        rows = await self._all(stmt, "payment allocations")
        return [AllocationRecord.model_validate(a) for (a,) in rows]

    async def get_students(self, student_ids: Iterable[UUID]) -> Dict[UUID, StudentInfo]:
        ids = _unique(student_ids)
        if not ids:
            return {}
        stmt = select(Student).where(Student.id.in_(ids))
        rows = await self._all(stmt, "students")
        return {s.id: StudentInfo.model_validate(s) for (s,) in rows}

    async def get_current_batch(self, student_ids: Iterable[UUID]) -> Dict[UUID, str]:
        """student_id -> name of the student's current batch. Students without one are absent."""
        ids = _unique(student_ids)
        if not ids:
            return {}
        stmt = (
            select(BatchStudent.student_id, Batch.name)
            .join(Batch, BatchStudent.batch_id == Batch.id)
            .where(BatchStudent.student_id.in_(ids), BatchStudent.is_current.is_(True))
        )
        rows = await self._all(stmt, "current batches")
        return {student_id: name for student_id, name in rows if name}

    async def get_fee_structure_names(self, structure_ids: Iterable[UUID]) -> Dict[UUID, str]:
        ids = _unique(structure_ids)
        if not ids:
            return {}
        stmt = select(FeeStructure.id, FeeStructure.name).where(FeeStructure.id.in_(ids))
        rows = await self._all(stmt, "fee structures")
        return {sid: name for sid, name in rows}

    async def get_fee_component_names(self, component_ids: Iterable[UUID]) -> Dict[UUID, str]:
        ids = _unique(component_ids)
        if not ids:
            return {}
        stmt = select(FeeComponent.id, FeeComponent.name).where(FeeComponent.id.in_(ids))
        rows = await self._all(stmt, "fee components")
        return {cid: name for cid, name in rows}

    async def get_batch_names(self, school_id: UUID) -> List[str]:
        stmt = select(Batch.name).where(Batch.school_id == school_id).order_by(Batch.name)
        rows = await self._all(stmt, "batches")
        return [name for (name,) in rows]
