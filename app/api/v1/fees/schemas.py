"""Fees schemas: store records read by the ledger engine and the reports derived from them."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import DuesStatus


# --- Store records ---
class AssignmentRecord(BaseModel):
    id: UUID
    student_id: UUID
    fee_structure_id: UUID
    total_amount: Decimal
    paid_amount: Decimal
    balance: Optional[Decimal] = None
    assignment_date: date
    due_date: Optional[date] = None

    class Config:
        from_attributes = True


class PaymentRecord(BaseModel):
    id: UUID
    student_fee_id: UUID
    amount: Decimal
    payment_date: date
    payment_mode: Optional[str] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class AllocationRecord(BaseModel):
    id: UUID
    payment_id: UUID
    fee_component_id: UUID
    allocated_amount: Decimal

    class Config:
        from_attributes = True


class StudentInfo(BaseModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    admission_number: Optional[str] = None

    class Config:
        from_attributes = True


# --- Ledger ---
class LedgerEntry(BaseModel):
    """One debit (fee assignment) or credit (payment) row of a student statement."""

    id: str
    date: date
    description: str
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    running_balance: Decimal = Decimal("0")
    payment_mode: str = ""
    receipt_number: str = ""


class StudentFinancialRecord(BaseModel):
    student_id: UUID
    student_name: str
    admission_number: str
    batch_name: str
    applied_structures: List[str] = Field(default_factory=list)
    total_fees: Decimal
    paid_amount: Decimal
    balance: Decimal
    last_payment_date: Optional[date] = None
    transactions: List[LedgerEntry] = Field(default_factory=list)


# --- Dues ---
class DuesSummary(BaseModel):
    student_id: UUID
    student_name: str
    admission_number: str
    batch_name: str
    total_fees: Decimal
    paid_amount: Decimal
    balance: Decimal
    due_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    status: DuesStatus
    days_past_due: Optional[int] = None


class DuesReportSummary(BaseModel):
    total_students: int = 0
    paid_students: int = 0
    partial_payments: int = 0
    overdue_students: int = 0
    total_collected: Decimal = Decimal("0")
    total_outstanding: Decimal = Decimal("0")
    collection_rate: int = 0


class BatchDuesReport(BaseModel):
    batch_name: str
    total_students: int
    paid_students: int
    total_fees: Decimal
    collected_amount: Decimal
    outstanding_amount: Decimal
    collection_rate: int


class DuesFilter(BaseModel):
    """Report filters. "all" or an empty value disables a criterion."""

    batch: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
