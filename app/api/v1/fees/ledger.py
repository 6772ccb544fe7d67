"""Student ledger: debits from fee assignments, credits from payments, running balance in date order."""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from .schemas import AllocationRecord, AssignmentRecord, LedgerEntry, PaymentRecord

logger = logging.getLogger(__name__)

UNKNOWN_STRUCTURE = "Unknown Structure"


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def describe_payment(
    payment: PaymentRecord,
    allocations: Iterable[AllocationRecord],
    component_names: Mapping[UUID, str],
) -> str:
    """Distinct allocated component names, comma-joined, then notes in parentheses. "Payment" if no names resolve."""
    names: List[str] = []
    for alloc in allocations:
        name = component_names.get(alloc.fee_component_id)
        if name and name not in names:
            names.append(name)
    description = ", ".join(names) if names else "Payment"
    notes = (payment.notes or "").strip()
    if notes:
        description += f" ({notes})"
    return description


def apply_running_balance(entries: List[LedgerEntry]) -> List[LedgerEntry]:
    """Stable-sort by date and stamp each entry with the balance after it. Opening balance is 0."""
    ordered = sorted(entries, key=lambda e: e.date)
    balance = Decimal("0")
    for entry in ordered:
        balance += entry.debit - entry.credit
        entry.running_balance = balance
    return ordered


def build_ledger_entries(
    assignments: Iterable[AssignmentRecord],
    payments: Iterable[PaymentRecord],
    allocations: Iterable[AllocationRecord] = (),
    structure_names: Optional[Mapping[UUID, str]] = None,
    component_names: Optional[Mapping[UUID, str]] = None,
) -> List[LedgerEntry]:
    """
    Chronological ledger for one student.

    Payments must belong to one of the given assignments; others are skipped.
    The last running_balance equals sum(total_amount) - sum(payment amount) whatever the dates.
    """
    structure_names = structure_names or {}
    component_names = component_names or {}

    entries: List[LedgerEntry] = []
    assignment_ids = set()
    for sfa in assignments:
        assignment_ids.add(sfa.id)
        name = structure_names.get(sfa.fee_structure_id) or UNKNOWN_STRUCTURE
        entries.append(
            LedgerEntry(
                id=f"fee_{sfa.id}",
                date=sfa.assignment_date,
                description=f"Fee Assignment - {name}",
                debit=_to_decimal(sfa.total_amount),
            )
        )

    kept_payments: List[PaymentRecord] = []
    for payment in payments:
        if payment.student_fee_id not in assignment_ids:
            logger.warning(
                "Skipping payment %s: assignment %s not found", payment.id, payment.student_fee_id
            )
            continue
        kept_payments.append(payment)

    by_payment: Dict[UUID, List[AllocationRecord]] = {p.id: [] for p in kept_payments}
    for alloc in allocations:
        if alloc.payment_id not in by_payment:
            logger.debug("Skipping allocation %s: payment %s not in ledger", alloc.id, alloc.payment_id)
            continue
        by_payment[alloc.payment_id].append(alloc)

    for payment in kept_payments:
        entries.append(
            LedgerEntry(
                id=f"payment_{payment.id}",
                date=payment.payment_date,
                description=describe_payment(payment, by_payment[payment.id], component_names),
                credit=_to_decimal(payment.amount),
                payment_mode=(payment.payment_mode or "").upper(),
                receipt_number=payment.receipt_number or "",
            )
        )

    return apply_running_balance(entries)
