from app.core.models.student import Student
from app.core.models.batch import Batch, BatchStudent
from app.core.models.fee_structure import FeeStructure
from app.core.models.fee_component import FeeComponent
from app.core.models.student_fee_assignment import StudentFeeAssignment
from app.core.models.fee_payment import FeePayment
from app.core.models.fee_payment_allocation import FeePaymentAllocation

__all__ = [
    "Student",
    "Batch",
    "BatchStudent",
    "FeeStructure",
    "FeeComponent",
    "StudentFeeAssignment",
    "FeePayment",
    "FeePaymentAllocation",
]
