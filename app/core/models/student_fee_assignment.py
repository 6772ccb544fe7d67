"""Student fee assignment: a fee structure's total bound to one student."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class StudentFeeAssignment(Base):
    """
    Fee owed by a student under one fee structure.
    balance should equal total_amount - paid_amount; the fee collection workflow maintains it.
    """

    __tablename__ = "student_fees"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="chk_student_fee_total_amount"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    student_id = Column(
        Uuid,
        ForeignKey("student_details.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee_structure_id = Column(
        Uuid,
        ForeignKey("fee_structures.id", ondelete="RESTRICT"),
        nullable=False,
    )
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=True)
    assignment_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, partial, paid
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", backref="fee_assignments")
    fee_structure = relationship("FeeStructure")
