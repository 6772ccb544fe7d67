"""Fee payment: one installment received against a student fee assignment."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class FeePayment(Base):
    """Payment against a student fee assignment. Supports partial payments."""

    __tablename__ = "fee_payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_fee_id = Column(
        Uuid,
        ForeignKey("student_fees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_mode = Column(String(30), nullable=True)  # cash, card, upi, bank, cheque
    receipt_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student_fee_assignment = relationship("StudentFeeAssignment", backref="payments")
