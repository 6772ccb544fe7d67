"""Fee component: one line item (Tuition, Bus, Exam, Hostel) of a fee structure."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class FeeComponent(Base):
    """Line item of a fee structure. Lower priority is allocated first when a payment is split."""

    __tablename__ = "fee_components"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="chk_fee_component_amount"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fee_structure_id = Column(
        Uuid,
        ForeignKey("fee_structures.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    priority = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    fee_structure = relationship("FeeStructure", back_populates="components")
