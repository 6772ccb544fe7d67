import uuid

from sqlalchemy import Column, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class FeePaymentAllocation(Base):
    """Split of one payment across the components it pays for. Allocations of a payment sum to its amount."""

    __tablename__ = "fee_payment_allocations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    payment_id = Column(
        Uuid,
        ForeignKey("fee_payments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee_component_id = Column(
        Uuid,
        ForeignKey("fee_components.id", ondelete="RESTRICT"),
        nullable=False,
    )
    allocated_amount = Column(Numeric(12, 2), nullable=False)

    payment = relationship("FeePayment", backref="allocations")
    fee_component = relationship("FeeComponent")
