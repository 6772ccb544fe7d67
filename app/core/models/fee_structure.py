"""Fee structure: named template of components for a cohort and academic year."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class FeeStructure(Base):
    """School-scoped fee template. Treated as immutable once an assignment references it."""

    __tablename__ = "fee_structures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    academic_year = Column(String(20), nullable=True)  # e.g. 2024-25
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    components = relationship(
        "FeeComponent",
        back_populates="fee_structure",
        order_by="FeeComponent.priority",
    )
