import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class Batch(Base):
    """Cohort of students (class + section) within a school."""

    __tablename__ = "batches"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class BatchStudent(Base):
    """
    Student membership in a batch.
    A student has at most one row with is_current = True; promotion adds a new row.
    """

    __tablename__ = "batch_students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    batch_id = Column(Uuid, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("student_details.id", ondelete="CASCADE"), nullable=False, index=True)
    is_current = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    batch = relationship("Batch", lazy="joined")
    student = relationship("Student", backref="batch_memberships")
