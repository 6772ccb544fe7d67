import os
import uuid
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional, Tuple

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

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
from app.db.session import Base, build_engine, get_db
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables for each test."""
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class FeeData:
    """Seeds fee records for one school."""

    def __init__(self, db: AsyncSession, school_id: uuid.UUID) -> None:
        self.db = db
        self.school_id = school_id
        self._batches = {}

    async def student(
        self,
        first_name: str,
        last_name: str,
        admission_number: str,
        batch: Optional[str] = None,
    ) -> Student:
        student = Student(
            school_id=self.school_id,
            first_name=first_name,
            last_name=last_name,
            admission_number=admission_number,
        )
        self.db.add(student)
        await self.db.flush()
        if batch is not None:
            if batch not in self._batches:
                b = Batch(school_id=self.school_id, name=batch)
                self.db.add(b)
                await self.db.flush()
                self._batches[batch] = b
            self.db.add(BatchStudent(batch_id=self._batches[batch].id, student_id=student.id, is_current=True))
        await self.db.commit()
        return student

    async def structure(
        self,
        name: str,
        components: Iterable[Tuple[str, str]] = (),
    ) -> Tuple[FeeStructure, list]:
        fs = FeeStructure(school_id=self.school_id, name=name, academic_year="2024-25")
        self.db.add(fs)
        await self.db.flush()
        created = []
        for priority, (component_name, amount) in enumerate(components):
            fc = FeeComponent(
                fee_structure_id=fs.id,
                name=component_name,
                amount=Decimal(amount),
                priority=priority,
            )
            self.db.add(fc)
            created.append(fc)
        await self.db.commit()
        return fs, created

    async def assign(
        self,
        student: Student,
        structure: FeeStructure,
        total: str,
        paid: str = "0",
        assignment_date: date = date(2024, 4, 1),
        due_date: Optional[date] = None,
        balance: Optional[str] = None,
    ) -> StudentFeeAssignment:
        total_amount = Decimal(total)
        paid_amount = Decimal(paid)
        sfa = StudentFeeAssignment(
            school_id=self.school_id,
            student_id=student.id,
            fee_structure_id=structure.id,
            total_amount=total_amount,
            paid_amount=paid_amount,
            balance=Decimal(balance) if balance is not None else total_amount - paid_amount,
            assignment_date=assignment_date,
            due_date=due_date,
            status="paid" if paid_amount >= total_amount else "partial",
        )
        self.db.add(sfa)
        await self.db.commit()
        return sfa

    async def pay(
        self,
        assignment: StudentFeeAssignment,
        amount: str,
        payment_date: date,
        payment_mode: str = "cash",
        receipt_number: Optional[str] = None,
        notes: Optional[str] = None,
        allocations: Iterable[Tuple[FeeComponent, str]] = (),
    ) -> FeePayment:
        payment = FeePayment(
            student_fee_id=assignment.id,
            amount=Decimal(amount),
            payment_date=payment_date,
            payment_mode=payment_mode,
            receipt_number=receipt_number,
            notes=notes,
        )
        self.db.add(payment)
        await self.db.flush()
        for component, allocated in allocations:
            self.db.add(
                FeePaymentAllocation(
                    payment_id=payment.id,
                    fee_component_id=component.id,
                    allocated_amount=Decimal(allocated),
                )
            )
        await self.db.commit()
        return payment


@pytest.fixture()
def school_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def fee_data(db_session: AsyncSession, school_id: uuid.UUID) -> FeeData:
    return FeeData(db_session, school_id)
