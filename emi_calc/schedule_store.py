"""Persistence layer for generated schedules.

The calculation engine returns plain installment values and never touches
storage. This module is the collaborator that keeps them: one row per
installment, keyed by loan identifier and sequence number. It defaults to
SQLite for local development, but accepts any SQLAlchemy-compatible URL
(e.g. PostgreSQL/MySQL).

Amounts are stored as decimal strings so that the exact values produced by
the engine survive a round trip through backends without a native decimal
type.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Column, Date, DateTime, Integer, String, create_engine, delete, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .data_models import Installment, Schedule
from .logging_config import get_logger

Base = declarative_base()

logger = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///emi_schedules.sqlite3"
MAX_LOAN_ID_LENGTH = 64


class InstallmentModel(Base):
    __tablename__ = "installments"

    loan_id = Column(String(MAX_LOAN_ID_LENGTH), primary_key=True)
    sequence_number = Column(Integer, primary_key=True)
    due_date = Column(Date, nullable=False)
    principal_component = Column(String(40), nullable=False)
    interest_component = Column(String(40), nullable=False)
    total_due = Column(String(40), nullable=False)
    outstanding_principal_after = Column(String(40), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)


class ScheduleStore:
    """Database-backed schedule store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def replace_schedule(self, loan_id: str, schedule: Schedule) -> None:
        """Store ``schedule`` for ``loan_id``, discarding any previous one.

        The delete and the inserts run in one transaction, so readers see
        either the old schedule or the new one, never a mix.
        """
        if not loan_id:
            raise ValueError("loan_id must not be empty")
        if len(loan_id) > MAX_LOAN_ID_LENGTH:
            raise ValueError(f"loan_id must be at most {MAX_LOAN_ID_LENGTH} characters")
        with self._session_factory.begin() as session:
            session.execute(delete(InstallmentModel).where(InstallmentModel.loan_id == loan_id))
            session.add_all(self._to_row(loan_id, entry) for entry in schedule)
        logger.info("Stored schedule", extra={"loan_id": loan_id, "installments": len(schedule)})

    def get_schedule(self, loan_id: str) -> Schedule:
        with self._session_factory() as session:
            rows = session.execute(
                select(InstallmentModel)
                .where(InstallmentModel.loan_id == loan_id)
                .order_by(InstallmentModel.sequence_number.asc())
            ).scalars()
            return tuple(self._from_row(row) for row in rows)

    def delete_schedule(self, loan_id: str) -> bool:
        with self._session_factory.begin() as session:
            result = session.execute(
                delete(InstallmentModel).where(InstallmentModel.loan_id == loan_id)
            )
            removed = result.rowcount
        if removed:
            logger.info("Deleted schedule", extra={"loan_id": loan_id, "installments": removed})
        return bool(removed)

    def list_loan_ids(self) -> List[str]:
        with self._session_factory() as session:
            return list(
                session.execute(
                    select(InstallmentModel.loan_id)
                    .distinct()
                    .order_by(InstallmentModel.loan_id.asc())
                ).scalars()
            )

    @staticmethod
    def _to_row(loan_id: str, entry: Installment) -> InstallmentModel:
        return InstallmentModel(
            loan_id=loan_id,
            sequence_number=entry.sequence_number,
            due_date=entry.due_date,
            principal_component=str(entry.principal_component),
            interest_component=str(entry.interest_component),
            total_due=str(entry.total_due),
            outstanding_principal_after=str(entry.outstanding_principal_after),
        )

    @staticmethod
    def _from_row(row: InstallmentModel) -> Installment:
        return Installment(
            sequence_number=row.sequence_number,
            due_date=row.due_date,
            principal_component=Decimal(row.principal_component),
            interest_component=Decimal(row.interest_component),
            total_due=Decimal(row.total_due),
            outstanding_principal_after=Decimal(row.outstanding_principal_after),
        )


def create_store_from_env(url: Optional[str]) -> ScheduleStore:
    return ScheduleStore(url or DEFAULT_DATABASE_URL)
