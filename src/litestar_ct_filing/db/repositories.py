"""Repository implementations for CT filing persistence.

This module provides async repositories for CRUD operations on the filing
models using advanced-alchemy's repository pattern.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID

from advanced_alchemy.repository import SQLAlchemyAsyncRepository
from sqlalchemy import and_, case, delete, func, literal, or_, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from litestar_ct_filing.core.types import FilingPeriodStatus, WorkflowStepStatus
from litestar_ct_filing.db.models import (
    ConversionAttemptModel,
    CtTypeModel,
    FilingPeriodModel,
    WorkflowStepModel,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "ConversionAttemptRepository",
    "CtTypeRepository",
    "FilingPeriodRepository",
    "WorkflowStepRepository",
]

_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class CtTypeRepository(SQLAlchemyAsyncRepository[CtTypeModel]):
    """Repository for CT type CRUD operations."""

    model_type = CtTypeModel

    async def list_all(self) -> Sequence[CtTypeModel]:
        """List every CT type ordered by name.

        Returns:
            List of CT types.
        """
        stmt = select(CtTypeModel).order_by(CtTypeModel.name)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_by_name(self, name: str) -> CtTypeModel | None:
        """Get a CT type by its exact name.

        Args:
            name: The CT type name.

        Returns:
            The CT type or None if not found.
        """
        stmt = select(CtTypeModel).where(CtTypeModel.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class FilingPeriodRepository(SQLAlchemyAsyncRepository[FilingPeriodModel]):
    """Repository for filing period CRUD operations.

    Provides methods for listing a customer's periods, detecting overlaps,
    and finding periods past their due date.
    """

    model_type = FilingPeriodModel

    async def find_by_customer_type(
        self,
        customer_id: str,
        ct_type_id: UUID,
    ) -> Sequence[FilingPeriodModel]:
        """Find all periods for a customer and CT type.

        Args:
            customer_id: The customer identifier.
            ct_type_id: The CT type ID.

        Returns:
            List of periods, most recent ``period_from`` first.
        """
        stmt = (
            select(FilingPeriodModel)
            .where(
                and_(
                    FilingPeriodModel.customer_id == customer_id,
                    FilingPeriodModel.ct_type_id == ct_type_id,
                )
            )
            .order_by(FilingPeriodModel.period_from.desc(), FilingPeriodModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_overlapping(
        self,
        customer_id: str,
        ct_type_id: UUID,
        period_from: date,
        period_to: date,
        exclude_id: UUID | None = None,
    ) -> FilingPeriodModel | None:
        """Find a period of the same customer and type that shares any day with the range.

        Args:
            customer_id: The customer identifier.
            ct_type_id: The CT type ID.
            period_from: First day of the candidate range.
            period_to: Last day of the candidate range.
            exclude_id: Optional period to ignore, used when updating a period.

        Returns:
            An overlapping period or None.
        """
        conditions = [
            FilingPeriodModel.customer_id == customer_id,
            FilingPeriodModel.ct_type_id == ct_type_id,
            FilingPeriodModel.period_from <= period_to,
            FilingPeriodModel.period_to >= period_from,
        ]

        if exclude_id:
            conditions.append(FilingPeriodModel.id != exclude_id)

        stmt = select(FilingPeriodModel).where(and_(*conditions)).order_by(FilingPeriodModel.period_from).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_past_due(self, as_of: date) -> Sequence[FilingPeriodModel]:
        """Find open periods whose due date is before ``as_of``.

        Args:
            as_of: The reference date.

        Returns:
            List of periods still Not Started or In Progress, earliest due first.
        """
        stmt = (
            select(FilingPeriodModel)
            .where(
                and_(
                    FilingPeriodModel.due_date < as_of,
                    FilingPeriodModel.status.in_(
                        [
                            FilingPeriodStatus.NOT_STARTED,
                            FilingPeriodStatus.IN_PROGRESS,
                        ]
                    ),
                )
            )
            .order_by(FilingPeriodModel.due_date)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class ConversionAttemptRepository(SQLAlchemyAsyncRepository[ConversionAttemptModel]):
    """Repository for conversion attempt CRUD operations."""

    model_type = ConversionAttemptModel

    async def find_by_period(
        self,
        period_id: UUID,
        ct_type_id: UUID,
    ) -> Sequence[ConversionAttemptModel]:
        """Find all attempts for a period and CT type.

        Args:
            period_id: The filing period ID.
            ct_type_id: The CT type ID.

        Returns:
            List of attempts, newest first.
        """
        stmt = (
            select(ConversionAttemptModel)
            .where(
                and_(
                    ConversionAttemptModel.period_id == period_id,
                    ConversionAttemptModel.ct_type_id == ct_type_id,
                )
            )
            .order_by(ConversionAttemptModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_for_period(self, period_id: UUID) -> int:
        """Count the attempts created against a period.

        Args:
            period_id: The filing period ID.

        Returns:
            Number of attempts.
        """
        stmt = select(func.count()).select_from(ConversionAttemptModel).where(ConversionAttemptModel.period_id == period_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def delete_for_period(self, period_id: UUID) -> int:
        """Delete every attempt belonging to a period.

        Args:
            period_id: The filing period ID.

        Returns:
            Number of rows deleted.
        """
        stmt = delete(ConversionAttemptModel).where(ConversionAttemptModel.period_id == period_id)
        result = await self.session.execute(stmt)
        return result.rowcount


class WorkflowStepRepository(SQLAlchemyAsyncRepository[WorkflowStepModel]):
    """Repository for workflow step records.

    Step saves use a dialect-level ``INSERT ... ON CONFLICT DO UPDATE`` on the
    ``(period_id, ct_type_id, step_number)`` unique constraint so concurrent
    saves of one key never create two rows.
    """

    model_type = WorkflowStepModel

    async def find_by_period(
        self,
        period_id: UUID,
        ct_type_id: UUID,
    ) -> Sequence[WorkflowStepModel]:
        """Find all step records for a period and CT type.

        Args:
            period_id: The filing period ID.
            ct_type_id: The CT type ID.

        Returns:
            List of step records ordered by step number.
        """
        stmt = (
            select(WorkflowStepModel)
            .where(
                and_(
                    WorkflowStepModel.period_id == period_id,
                    WorkflowStepModel.ct_type_id == ct_type_id,
                )
            )
            .order_by(WorkflowStepModel.step_number)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_by_key(
        self,
        period_id: UUID,
        ct_type_id: UUID,
        step_number: int,
    ) -> WorkflowStepModel | None:
        """Find the record stored under a step key.

        Args:
            period_id: The filing period ID.
            ct_type_id: The CT type ID.
            step_number: The step number.

        Returns:
            The step record or None.
        """
        stmt = select(WorkflowStepModel).where(
            and_(
                WorkflowStepModel.period_id == period_id,
                WorkflowStepModel.ct_type_id == ct_type_id,
                WorkflowStepModel.step_number == step_number,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_step(self, values: dict[str, Any]) -> WorkflowStepModel | None:
        """Insert a step record or overwrite the one stored under the same key.

        ``data``, ``status``, ``step_key`` and ``user_id`` are replaced wholesale.
        A stored ``submitted`` record is only overwritten by another
        ``submitted`` save; the check runs inside the conflict clause so it is
        atomic with the write.

        ``updated_at`` only moves when a stored column actually changes, so
        re-saving an identical record leaves it untouched.

        Args:
            values: Column values for the record, including the key columns.

        Returns:
            The stored record, or None if the existing record is submitted and
            the new status is not.

        Raises:
            NotImplementedError: If the session is bound to a dialect without
                ``ON CONFLICT`` support.
        """
        dialect = self.session.get_bind().dialect.name
        try:
            insert = _UPSERT_INSERTS[dialect]
        except KeyError as e:
            msg = f"Workflow step upserts are not supported on the '{dialect}' dialect"
            raise NotImplementedError(msg) from e

        saved_at = literal(datetime.now(timezone.utc), WorkflowStepModel.updated_at.type)
        stmt = insert(WorkflowStepModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                WorkflowStepModel.period_id,
                WorkflowStepModel.ct_type_id,
                WorkflowStepModel.step_number,
            ],
            set_={
                "customer_id": stmt.excluded.customer_id,
                "step_key": stmt.excluded.step_key,
                "data": stmt.excluded.data,
                "status": stmt.excluded.status,
                "user_id": stmt.excluded.user_id,
                "updated_at": case(
                    (_step_changed(stmt.excluded), saved_at),
                    else_=WorkflowStepModel.updated_at,
                ),
            },
            where=or_(
                WorkflowStepModel.status != WorkflowStepStatus.SUBMITTED,
                stmt.excluded.status == WorkflowStepStatus.SUBMITTED,
            ),
        ).returning(WorkflowStepModel)

        result = await self.session.execute(stmt, execution_options={"populate_existing": True})
        return result.scalar_one_or_none()

    async def delete_for_period(self, period_id: UUID) -> int:
        """Delete every step record belonging to a period.

        Args:
            period_id: The filing period ID.

        Returns:
            Number of rows deleted.
        """
        stmt = delete(WorkflowStepModel).where(WorkflowStepModel.period_id == period_id)
        result = await self.session.execute(stmt)
        return result.rowcount


def _step_changed(excluded: Any) -> Any:
    return or_(
        WorkflowStepModel.customer_id != excluded.customer_id,
        WorkflowStepModel.step_key != excluded.step_key,
        WorkflowStepModel.status != excluded.status,
        WorkflowStepModel.user_id.is_distinct_from(excluded.user_id),
        WorkflowStepModel.data != excluded.data,
    )
