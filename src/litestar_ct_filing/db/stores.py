"""Stores implementing the filing engine's operations.

Each store wraps one or more repositories on a shared :class:`AsyncSession`,
enforces the domain rules, and raises the typed errors from
:mod:`litestar_ct_filing.exceptions`. Stores flush their writes; pass
``auto_commit=True`` to commit after every mutation instead.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

from litestar_ct_filing.core.periods import PeriodCalculator
from litestar_ct_filing.core.registry import match_ct_type
from litestar_ct_filing.core.types import ConversionStatus, FilingPeriodStatus, WorkflowStepStatus
from litestar_ct_filing.db.models import (
    ConversionAttemptModel,
    CtTypeModel,
    FilingPeriodModel,
    WorkflowStepModel,
)
from litestar_ct_filing.db.repositories import (
    ConversionAttemptRepository,
    CtTypeRepository,
    FilingPeriodRepository,
    WorkflowStepRepository,
)
from litestar_ct_filing.exceptions import (
    ConversionAttemptNotFoundError,
    CtTypeNotFoundError,
    FilingPeriodNotFoundError,
    InvalidPeriodError,
    PeriodOverlapError,
    StatusRegressionError,
    StepsNotSubmittedError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from litestar_ct_filing.core.models import (
        FilingPeriodData,
        FilingPeriodUpdate,
        ProposedPeriod,
        WorkflowStepRecord,
    )
    from litestar_ct_filing.core.protocols import FilingExporter
    from litestar_ct_filing.core.registry import TypeMatch

__all__ = [
    "ConversionAttemptManager",
    "CtTypeStore",
    "FilingPeriodStore",
    "WorkflowStepStore",
]

logger = logging.getLogger(__name__)


class _SessionStore:
    """Shared session handling for the stores."""

    def __init__(self, session: AsyncSession, *, auto_commit: bool = False) -> None:
        """Initialize the store.

        Args:
            session: SQLAlchemy async session.
            auto_commit: Commit after every mutation instead of flushing.
        """
        self.session = session
        self.auto_commit = auto_commit

    async def _flush_or_commit(self, *instances: Any) -> None:
        """Flush pending writes, or commit them and reload ``instances``.

        A commit expires every loaded object, so the instances the caller goes
        on to read are refreshed inside the async context.
        """
        if not self.auto_commit:
            await self.session.flush()
            return
        await self.session.commit()
        for instance in instances:
            await self.session.refresh(instance)


class CtTypeStore(_SessionStore):
    """Lists, adds, and resolves CT types."""

    def __init__(self, session: AsyncSession, *, auto_commit: bool = False) -> None:
        super().__init__(session, auto_commit=auto_commit)
        self._repo = CtTypeRepository(session=session)

    async def list(self) -> Sequence[CtTypeModel]:
        """List all CT types ordered by name."""
        return await self._repo.list_all()

    async def add(self, name: str) -> CtTypeModel:
        """Add a CT type, or return the existing one with the same name.

        Args:
            name: The CT type name.

        Returns:
            The stored CT type.

        Raises:
            ValidationError: If the name is blank.
        """
        name = name.strip()
        if not name:
            msg = "CT type name cannot be blank"
            raise ValidationError(msg)

        existing = await self._repo.get_by_name(name)
        if existing:
            return existing

        ct_type = await self._repo.add(CtTypeModel(name=name), auto_commit=self.auto_commit)
        logger.info("Added CT type %r (%s)", name, ct_type.id)
        return ct_type

    async def get(self, ct_type_id: UUID) -> CtTypeModel:
        """Get a CT type by ID.

        Raises:
            CtTypeNotFoundError: If no such type exists.
        """
        ct_type = await self._repo.get_one_or_none(id=ct_type_id)
        if ct_type is None:
            raise CtTypeNotFoundError(ct_type_id)
        return ct_type

    async def match(self, slug: str) -> TypeMatch[CtTypeModel]:
        """Resolve a route slug and report which matching tier succeeded.

        Args:
            slug: The route slug, e.g. ``type4``.

        Returns:
            The matched CT type and strategy.

        Raises:
            CtTypeNotFoundError: If the slug matches no type.
        """
        match = match_ct_type(await self._repo.list_all(), slug)
        logger.debug("Resolved %r to CT type %r via %s match", slug, match.ct_type.name, match.strategy)
        return match

    async def resolve(self, slug: str) -> CtTypeModel:
        """Resolve a route slug such as ``type4`` to a CT type.

        Raises:
            CtTypeNotFoundError: If the slug matches no type.
        """
        return (await self.match(slug)).ct_type


class FilingPeriodStore(_SessionStore):
    """Persists filing periods for (customer, CT type) pairs.

    Periods of one pair never overlap. Deleting a period also deletes its
    conversion attempts and workflow step records.

    Attributes:
        calculator: Calculator used to propose new periods.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        calculator: PeriodCalculator | None = None,
        auto_commit: bool = False,
    ) -> None:
        """Initialize the store.

        Args:
            session: SQLAlchemy async session.
            calculator: Calculator used to propose new periods.
            auto_commit: Commit after every mutation instead of flushing.
        """
        super().__init__(session, auto_commit=auto_commit)
        self.calculator = calculator or PeriodCalculator()
        self._repo = FilingPeriodRepository(session=session)
        self._type_repo = CtTypeRepository(session=session)
        self._attempt_repo = ConversionAttemptRepository(session=session)
        self._step_repo = WorkflowStepRepository(session=session)

    async def list(self, customer_id: str, ct_type_id: UUID) -> Sequence[FilingPeriodModel]:
        """List a customer's periods for a CT type, most recent first.

        Args:
            customer_id: The customer identifier.
            ct_type_id: The CT type ID.

        Returns:
            Periods sorted by ``period_from`` descending.
        """
        return await self._repo.find_by_customer_type(customer_id, ct_type_id)

    async def get(self, period_id: UUID) -> FilingPeriodModel:
        """Get a period by ID.

        Raises:
            FilingPeriodNotFoundError: If no such period exists.
        """
        period = await self._repo.get_one_or_none(id=period_id)
        if period is None:
            raise FilingPeriodNotFoundError(period_id)
        return period

    async def propose(
        self,
        customer_id: str,
        ct_type_id: UUID,
        customer_anchor: date | str | None = None,
    ) -> ProposedPeriod:
        """Suggest dates for the next period of a customer and CT type.

        The latest existing period is chained off when there is one; otherwise
        the customer's anchor date seeds the first period.

        Args:
            customer_id: The customer identifier.
            ct_type_id: The CT type ID.
            customer_anchor: The customer's configured period start, if any.

        Returns:
            The proposed dates; nothing is persisted.

        Raises:
            ValidationError: If there are no periods and no anchor date.
        """
        periods = await self.list(customer_id, ct_type_id)
        if periods:
            return self.calculator.compute_next(periods[0].period_to)
        if customer_anchor:
            return self.calculator.compute_first(customer_anchor)
        msg = f"Customer '{customer_id}' has no filing periods and no anchor date to start from"
        raise ValidationError(msg)

    async def create(self, period: FilingPeriodData) -> FilingPeriodModel:
        """Create a filing period.

        Args:
            period: The period to create.

        Returns:
            The stored period.

        Raises:
            InvalidPeriodError: If the dates are out of order.
            CtTypeNotFoundError: If the CT type does not exist.
            PeriodOverlapError: If the period overlaps another of the same pair.
        """
        _check_dates(period.period_from, period.period_to, period.due_date)
        if await self._type_repo.get_one_or_none(id=period.ct_type_id) is None:
            raise CtTypeNotFoundError(period.ct_type_id)
        await self._check_overlap(period.customer_id, period.ct_type_id, period.period_from, period.period_to)

        model = await self._repo.add(
            FilingPeriodModel(
                customer_id=period.customer_id,
                ct_type_id=period.ct_type_id,
                user_id=period.user_id,
                period_from=period.period_from,
                period_to=period.period_to,
                due_date=period.due_date,
                status=period.status,
            ),
            auto_commit=self.auto_commit,
        )
        logger.info(
            "Created filing period %s for customer %s (%s to %s)",
            model.id,
            model.customer_id,
            model.period_from,
            model.period_to,
        )
        return model

    async def update(self, period_id: UUID, changes: FilingPeriodUpdate) -> FilingPeriodModel:
        """Apply a partial update to a period's dates and status.

        Args:
            period_id: The period ID.
            changes: Fields to change; ``None`` fields are kept.

        Returns:
            The updated period.

        Raises:
            FilingPeriodNotFoundError: If no such period exists.
            InvalidPeriodError: If the resulting dates are out of order.
            PeriodOverlapError: If the new range overlaps another period.
        """
        period = await self.get(period_id)

        period_from = changes.period_from or period.period_from
        period_to = changes.period_to or period.period_to
        due_date = changes.due_date or period.due_date
        _check_dates(period_from, period_to, due_date)
        if (period_from, period_to) != (period.period_from, period.period_to):
            await self._check_overlap(period.customer_id, period.ct_type_id, period_from, period_to, period.id)

        period.period_from = period_from
        period.period_to = period_to
        period.due_date = due_date
        if changes.status is not None:
            period.status = changes.status

        await self._flush_or_commit(period)
        logger.info("Updated filing period %s", period.id)
        return period

    async def delete(self, period_id: UUID) -> None:
        """Delete a period together with its attempts and step records.

        Args:
            period_id: The period ID.

        Raises:
            FilingPeriodNotFoundError: If the period is already gone.
        """
        period = await self.get(period_id)
        steps = await self._step_repo.delete_for_period(period.id)
        attempts = await self._attempt_repo.delete_for_period(period.id)
        await self._repo.delete(period.id)
        await self._flush_or_commit()
        logger.info(
            "Deleted filing period %s with %d conversion attempt(s) and %d workflow step(s)",
            period_id,
            attempts,
            steps,
        )

    async def mark_overdue(self, as_of: date) -> Sequence[FilingPeriodModel]:
        """Mark open periods whose due date has passed as Overdue.

        Args:
            as_of: The reference date, usually today.

        Returns:
            The periods that were updated.
        """
        periods = await self._repo.find_past_due(as_of)
        for period in periods:
            period.status = FilingPeriodStatus.OVERDUE
        if periods:
            await self._flush_or_commit(*periods)
            logger.info("Marked %d filing period(s) overdue as of %s", len(periods), as_of)
        return periods

    async def _check_overlap(
        self,
        customer_id: str,
        ct_type_id: UUID,
        period_from: date,
        period_to: date,
        exclude_id: UUID | None = None,
    ) -> None:
        existing = await self._repo.find_overlapping(customer_id, ct_type_id, period_from, period_to, exclude_id)
        if existing is not None:
            logger.warning(
                "Rejected filing period %s to %s for customer %s: overlaps %s",
                period_from,
                period_to,
                customer_id,
                existing.id,
            )
            raise PeriodOverlapError(existing.id)


class _PeriodScopedStore(_SessionStore):
    """Base for stores whose records hang off a filing period."""

    def __init__(self, session: AsyncSession, *, auto_commit: bool = False) -> None:
        super().__init__(session, auto_commit=auto_commit)
        self._period_repo = FilingPeriodRepository(session=session)
        self._type_repo = CtTypeRepository(session=session)

    async def _period_for(
        self,
        period_id: UUID,
        ct_type_id: UUID,
        customer_id: str | None = None,
    ) -> FilingPeriodModel:
        """Load the target period and check the record belongs to it.

        Raises:
            FilingPeriodNotFoundError: If the period does not exist.
            CtTypeNotFoundError: If the CT type does not exist.
            ValidationError: If the CT type or customer differs from the period's.
        """
        period = await self._period_repo.get_one_or_none(id=period_id)
        if period is None:
            raise FilingPeriodNotFoundError(period_id)
        if ct_type_id != period.ct_type_id:
            if await self._type_repo.get_one_or_none(id=ct_type_id) is None:
                raise CtTypeNotFoundError(ct_type_id)
            msg = f"Filing period '{period_id}' belongs to CT type '{period.ct_type_id}', not '{ct_type_id}'"
            raise ValidationError(msg)
        if customer_id is not None and customer_id != period.customer_id:
            msg = f"Filing period '{period_id}' belongs to customer '{period.customer_id}', not '{customer_id}'"
            raise ValidationError(msg)
        return period


class ConversionAttemptManager(_PeriodScopedStore):
    """Persists independent conversion attempts against filing periods.

    Attempts never block each other; any number may exist per period.
    """

    def __init__(self, session: AsyncSession, *, auto_commit: bool = False) -> None:
        super().__init__(session, auto_commit=auto_commit)
        self._repo = ConversionAttemptRepository(session=session)

    async def create(
        self,
        period_id: UUID,
        ct_type_id: UUID,
        user_id: str,
        name: str | None = None,
    ) -> ConversionAttemptModel:
        """Start a new conversion attempt in ``draft``.

        A period that has not been started moves to In Progress.

        Args:
            period_id: The filing period ID.
            ct_type_id: The CT type ID.
            user_id: The user who owns the attempt.
            name: Display name; defaults to ``"Conversion {n}"``.

        Returns:
            The stored attempt.

        Raises:
            FilingPeriodNotFoundError: If the period does not exist.
            CtTypeNotFoundError: If the CT type does not exist.
            ValidationError: If the period belongs to another CT type.
        """
        period = await self._period_for(period_id, ct_type_id)

        name = (name or "").strip()
        if not name:
            name = f"Conversion {await self._repo.count_for_period(period_id) + 1}"

        attempt = await self._repo.add(
            ConversionAttemptModel(
                period_id=period_id,
                ct_type_id=ct_type_id,
                user_id=user_id,
                name=name,
                status=ConversionStatus.DRAFT,
            )
        )
        if period.status == FilingPeriodStatus.NOT_STARTED:
            period.status = FilingPeriodStatus.IN_PROGRESS

        await self._flush_or_commit(attempt, period)
        logger.info("Created conversion attempt %s (%r) on period %s for user %s", attempt.id, name, period_id, user_id)
        return attempt

    async def list(self, period_id: UUID, ct_type_id: UUID) -> Sequence[ConversionAttemptModel]:
        """List a period's attempts, newest first."""
        return await self._repo.find_by_period(period_id, ct_type_id)

    async def get(self, attempt_id: UUID) -> ConversionAttemptModel:
        """Get an attempt by ID.

        Raises:
            ConversionAttemptNotFoundError: If no such attempt exists.
        """
        attempt = await self._repo.get_one_or_none(id=attempt_id)
        if attempt is None:
            raise ConversionAttemptNotFoundError(attempt_id)
        return attempt

    async def update(
        self,
        attempt_id: UUID,
        *,
        status: ConversionStatus | None = None,
        name: str | None = None,
    ) -> ConversionAttemptModel:
        """Change an attempt's status or name.

        Args:
            attempt_id: The attempt ID.
            status: New coarse status.
            name: New display name.

        Returns:
            The updated attempt.

        Raises:
            ConversionAttemptNotFoundError: If no such attempt exists.
            ValidationError: If nothing would change or the name is blank.
        """
        if status is None and name is None:
            msg = "No fields to update"
            raise ValidationError(msg)

        attempt = await self.get(attempt_id)
        if name is not None:
            if not name.strip():
                msg = "Conversion name cannot be blank"
                raise ValidationError(msg)
            attempt.name = name.strip()
        if status is not None:
            attempt.status = status

        await self._flush_or_commit(attempt)
        logger.info("Updated conversion attempt %s (status=%s)", attempt.id, attempt.status)
        return attempt

    async def delete(self, attempt_id: UUID) -> None:
        """Delete an attempt.

        Step records belong to the period, not the attempt, and are kept.

        Raises:
            ConversionAttemptNotFoundError: If the attempt is already gone.
        """
        attempt = await self.get(attempt_id)
        await self._repo.delete(attempt.id)
        await self._flush_or_commit()
        logger.info("Deleted conversion attempt %s", attempt_id)


class WorkflowStepStore(_PeriodScopedStore):
    """Idempotent persistence of workflow step data.

    Saving the same key twice with the same data and status leaves a single,
    unchanged record. Submitted steps cannot move back to an earlier status.
    """

    def __init__(self, session: AsyncSession, *, auto_commit: bool = False) -> None:
        super().__init__(session, auto_commit=auto_commit)
        self._repo = WorkflowStepRepository(session=session)

    async def upsert(self, record: WorkflowStepRecord) -> WorkflowStepModel:
        """Save a step's data and status under its ``(period, type, step number)`` key.

        Args:
            record: The step data to save.

        Returns:
            The stored record.

        Raises:
            ValidationError: If the step number or key is invalid, or the
                CT type or customer differs from the period's.
            FilingPeriodNotFoundError: If the period does not exist.
            CtTypeNotFoundError: If the CT type does not exist.
            StatusRegressionError: If the stored step is submitted and the new
                status is not.
        """
        if record.step_number < 1:
            msg = f"Step number must be at least 1, got {record.step_number}"
            raise ValidationError(msg)
        if not record.step_key.strip():
            msg = "Step key cannot be blank"
            raise ValidationError(msg)
        await self._period_for(record.period_id, record.ct_type_id, record.customer_id)

        status = WorkflowStepStatus(record.status)
        stored = await self._repo.upsert_step(
            {
                "customer_id": record.customer_id,
                "ct_type_id": record.ct_type_id,
                "period_id": record.period_id,
                "step_number": record.step_number,
                "step_key": record.step_key,
                "data": record.data or {},
                "status": status,
                "user_id": record.user_id,
            }
        )
        if stored is None:
            logger.warning(
                "Rejected %s save of submitted step %d on period %s",
                status,
                record.step_number,
                record.period_id,
            )
            raise StatusRegressionError(
                record.period_id,
                record.step_number,
                str(WorkflowStepStatus.SUBMITTED),
                str(status),
            )

        await self._flush_or_commit(stored)
        logger.info("Saved step %d (%s) on period %s as %s", stored.step_number, stored.step_key, stored.period_id, status)
        return stored

    async def list_by_period(self, period_id: UUID, ct_type_id: UUID) -> Sequence[WorkflowStepModel]:
        """List a period's step records ordered by step number."""
        return await self._repo.find_by_period(period_id, ct_type_id)

    async def export(self, period_id: UUID, ct_type_id: UUID, exporter: FilingExporter) -> bytes:
        """Export a filing once every saved step is submitted.

        Args:
            period_id: The filing period ID.
            ct_type_id: The CT type ID.
            exporter: Renders the payload to a document.

        Returns:
            The exporter's artifact.

        Raises:
            StepsNotSubmittedError: If there are no steps or any is not submitted.
        """
        steps = await self.list_by_period(period_id, ct_type_id)
        pending = [step.step_number for step in steps if step.status != WorkflowStepStatus.SUBMITTED]
        if not steps or pending:
            raise StepsNotSubmittedError(period_id, pending)

        payload: dict[str, Any] = {
            "period_id": str(period_id),
            "ct_type_id": str(ct_type_id),
            "customer_id": steps[0].customer_id,
            "steps": {step.step_key: step.data for step in steps},
        }
        artifact = exporter.export(payload)
        logger.info("Exported filing for period %s (%d steps, %d bytes)", period_id, len(steps), len(artifact))
        return artifact


def _check_dates(period_from: date, period_to: date, due_date: date) -> None:
    if period_to <= period_from:
        raise InvalidPeriodError(period_from, period_to, due_date, "period must end after it starts")
    if due_date < period_to:
        raise InvalidPeriodError(period_from, period_to, due_date, "due date cannot precede the period end")
