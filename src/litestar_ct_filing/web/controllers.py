"""REST API controllers for CT filing.

This module provides four controller classes:
- CtTypeController: List CT types and resolve route slugs
- FilingPeriodController: Manage filing periods and propose the next one
- ConversionAttemptController: Manage conversion attempts against a period
- WorkflowStepController: Save and read workflow step data

Domain errors propagate to the exception handler in
:mod:`litestar_ct_filing.web.exceptions`.
"""

from __future__ import annotations

from datetime import date
from typing import ClassVar
from uuid import UUID

from litestar import Controller, delete, get, post, put
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK

from litestar_ct_filing.core.models import FilingPeriodData, FilingPeriodUpdate, WorkflowStepRecord
from litestar_ct_filing.db.models import (
    ConversionAttemptModel,
    FilingPeriodModel,
    WorkflowStepModel,
)
from litestar_ct_filing.db.stores import (  # noqa: TC001 - needed for DI
    ConversionAttemptManager,
    CtTypeStore,
    FilingPeriodStore,
    WorkflowStepStore,
)
from litestar_ct_filing.web.dto import (
    ConversionAttemptDTO,
    CreateConversionAttemptDTO,
    CreateFilingPeriodDTO,
    CtTypeDTO,
    CtTypeMatchDTO,
    FilingPeriodDTO,
    ProposedPeriodDTO,
    UpdateConversionAttemptDTO,
    UpdateFilingPeriodDTO,
    UpsertWorkflowStepDTO,
    WorkflowStepDTO,
)
from litestar_ct_filing.web.guards import EDIT_PERMISSION, VIEW_PERMISSION

__all__ = [
    "ConversionAttemptController",
    "CtTypeController",
    "FilingPeriodController",
    "WorkflowStepController",
]

_VIEW = {"permission": VIEW_PERMISSION}
_EDIT = {"permission": EDIT_PERMISSION}


def _period_dto(period: FilingPeriodModel) -> FilingPeriodDTO:
    return FilingPeriodDTO(
        id=period.id,
        customer_id=period.customer_id,
        ct_type_id=period.ct_type_id,
        period_from=period.period_from,
        period_to=period.period_to,
        due_date=period.due_date,
        status=str(period.status),
        user_id=period.user_id,
        created_at=period.created_at,
    )


def _attempt_dto(attempt: ConversionAttemptModel) -> ConversionAttemptDTO:
    return ConversionAttemptDTO(
        id=attempt.id,
        period_id=attempt.period_id,
        ct_type_id=attempt.ct_type_id,
        user_id=attempt.user_id,
        name=attempt.name,
        status=str(attempt.status),
        created_at=attempt.created_at,
    )


def _step_dto(step: WorkflowStepModel) -> WorkflowStepDTO:
    return WorkflowStepDTO(
        id=step.id,
        customer_id=step.customer_id,
        ct_type_id=step.ct_type_id,
        period_id=step.period_id,
        step_number=step.step_number,
        step_key=step.step_key,
        data=step.data,
        status=str(step.status),
        user_id=step.user_id,
        updated_at=step.updated_at,
    )


class CtTypeController(Controller):
    """API controller for CT types.

    Tags: CT Types
    """

    path = "/types"
    tags: ClassVar[list[str]] = ["CT Types"]

    @get("/", opt=_VIEW)
    async def list_types(self, ct_type_store: CtTypeStore) -> list[CtTypeDTO]:
        """List all CT types.

        Args:
            ct_type_store: Injected CT type store.

        Returns:
            List of CT type DTOs.
        """
        return [CtTypeDTO(id=ct_type.id, name=ct_type.name) for ct_type in await ct_type_store.list()]

    @get("/resolve/{slug:str}", opt=_VIEW)
    async def resolve_type(self, slug: str, ct_type_store: CtTypeStore) -> CtTypeMatchDTO:
        """Resolve a route slug such as ``type4`` to a CT type.

        Args:
            slug: The route slug.
            ct_type_store: Injected CT type store.

        Returns:
            The matched CT type and the tier that matched it.
        """
        match = await ct_type_store.match(slug)
        return CtTypeMatchDTO(
            id=match.ct_type.id,
            name=match.ct_type.name,
            slug=slug,
            strategy=str(match.strategy),
        )


class FilingPeriodController(Controller):
    """API controller for filing periods.

    Tags: Filing Periods
    """

    path = "/filing-periods"
    tags: ClassVar[list[str]] = ["Filing Periods"]

    @get("/", opt=_VIEW)
    async def list_periods(
        self,
        filing_period_store: FilingPeriodStore,
        customer_id: str = Parameter(description="Customer the periods belong to"),
        ct_type_id: UUID = Parameter(description="CT type the periods are filed under"),
    ) -> list[FilingPeriodDTO]:
        """List a customer's periods for a CT type, most recent first.

        Args:
            filing_period_store: Injected filing period store.
            customer_id: Customer identifier.
            ct_type_id: CT type ID.

        Returns:
            List of filing period DTOs.
        """
        return [_period_dto(period) for period in await filing_period_store.list(customer_id, ct_type_id)]

    @get("/proposal", opt=_VIEW)
    async def propose_period(
        self,
        filing_period_store: FilingPeriodStore,
        customer_id: str = Parameter(description="Customer the period is for"),
        ct_type_id: UUID = Parameter(description="CT type the period is filed under"),
        anchor_date: str | None = Parameter(
            default=None,
            description="Customer's period start (yyyy-mm-dd or dd/mm/yyyy), used when no periods exist",
        ),
    ) -> ProposedPeriodDTO:
        """Suggest dates for the customer's next period.

        Args:
            filing_period_store: Injected filing period store.
            customer_id: Customer identifier.
            ct_type_id: CT type ID.
            anchor_date: Optional customer anchor date.

        Returns:
            Proposed period dates; nothing is stored.
        """
        proposal = await filing_period_store.propose(customer_id, ct_type_id, anchor_date)
        return ProposedPeriodDTO(
            period_from=proposal.period_from,
            period_to=proposal.period_to,
            due_date=proposal.due_date,
        )

    @post("/", dto=None, return_dto=None, opt=_EDIT)
    async def create_period(
        self,
        data: CreateFilingPeriodDTO,
        filing_period_store: FilingPeriodStore,
    ) -> FilingPeriodDTO:
        """Create a filing period.

        Args:
            data: Period to create.
            filing_period_store: Injected filing period store.

        Returns:
            The created filing period DTO.
        """
        period = await filing_period_store.create(
            FilingPeriodData(
                customer_id=data.customer_id,
                ct_type_id=data.ct_type_id,
                period_from=data.period_from,
                period_to=data.period_to,
                due_date=data.due_date,
                status=data.status,
                user_id=data.user_id,
            )
        )
        return _period_dto(period)

    @post("/mark-overdue", status_code=HTTP_200_OK, opt=_EDIT)
    async def mark_overdue(
        self,
        filing_period_store: FilingPeriodStore,
        as_of: date | None = Parameter(
            default=None,
            description="Reference date; defaults to today",
        ),
    ) -> list[FilingPeriodDTO]:
        """Mark open periods past their due date as Overdue.

        Args:
            filing_period_store: Injected filing period store.
            as_of: Reference date.

        Returns:
            The periods that changed status.
        """
        periods = await filing_period_store.mark_overdue(as_of or date.today())
        return [_period_dto(period) for period in periods]

    @get("/{period_id:uuid}", opt=_VIEW)
    async def get_period(self, period_id: UUID, filing_period_store: FilingPeriodStore) -> FilingPeriodDTO:
        """Get a filing period.

        Args:
            period_id: The period ID.
            filing_period_store: Injected filing period store.

        Returns:
            Filing period DTO.
        """
        return _period_dto(await filing_period_store.get(period_id))

    @put("/{period_id:uuid}", dto=None, return_dto=None, opt=_EDIT)
    async def update_period(
        self,
        period_id: UUID,
        data: UpdateFilingPeriodDTO,
        filing_period_store: FilingPeriodStore,
    ) -> FilingPeriodDTO:
        """Update a period's dates or status.

        Args:
            period_id: The period ID.
            data: Fields to change.
            filing_period_store: Injected filing period store.

        Returns:
            Updated filing period DTO.
        """
        period = await filing_period_store.update(
            period_id,
            FilingPeriodUpdate(
                period_from=data.period_from,
                period_to=data.period_to,
                due_date=data.due_date,
                status=data.status,
            ),
        )
        return _period_dto(period)

    @delete("/{period_id:uuid}", opt=_EDIT)
    async def delete_period(self, period_id: UUID, filing_period_store: FilingPeriodStore) -> None:
        """Delete a period with its conversion attempts and workflow steps.

        Args:
            period_id: The period ID.
            filing_period_store: Injected filing period store.
        """
        await filing_period_store.delete(period_id)


class ConversionAttemptController(Controller):
    """API controller for conversion attempts.

    Tags: Conversion Attempts
    """

    path = "/conversions"
    tags: ClassVar[list[str]] = ["Conversion Attempts"]

    @get("/", opt=_VIEW)
    async def list_attempts(
        self,
        conversion_attempt_manager: ConversionAttemptManager,
        period_id: UUID = Parameter(description="Filing period the attempts run against"),
        ct_type_id: UUID = Parameter(description="CT type of the workflow"),
    ) -> list[ConversionAttemptDTO]:
        """List a period's attempts, newest first.

        Args:
            conversion_attempt_manager: Injected attempt manager.
            period_id: Filing period ID.
            ct_type_id: CT type ID.

        Returns:
            List of conversion attempt DTOs.
        """
        attempts = await conversion_attempt_manager.list(period_id, ct_type_id)
        return [_attempt_dto(attempt) for attempt in attempts]

    @post("/", dto=None, return_dto=None, opt=_EDIT)
    async def create_attempt(
        self,
        data: CreateConversionAttemptDTO,
        conversion_attempt_manager: ConversionAttemptManager,
    ) -> ConversionAttemptDTO:
        """Start a new conversion attempt.

        Args:
            data: Attempt parameters.
            conversion_attempt_manager: Injected attempt manager.

        Returns:
            The created conversion attempt DTO.
        """
        attempt = await conversion_attempt_manager.create(
            data.period_id,
            data.ct_type_id,
            data.user_id,
            name=data.name,
        )
        return _attempt_dto(attempt)

    @get("/{attempt_id:uuid}", opt=_VIEW)
    async def get_attempt(
        self,
        attempt_id: UUID,
        conversion_attempt_manager: ConversionAttemptManager,
    ) -> ConversionAttemptDTO:
        """Get a conversion attempt.

        Args:
            attempt_id: The attempt ID.
            conversion_attempt_manager: Injected attempt manager.

        Returns:
            Conversion attempt DTO.
        """
        return _attempt_dto(await conversion_attempt_manager.get(attempt_id))

    @put("/{attempt_id:uuid}", dto=None, return_dto=None, opt=_EDIT)
    async def update_attempt(
        self,
        attempt_id: UUID,
        data: UpdateConversionAttemptDTO,
        conversion_attempt_manager: ConversionAttemptManager,
    ) -> ConversionAttemptDTO:
        """Change an attempt's status or name.

        Args:
            attempt_id: The attempt ID.
            data: Fields to change.
            conversion_attempt_manager: Injected attempt manager.

        Returns:
            Updated conversion attempt DTO.
        """
        attempt = await conversion_attempt_manager.update(attempt_id, status=data.status, name=data.name)
        return _attempt_dto(attempt)

    @delete("/{attempt_id:uuid}", opt=_EDIT)
    async def delete_attempt(
        self,
        attempt_id: UUID,
        conversion_attempt_manager: ConversionAttemptManager,
    ) -> None:
        """Delete a conversion attempt.

        Args:
            attempt_id: The attempt ID.
            conversion_attempt_manager: Injected attempt manager.
        """
        await conversion_attempt_manager.delete(attempt_id)


class WorkflowStepController(Controller):
    """API controller for workflow step data.

    Tags: Workflow Steps
    """

    path = "/workflow"
    tags: ClassVar[list[str]] = ["Workflow Steps"]

    @get("/", opt=_VIEW)
    async def list_steps(
        self,
        workflow_step_store: WorkflowStepStore,
        period_id: UUID = Parameter(description="Filing period the steps belong to"),
        ct_type_id: UUID = Parameter(description="CT type of the workflow"),
    ) -> list[WorkflowStepDTO]:
        """List a period's saved steps ordered by step number.

        Args:
            workflow_step_store: Injected workflow step store.
            period_id: Filing period ID.
            ct_type_id: CT type ID.

        Returns:
            List of workflow step DTOs.
        """
        return [_step_dto(step) for step in await workflow_step_store.list_by_period(period_id, ct_type_id)]

    @post("/upsert", dto=None, return_dto=None, status_code=HTTP_200_OK, opt=_EDIT)
    async def upsert_step(
        self,
        data: UpsertWorkflowStepDTO,
        workflow_step_store: WorkflowStepStore,
    ) -> WorkflowStepDTO:
        """Save or overwrite a step's data and status.

        Args:
            data: Step data to save.
            workflow_step_store: Injected workflow step store.

        Returns:
            The stored workflow step DTO.
        """
        step = await workflow_step_store.upsert(
            WorkflowStepRecord(
                customer_id=data.customer_id,
                ct_type_id=data.ct_type_id,
                period_id=data.period_id,
                step_number=data.step_number,
                step_key=data.step_key,
                data=data.data or {},
                status=data.status,
                user_id=data.user_id,
            )
        )
        return _step_dto(step)
