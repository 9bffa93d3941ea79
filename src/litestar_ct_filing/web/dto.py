"""Data Transfer Objects for the CT filing web API.

This module defines DTOs for serializing and deserializing filing data
in REST API requests and responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from litestar_ct_filing.core.types import ConversionStatus, FilingPeriodStatus, WorkflowStepStatus

__all__ = [
    "ConversionAttemptDTO",
    "CreateConversionAttemptDTO",
    "CreateFilingPeriodDTO",
    "CtTypeDTO",
    "CtTypeMatchDTO",
    "FilingPeriodDTO",
    "ProposedPeriodDTO",
    "UpdateConversionAttemptDTO",
    "UpdateFilingPeriodDTO",
    "UpsertWorkflowStepDTO",
    "WorkflowStepDTO",
]


@dataclass
class CtTypeDTO:
    """DTO for a CT type.

    Attributes:
        id: CT type ID.
        name: Display name.
    """

    id: UUID
    name: str


@dataclass
class CtTypeMatchDTO:
    """DTO for a slug resolved to a CT type.

    Attributes:
        id: CT type ID.
        name: Display name.
        slug: The slug that was resolved.
        strategy: Which matching tier succeeded.
    """

    id: UUID
    name: str
    slug: str
    strategy: str


@dataclass
class FilingPeriodDTO:
    """DTO for a filing period.

    Attributes:
        id: Period ID.
        customer_id: Owning customer.
        ct_type_id: CT type the period is filed under.
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory due date.
        status: Lifecycle status label.
        user_id: User who created the period.
        created_at: When the period was created.
    """

    id: UUID
    customer_id: str
    ct_type_id: UUID
    period_from: date
    period_to: date
    due_date: date
    status: str
    user_id: str | None = None
    created_at: datetime | None = None


@dataclass
class CreateFilingPeriodDTO:
    """DTO for creating a filing period."""

    customer_id: str
    ct_type_id: UUID
    period_from: date
    period_to: date
    due_date: date
    status: FilingPeriodStatus = FilingPeriodStatus.NOT_STARTED
    user_id: str | None = None


@dataclass
class UpdateFilingPeriodDTO:
    """DTO for a partial filing period update; omitted fields are unchanged."""

    period_from: date | None = None
    period_to: date | None = None
    due_date: date | None = None
    status: FilingPeriodStatus | None = None


@dataclass
class ProposedPeriodDTO:
    """DTO for suggested period dates.

    Attributes:
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory due date.
    """

    period_from: date
    period_to: date
    due_date: date


@dataclass
class ConversionAttemptDTO:
    """DTO for a conversion attempt.

    Attributes:
        id: Attempt ID.
        period_id: Filing period the attempt runs against.
        ct_type_id: CT type of the workflow.
        user_id: Owning user.
        name: Display name.
        status: Coarse status.
        created_at: When the attempt was started.
    """

    id: UUID
    period_id: UUID
    ct_type_id: UUID
    user_id: str
    name: str
    status: str
    created_at: datetime


@dataclass
class CreateConversionAttemptDTO:
    """DTO for starting a conversion attempt.

    Attributes:
        period_id: Filing period to run against.
        ct_type_id: CT type of the workflow.
        user_id: Owning user.
        name: Optional display name; defaults to ``"Conversion {n}"``.
    """

    period_id: UUID
    ct_type_id: UUID
    user_id: str
    name: str | None = None


@dataclass
class UpdateConversionAttemptDTO:
    """DTO for changing a conversion attempt's status or name."""

    status: ConversionStatus | None = None
    name: str | None = None


@dataclass
class WorkflowStepDTO:
    """DTO for a saved workflow step.

    Attributes:
        id: Record ID.
        customer_id: Owning customer.
        ct_type_id: CT type of the workflow.
        period_id: Filing period.
        step_number: One-based step position.
        step_key: Stable step name.
        data: Step payload.
        status: Step status.
        user_id: User who last saved the step.
        updated_at: When the step was last saved.
    """

    id: UUID
    customer_id: str
    ct_type_id: UUID
    period_id: UUID
    step_number: int
    step_key: str
    data: dict[str, Any]
    status: str
    user_id: str | None
    updated_at: datetime


@dataclass
class UpsertWorkflowStepDTO:
    """DTO for saving a workflow step."""

    customer_id: str
    ct_type_id: UUID
    period_id: UUID
    step_number: int
    step_key: str
    data: dict[str, Any] | None = None
    status: WorkflowStepStatus = WorkflowStepStatus.DRAFT
    user_id: str | None = None
