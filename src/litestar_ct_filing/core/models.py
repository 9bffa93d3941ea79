"""Concrete data models for litestar-ct-filing.

This module provides the dataclasses that carry input into the stores and the
calculator's suggestions back out of it. Persisted rows live in
:mod:`litestar_ct_filing.db.models`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from litestar_ct_filing.core.types import FilingPeriodStatus, WorkflowStepStatus

if TYPE_CHECKING:
    from litestar_ct_filing.core.types import StepData


__all__ = [
    "FilingPeriodData",
    "FilingPeriodUpdate",
    "ProposedPeriod",
    "WorkflowStepRecord",
]


@dataclass(frozen=True)
class ProposedPeriod:
    """Dates suggested for a new filing period.

    The caller may still edit these before persisting them.

    Attributes:
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory filing due date.
    """

    period_from: date
    period_to: date
    due_date: date


@dataclass
class FilingPeriodData:
    """Input for creating a filing period.

    Attributes:
        customer_id: Identifier of the customer the period belongs to.
        ct_type_id: CT type the period is filed under.
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory filing due date.
        status: Initial status.
        user_id: Optional user who created the period.
    """

    customer_id: str
    ct_type_id: UUID
    period_from: date
    period_to: date
    due_date: date
    status: FilingPeriodStatus = FilingPeriodStatus.NOT_STARTED
    user_id: str | None = None


@dataclass
class FilingPeriodUpdate:
    """Partial update of a filing period; ``None`` fields are left untouched."""

    period_from: date | None = None
    period_to: date | None = None
    due_date: date | None = None
    status: FilingPeriodStatus | None = None


@dataclass
class WorkflowStepRecord:
    """Step data to upsert for a ``(period_id, ct_type_id, step_number)`` key.

    Attributes:
        customer_id: Customer owning the period.
        ct_type_id: CT type of the workflow.
        period_id: Filing period the step belongs to.
        step_number: One-based position of the step in the workflow.
        step_key: Stable name of the step, e.g. ``"opening_balances"``.
        data: Opaque JSON payload, replaced wholesale on every upsert.
        status: Lifecycle status to store.
        user_id: Optional user performing the save.
    """

    customer_id: str
    ct_type_id: UUID
    period_id: UUID
    step_number: int
    step_key: str
    data: StepData = field(default_factory=dict)
    status: WorkflowStepStatus = WorkflowStepStatus.DRAFT
    user_id: str | None = None
