"""Core type definitions for litestar-ct-filing.

This module defines the status enums and type aliases shared by the calculator,
the stores, and the web layer.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        def __str__(self) -> str:
            return str(self.value)


from typing import TypeAlias

__all__ = [
    "ConversionStatus",
    "FilingPeriodStatus",
    "StepData",
    "WorkflowStepStatus",
]


class FilingPeriodStatus(StrEnum):
    """Lifecycle status of a filing period.

    Values match the labels operators see, so they round-trip through the API
    unchanged.

    Attributes:
        NOT_STARTED: No conversion attempt has been created yet.
        IN_PROGRESS: At least one attempt is being worked on.
        COMPLETED: The filing work is done but not yet lodged.
        SUBMITTED: The filing has been lodged.
        OVERDUE: The due date passed before the filing was completed.
    """

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    SUBMITTED = "Submitted"
    OVERDUE = "Overdue"

    @property
    def is_open(self) -> bool:
        """Whether the period still has outstanding work."""
        return self in (FilingPeriodStatus.NOT_STARTED, FilingPeriodStatus.IN_PROGRESS)


class ConversionStatus(StrEnum):
    """Coarse status of a conversion attempt.

    Attributes:
        DRAFT: Freshly created, nothing saved yet.
        IN_PROGRESS: Steps are being worked through.
        COMPLETED: All steps are complete.
        SUBMITTED: The attempt was used for the lodged filing.
    """

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SUBMITTED = "submitted"


class WorkflowStepStatus(StrEnum):
    """Status of a single workflow step.

    Steps move ``draft -> completed -> submitted``. ``submitted`` is terminal:
    once a step is submitted it can only be re-saved as submitted.

    Attributes:
        DRAFT: Data saved but not confirmed.
        COMPLETED: The user confirmed the step.
        SUBMITTED: The step is frozen for export and filing.
    """

    DRAFT = "draft"
    COMPLETED = "completed"
    SUBMITTED = "submitted"

    def can_transition_to(self, target: WorkflowStepStatus) -> bool:
        """Check whether a persisted step in this status may be saved as ``target``.

        Args:
            target: The status requested by the caller.

        Returns:
            False only when leaving ``submitted``.
        """
        return self is not WorkflowStepStatus.SUBMITTED or target is WorkflowStepStatus.SUBMITTED


# Type aliases for step payloads
StepData: TypeAlias = dict[str, Any]
"""Type alias for the opaque JSON payload stored on a workflow step."""
