"""Exception hierarchy for litestar-ct-filing.

Errors fall into three families that callers can catch independently:

- :class:`ValidationError` for malformed or logically inconsistent input.
- :class:`NotFoundError` for unknown type slugs, periods, or attempts.
- :class:`ConflictError` for writes that collide with persisted state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date
    from uuid import UUID

__all__ = (
    "ConflictError",
    "ConversionAttemptNotFoundError",
    "CtFilingError",
    "CtTypeNotFoundError",
    "FilingPeriodNotFoundError",
    "InvalidDateFormatError",
    "InvalidPeriodError",
    "NotFoundError",
    "PeriodOverlapError",
    "StatusRegressionError",
    "StepsNotSubmittedError",
    "ValidationError",
)


class CtFilingError(Exception):
    """Base exception for all litestar-ct-filing errors.

    All exceptions raised by litestar-ct-filing inherit from this class, so a
    caller can handle every filing error with a single except clause.
    """


class ValidationError(CtFilingError):
    """Raised when input is malformed or logically inconsistent."""


class InvalidDateFormatError(ValidationError):
    """Raised when a date string is neither ISO nor ``dd/mm/yyyy``.

    Attributes:
        value: The rejected input.
    """

    def __init__(self, value: str) -> None:
        """Initialize the exception with the rejected value.

        Args:
            value: The date string that could not be parsed.
        """
        self.value = value
        super().__init__(f"Unrecognised date '{value}', expected yyyy-mm-dd or dd/mm/yyyy")


class InvalidPeriodError(ValidationError):
    """Raised when filing period dates violate their ordering rules.

    A period must end after it starts, and its due date cannot precede its end.

    Attributes:
        period_from: First day of the period.
        period_to: Last day of the period.
        due_date: Statutory due date, if known.
    """

    def __init__(
        self,
        period_from: date,
        period_to: date,
        due_date: date | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize the exception with the offending dates.

        Args:
            period_from: First day of the period.
            period_to: Last day of the period.
            due_date: Statutory due date, if known.
            reason: Additional context about which rule was broken.
        """
        self.period_from = period_from
        self.period_to = period_to
        self.due_date = due_date
        msg = f"Invalid filing period {period_from.isoformat()} to {period_to.isoformat()}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotFoundError(CtFilingError):
    """Raised when a referenced entity does not exist."""


class CtTypeNotFoundError(NotFoundError):
    """Raised when a CT type cannot be resolved.

    Attributes:
        reference: The slug or identifier that failed to resolve.
    """

    def __init__(self, reference: str | UUID) -> None:
        """Initialize the exception with the unresolved reference.

        Args:
            reference: The slug or identifier that failed to resolve.
        """
        self.reference = reference
        super().__init__(f"CT type '{reference}' not found")


class FilingPeriodNotFoundError(NotFoundError):
    """Raised when a filing period is not found.

    Attributes:
        period_id: The ID of the filing period that was not found.
    """

    def __init__(self, period_id: str | UUID) -> None:
        """Initialize the exception with period details.

        Args:
            period_id: The ID of the filing period that was not found.
        """
        self.period_id = period_id
        super().__init__(f"Filing period '{period_id}' not found")


class ConversionAttemptNotFoundError(NotFoundError):
    """Raised when a conversion attempt is not found.

    Attributes:
        attempt_id: The ID of the conversion attempt that was not found.
    """

    def __init__(self, attempt_id: str | UUID) -> None:
        """Initialize the exception with attempt details.

        Args:
            attempt_id: The ID of the conversion attempt that was not found.
        """
        self.attempt_id = attempt_id
        super().__init__(f"Conversion attempt '{attempt_id}' not found")


class ConflictError(CtFilingError):
    """Raised when a write conflicts with persisted state."""


class StatusRegressionError(ConflictError):
    """Raised when a submitted workflow step would move back to an earlier status.

    Attributes:
        period_id: The period owning the step.
        step_number: The step's position in the workflow.
        current_status: The persisted status.
        requested_status: The status the caller attempted to save.
    """

    def __init__(
        self,
        period_id: UUID,
        step_number: int,
        current_status: str,
        requested_status: str,
    ) -> None:
        """Initialize the exception with transition details.

        Args:
            period_id: The period owning the step.
            step_number: The step's position in the workflow.
            current_status: The persisted status.
            requested_status: The status the caller attempted to save.
        """
        self.period_id = period_id
        self.step_number = step_number
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Step {step_number} of period '{period_id}' is {current_status} and cannot move to {requested_status}"
        )


class PeriodOverlapError(ConflictError):
    """Raised when a filing period overlaps another period of the same customer and type.

    Attributes:
        existing_id: The ID of the period that is overlapped.
    """

    def __init__(self, existing_id: UUID) -> None:
        """Initialize the exception with the overlapped period.

        Args:
            existing_id: The ID of the period that is overlapped.
        """
        self.existing_id = existing_id
        super().__init__(f"Filing period overlaps existing period '{existing_id}'")


class StepsNotSubmittedError(ConflictError):
    """Raised when exporting a filing whose steps are not all submitted.

    Attributes:
        period_id: The period being exported.
        pending_steps: Step numbers that have not reached ``submitted``.
    """

    def __init__(self, period_id: UUID, pending_steps: list[int]) -> None:
        """Initialize the exception with the unfinished steps.

        Args:
            period_id: The period being exported.
            pending_steps: Step numbers that have not reached ``submitted``.
        """
        self.period_id = period_id
        self.pending_steps = pending_steps
        msg = f"Filing period '{period_id}' cannot be exported"
        if pending_steps:
            msg += f": steps {', '.join(str(n) for n in pending_steps)} are not submitted"
        else:
            msg += ": no workflow steps have been saved"
        super().__init__(msg)
