"""Litestar CT Filing - corporation tax filing workflows for Litestar.

This package tracks statutory filing periods per customer and CT type, the
conversion attempts run against them, and the data saved at each step of the
filing workflow.

Key Features:
    - Filing period proposal with leap-year aware anniversaries
    - Overlap-free period storage per customer and CT type
    - Independent conversion attempts with default naming
    - Idempotent workflow step saves that never regress a submitted step
    - CT type resolution from route slugs such as ``type4``
    - REST API and dependency injection through a Litestar plugin

Example:
    >>> from litestar_ct_filing.core import PeriodCalculator
    >>>
    >>> from datetime import date
    >>> proposal = PeriodCalculator().compute_next(date(2024, 12, 31))
    >>> proposal.period_from, proposal.period_to, proposal.due_date
    (datetime.date(2025, 1, 1), datetime.date(2025, 12, 31), datetime.date(2026, 9, 30))
"""

from __future__ import annotations

from litestar_ct_filing.__metadata__ import __project__, __version__
from litestar_ct_filing.exceptions import (
    ConflictError,
    ConversionAttemptNotFoundError,
    CtFilingError,
    CtTypeNotFoundError,
    FilingPeriodNotFoundError,
    InvalidDateFormatError,
    InvalidPeriodError,
    NotFoundError,
    PeriodOverlapError,
    StatusRegressionError,
    StepsNotSubmittedError,
    ValidationError,
)
from litestar_ct_filing.plugin import CtFilingPlugin, CtFilingPluginConfig

__all__ = (
    "ConflictError",
    "ConversionAttemptNotFoundError",
    "CtFilingError",
    "CtFilingPlugin",
    "CtFilingPluginConfig",
    "CtTypeNotFoundError",
    "FilingPeriodNotFoundError",
    "InvalidDateFormatError",
    "InvalidPeriodError",
    "NotFoundError",
    "PeriodOverlapError",
    "StatusRegressionError",
    "StepsNotSubmittedError",
    "ValidationError",
    "__project__",
    "__version__",
)
