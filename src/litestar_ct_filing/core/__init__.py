"""Core domain logic for litestar-ct-filing.

This package holds everything that does not touch the database: status enums,
input dataclasses, the filing period calculator, CT type resolution, and the
collaborator protocols.
"""

from __future__ import annotations

from litestar_ct_filing.core.models import (
    FilingPeriodData,
    FilingPeriodUpdate,
    ProposedPeriod,
    WorkflowStepRecord,
)
from litestar_ct_filing.core.periods import PeriodCalculator, normalize_anchor_date
from litestar_ct_filing.core.protocols import FilingExporter, PermissionChecker
from litestar_ct_filing.core.registry import (
    MatchStrategy,
    TypeMatch,
    canonical_type_name,
    match_ct_type,
    resolve_ct_type,
)
from litestar_ct_filing.core.types import (
    ConversionStatus,
    FilingPeriodStatus,
    StepData,
    WorkflowStepStatus,
)

__all__ = [
    "ConversionStatus",
    "FilingExporter",
    "FilingPeriodData",
    "FilingPeriodStatus",
    "FilingPeriodUpdate",
    "MatchStrategy",
    "PeriodCalculator",
    "PermissionChecker",
    "ProposedPeriod",
    "StepData",
    "TypeMatch",
    "WorkflowStepRecord",
    "WorkflowStepStatus",
    "canonical_type_name",
    "match_ct_type",
    "normalize_anchor_date",
    "resolve_ct_type",
]
