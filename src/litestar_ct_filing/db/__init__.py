"""Database persistence layer for litestar-ct-filing.

This module provides SQLAlchemy models, repositories, and the stores that
implement the filing engine's operations on top of them.
"""

from __future__ import annotations

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
from litestar_ct_filing.db.stores import (
    ConversionAttemptManager,
    CtTypeStore,
    FilingPeriodStore,
    WorkflowStepStore,
)

__all__ = [
    "ConversionAttemptManager",
    "ConversionAttemptModel",
    "ConversionAttemptRepository",
    "CtTypeModel",
    "CtTypeRepository",
    "CtTypeStore",
    "FilingPeriodModel",
    "FilingPeriodRepository",
    "FilingPeriodStore",
    "WorkflowStepModel",
    "WorkflowStepRepository",
    "WorkflowStepStore",
]
