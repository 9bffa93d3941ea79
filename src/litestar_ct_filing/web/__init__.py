"""REST API for CT filing.

The API is registered by :class:`~litestar_ct_filing.plugin.CtFilingPlugin`
when ``enable_api=True`` (the default). It exposes CT types, filing periods,
conversion attempts, and workflow step data under the configured prefix.

Example:
    With a permission checker::

        from litestar import Litestar
        from litestar_ct_filing import CtFilingPlugin, CtFilingPluginConfig


        def has_permission(connection, action):
            return action in connection.user.permissions


        app = Litestar(
            plugins=[
                CtFilingPlugin(
                    config=CtFilingPluginConfig(
                        api_path_prefix="/api/ct",
                        permission_checker=has_permission,
                    )
                ),
            ],
        )
"""

from __future__ import annotations

from litestar_ct_filing.web.controllers import (
    ConversionAttemptController,
    CtTypeController,
    FilingPeriodController,
    WorkflowStepController,
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
from litestar_ct_filing.web.exceptions import ct_filing_error_handler, error_status
from litestar_ct_filing.web.guards import EDIT_PERMISSION, VIEW_PERMISSION, permission_guard

__all__ = [
    "EDIT_PERMISSION",
    "VIEW_PERMISSION",
    "ConversionAttemptController",
    "ConversionAttemptDTO",
    "CreateConversionAttemptDTO",
    "CreateFilingPeriodDTO",
    "CtTypeController",
    "CtTypeDTO",
    "CtTypeMatchDTO",
    "FilingPeriodController",
    "FilingPeriodDTO",
    "ProposedPeriodDTO",
    "UpdateConversionAttemptDTO",
    "UpdateFilingPeriodDTO",
    "UpsertWorkflowStepDTO",
    "WorkflowStepController",
    "WorkflowStepDTO",
    "ct_filing_error_handler",
    "error_status",
    "permission_guard",
]
