"""Litestar plugin for CT filing integration.

This module provides the CtFilingPlugin, which wires the filing stores into
Litestar's dependency injection and mounts the REST API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - needed for DI

from litestar_ct_filing.core.periods import PeriodCalculator
from litestar_ct_filing.db.stores import (
    ConversionAttemptManager,
    CtTypeStore,
    FilingPeriodStore,
    WorkflowStepStore,
)
from litestar_ct_filing.exceptions import CtFilingError
from litestar_ct_filing.web.exceptions import ct_filing_error_handler

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from litestar_ct_filing.core.protocols import PermissionChecker

__all__ = ["CtFilingPlugin", "CtFilingPluginConfig"]


@dataclass
class CtFilingPluginConfig:
    """Configuration for the CtFilingPlugin.

    Attributes:
        calculator: Optional pre-configured PeriodCalculator. If not provided,
            one is built from ``period_years`` and ``due_months``.
        period_years: Length of a filing period in years. Defaults to 1.
        due_months: Months after the period end at which filing is due.
            Defaults to 9.
        permission_checker: Optional callable deciding whether a connection may
            view or edit filing data. When set, every API handler is guarded.
        store_auto_commit: Whether injected stores commit after each write.
            Defaults to True.
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for all CT filing endpoints.
            Defaults to "/ct".
        api_guards: List of Litestar guards to apply to all CT filing endpoints.
        api_tags: OpenAPI tags to apply to CT filing endpoints.
        include_api_in_schema: Whether to include API endpoints in OpenAPI schema.
            Defaults to True.
    """

    calculator: PeriodCalculator | None = None
    period_years: int = 1
    due_months: int = 9
    permission_checker: PermissionChecker | None = None
    store_auto_commit: bool = True
    enable_api: bool = True
    api_path_prefix: str = "/ct"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["CT Filing"])
    include_api_in_schema: bool = True


class CtFilingPlugin(InitPluginProtocol):
    """Litestar plugin for CT filing.

    The plugin expects an ``AsyncSession`` dependency, such as the one provided
    by advanced-alchemy's ``SQLAlchemyPlugin``, and builds the filing stores on
    top of it for each request.

    Example:
        Basic usage::

            from advanced_alchemy.extensions.litestar import (
                SQLAlchemyAsyncConfig,
                SQLAlchemyPlugin,
            )
            from litestar import Litestar
            from litestar_ct_filing import CtFilingPlugin, CtFilingPluginConfig

            app = Litestar(
                plugins=[
                    SQLAlchemyPlugin(
                        config=SQLAlchemyAsyncConfig(connection_string="sqlite+aiosqlite:///ct.db")
                    ),
                    CtFilingPlugin(config=CtFilingPluginConfig(due_months=12)),
                ]
            )

        Using a store in your own route handler::

            from litestar import get
            from litestar_ct_filing.db import FilingPeriodStore


            @get("/customers/{customer_id:str}/next-period/{ct_type_id:uuid}")
            async def next_period(
                customer_id: str,
                ct_type_id: UUID,
                filing_period_store: FilingPeriodStore,
            ) -> dict:
                proposal = await filing_period_store.propose(customer_id, ct_type_id)
                return {"from": proposal.period_from, "to": proposal.period_to}
    """

    __slots__ = ("_calculator", "_config")

    def __init__(self, config: CtFilingPluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or CtFilingPluginConfig()
        self._calculator: PeriodCalculator | None = None

    @property
    def calculator(self) -> PeriodCalculator:
        """Get the period calculator.

        Returns:
            The PeriodCalculator instance.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._calculator is None:
            msg = "CtFilingPlugin has not been initialized. Access calculator after app startup."
            raise RuntimeError(msg)
        return self._calculator

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin when the Litestar app starts.

        This method:
        1. Creates or uses the provided PeriodCalculator
        2. Adds store providers to the app config
        3. Registers the domain error handler
        4. Optionally registers REST API controllers if enable_api=True

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.
        """
        config = self._config
        self._calculator = config.calculator or PeriodCalculator(
            period_years=config.period_years,
            due_months=config.due_months,
        )
        calculator = self._calculator
        auto_commit = config.store_auto_commit

        def provide_ct_type_store(db_session: AsyncSession) -> CtTypeStore:
            return CtTypeStore(db_session, auto_commit=auto_commit)

        def provide_filing_period_store(db_session: AsyncSession) -> FilingPeriodStore:
            return FilingPeriodStore(db_session, calculator=calculator, auto_commit=auto_commit)

        def provide_conversion_attempt_manager(db_session: AsyncSession) -> ConversionAttemptManager:
            return ConversionAttemptManager(db_session, auto_commit=auto_commit)

        def provide_workflow_step_store(db_session: AsyncSession) -> WorkflowStepStore:
            return WorkflowStepStore(db_session, auto_commit=auto_commit)

        app_config.dependencies["ct_type_store"] = Provide(provide_ct_type_store, sync_to_thread=False)
        app_config.dependencies["filing_period_store"] = Provide(provide_filing_period_store, sync_to_thread=False)
        app_config.dependencies["conversion_attempt_manager"] = Provide(
            provide_conversion_attempt_manager,
            sync_to_thread=False,
        )
        app_config.dependencies["workflow_step_store"] = Provide(provide_workflow_step_store, sync_to_thread=False)

        app_config.exception_handlers[CtFilingError] = ct_filing_error_handler  # type: ignore[assignment]

        # Register REST API controllers if enabled
        if config.enable_api:
            from litestar import Router

            from litestar_ct_filing.web.controllers import (
                ConversionAttemptController,
                CtTypeController,
                FilingPeriodController,
                WorkflowStepController,
            )
            from litestar_ct_filing.web.guards import permission_guard

            guards = list(config.api_guards)
            if config.permission_checker is not None:
                guards.append(permission_guard(config.permission_checker))

            ct_router = Router(
                path=config.api_path_prefix,
                route_handlers=[
                    CtTypeController,
                    FilingPeriodController,
                    ConversionAttemptController,
                    WorkflowStepController,
                ],
                guards=guards,
                tags=config.api_tags,
                include_in_schema=config.include_api_in_schema,
            )
            app_config.route_handlers.append(ct_router)

        return app_config
