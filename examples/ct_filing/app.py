"""Example of litestar-ct-filing integration.

This example runs the CT filing API on SQLite, seeds the four canonical CT
types on startup, and adds a JSON export endpoint on top of the
WorkflowStepStore.

Run with:
    cd examples/ct_filing
    litestar run

Or:
    uvicorn app:app --reload

Try:
    # Resolve a route slug
    curl http://localhost:8000/ct/types/resolve/type4

    # Propose a first period from a customer's anchor date
    curl "http://localhost:8000/ct/filing-periods/proposal?customer_id=C-1&ct_type_id=<id>&anchor_date=01/04/2024"

    # Export once every step is submitted
    curl "http://localhost:8000/filings/<period_id>/export?ct_type_id=<id>"
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any
from uuid import UUID

from advanced_alchemy.base import UUIDAuditBase
from litestar import Litestar, MediaType, Response, get
from litestar.openapi import OpenAPIConfig
from litestar.plugins.sqlalchemy import SQLAlchemyAsyncConfig, SQLAlchemyPlugin

from litestar_ct_filing import CtFilingPlugin, CtFilingPluginConfig
from litestar_ct_filing.core.registry import canonical_type_name
from litestar_ct_filing.db import CtTypeStore, WorkflowStepStore

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./ct_filing.db"
CT_TYPE_NUMBERS = (1, 2, 3, 4)


class JsonExporter:
    """Renders a filing payload as indented JSON."""

    def export(self, payload: dict[str, Any]) -> bytes:
        return json.dumps(payload, indent=2, sort_keys=True, default=str).encode()


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@get("/filings/{period_id:uuid}/export", media_type=MediaType.JSON)
async def export_filing(
    period_id: UUID,
    ct_type_id: UUID,
    workflow_step_store: WorkflowStepStore,
) -> Response[bytes]:
    """Export a filing whose steps are all submitted."""
    artifact = await workflow_step_store.export(period_id, ct_type_id, JsonExporter())
    return Response(content=artifact, media_type=MediaType.JSON)


def create_app(database_url: str | None = None) -> Litestar:
    """Build the example application.

    Args:
        database_url: SQLAlchemy URL; defaults to ``CT_FILING_DATABASE_URL`` or
            a local SQLite file.

    Returns:
        The configured Litestar app.
    """
    sqlalchemy_config = SQLAlchemyAsyncConfig(
        connection_string=database_url or os.environ.get("CT_FILING_DATABASE_URL", DEFAULT_DATABASE_URL),
        metadata=UUIDAuditBase.metadata,
    )

    async def seed_ct_types(_: Litestar) -> None:
        async with sqlalchemy_config.get_engine().begin() as conn:
            await conn.run_sync(UUIDAuditBase.metadata.create_all)

        session_maker = sqlalchemy_config.create_session_maker()
        async with session_maker() as session:
            store = CtTypeStore(session, auto_commit=True)
            for number in CT_TYPE_NUMBERS:
                await store.add(canonical_type_name(number))
        logger.info("Seeded %d CT types", len(CT_TYPE_NUMBERS))

    return Litestar(
        route_handlers=[health_check, export_filing],
        on_startup=[seed_ct_types],
        plugins=[
            SQLAlchemyPlugin(config=sqlalchemy_config),
            CtFilingPlugin(config=CtFilingPluginConfig(due_months=9)),
        ],
        openapi_config=OpenAPIConfig(
            title="Litestar CT Filing - Example",
            version="1.0.0",
            description="Filing periods, conversion attempts, and workflow steps for CT filing.",
        ),
        debug=True,
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)
