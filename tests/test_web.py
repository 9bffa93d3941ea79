"""Controller integration tests for the CT filing REST API.

Tests the endpoints registered by CtFilingPlugin against an async SQLite
in-memory database with the Litestar TestClient.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest
from advanced_alchemy.base import UUIDAuditBase
from litestar import Litestar
from litestar.di import Provide
from litestar.plugins.sqlalchemy import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)
from litestar.testing import AsyncTestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_ct_filing import CtFilingPlugin, CtFilingPluginConfig
from litestar_ct_filing.db.stores import CtTypeStore
from litestar_ct_filing.web.guards import EDIT_PERMISSION, VIEW_PERMISSION

if TYPE_CHECKING:
    from pathlib import Path


def create_test_app(
    session_maker: async_sessionmaker[AsyncSession],
    config: CtFilingPluginConfig | None = None,
) -> Litestar:
    """Create Litestar app with a session dependency for testing."""

    async def provide_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    return Litestar(
        plugins=[CtFilingPlugin(config=config)],
        dependencies={"db_session": Provide(provide_session)},
    )


def header_permissions(connection: Any, action: str) -> bool:
    """Grant the permissions listed in the X-Permissions header."""
    return action in connection.headers.get("x-permissions", "").split(",")


@pytest.fixture
async def ct_type_ids(session_maker: async_sessionmaker[AsyncSession]) -> dict[str, str]:
    """Seed CT types and return their IDs by name."""
    async with session_maker() as session:
        store = CtTypeStore(session, auto_commit=True)
        types = [await store.add(name) for name in ("CT Type 1", "TYPE 4 WORKFLOW (AUDIT REPORT)")]
        return {ct_type.name: str(ct_type.id) for ct_type in types}


@pytest.fixture
def type1_id(ct_type_ids: dict[str, str]) -> str:
    """ID of CT Type 1."""
    return ct_type_ids["CT Type 1"]


@pytest.fixture
def app(session_maker: async_sessionmaker[AsyncSession]) -> Litestar:
    """App with the CT filing API mounted under /ct."""
    return create_test_app(session_maker)


def period_body(ct_type_id: str, **overrides: Any) -> dict[str, Any]:
    body = {
        "customer_id": "CUST-1",
        "ct_type_id": ct_type_id,
        "period_from": "2024-01-01",
        "period_to": "2024-12-31",
        "due_date": "2025-09-30",
        "user_id": "user-1",
    }
    body.update(overrides)
    return body


async def create_period(client: AsyncTestClient, ct_type_id: str, **overrides: Any) -> dict[str, Any]:
    response = await client.post("/ct/filing-periods", json=period_body(ct_type_id, **overrides))
    assert response.status_code == HTTP_201_CREATED, response.text
    return response.json()


def step_body(period: dict[str, Any], step_number: int, status: str = "draft", **data: Any) -> dict[str, Any]:
    return {
        "customer_id": period["customer_id"],
        "ct_type_id": period["ct_type_id"],
        "period_id": period["id"],
        "step_number": step_number,
        "step_key": f"step_{step_number}",
        "data": data,
        "status": status,
        "user_id": "user-1",
    }


# =============================================================================
# CtTypeController Tests
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestCtTypeController:
    """Tests for CT type endpoints."""

    async def test_list_types(self, app: Litestar, ct_type_ids: dict[str, str]) -> None:
        """All types are listed by name."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get("/ct/types")

            assert response.status_code == HTTP_200_OK
            assert [t["name"] for t in response.json()] == ["CT Type 1", "TYPE 4 WORKFLOW (AUDIT REPORT)"]

    async def test_resolve_renamed(self, app: Litestar, ct_type_ids: dict[str, str]) -> None:
        """type4 resolves to the renamed type."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get("/ct/types/resolve/type4")

            assert response.status_code == HTTP_200_OK
            data = response.json()
            assert data["id"] == ct_type_ids["TYPE 4 WORKFLOW (AUDIT REPORT)"]
            assert data["strategy"] == "word_boundary"
            assert data["slug"] == "type4"

    async def test_resolve_unknown(self, app: Litestar, ct_type_ids: dict[str, str]) -> None:
        """Unknown slugs are 404."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get("/ct/types/resolve/type9")

            assert response.status_code == HTTP_404_NOT_FOUND
            assert response.json()["error"] == "not_found"


# =============================================================================
# FilingPeriodController Tests
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestFilingPeriodController:
    """Tests for filing period endpoints."""

    async def test_create_and_get(self, app: Litestar, type1_id: str) -> None:
        """Created periods are returned with their status label."""
        async with AsyncTestClient(app=app) as client:
            created = await create_period(client, type1_id)

            assert created["status"] == "Not Started"
            assert created["period_to"] == "2024-12-31"

            response = await client.get(f"/ct/filing-periods/{created['id']}")
            assert response.status_code == HTTP_200_OK
            assert response.json()["due_date"] == "2025-09-30"

    async def test_list(self, app: Litestar, type1_id: str) -> None:
        """Periods are listed most recent first."""
        async with AsyncTestClient(app=app) as client:
            await create_period(client, type1_id)
            later = await create_period(
                client,
                type1_id,
                period_from="2025-01-01",
                period_to="2025-12-31",
                due_date="2026-09-30",
            )

            response = await client.get(
                "/ct/filing-periods",
                params={"customer_id": "CUST-1", "ct_type_id": type1_id},
            )

            assert response.status_code == HTTP_200_OK
            periods = response.json()
            assert len(periods) == 2
            assert periods[0]["id"] == later["id"]

    async def test_create_invalid_dates(self, app: Litestar, type1_id: str) -> None:
        """Inverted dates are a validation error."""
        async with AsyncTestClient(app=app) as client:
            response = await client.post(
                "/ct/filing-periods",
                json=period_body(type1_id, period_to="2023-12-31"),
            )

            assert response.status_code == HTTP_400_BAD_REQUEST
            assert response.json()["error"] == "validation_error"

    async def test_create_overlap(self, app: Litestar, type1_id: str) -> None:
        """Overlapping periods are a conflict."""
        async with AsyncTestClient(app=app) as client:
            await create_period(client, type1_id)

            response = await client.post(
                "/ct/filing-periods",
                json=period_body(type1_id, period_from="2024-06-01", period_to="2025-05-31", due_date="2026-02-28"),
            )

            assert response.status_code == HTTP_409_CONFLICT
            assert response.json()["error"] == "conflict"

    async def test_get_unknown(self, app: Litestar, type1_id: str) -> None:
        """Unknown periods are 404."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get(f"/ct/filing-periods/{uuid4()}")

            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_update(self, app: Litestar, type1_id: str) -> None:
        """Partial updates change only the given fields."""
        async with AsyncTestClient(app=app) as client:
            created = await create_period(client, type1_id)

            response = await client.put(f"/ct/filing-periods/{created['id']}", json={"status": "Completed"})

            assert response.status_code == HTTP_200_OK
            assert response.json()["status"] == "Completed"
            assert response.json()["period_from"] == "2024-01-01"

    async def test_delete(self, app: Litestar, type1_id: str) -> None:
        """Deleted periods are gone."""
        async with AsyncTestClient(app=app) as client:
            created = await create_period(client, type1_id)

            response = await client.delete(f"/ct/filing-periods/{created['id']}")
            assert response.status_code == HTTP_204_NO_CONTENT

            response = await client.get(f"/ct/filing-periods/{created['id']}")
            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_proposal_from_anchor(self, app: Litestar, type1_id: str) -> None:
        """Without periods the anchor seeds the proposal."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get(
                "/ct/filing-periods/proposal",
                params={"customer_id": "CUST-1", "ct_type_id": type1_id, "anchor_date": "01/04/2024"},
            )

            assert response.status_code == HTTP_200_OK
            assert response.json() == {
                "period_from": "2024-04-01",
                "period_to": "2025-03-31",
                "due_date": "2025-12-31",
            }

    async def test_proposal_chains(self, app: Litestar, type1_id: str) -> None:
        """With periods the proposal follows the latest one."""
        async with AsyncTestClient(app=app) as client:
            await create_period(client, type1_id)

            response = await client.get(
                "/ct/filing-periods/proposal",
                params={"customer_id": "CUST-1", "ct_type_id": type1_id},
            )

            assert response.json()["period_from"] == "2025-01-01"
            assert response.json()["due_date"] == "2026-09-30"

    @pytest.mark.parametrize("params", [{}, {"anchor_date": "April 2024"}])
    async def test_proposal_needs_valid_anchor(self, app: Litestar, type1_id: str, params: dict[str, str]) -> None:
        """A missing or malformed anchor is a validation error."""
        async with AsyncTestClient(app=app) as client:
            response = await client.get(
                "/ct/filing-periods/proposal",
                params={"customer_id": "CUST-1", "ct_type_id": type1_id, **params},
            )

            assert response.status_code == HTTP_400_BAD_REQUEST

    async def test_mark_overdue(self, app: Litestar, type1_id: str) -> None:
        """Open periods past due are returned as Overdue."""
        async with AsyncTestClient(app=app) as client:
            created = await create_period(client, type1_id)

            response = await client.post("/ct/filing-periods/mark-overdue", params={"as_of": "2025-10-01"})

            assert response.status_code == HTTP_200_OK
            assert [(p["id"], p["status"]) for p in response.json()] == [(created["id"], "Overdue")]


# =============================================================================
# ConversionAttemptController Tests
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestConversionAttemptController:
    """Tests for conversion attempt endpoints."""

    async def test_attempt_lifecycle(self, app: Litestar, type1_id: str) -> None:
        """Create, list, rename, and delete an attempt."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post(
                "/ct/conversions",
                json={"period_id": period["id"], "ct_type_id": type1_id, "user_id": "user-1"},
            )
            assert response.status_code == HTTP_201_CREATED
            attempt = response.json()
            assert attempt["name"] == "Conversion 1"
            assert attempt["status"] == "draft"

            period_now = (await client.get(f"/ct/filing-periods/{period['id']}")).json()
            assert period_now["status"] == "In Progress"

            response = await client.get(
                "/ct/conversions",
                params={"period_id": period["id"], "ct_type_id": type1_id},
            )
            assert [a["id"] for a in response.json()] == [attempt["id"]]

            response = await client.put(
                f"/ct/conversions/{attempt['id']}",
                json={"name": "Final run", "status": "in_progress"},
            )
            assert response.status_code == HTTP_200_OK
            assert response.json()["name"] == "Final run"
            assert response.json()["status"] == "in_progress"

            response = await client.delete(f"/ct/conversions/{attempt['id']}")
            assert response.status_code == HTTP_204_NO_CONTENT

            response = await client.get(f"/ct/conversions/{attempt['id']}")
            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_empty_update(self, app: Litestar, type1_id: str) -> None:
        """An update without fields is a validation error."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)
            attempt = (
                await client.post(
                    "/ct/conversions",
                    json={"period_id": period["id"], "ct_type_id": type1_id, "user_id": "user-1"},
                )
            ).json()

            response = await client.put(f"/ct/conversions/{attempt['id']}", json={})

            assert response.status_code == HTTP_400_BAD_REQUEST

    async def test_create_for_unknown_period(self, app: Litestar, type1_id: str) -> None:
        """Attempts against a missing period are 404."""
        async with AsyncTestClient(app=app) as client:
            response = await client.post(
                "/ct/conversions",
                json={"period_id": str(uuid4()), "ct_type_id": type1_id, "user_id": "user-1"},
            )

            assert response.status_code == HTTP_404_NOT_FOUND

    async def test_create_for_unknown_type(self, app: Litestar, type1_id: str) -> None:
        """Attempts with a missing CT type are 404."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post(
                "/ct/conversions",
                json={"period_id": period["id"], "ct_type_id": str(uuid4()), "user_id": "user-1"},
            )

            assert response.status_code == HTTP_404_NOT_FOUND
            assert response.json()["error"] == "not_found"

    async def test_create_for_other_type(self, app: Litestar, ct_type_ids: dict[str, str], type1_id: str) -> None:
        """Attempts must use the period's CT type."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post(
                "/ct/conversions",
                json={
                    "period_id": period["id"],
                    "ct_type_id": ct_type_ids["TYPE 4 WORKFLOW (AUDIT REPORT)"],
                    "user_id": "user-1",
                },
            )

            assert response.status_code == HTTP_400_BAD_REQUEST


# =============================================================================
# WorkflowStepController Tests
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestWorkflowStepController:
    """Tests for workflow step endpoints."""

    async def test_upsert_and_list(self, app: Litestar, type1_id: str) -> None:
        """Saving a step twice keeps one record with the latest data."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            first = await client.post("/ct/workflow/upsert", json=step_body(period, 1, turnover=100))
            second = await client.post("/ct/workflow/upsert", json=step_body(period, 1, turnover=150))

            assert first.status_code == HTTP_200_OK
            assert second.json()["id"] == first.json()["id"]

            response = await client.get(
                "/ct/workflow",
                params={"period_id": period["id"], "ct_type_id": type1_id},
            )
            steps = response.json()
            assert len(steps) == 1
            assert steps[0]["data"] == {"turnover": 150}

    async def test_submitted_step_cannot_regress(self, app: Litestar, type1_id: str) -> None:
        """Re-saving a submitted step as draft is a conflict."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)
            await client.post("/ct/workflow/upsert", json=step_body(period, 1, "submitted"))

            response = await client.post("/ct/workflow/upsert", json=step_body(period, 1, "draft"))

            assert response.status_code == HTTP_409_CONFLICT
            assert response.json()["error"] == "conflict"

    async def test_invalid_step_number(self, app: Litestar, type1_id: str) -> None:
        """Step numbers start at 1."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post("/ct/workflow/upsert", json=step_body(period, 0))

            assert response.status_code == HTTP_400_BAD_REQUEST

    async def test_upsert_unknown_type(self, app: Litestar, type1_id: str) -> None:
        """Steps with a missing CT type are 404."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post(
                "/ct/workflow/upsert",
                json={**step_body(period, 1), "ct_type_id": str(uuid4())},
            )

            assert response.status_code == HTTP_404_NOT_FOUND
            assert response.json()["error"] == "not_found"

    async def test_upsert_for_other_customer(self, app: Litestar, type1_id: str) -> None:
        """Steps must belong to the period's customer."""
        async with AsyncTestClient(app=app) as client:
            period = await create_period(client, type1_id)

            response = await client.post(
                "/ct/workflow/upsert",
                json={**step_body(period, 1), "customer_id": "CUST-2"},
            )

            assert response.status_code == HTTP_400_BAD_REQUEST


# =============================================================================
# SQLAlchemyPlugin Session Tests
# =============================================================================


@pytest.fixture
def plugin_session_config(tmp_path: Path) -> SQLAlchemyAsyncConfig:
    """SQLAlchemy config with the plugin's default session settings."""
    return SQLAlchemyAsyncConfig(
        connection_string=f"sqlite+aiosqlite:///{tmp_path / 'ct_filing.db'}",
        metadata=UUIDAuditBase.metadata,
    )


@pytest.fixture
def plugin_session_app(plugin_session_config: SQLAlchemyAsyncConfig) -> Litestar:
    """App whose stores run on sessions provided by SQLAlchemyPlugin."""

    async def create_tables(_: Litestar) -> None:
        async with plugin_session_config.get_engine().begin() as conn:
            await conn.run_sync(UUIDAuditBase.metadata.create_all)

    return Litestar(
        on_startup=[create_tables],
        plugins=[SQLAlchemyPlugin(config=plugin_session_config), CtFilingPlugin()],
    )


@pytest.mark.integration
@pytest.mark.asyncio
class TestSQLAlchemyPluginSession:
    """Writes through sessions that expire their objects on commit."""

    async def test_filing_writes(
        self,
        plugin_session_app: Litestar,
        plugin_session_config: SQLAlchemyAsyncConfig,
    ) -> None:
        """Every write endpoint returns the committed record."""
        async with AsyncTestClient(app=plugin_session_app) as client:
            async with plugin_session_config.create_session_maker()() as session:
                ct_type = await CtTypeStore(session, auto_commit=True).add("CT Type 1")
                type1_id = str(ct_type.id)

            period = await create_period(client, type1_id)
            assert period["status"] == "Not Started"

            response = await client.post(
                "/ct/conversions",
                json={"period_id": period["id"], "ct_type_id": type1_id, "user_id": "user-1"},
            )
            assert response.status_code == HTTP_201_CREATED
            attempt = response.json()
            assert attempt["name"] == "Conversion 1"

            response = await client.put(f"/ct/conversions/{attempt['id']}", json={"status": "in_progress"})
            assert response.status_code == HTTP_200_OK
            assert response.json()["status"] == "in_progress"

            response = await client.post("/ct/workflow/upsert", json=step_body(period, 1, turnover=100))
            assert response.status_code == HTTP_200_OK
            assert response.json()["data"] == {"turnover": 100}

            response = await client.put(f"/ct/filing-periods/{period['id']}", json={"due_date": "2025-06-30"})
            assert response.status_code == HTTP_200_OK
            assert response.json()["status"] == "In Progress"
            assert response.json()["due_date"] == "2025-06-30"

            response = await client.post("/ct/filing-periods/mark-overdue", params={"as_of": "2025-07-01"})
            assert response.status_code == HTTP_200_OK
            assert [p["status"] for p in response.json()] == ["Overdue"]

            response = await client.delete(f"/ct/filing-periods/{period['id']}")
            assert response.status_code == HTTP_204_NO_CONTENT


# =============================================================================
# Plugin Configuration Tests
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestPermissions:
    """Tests for the permission guard."""

    @pytest.fixture
    def guarded_app(self, session_maker: async_sessionmaker[AsyncSession]) -> Litestar:
        return create_test_app(session_maker, CtFilingPluginConfig(permission_checker=header_permissions))

    async def test_missing_permission(self, guarded_app: Litestar, type1_id: str) -> None:
        """Requests without the view permission are forbidden."""
        async with AsyncTestClient(app=guarded_app) as client:
            response = await client.get("/ct/types")

            assert response.status_code == HTTP_403_FORBIDDEN

    async def test_view_only(self, guarded_app: Litestar, type1_id: str) -> None:
        """The view permission allows reads but not writes."""
        async with AsyncTestClient(app=guarded_app) as client:
            headers = {"X-Permissions": VIEW_PERMISSION}

            assert (await client.get("/ct/types", headers=headers)).status_code == HTTP_200_OK

            response = await client.post("/ct/filing-periods", json=period_body(type1_id), headers=headers)
            assert response.status_code == HTTP_403_FORBIDDEN

    async def test_edit(self, guarded_app: Litestar, type1_id: str) -> None:
        """The edit permission allows writes."""
        async with AsyncTestClient(app=guarded_app) as client:
            headers = {"X-Permissions": f"{VIEW_PERMISSION},{EDIT_PERMISSION}"}

            response = await client.post("/ct/filing-periods", json=period_body(type1_id), headers=headers)

            assert response.status_code == HTTP_201_CREATED


@pytest.mark.unit
class TestPluginConfig:
    """Tests for CtFilingPlugin configuration."""

    def test_defaults(self) -> None:
        """The API mounts under /ct with a one-year, nine-month calculator."""
        plugin = CtFilingPlugin()
        app = Litestar(plugins=[plugin])

        assert plugin.calculator.period_years == 1
        assert plugin.calculator.due_months == 9
        assert "ct_type_store" in app.dependencies
        assert "workflow_step_store" in app.dependencies
        assert any(route.path.startswith("/ct/filing-periods") for route in app.routes)

    def test_calculator_before_init(self) -> None:
        """The calculator is only available once the app is built."""
        with pytest.raises(RuntimeError):
            _ = CtFilingPlugin().calculator

    def test_custom_prefix_and_lengths(self) -> None:
        """Prefix and period lengths are configurable."""
        plugin = CtFilingPlugin(config=CtFilingPluginConfig(api_path_prefix="/api/ct", due_months=12))
        app = Litestar(plugins=[plugin])

        assert plugin.calculator.due_months == 12
        assert any(route.path.startswith("/api/ct/types") for route in app.routes)

    def test_api_disabled(self) -> None:
        """Stores are still injectable without the API."""
        app = Litestar(plugins=[CtFilingPlugin(config=CtFilingPluginConfig(enable_api=False))])

        assert "filing_period_store" in app.dependencies
        assert not any(route.path.startswith("/ct") for route in app.routes)
