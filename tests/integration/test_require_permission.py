from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient

from shiftly_access.config import Settings
from shiftly_access.deps import (
    get_current_user,
    get_role_service,
    require_any_permission,
    require_permission,
)
from shiftly_access.exceptions import StoreUnavailable
from shiftly_access.seed import seed_catalog
from shiftly_access.setup_db import create_all
from shiftly_access.wiring import create_app
from tests.fixtures.db_helpers import create_role, create_user, role_id


@pytest.fixture
async def app(db_url):
    app = create_app(Settings(database_url=db_url))
    await create_all(app.state.engine)
    async with app.state.session_factory() as session:
        await seed_catalog(session)

    principal = {"user": None}
    app.dependency_overrides[get_current_user] = lambda: principal["user"]
    app.state.test_principal = principal

    @app.get("/protected/schedules", dependencies=[Depends(require_permission("schedules:publish"))])
    async def publish_schedules():
        return {"ok": True}

    @app.get(
        "/protected/swaps",
        dependencies=[Depends(require_any_permission("swaps:approve", "swaps:request"))],
    )
    async def swaps():
        return {"ok": True}

    @app.get("/protected/roles", dependencies=[Depends(require_permission("roles:read"))])
    async def roles(service=Depends(get_role_service)):
        return [r.name for r in await service.list_roles()]

    yield app
    await app.state.engine.dispose()


async def _login_as(app, email: str, role: str | None, direct=()):
    factory = app.state.session_factory
    rid = await role_id(factory, role) if role else None
    uid = await create_user(factory, email, rid, direct=direct)
    app.state.test_principal["user"] = SimpleNamespace(id=uid, role_id=rid)
    return uid, rid


def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_anonymous_request_is_unauthorized(app):
    async with _client(app) as client:
        resp = await client.get("/protected/schedules")

    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_principal_without_role_is_forbidden(app):
    app.state.test_principal["user"] = SimpleNamespace(id="u-1", role_id=None)
    async with _client(app) as client:
        resp = await client.get("/protected/swaps")

    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NO_ROLE"


@pytest.mark.asyncio
async def test_missing_permission_lists_what_is_missing(app):
    await _login_as(app, "lead@example.com", "Team Lead")
    async with _client(app) as client:
        resp = await client.get("/protected/schedules")

    assert resp.status_code == 403
    assert resp.json()["detail"] == {
        "error": "Forbidden",
        "code": "INSUFFICIENT_PERMISSIONS",
        "required": ["schedules:publish"],
        "missing": ["schedules:publish"],
    }


@pytest.mark.asyncio
async def test_wildcard_grant_allows(app):
    await _login_as(app, "scheduler@example.com", "Scheduler")
    async with _client(app) as client:
        resp = await client.get("/protected/schedules")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


@pytest.mark.asyncio
async def test_any_permission(app):
    await _login_as(app, "emp@example.com", "Employee")
    async with _client(app) as client:
        assert (await client.get("/protected/swaps")).status_code == 200

    await create_role(app.state.session_factory, "Viewer", ["own-schedule:view"])
    await _login_as(app, "viewer@example.com", "Viewer")
    async with _client(app) as client:
        resp = await client.get("/protected/swaps")

    assert resp.status_code == 403
    assert resp.json()["detail"]["required_any"] == ["swaps:approve", "swaps:request"]


@pytest.mark.asyncio
async def test_direct_grant_allows(app):
    await _login_as(app, "emp@example.com", "Employee", direct=["schedules:publish"])
    async with _client(app) as client:
        resp = await client.get("/protected/schedules")

    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_store_failure_is_service_unavailable(app):
    await _login_as(app, "admin@example.com", "Admin")
    store = MagicMock()
    store.get_role_permissions = AsyncMock(side_effect=StoreUnavailable("get_role_permissions"))
    store.get_direct_permissions = AsyncMock(return_value=set())
    app.state.permission_store = store

    async with _client(app) as client:
        resp = await client.get("/protected/schedules")

    assert resp.status_code == 503
    assert resp.json()["detail"]["code"] == "PERMISSIONS_UNAVAILABLE"


@pytest.mark.asyncio
async def test_lifecycle_service_dependency(app):
    await _login_as(app, "admin@example.com", "Admin")
    async with _client(app) as client:
        resp = await client.get("/protected/roles")

    assert resp.status_code == 200
    assert "Employee" in resp.json()
    assert "Admin" in resp.json()


@pytest.mark.asyncio
async def test_my_permissions(app):
    _, rid = await _login_as(app, "emp@example.com", "Employee", direct=["reports:view"])
    async with _client(app) as client:
        resp = await client.get("/api/v1/permissions/me")

    assert resp.status_code == 200
    body = resp.json()
    assert body["role_id"] == rid
    assert body["direct_permissions"] == ["reports:view"]
    assert body["role_permissions"] == ["own-schedule:request", "own-schedule:view", "swaps:request"]
    assert body["permissions"] == sorted(body["role_permissions"] + ["reports:view"])


@pytest.mark.asyncio
async def test_permission_catalog_requires_principal(app):
    async with _client(app) as client:
        assert (await client.get("/api/v1/permissions")).status_code == 401

        await _login_as(app, "emp@example.com", "Employee")
        resp = await client.get("/api/v1/permissions")

    assert resp.status_code == 200
    names = {p["name"] for p in resp.json()}
    assert {"*", "reports:*", "own-schedule:view"} <= names


@pytest.mark.asyncio
async def test_metrics_endpoint_reports_permission_checks(app):
    await _login_as(app, "emp@example.com", "Employee")
    async with _client(app) as client:
        await client.get("/protected/swaps")
        resp = await client.get("/metrics")

    assert resp.status_code == 200
    assert "permission_checks_total" in resp.text


def test_gates_reject_names_outside_the_catalog():
    with pytest.raises(ValueError, match="schedule:publish"):
        require_permission("schedule:publish")
    with pytest.raises(ValueError, match="swaps:deny"):
        require_any_permission("swaps:approve", "swaps:deny")

    assert callable(require_permission("schedules:publish", "reports:*"))
