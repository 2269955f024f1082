"""
Integration tests for admin endpoints and the health check.

Tests workspace-scoped session clearing, per-user revocation, password resets
and isolation between workspaces.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.models.member import MemberRole, Workspace
from app.models.session import Session
from app.models.user import User
from tests.conftest import COOKIE_NAME, add_membership, login_as


@pytest.mark.integration
class TestClearSessions:
    """Test clearing every session."""

    @pytest.mark.asyncio
    async def test_clear_sessions(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, employee_user: User
    ):
        await login_as(client, employee_user)
        await login_as(client, admin_user)

        response = await client.post("/api/admin/clear-sessions")

        assert response.status_code == 200
        assert response.json()["data"] == {"sessions_cleared": 2}
        assert len(response.headers.get_list("set-cookie")) == 3
        count = await db_session.execute(select(func.count(Session.id)))
        assert count.scalar() == 0

        me = await client.get("/api/auth/current")
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_clear_sessions_admin_only(self, client: AsyncClient, manager_user: User):
        await login_as(client, manager_user)

        response = await client.post("/api/admin/clear-sessions")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_clear_sessions_requires_login(self, client: AsyncClient):
        response = await client.post("/api/admin/clear-sessions")

        assert response.status_code == 401


@pytest.mark.integration
class TestUserSessions:
    """Test per-user session revocation and password resets."""

    @pytest.mark.asyncio
    async def test_revoke_user_sessions(
        self, client: AsyncClient, admin_user: User, employee_user: User
    ):
        employee_token = await login_as(client, employee_user)
        await login_as(client, admin_user)

        response = await client.post(f"/api/admin/users/{employee_user.id}/revoke-sessions")

        assert response.status_code == 200
        assert response.json()["data"]["sessions_cleared"] == 1

        me = await client.get("/api/auth/current")
        assert me.status_code == 200

        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, employee_token)
        me = await client.get("/api/auth/current")
        assert me.status_code == 401

    @pytest.mark.asyncio
    async def test_revoke_unknown_user(self, client: AsyncClient, admin_user: User):
        """Test a user outside every administered workspace is refused, existing or not."""
        await login_as(client, admin_user)

        response = await client.post("/api/admin/users/9999/revoke-sessions")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_reset_password(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, employee_user: User
    ):
        employee_token = await login_as(client, employee_user)
        await login_as(client, admin_user)

        response = await client.post(
            f"/api/admin/users/{employee_user.id}/reset-password",
            json={"new_password": "brand-new-secret"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["sessions_cleared"] == 1

        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, employee_token)
        assert (await client.get("/api/auth/current")).status_code == 401

        old = await client.post(
            "/api/auth/login", json={"email": employee_user.email, "password": "password123"}
        )
        assert old.status_code == 401
        new = await client.post(
            "/api/auth/login", json={"email": employee_user.email, "password": "brand-new-secret"}
        )
        assert new.status_code == 200

        audit = await db_session.execute(select(AuditLog).where(AuditLog.action == "PASSWORD_RESET"))
        assert audit.scalar_one().resource_id == employee_user.id

    @pytest.mark.asyncio
    async def test_reset_password_non_admin(
        self, client: AsyncClient, manager_user: User, employee_user: User
    ):
        await login_as(client, manager_user)

        response = await client.post(
            f"/api/admin/users/{employee_user.id}/reset-password",
            json={"new_password": "brand-new-secret"}
        )

        assert response.status_code == 403


@pytest.mark.integration
class TestTenantIsolation:
    """Test admin actions stay within the caller's workspaces."""

    @pytest.mark.asyncio
    async def test_clear_sessions_spares_other_workspaces(
        self, client: AsyncClient, admin_user: User, employee_user: User, other_tenant_user: User
    ):
        rival_token = await login_as(client, other_tenant_user)
        employee_token = await login_as(client, employee_user)
        await login_as(client, admin_user)

        response = await client.post("/api/admin/clear-sessions")

        assert response.status_code == 200
        assert response.json()["data"] == {"sessions_cleared": 2}

        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, employee_token)
        assert (await client.get("/api/auth/current")).status_code == 401

        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, rival_token)
        assert (await client.get("/api/auth/current")).status_code == 200

    @pytest.mark.asyncio
    async def test_reset_password_other_workspace(
        self, client: AsyncClient, admin_user: User, other_tenant_user: User
    ):
        await login_as(client, admin_user)

        response = await client.post(
            f"/api/admin/users/{other_tenant_user.id}/reset-password",
            json={"new_password": "taken-over"}
        )

        assert response.status_code == 403
        login = await client.post(
            "/api/auth/login", json={"email": other_tenant_user.email, "password": "password123"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_revoke_sessions_other_workspace(
        self, client: AsyncClient, admin_user: User, other_tenant_user: User
    ):
        rival_token = await login_as(client, other_tenant_user)
        await login_as(client, admin_user)

        response = await client.post(f"/api/admin/users/{other_tenant_user.id}/revoke-sessions")

        assert response.status_code == 403
        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, rival_token)
        assert (await client.get("/api/auth/current")).status_code == 200

    @pytest.mark.asyncio
    async def test_admin_of_shared_workspace_may_reset(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_user: User,
        other_tenant_user: User,
        workspace: Workspace,
    ):
        """Test an admin role anywhere the target belongs is enough."""
        await add_membership(db_session, other_tenant_user, workspace, MemberRole.EMPLOYEE)
        await login_as(client, admin_user)

        response = await client.post(
            f"/api/admin/users/{other_tenant_user.id}/reset-password",
            json={"new_password": "brand-new-secret"}
        )

        assert response.status_code == 200


@pytest.mark.integration
class TestHealth:
    """Test the health check."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_database_down(self, client: AsyncClient, mocker):
        mocker.patch("app.main.AsyncSessionLocal", side_effect=RuntimeError("connection refused"))

        response = await client.get("/health")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Database unavailable"}
