"""
Integration tests for profile endpoints.

Tests bulk upload over multipart and profile deletion.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.models.member import Workspace
from app.models.user import User
from tests.conftest import COOKIE_NAME, create_user, login_as


HEADER = "name,email,password,role,has_login_access\n"


def upload_csv(count: int) -> bytes:
    rows = "".join(
        f"Person {i},person{i}@test.com,secret{i:03d},EMPLOYEE,TRUE\n" for i in range(count)
    )
    return (HEADER + rows).encode("utf-8")


@pytest.mark.integration
class TestBulkUpload:
    """Test the bulk upload endpoint."""

    @pytest.mark.asyncio
    async def test_partial_success(
        self, client: AsyncClient, db_session: AsyncSession, workspace: Workspace, manager_user: User
    ):
        """Test 10 rows with 2 existing emails create 8 and report 2 errors."""
        await create_user(db_session, "person2@test.com")
        await create_user(db_session, "person5@test.com")
        await login_as(client, manager_user)

        response = await client.post(
            "/api/profiles/bulk-upload",
            data={"workspace_id": str(workspace.id)},
            files={"file": ("profiles.csv", upload_csv(10), "text/csv")}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Created 8 profile(s)"
        data = body["data"]
        assert data["created"] == 8
        assert data["skipped"] == 2
        assert len(data["errors"]) == 2
        assert all(e.startswith("Row ") for e in data["errors"])

        audit = await db_session.execute(select(AuditLog).where(AuditLog.action == "BULK_PROFILE_UPLOAD"))
        assert audit.scalar_one().details == {"created": 8, "skipped": 2}

    @pytest.mark.asyncio
    async def test_malformed_email_is_rejected(
        self, client: AsyncClient, db_session: AsyncSession, workspace: Workspace, manager_user: User
    ):
        """Test an address the login form would refuse is never created."""
        await login_as(client, manager_user)
        content = (HEADER + "Bad Dots,bad@test..com,secret001,EMPLOYEE,TRUE\n").encode("utf-8")
        content += upload_csv(1)[len(HEADER):]

        response = await client.post(
            "/api/profiles/bulk-upload",
            data={"workspace_id": str(workspace.id)},
            files={"file": ("profiles.csv", content, "text/csv")}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["created"] == 1
        assert data["errors"] == ['Row 2: Invalid email format: "bad@test..com"']
        created = await db_session.execute(select(User).where(User.email.like("bad@%")))
        assert created.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_all_rows_exist(
        self, client: AsyncClient, db_session: AsyncSession, workspace: Workspace, manager_user: User
    ):
        await create_user(db_session, "person0@test.com")
        await login_as(client, manager_user)

        response = await client.post(
            "/api/profiles/bulk-upload",
            data={"workspace_id": str(workspace.id)},
            files={"file": ("profiles.csv", upload_csv(1), "text/csv")}
        )

        assert response.status_code == 409
        assert response.json()["details"]

    @pytest.mark.asyncio
    async def test_employee_cannot_upload(
        self, client: AsyncClient, workspace: Workspace, employee_user: User
    ):
        await login_as(client, employee_user)

        response = await client.post(
            "/api/profiles/bulk-upload",
            data={"workspace_id": str(workspace.id)},
            files={"file": ("profiles.csv", upload_csv(1), "text/csv")}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_empty_upload(self, client: AsyncClient, workspace: Workspace, manager_user: User):
        await login_as(client, manager_user)

        response = await client.post(
            "/api/profiles/bulk-upload",
            data={"workspace_id": str(workspace.id)},
            files={"file": ("profiles.csv", b"", "text/csv")}
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestProfiles:
    """Test viewing and deleting profiles."""

    @pytest.mark.asyncio
    async def test_get_profile(self, client: AsyncClient, employee_user: User, manager_user: User):
        await login_as(client, manager_user)

        response = await client.get(f"/api/profiles/{employee_user.id}")

        assert response.status_code == 200
        assert response.json()["data"]["email"] == employee_user.email

    @pytest.mark.asyncio
    async def test_delete_profile_invalidates_sessions(
        self, client: AsyncClient, db_session: AsyncSession, admin_user: User, employee_user: User
    ):
        employee_id = employee_user.id
        employee_token = await login_as(client, employee_user)
        await login_as(client, admin_user)

        response = await client.delete(f"/api/profiles/{employee_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["sessions_cleared"] == 1
        assert data["memberships_removed"] == 1

        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, employee_token)
        me = await client.get("/api/auth/current")
        assert me.status_code == 401

        audit = await db_session.execute(select(AuditLog).where(AuditLog.action == "PROFILE_DELETE"))
        assert audit.scalar_one().details["email"] == "employee@test.com"

    @pytest.mark.asyncio
    async def test_cannot_delete_own_profile(self, client: AsyncClient, admin_user: User):
        await login_as(client, admin_user)

        response = await client.delete(f"/api/profiles/{admin_user.id}")

        assert response.status_code == 400
        assert response.json()["error"] == "You cannot delete your own profile"

    @pytest.mark.asyncio
    async def test_only_admin_deletes_profiles(
        self, client: AsyncClient, manager_user: User, employee_user: User
    ):
        await login_as(client, manager_user)

        response = await client.delete(f"/api/profiles/{employee_user.id}")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_unknown_profile(self, client: AsyncClient, admin_user: User):
        await login_as(client, admin_user)

        response = await client.delete("/api/profiles/9999")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_delete_profile_in_other_workspace(
        self, client: AsyncClient, admin_user: User, other_tenant_user: User
    ):
        await login_as(client, admin_user)

        response = await client.delete(f"/api/profiles/{other_tenant_user.id}")

        assert response.status_code == 403
        login = await client.post(
            "/api/auth/login", json={"email": other_tenant_user.email, "password": "password123"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_cannot_view_profile_in_other_workspace(
        self, client: AsyncClient, admin_user: User, other_tenant_user: User
    ):
        await login_as(client, admin_user)

        response = await client.get(f"/api/profiles/{other_tenant_user.id}")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_client_cannot_view_other_profiles(
        self, client: AsyncClient, client_user: User, employee_user: User
    ):
        await login_as(client, client_user)

        response = await client.get(f"/api/profiles/{employee_user.id}")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_view_own_profile(self, client: AsyncClient, client_user: User):
        await login_as(client, client_user)

        response = await client.get(f"/api/profiles/{client_user.id}")

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "client@test.com"
