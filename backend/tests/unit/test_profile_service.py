"""
Unit tests for ProfileService.

Tests CSV row validation, bulk upload partial success and profile deletion.
"""

import pytest
from datetime import timedelta
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member, MemberRole, Workspace
from app.models.notification import Notification
from app.models.project import Project, Task
from app.models.session import Session
from app.models.user import User
from app.services.errors import BulkUploadError, ConflictError
from app.services.profile_service import ProfileService, read_csv_rows, validate_row
from app.services.session_lifecycle import SessionLifecycleManager
from app.services.session_store import SessionStore
from app.utils.dates import utcnow
from tests.conftest import create_user


HEADER = "name,email,password,role,has_login_access,mobile_no,skills\n"


def build_csv(rows) -> bytes:
    return (HEADER + "".join(f"{row}\n" for row in rows)).encode("utf-8")


def valid_rows(count: int, start: int = 0):
    return [
        f"Person {i},person{i}@test.com,secret{i:03d},EMPLOYEE,TRUE,,python"
        for i in range(start, start + count)
    ]


@pytest.mark.unit
class TestRowValidation:
    """Test validation of single upload rows."""

    def test_valid_row(self):
        profile = validate_row({
            "name": " Jane Doe ",
            "email": "Jane@Test.COM",
            "password": "secret1",
            "role": "team_lead",
            "has_login_access": "yes",
            "skills": "python, sql",
            "experience": "3",
            "date_of_joining": "2024-03-01",
        }, row_number=2)

        assert profile.name == "Jane Doe"
        assert profile.email == "jane@test.com"
        assert profile.role is MemberRole.TEAM_LEAD
        assert profile.has_login_access is True
        assert profile.skills == ["python", "sql"]
        assert profile.experience == 3
        assert profile.date_of_joining.year == 2024

    def test_missing_fields(self):
        with pytest.raises(ValueError, match="Row 4: Missing required fields: name, email"):
            validate_row({"name": "", "email": ""}, row_number=4)

    def test_invalid_email(self):
        with pytest.raises(ValueError, match='Row 2: Invalid email format: "not-an-email"'):
            validate_row({"name": "A", "email": "not-an-email", "has_login_access": "FALSE"}, row_number=2)

    def test_consecutive_dots_in_domain(self):
        with pytest.raises(ValueError, match='Row 3: Invalid email format: "bad@test..com"'):
            validate_row({"name": "A", "email": "bad@test..com", "has_login_access": "FALSE"}, row_number=3)

    def test_password_required_with_login_access(self):
        with pytest.raises(ValueError, match="Password required"):
            validate_row({"name": "A", "email": "a@test.com", "role": "EMPLOYEE"}, row_number=2)

    def test_short_password(self):
        with pytest.raises(ValueError, match="at least 6 characters"):
            validate_row(
                {"name": "A", "email": "a@test.com", "password": "abc", "role": "EMPLOYEE"},
                row_number=2
            )

    def test_client_role_not_uploadable(self):
        with pytest.raises(ValueError, match='Invalid role "CLIENT"'):
            validate_row(
                {"name": "A", "email": "a@test.com", "password": "secret1", "role": "CLIENT"},
                row_number=2
            )

    def test_profile_without_login_access(self):
        """Test rows without login access need neither password nor role."""
        profile = validate_row(
            {"name": "A", "email": "a@test.com", "has_login_access": "FALSE"},
            row_number=2
        )

        assert profile.has_login_access is False
        assert profile.password is None
        assert profile.role is None

    def test_read_csv_rows_skips_blank_lines(self):
        content = "\ufeffName,EMAIL\nA,a@test.com\n,\n\nB,b@test.com\n".encode("utf-8")

        rows = read_csv_rows(content)

        assert [r["name"] for r in rows] == ["A", "B"]

    def test_read_csv_rows_rejects_non_utf8(self):
        with pytest.raises(BulkUploadError):
            read_csv_rows(b"name,email\n\xff\xfe,x\n")


@pytest.mark.unit
@pytest.mark.asyncio
class TestBulkUpload:
    """Test bulk profile import."""

    async def test_partial_success(self, db_session: AsyncSession, workspace: Workspace):
        """Test 10 rows with 2 existing emails create 8 and report 2 errors."""
        await create_user(db_session, "person3@test.com", name="Existing Three")
        await create_user(db_session, "person7@test.com", name="Existing Seven")
        service = ProfileService(db_session)

        result = await service.bulk_upload(build_csv(valid_rows(10)), workspace.id)

        assert result.created == 8
        assert result.skipped == 2
        assert len(result.errors) == 2
        assert result.errors[0] == 'Row 5: User "Person 3" (person3@test.com): email already exists'
        assert result.errors[1].startswith("Row 9:")

        members = await db_session.execute(
            select(func.count(Member.id)).where(Member.workspace_id == workspace.id)
        )
        assert members.scalar() == 8

    async def test_invalid_rows_reported(self, db_session: AsyncSession, workspace: Workspace):
        rows = valid_rows(2) + ["Broken,not-an-email,secret99,EMPLOYEE,TRUE,,"]
        service = ProfileService(db_session)

        result = await service.bulk_upload(build_csv(rows), workspace.id)

        assert result.created == 2
        assert result.skipped == 0
        assert result.errors == ['Row 4: Invalid email format: "not-an-email"']

    async def test_duplicates_within_file(self, db_session: AsyncSession, workspace: Workspace):
        rows = valid_rows(1) + ["Copy,PERSON0@test.com,secret00,EMPLOYEE,TRUE,,"]
        service = ProfileService(db_session)

        result = await service.bulk_upload(build_csv(rows), workspace.id)

        assert result.created == 1
        assert result.skipped == 1
        assert "email duplicated in file" in result.errors[0]

    async def test_profiles_without_login_access_join_as_employee(
        self, db_session: AsyncSession, workspace: Workspace
    ):
        rows = ["Contractor,contractor@test.com,,,FALSE,,"]
        service = ProfileService(db_session)

        result = await service.bulk_upload(build_csv(rows), workspace.id)

        assert result.created == 1
        user = (await db_session.execute(
            select(User).where(User.email == "contractor@test.com")
        )).scalar_one()
        assert user.has_login_access is False
        member = (await db_session.execute(select(Member).where(Member.user_id == user.id))).scalar_one()
        assert member.workspace_id == workspace.id
        assert member.role == MemberRole.EMPLOYEE.value

    async def test_all_conflicting_rows(self, db_session: AsyncSession, workspace: Workspace):
        await create_user(db_session, "person0@test.com")
        service = ProfileService(db_session)

        with pytest.raises(ConflictError) as exc_info:
            await service.bulk_upload(build_csv(valid_rows(1)), workspace.id)

        assert exc_info.value.status_code == 409
        assert len(exc_info.value.details) == 1

    async def test_no_valid_rows(self, db_session: AsyncSession, workspace: Workspace):
        service = ProfileService(db_session)

        with pytest.raises(BulkUploadError) as exc_info:
            await service.bulk_upload(build_csv(["X,bad,,,FALSE,,"]), workspace.id)

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == ['Row 2: Invalid email format: "bad"']

    async def test_empty_file(self, db_session: AsyncSession, workspace: Workspace):
        service = ProfileService(db_session)

        with pytest.raises(BulkUploadError, match="File is empty"):
            await service.bulk_upload(HEADER.encode("utf-8"), workspace.id)

    async def test_row_limit(self, db_session: AsyncSession, workspace: Workspace):
        service = ProfileService(db_session, max_rows=3)

        with pytest.raises(BulkUploadError, match="Maximum 3 profiles per upload"):
            await service.bulk_upload(build_csv(valid_rows(4)), workspace.id)


@pytest.mark.unit
@pytest.mark.asyncio
class TestDeleteProfile:
    """Test profile deletion."""

    async def test_delete_profile_invalidates_sessions_and_cleans_up(
        self,
        db_session: AsyncSession,
        lifecycle: SessionLifecycleManager,
        workspace: Workspace,
        project: Project,
        employee_user: User,
    ):
        user_id = employee_user.id
        await SessionStore(db_session).create(user_id, utcnow() + timedelta(days=1))
        db_session.add(Notification(user_id=user_id, title="Hello"))
        db_session.add(Task(
            workspace_id=workspace.id,
            project_id=project.id,
            summary="Write docs",
            assignee_id=user_id,
        ))
        await db_session.commit()

        summary = await ProfileService(db_session).delete_profile(employee_user, lifecycle)

        assert summary == {
            "sessions_cleared": 1,
            "memberships_removed": 1,
            "notifications_removed": 1,
            "tasks_unassigned": 1,
        }
        assert await db_session.get(User, user_id) is None
        sessions = await db_session.execute(select(func.count(Session.id)).where(Session.user_id == user_id))
        assert sessions.scalar() == 0
        task = (await db_session.execute(select(Task).where(Task.summary == "Write docs"))).scalar_one()
        assert task.assignee_id is None

    async def test_session_failure_aborts_delete(
        self,
        db_session: AsyncSession,
        lifecycle: SessionLifecycleManager,
        employee_user: User,
        mocker,
    ):
        """Test nothing is deleted when sessions cannot be invalidated."""
        mocker.patch.object(lifecycle, "invalidate_user", side_effect=RuntimeError("store unavailable"))

        with pytest.raises(RuntimeError):
            await ProfileService(db_session).delete_profile(employee_user, lifecycle)

        members = await db_session.execute(
            select(func.count(Member.id)).where(Member.user_id == employee_user.id)
        )
        assert members.scalar() == 1
