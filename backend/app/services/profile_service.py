"""Profile service: bulk import and deletion of user profiles."""
import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.utils.validation import (
    MIN_PASSWORD_LENGTH,
    normalize_mobile,
    validate_email_address,
)
from app.models.member import Member, MemberRole
from app.models.notification import Notification
from app.models.project import Task
from app.models.user import User
from app.services.errors import BulkUploadError, ConflictError
from app.services.session_lifecycle import SessionLifecycleManager
from app.utils.security import hash_password


logger = logging.getLogger(__name__)

UPLOADABLE_ROLES = (
    MemberRole.ADMIN,
    MemberRole.PROJECT_MANAGER,
    MemberRole.TEAM_LEAD,
    MemberRole.EMPLOYEE,
    MemberRole.MANAGEMENT,
)
TRUTHY_VALUES = {"TRUE", "1", "YES", "Y"}
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y")


@dataclass
class ProfileRow:
    """A validated upload row ready to insert."""
    row_number: int
    name: str
    email: str
    password: Optional[str]
    role: Optional[MemberRole]
    has_login_access: bool
    mobile_no: Optional[str] = None
    native: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    experience: Optional[int] = None
    skills: Optional[List[str]] = None
    date_of_birth: Optional[datetime] = None
    date_of_joining: Optional[datetime] = None


@dataclass
class BulkUploadResult:
    created: int
    skipped: int
    errors: List[str] = field(default_factory=list)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_date(value: str) -> Optional[datetime]:
    """Parse a date cell; unrecognized values are ignored."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        parsed = None
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_experience(value: str) -> Optional[int]:
    if not value:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def _parse_skills(value: str) -> Optional[List[str]]:
    skills = [s.strip() for s in value.split(",") if s.strip()] if value else []
    return skills or None


def read_csv_rows(content: bytes) -> List[Dict[str, str]]:
    """
    Decode an uploaded CSV into row dicts keyed by lowercase header.

    Raises:
        BulkUploadError: If the file cannot be decoded as UTF-8
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise BulkUploadError("File must be UTF-8 encoded CSV") from exc

    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames:
        reader.fieldnames = [_clean(name).lower() for name in reader.fieldnames]

    rows = []
    for row in reader:
        # Blank lines come back as rows of empty strings
        if any(_clean(v) for k, v in row.items() if k is not None):
            rows.append(row)
    return rows


def validate_row(row: Dict[str, str], row_number: int) -> ProfileRow:
    """
    Validate and normalize one upload row.

    Args:
        row: Raw cell values keyed by header
        row_number: Spreadsheet row number (the header is row 1)

    Raises:
        ValueError: With a "Row N: ..." message when the row is invalid
    """
    name = _clean(row.get("name"))
    email = _clean(row.get("email"))
    password = _clean(row.get("password"))
    role_value = _clean(row.get("role")).upper()

    access_cell = _clean(row.get("has_login_access"))
    has_login_access = access_cell.upper() in TRUTHY_VALUES if access_cell else True

    missing = [label for label, value in (("name", name), ("email", email)) if not value]
    if missing:
        raise ValueError(f"Row {row_number}: Missing required fields: {', '.join(missing)}")

    try:
        email = validate_email_address(email)
    except ValueError:
        raise ValueError(f'Row {row_number}: Invalid email format: "{email}"') from None

    role = None
    if has_login_access:
        if not password:
            raise ValueError(f"Row {row_number}: Password required when has_login_access is TRUE")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Row {row_number}: Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        allowed = ", ".join(r.value for r in UPLOADABLE_ROLES)
        if not role_value:
            raise ValueError(
                f"Row {row_number}: Role required when has_login_access is TRUE ({allowed})"
            )
        if role_value not in {r.value for r in UPLOADABLE_ROLES}:
            raise ValueError(f'Row {row_number}: Invalid role "{role_value}". Must be one of: {allowed}')
        role = MemberRole(role_value)

    return ProfileRow(
        row_number=row_number,
        name=name,
        email=email,
        password=password if has_login_access else None,
        role=role,
        has_login_access=has_login_access,
        mobile_no=normalize_mobile(_clean(row.get("mobile_no"))),
        native=_clean(row.get("native")) or None,
        designation=_clean(row.get("designation")) or None,
        department=_clean(row.get("department")) or None,
        experience=_parse_experience(_clean(row.get("experience"))),
        skills=_parse_skills(_clean(row.get("skills"))),
        date_of_birth=_parse_date(_clean(row.get("date_of_birth"))),
        date_of_joining=_parse_date(_clean(row.get("date_of_joining"))),
    )


class ProfileService:
    """Service for user profiles."""

    def __init__(self, session: AsyncSession, max_rows: int = 100):
        """
        Initialize profile service.

        Args:
            session: Database session
            max_rows: Maximum data rows accepted per upload
        """
        self.session = session
        self.max_rows = max_rows

    async def get_profile(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def _existing_identities(self, profiles: List[ProfileRow]):
        emails = [p.email for p in profiles]
        mobiles = [p.mobile_no for p in profiles if p.mobile_no]

        conditions = [User.email.in_(emails)]
        if mobiles:
            conditions.append(User.mobile_no.in_(mobiles))

        result = await self.session.execute(
            select(User.email, User.mobile_no).where(or_(*conditions))
        )
        rows = result.all()
        return {r.email for r in rows}, {r.mobile_no for r in rows if r.mobile_no}

    async def bulk_upload(self, content: bytes, workspace_id: int) -> BulkUploadResult:
        """
        Import profiles from CSV content.

        Invalid rows and rows whose email or mobile number already exist (in
        the store or earlier in the file) are reported in ``errors`` and the
        rest are inserted. Profiles with login access become members of the
        target workspace.

        Args:
            content: Raw CSV bytes
            workspace_id: Workspace that receives memberships

        Returns:
            BulkUploadResult with created/skipped counts and per-row errors

        Raises:
            BulkUploadError: If the file is empty, too large or has no valid rows (400)
            ConflictError: If every valid row conflicts or the insert hits a unique constraint (409)
        """
        rows = read_csv_rows(content)
        if not rows:
            raise BulkUploadError("File is empty")
        if len(rows) > self.max_rows:
            raise BulkUploadError(f"Maximum {self.max_rows} profiles per upload")

        errors: List[str] = []
        profiles: List[ProfileRow] = []
        for index, row in enumerate(rows):
            try:
                profiles.append(validate_row(row, row_number=index + 2))
            except ValueError as e:
                errors.append(str(e))

        if not profiles:
            raise BulkUploadError("No valid profiles to insert", details=errors)

        existing_emails, existing_mobiles = await self._existing_identities(profiles)

        new_profiles: List[ProfileRow] = []
        seen_emails, seen_mobiles = set(), set()
        for profile in profiles:
            issues = []
            if profile.email in existing_emails:
                issues.append("email already exists")
            elif profile.email in seen_emails:
                issues.append("email duplicated in file")
            if profile.mobile_no:
                if profile.mobile_no in existing_mobiles:
                    issues.append("mobile number already exists")
                elif profile.mobile_no in seen_mobiles:
                    issues.append("mobile number duplicated in file")

            if issues:
                errors.append(
                    f'Row {profile.row_number}: User "{profile.name}" ({profile.email}): {", ".join(issues)}'
                )
                continue

            seen_emails.add(profile.email)
            if profile.mobile_no:
                seen_mobiles.add(profile.mobile_no)
            new_profiles.append(profile)

        skipped = len(profiles) - len(new_profiles)
        if not new_profiles:
            raise ConflictError("All profiles already exist or have conflicts", details=errors)

        try:
            users = []
            for profile in new_profiles:
                user = User(
                    name=profile.name,
                    email=profile.email,
                    password_hash=hash_password(profile.password) if profile.has_login_access else None,
                    mobile_no=profile.mobile_no,
                    native=profile.native,
                    designation=profile.designation,
                    department=profile.department,
                    experience=profile.experience,
                    skills=profile.skills,
                    date_of_birth=profile.date_of_birth,
                    date_of_joining=profile.date_of_joining,
                )
                self.session.add(user)
                users.append(user)
            await self.session.flush()

            for profile, user in zip(new_profiles, users):
                # Profiles without login access still belong to the uploading workspace
                role = profile.role or MemberRole.EMPLOYEE
                self.session.add(Member(
                    user_id=user.id,
                    workspace_id=workspace_id,
                    role=role.value,
                ))
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            message = "Duplicate value found"
            text = str(exc.orig).lower()
            if "email" in text:
                message = "Duplicate email address"
            elif "mobile" in text:
                message = "Duplicate mobile number"
            raise ConflictError(message, details=errors) from exc

        logger.info(
            "Bulk upload into workspace %s: %d created, %d skipped, %d error(s)",
            workspace_id, len(new_profiles), skipped, len(errors)
        )
        return BulkUploadResult(created=len(new_profiles), skipped=skipped, errors=errors)

    async def delete_profile(self, user: User, lifecycle: SessionLifecycleManager) -> Dict[str, int]:
        """
        Delete a profile and everything that belongs to it.

        Sessions are invalidated first; if that fails nothing else is touched.
        Assigned tasks are kept and unassigned.

        Returns:
            Counts of removed sessions, memberships, notifications and unassigned tasks
        """
        user_id = user.id
        sessions_cleared = await lifecycle.invalidate_user(user_id)

        members = await self.session.execute(delete(Member).where(Member.user_id == user_id))
        notifications = await self.session.execute(
            delete(Notification).where(Notification.user_id == user_id)
        )
        tasks = await self.session.execute(
            update(Task).where(Task.assignee_id == user_id).values(assignee_id=None)
        )
        await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()

        logger.info("Deleted profile %s", user_id)
        return {
            "sessions_cleared": sessions_cleared,
            "memberships_removed": members.rowcount,
            "notifications_removed": notifications.rowcount,
            "tasks_unassigned": tasks.rowcount,
        }
