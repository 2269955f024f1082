"""Audit logging service for tracking user and admin actions."""
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.audit_log import AuditLog


class AuditService:
    """Service for logging audit events."""

    def __init__(self, session: AsyncSession):
        """Initialize audit service."""
        self.session = session

    async def log(
        self,
        action: str,
        user_id: Optional[int] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """
        Log an audit event.

        Args:
            action: Action performed (e.g., LOGIN_SUCCESS, LOGOUT, MEMBER_REMOVE, TASK_DELETE)
            user_id: ID of user who performed the action
            resource_type: Type of resource affected (e.g., USER, MEMBER, TASK, SESSION)
            resource_id: ID of the affected resource
            details: Additional details as JSON
            ip_address: IP address of the request
            user_agent: User agent string

        Returns:
            Created AuditLog entry
        """
        audit_log = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent
        )

        self.session.add(audit_log)
        await self.session.commit()
        await self.session.refresh(audit_log)

        return audit_log

    async def log_login(
        self,
        user_id: Optional[int],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        success: bool = True,
        details: Optional[dict] = None
    ) -> AuditLog:
        """Log a login attempt."""
        return await self.log(
            action="LOGIN_SUCCESS" if success else "LOGIN_FAILED",
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details
        )

    async def log_logout(
        self,
        user_id: Optional[int],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[dict] = None
    ) -> AuditLog:
        """Log a logout event."""
        return await self.log(
            action="LOGOUT",
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            details=details
        )

    async def log_member_remove(
        self,
        user_id: int,
        member_id: int,
        removed_user_id: int,
        workspace_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log removal of a member from a workspace."""
        return await self.log(
            action="MEMBER_REMOVE",
            user_id=user_id,
            resource_type="MEMBER",
            resource_id=member_id,
            details={"removed_user_id": removed_user_id, "workspace_id": workspace_id},
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_role_change(
        self,
        user_id: int,
        member_id: int,
        old_role: str,
        new_role: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log role change."""
        return await self.log(
            action="ROLE_CHANGE",
            user_id=user_id,
            resource_type="MEMBER",
            resource_id=member_id,
            details={"old_role": old_role, "new_role": new_role},
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_profile_delete(
        self,
        user_id: int,
        deleted_user_id: int,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log profile deletion."""
        return await self.log(
            action="PROFILE_DELETE",
            user_id=user_id,
            resource_type="USER",
            resource_id=deleted_user_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_task_delete(
        self,
        user_id: int,
        task_id: int,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log task deletion."""
        return await self.log(
            action="TASK_DELETE",
            user_id=user_id,
            resource_type="TASK",
            resource_id=task_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_password_reset(
        self,
        user_id: int,
        target_user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log password reset by admin."""
        return await self.log(
            action="PASSWORD_RESET",
            user_id=user_id,
            resource_type="USER",
            resource_id=target_user_id,
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_sessions_revoke(
        self,
        user_id: int,
        count: int,
        target_user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log session revocation for one user, or for everyone when no target is given."""
        return await self.log(
            action="SESSIONS_REVOKE" if target_user_id else "SESSIONS_CLEAR",
            user_id=user_id,
            resource_type="SESSION",
            resource_id=target_user_id,
            details={"count": count},
            ip_address=ip_address,
            user_agent=user_agent
        )

    async def log_bulk_upload(
        self,
        user_id: int,
        created: int,
        skipped: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> AuditLog:
        """Log bulk profile upload."""
        return await self.log(
            action="BULK_PROFILE_UPLOAD",
            user_id=user_id,
            resource_type="USER",
            details={"created": created, "skipped": skipped},
            ip_address=ip_address,
            user_agent=user_agent
        )
