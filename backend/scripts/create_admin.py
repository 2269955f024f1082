"""Create (or reset) an admin user with a membership in the default workspace."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select
from app.config import get_settings
from app.database import AsyncSessionLocal
from app.models.member import Member, MemberRole, Workspace
from app.models.user import User
from app.api.utils.validation import normalize_email
from app.services.session_store import SessionStore
from app.utils.security import hash_password


async def create_admin_user(email: str, password: str, name: str = "Admin"):
    """
    Create an admin user, or reset an existing user's password and promote them.

    Resetting a password signs the user out of every device.

    Args:
        email: Admin email
        password: Admin password
        name: Display name for a new user
    """
    settings = get_settings()
    email = normalize_email(email)
    print(f"\n🔐 Creating admin user: {email}")

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            print(f"⚠️  User {email} already exists. Updating password...")
            cleared = await SessionStore(session).delete_all_for_user(user.id)
            print(f"   Signed out {cleared} session(s)")
            user.password_hash = hash_password(password)
        else:
            user = User(name=name, email=email, password_hash=hash_password(password))
            session.add(user)

        result = await session.execute(select(Workspace).order_by(Workspace.id).limit(1))
        workspace = result.scalar_one_or_none()
        if workspace is None:
            workspace = Workspace(name=settings.DEFAULT_WORKSPACE_NAME)
            session.add(workspace)
        await session.flush()

        result = await session.execute(
            select(Member).where(Member.user_id == user.id, Member.workspace_id == workspace.id)
        )
        member = result.scalar_one_or_none()
        if member:
            member.role = MemberRole.ADMIN.value
            member.project_id = None
        else:
            session.add(Member(user_id=user.id, workspace_id=workspace.id, role=MemberRole.ADMIN.value))

        await session.commit()

        print("✅ Admin ready")
        print(f"   Email: {email}")
        print(f"   Workspace: {workspace.name} (ID {workspace.id})")


async def main():
    """Main function."""
    print("🚀 Project Management - Admin User Creator")
    print("=" * 60)

    if len(sys.argv) > 1:
        email = sys.argv[1]
    else:
        email = input("Admin email: ").strip()

    if len(sys.argv) > 2:
        password = sys.argv[2]
    else:
        password = input("Admin password (min 8 characters): ").strip()

    if not email or len(password) < 8:
        print("❌ An email and a password of at least 8 characters are required")
        sys.exit(1)

    try:
        await create_admin_user(email=email, password=password)
        print("\n" + "=" * 60)
        print("✅ Setup complete!")
    except Exception as e:
        print(f"\n❌ Error creating admin user: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
