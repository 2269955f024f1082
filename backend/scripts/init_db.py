"""Database initialization script - creates tables and an admin user."""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.database import engine, Base
import app.models  # noqa: F401  (registers every table on Base.metadata)
from scripts.create_admin import create_admin_user


async def create_tables():
    """Create all database tables."""
    print("📦 Creating database tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("✅ Tables created successfully")


async def main():
    """Create tables, then optionally an admin from argv (email, password)."""
    await create_tables()

    if len(sys.argv) > 2:
        await create_admin_user(email=sys.argv[1], password=sys.argv[2])
    else:
        print("\nℹ️  No admin created. Usage: python scripts/init_db.py <email> <password>")


if __name__ == "__main__":
    asyncio.run(main())
