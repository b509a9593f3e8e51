"""
Seed Admin User

Creates the initial admin user for the recruitment API and prints a
short-lived access token for it. Run this script once against a fresh
database.

Usage:
    python scripts/seed_admin.py admin@example.com "Portal Admin"
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, close_db
from app.core.security import create_access_token
from app.modules.users import User, UserRepository, UserRole

TOKEN_LIFETIME = timedelta(hours=12)


def _print_token(user: User) -> None:
    token = create_access_token(
        str(user.id),
        additional_claims={
            "email": user.email,
            "role": user.role.value,
            "name": user.full_name,
        },
        expires_delta=TOKEN_LIFETIME,
    )
    print(f"  Access token (12h): {token}")


async def seed_admin(email: str, full_name: str) -> None:
    """Create the admin user if it doesn't exist."""
    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)

        if existing_user:
            print(f"Admin already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            _print_token(existing_user)
            return

        admin_user = await UserRepository.create(
            db,
            email=email,
            full_name=full_name,
            role=UserRole.SUPER_ADMIN,
        )
        await db.commit()

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {full_name}")
        print(f"  ID: {admin_user.id}")
        print(f"  Role: {admin_user.role.value}")
        _print_token(admin_user)

    await close_db()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(seed_admin(sys.argv[1], sys.argv[2]))
