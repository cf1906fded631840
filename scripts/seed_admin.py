"""
Seed Admin User

Creates the first admin account. Admins create dispatcher accounts
through the API afterwards.

Usage:
    ADMIN_PASSWORD=... python scripts/seed_admin.py --username admin --name "Chief Dispatcher"
"""

import argparse
import asyncio
import os
import sys

from flight_connect.core.database import async_session_maker, engine
from flight_connect.core.security import hash_password
from flight_connect.modules.users.models import UserRole
from flight_connect.modules.users.repository import UserRepository


async def seed_admin(username: str, password: str, name: str) -> None:
    """Create the admin user if it doesn't exist."""
    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_username(db, username)

        if existing_user:
            print(f"User already exists: {existing_user.username}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return

        admin_user = await UserRepository.create(
            db,
            username=username,
            password_hash=hash_password(password),
            name=name,
            role=UserRole.ADMIN,
        )

        print("Admin created successfully!")
        print(f"  Username: {admin_user.username}")
        print(f"  Name: {admin_user.name}")
        print(f"  ID: {admin_user.id}")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--username", default=os.getenv("ADMIN_USERNAME", "admin"))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD")
    if not password or len(password) < 6:
        print("Set ADMIN_PASSWORD (at least 6 characters) before running this script.")
        sys.exit(1)

    asyncio.run(seed_admin(args.username, password, args.name))


if __name__ == "__main__":
    main()
