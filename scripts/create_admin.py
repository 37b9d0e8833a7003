#!/usr/bin/env python3
"""Create (or promote) an admin account with a properly hashed password."""

import asyncio

from sqlalchemy import select

from app.core.security import get_password_hash
from app.database import AsyncSessionLocal
from app.models.user import User


async def create_admin(
    email: str = "admin@yelloride.com",
    password: str = "Admin1234",
    name: str = "Yelloride Admin",
) -> None:
    """Create an admin user, or reset an existing account to admin."""
    email = email.lower()
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            existing.password_hash = get_password_hash(password)
            existing.role = "admin"
            existing.is_active = True
            existing.name = name
            print(f"Updated existing user as admin: {email}")
        else:
            session.add(
                User(
                    name=name,
                    email=email,
                    password_hash=get_password_hash(password),
                    role="admin",
                    is_active=True,
                )
            )
            print(f"Created admin user: {email}")

        await session.commit()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", default="admin@yelloride.com", help="Admin email")
    parser.add_argument("--password", default="Admin1234", help="Admin password")
    parser.add_argument("--name", default="Yelloride Admin", help="Display name")

    args = parser.parse_args()

    asyncio.run(create_admin(email=args.email, password=args.password, name=args.name))
