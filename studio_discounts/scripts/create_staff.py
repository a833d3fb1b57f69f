"""Seed a staff account and print a bearer token for it (local development)."""

import asyncio
import os
import sys

from sqlalchemy import select

from studio_discounts.core.db import AsyncSessionLocal
from studio_discounts.core.security import create_access_token
from studio_discounts.models.users.user_models import User


async def create_staff(username: str, role: str):
    async with AsyncSessionLocal() as session:
        user = (
            await session.execute(select(User).where(User.username == username))
        ).scalars().first()

        if user is None:
            user = User(username=username, role=role, is_active=True, token_version=0)
            session.add(user)
            await session.commit()
            print(f"{role.capitalize()} user {username} created")
        else:
            print(f"User {username} already exists ({user.role})")

        print(create_access_token(user.username, user.token_version))


if __name__ == "__main__":
    name = sys.argv[1] if len(sys.argv) > 1 else os.getenv("STAFF_USERNAME", "admin@studio.local")
    role = sys.argv[2] if len(sys.argv) > 2 else "admin"
    asyncio.run(create_staff(name, role))
