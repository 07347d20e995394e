"""Seed script — populates the database with demo accounts for testing."""

import asyncio

from nexora_auth.database.engine import async_session_factory, init_db
from nexora_auth.database.repository import UserRepository
from nexora_auth.models.user import ROLE_ADMIN, ROLE_CUSTOMER
from nexora_auth.security.passwords import hash_password

SAMPLE_USERS = [
    ("admin@nexorabanking.com", "admin-password", ROLE_ADMIN),
    ("alice@example.com", "alice-password", ROLE_CUSTOMER),
    ("bob@example.com", "bob-password", ROLE_CUSTOMER),
]


async def seed() -> None:
    """Insert demo users (already verified) into the database."""
    await init_db()
    created = 0
    async with async_session_factory() as session:
        repo = UserRepository(session)
        for email, password, role in SAMPLE_USERS:
            if await repo.find_by_email(email):
                continue
            await repo.create(email, hash_password(password), role=role)
            await repo.mark_verified(email)
            created += 1
        await session.commit()
    print(f"✅ Seeded {created} users into the database.")


if __name__ == "__main__":
    asyncio.run(seed())
