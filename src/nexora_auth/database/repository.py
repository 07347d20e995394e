"""User repository — data access layer for user accounts."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nexora_auth.models.user import ROLE_CUSTOMER, User


class UserRepository:
    """Encapsulates all database queries related to users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> User | None:
        """Look up a user by their (normalised) email address."""
        stmt = select(User).where(User.email == email)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, email: str, password_hash: str, role: str = ROLE_CUSTOMER) -> User:
        user = User(email=email, password_hash=password_hash, role=role, is_verified=False)
        self._session.add(user)
        await self._session.flush()
        return user

    async def mark_verified(self, email: str) -> bool:
        """Flag the account as verified; returns ``False`` if no row matched."""
        stmt = update(User).where(User.email == email).values(is_verified=True)
        result = await self._session.execute(stmt)
        return result.rowcount > 0
