"""
User repository for data access.

Simple repository for caller identity lookups.
User management (create, passwords) lives in UserService.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_api.db.models import User
from exchange_api.core.interfaces import IUserRepository


class UserRepository(IUserRepository):
    """Repository for User rows"""

    def __init__(self, session: AsyncSession):
        self._db = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by database ID"""
        return await self._db.get(User, user_id)
