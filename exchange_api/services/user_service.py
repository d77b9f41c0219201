"""
User Service - Handles user authentication and management.

This service provides user management with bcrypt password hashing
for bearer-token authentication.
"""
from typing import List, Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import bcrypt
import logging

from exchange_api.db.models import User
from exchange_api.domain.enums import Role

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing users and authentication"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            bcrypt hash as string
        """
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """
        Verify a password against a stored hash.

        Args:
            password: Plain text password to verify
            password_hash: Stored bcrypt hash

        Returns:
            True if password matches hash
        """
        try:
            return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
        except ValueError as e:
            logger.error(f"Error verifying password: {e}")
            return False

    @staticmethod
    async def create_user(
        db: AsyncSession,
        username: str,
        password: str,
        role_id: int = Role.STUDENT,
        organization_id: int = 0
    ) -> User:
        """
        Create a new user in the database.

        Args:
            db: Database session
            username: Username for login
            password: Plain text password (will be hashed)
            role_id: Role (see Role enum)
            organization_id: Owning organization, 0 for none

        Returns:
            User model

        Raises:
            ValueError: If username already exists or organization_id is negative
        """
        existing_user = await UserService.get_user_by_username(db, username)
        if existing_user:
            raise ValueError(f"Username '{username}' already exists")
        if organization_id < 0:
            raise ValueError("organization_id must be 0 or positive")

        user = User(
            username=username,
            password_hash=UserService.hash_password(password),
            role_id=int(role_id),
            organization_id=organization_id,
            is_active=True,
            created_at=datetime.now(timezone.utc),
            updated_at=datetime.now(timezone.utc)
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} (username: {username}, role: {user.role_id})")
        return user

    @staticmethod
    async def get_user_by_username(
        db: AsyncSession,
        username: str
    ) -> Optional[User]:
        """Get user by username, None if not found"""
        result = await db.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_users(db: AsyncSession) -> List[User]:
        """All users ordered by id"""
        result = await db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    @staticmethod
    async def validate_credentials(
        db: AsyncSession,
        username: str,
        password: str
    ) -> Optional[User]:
        """
        Validate username and password credentials.

        Returns:
            User object if credentials are valid and user is active, None otherwise
        """
        user = await UserService.get_user_by_username(db, username)

        if not user:
            logger.warning(f"Login attempt failed: User '{username}' not found")
            return None

        if not user.is_active:
            logger.warning(f"Login attempt failed: User '{username}' is deactivated")
            return None

        if not UserService.verify_password(password, user.password_hash):
            logger.warning(f"Login attempt failed: Invalid password for user '{username}'")
            return None

        logger.info(f"User authenticated successfully: {user.id} (username: {username})")
        return user

    @staticmethod
    async def set_active(
        db: AsyncSession,
        username: str,
        is_active: bool
    ) -> bool:
        """
        Activate or deactivate a user (soft delete).

        Returns:
            True if updated, False if user not found
        """
        user = await UserService.get_user_by_username(db, username)

        if not user:
            logger.warning(f"Activation change failed: User '{username}' not found")
            return False

        user.is_active = is_active
        user.updated_at = datetime.now(timezone.utc)

        await db.commit()

        logger.info(f"{'Activated' if is_active else 'Deactivated'} user: {user.id} (username: {username})")
        return True
