"""
Unit of Work - one transaction per request.

Everything an orchestrator does between entering and leaving the context
shares a session: id allocation, the reconciled document set and the
status change are committed together, or rolled back together when any
step raises. Hooks registered during the work run only after a commit.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
import inspect
import logging

if TYPE_CHECKING:
    from exchange_api.core.interfaces import (
        IApplicationRepository,
        IExchangeProgramRepository,
        IIdAllocator,
        IUserRepository,
    )

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """
    Transaction boundary plus the collaborators orchestrators need.

    Usage:
        async with uow:
            await uow.applications.save(application)
        # committed here, or rolled back if the block raised
    """

    applications: 'IApplicationRepository'
    exchange_programs: 'IExchangeProgramRepository'
    users: 'IUserRepository'
    ids: 'IIdAllocator'

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    @abstractmethod
    async def commit(self):
        """Commit, then run post-commit hooks"""
        pass

    @abstractmethod
    async def rollback(self):
        """Discard pending changes and hooks"""
        pass

    @abstractmethod
    async def close(self):
        pass

    @abstractmethod
    def add_post_commit_hook(self, hook: Callable):
        """
        Register a sync or async callable to run after a successful commit.

        Hooks are dropped on rollback.
        """
        pass


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    Unit of Work over a single AsyncSession.

    The repositories and the id allocator share the session, so a listing
    reads applications and the programs used to filter them from the same
    connection and transaction.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._post_commit_hooks: List[Callable] = []

        # Import here to avoid circular dependencies
        from exchange_api.repositories.application_repository import ApplicationRepository
        from exchange_api.repositories.exchange_program_repository import ExchangeProgramRepository
        from exchange_api.repositories.user_repository import UserRepository
        from exchange_api.repositories.id_allocator import SQLAlchemyIdAllocator

        self.applications = ApplicationRepository(session)
        self.exchange_programs = ExchangeProgramRepository(session)
        self.users = UserRepository(session)
        self.ids = SQLAlchemyIdAllocator(session)

    async def commit(self):
        """Hook failures are logged; the commit already happened and stands."""
        try:
            await self._session.commit()
            logger.debug(f"✅ Transaction committed, running {len(self._post_commit_hooks)} post-commit hooks")

            for hook in self._post_commit_hooks:
                try:
                    if inspect.iscoroutinefunction(hook):
                        await hook()
                    else:
                        hook()
                except Exception as e:
                    logger.error(f"❌ Post-commit hook failed: {e}", exc_info=True)

        finally:
            self._post_commit_hooks.clear()

    async def rollback(self):
        try:
            await self._session.rollback()
            logger.debug("↩️  Transaction rolled back")
        finally:
            self._post_commit_hooks.clear()

    async def close(self):
        await self._session.close()

    def add_post_commit_hook(self, hook: Callable):
        self._post_commit_hooks.append(hook)


def get_unit_of_work(session: AsyncSession) -> AbstractUnitOfWork:
    """
    Wrap a request session in a Unit of Work.

    Usage in FastAPI:
        async def endpoint(db: AsyncSession = Depends(get_db_session)):
            async with get_unit_of_work(db) as uow:
                application = await service.publish(uow, ...)
    """
    return SQLAlchemyUnitOfWork(session)
