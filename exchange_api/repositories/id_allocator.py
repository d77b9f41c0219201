"""
Id allocation backed by the database.

Each sequence name maps to an integer primary key column; the next id is
MAX(column) + 1. Allocation happens inside the caller's transaction, so
the id is only claimed once the row using it is committed.
"""

from typing import Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from exchange_api.core.interfaces import (
    IIdAllocator,
    APPLICATIONS_SEQUENCE,
    APPLICATION_DOCUMENTS_SEQUENCE,
    EXCHANGE_PROGRAMS_SEQUENCE,
)
from exchange_api.db.models import ApplicationModel, ApplicationDocumentModel, ExchangeProgramModel

logger = logging.getLogger(__name__)

# Largest value a signed 32-bit id column can hold
MAX_ID = 2**31 - 1

SEQUENCE_COLUMNS = {
    APPLICATIONS_SEQUENCE: ApplicationModel.id,
    APPLICATION_DOCUMENTS_SEQUENCE: ApplicationDocumentModel.id,
    EXCHANGE_PROGRAMS_SEQUENCE: ExchangeProgramModel.id,
}


class SQLAlchemyIdAllocator(IIdAllocator):
    """MAX(id) + 1 allocator over the mapped tables"""

    def __init__(self, session: AsyncSession):
        self._db = session

    async def allocate(self, sequence_name: str) -> Optional[int]:
        column = SEQUENCE_COLUMNS.get(sequence_name)
        if column is None:
            logger.error(f"Unknown id sequence: {sequence_name}")
            return None

        result = await self._db.execute(select(func.coalesce(func.max(column), 0)))
        next_id = int(result.scalar_one()) + 1

        if next_id > MAX_ID:
            logger.error(f"Id sequence {sequence_name} exhausted")
            return None

        logger.debug(f"Allocated id {next_id} from {sequence_name}")
        return next_id
