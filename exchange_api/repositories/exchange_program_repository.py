"""
Exchange program repository for data access.

Converts ExchangeProgramModel rows to ExchangeProgram entities and back.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from exchange_api.core.interfaces import IExchangeProgramRepository
from exchange_api.db.models import ExchangeProgramModel
from exchange_api.domain.entities import ExchangeProgram
from exchange_api.domain.value_objects import ExchangeProgramId, ProgramName

logger = logging.getLogger(__name__)


class ExchangeProgramRepository(IExchangeProgramRepository):
    """Repository for ExchangeProgram entity"""

    def __init__(self, session: AsyncSession):
        self._db = session

    async def get_by_id(self, program_id: ExchangeProgramId) -> Optional[ExchangeProgram]:
        """Get exchange program by ID"""
        row = await self._db.get(ExchangeProgramModel, program_id.value)
        return self._to_domain(row) if row is not None else None

    async def get_all(self) -> List[ExchangeProgram]:
        """All exchange programs ordered by id"""
        result = await self._db.execute(
            select(ExchangeProgramModel).order_by(ExchangeProgramModel.id)
        )
        return [self._to_domain(row) for row in result.scalars().all()]

    async def save(self, program: ExchangeProgram) -> ExchangeProgram:
        """Insert or update an exchange program"""
        row = await self._db.get(ExchangeProgramModel, program.id.value)
        if row is None:
            row = ExchangeProgramModel(id=program.id.value)
            self._db.add(row)

        row.name = program.name.value
        row.description = program.description
        row.limit_application_date = program.limit_application_date
        row.start_date = program.start_date
        row.finish_date = program.finish_date
        row.application_documents = program.application_documents_spec
        row.required_documents = program.required_documents_spec
        row.images_url = program.images_url
        row.organization_id = program.organization_id
        row.country_id = program.country_id
        row.state_id = program.state_id
        row.status_id = int(program.status_id)

        await self._db.flush()
        logger.info(f"💾 Saved exchange program {program.id} (status {program.status_id})")
        return program

    @staticmethod
    def _to_domain(row: ExchangeProgramModel) -> ExchangeProgram:
        return ExchangeProgram(
            id=ExchangeProgramId(row.id),
            name=ProgramName(row.name),
            description=row.description,
            limit_application_date=row.limit_application_date,
            start_date=row.start_date,
            finish_date=row.finish_date,
            application_documents_spec=row.application_documents,
            required_documents_spec=row.required_documents,
            images_url=row.images_url,
            organization_id=row.organization_id,
            country_id=row.country_id,
            state_id=row.state_id,
            status_id=row.status_id,
        )
