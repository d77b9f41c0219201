"""
Exchange Program Service - Business logic orchestration for exchange programs.

Publishing, reading, listing (with visibility rules), updating and closing.
Closing is a soft delete: the program stays stored with status Deleted.
"""

from datetime import date
from typing import List
import logging

from exchange_api.core.interfaces import EXCHANGE_PROGRAMS_SEQUENCE
from exchange_api.domain.entities import (
    ExchangeProgram,
    ExchangeProgramNotFoundError,
    IdAllocationError,
    to_program_name,
)
from exchange_api.domain.unit_of_work import AbstractUnitOfWork
from exchange_api.domain.value_objects import ExchangeProgramId
from exchange_api.domain.visibility import CallerIdentity, filter_exchange_programs

logger = logging.getLogger(__name__)


class ExchangeProgramService:
    """Application service for exchange programs"""

    async def publish(
        self,
        uow: AbstractUnitOfWork,
        name: str,
        description: str,
        limit_application_date: date,
        start_date: date,
        finish_date: date,
        application_documents_spec: str,
        required_documents_spec: str,
        images_url: str,
        organization_id: int,
        country_id: int,
        state_id: int,
        status_id: int,
    ) -> ExchangeProgram:
        """
        Create a new exchange program.

        Raises:
            IdAllocationError: Allocator could not provide an id
            InvalidExchangeProgramError: Inconsistent dates
        """
        program_id = await uow.ids.allocate(EXCHANGE_PROGRAMS_SEQUENCE)
        if program_id is None:
            logger.error("Id allocation failed for exchange program")
            raise IdAllocationError("Couldn't get id for the new exchange program")

        program = ExchangeProgram(
            id=ExchangeProgramId(program_id),
            name=to_program_name(name),
            description=description,
            limit_application_date=limit_application_date,
            start_date=start_date,
            finish_date=finish_date,
            application_documents_spec=application_documents_spec,
            required_documents_spec=required_documents_spec,
            images_url=images_url,
            organization_id=organization_id,
            country_id=country_id,
            state_id=state_id,
            status_id=status_id,
        )

        await uow.exchange_programs.save(program)
        uow.add_post_commit_hook(
            lambda: logger.info(f"✅ Exchange program {program_id} published for organization {organization_id}")
        )
        return program

    async def get_by_id(self, uow: AbstractUnitOfWork, program_id: int) -> ExchangeProgram:
        """
        Raises:
            ExchangeProgramNotFoundError: No such program
        """
        program = await uow.exchange_programs.get_by_id(ExchangeProgramId(program_id))
        if program is None:
            raise ExchangeProgramNotFoundError(program_id)
        return program

    async def list_visible(self, uow: AbstractUnitOfWork, caller: CallerIdentity) -> List[ExchangeProgram]:
        """
        List the programs the caller may see.

        A caller with a Pending application gets an empty list.

        Raises:
            ExchangeProgramNotFoundError: No programs stored at all
        """
        programs = await uow.exchange_programs.get_all()
        if not programs:
            raise ExchangeProgramNotFoundError()

        caller_applications = await uow.applications.get_by_student_id(caller.user_id)
        visible = filter_exchange_programs(caller, programs, caller_applications)

        logger.debug(
            f"User {caller.user_id} (role {caller.role_id}, org {caller.organization_id}) "
            f"sees {len(visible)}/{len(programs)} exchange programs"
        )
        return visible

    async def update(
        self,
        uow: AbstractUnitOfWork,
        program_id: int,
        name: str,
        description: str,
        limit_application_date: date,
        start_date: date,
        finish_date: date,
        application_documents_spec: str,
        required_documents_spec: str,
        images_url: str,
        country_id: int,
        state_id: int,
        status_id: int,
    ) -> ExchangeProgram:
        """
        Update every field of a program except its owner.

        Raises:
            ExchangeProgramNotFoundError: No such program
            ValidationFailure: Program deleted or inconsistent dates
        """
        program = await self.get_by_id(uow, program_id)
        program.update_details(
            name=name,
            description=description,
            limit_application_date=limit_application_date,
            start_date=start_date,
            finish_date=finish_date,
            application_documents_spec=application_documents_spec,
            required_documents_spec=required_documents_spec,
            images_url=images_url,
            country_id=country_id,
            state_id=state_id,
            status_id=status_id,
        )
        await uow.exchange_programs.save(program)
        logger.info(f"✏️  Exchange program {program_id} updated")
        return program

    async def close(self, uow: AbstractUnitOfWork, program_id: int) -> ExchangeProgram:
        """
        Soft delete a program.

        Raises:
            ExchangeProgramNotFoundError: No such program
            InvalidStateTransitionError: Already deleted
        """
        program = await self.get_by_id(uow, program_id)
        program.close()
        await uow.exchange_programs.save(program)
        logger.info(f"🔒 Exchange program {program_id} closed")
        return program
