"""
Application Service - Business logic orchestration for student applications.

This service provides a unified interface for:
- Publishing applications (id allocation + document numbering)
- Reading and listing applications (visibility rules)
- Updating applications (document reconciliation, status redirection)
- Cancel / Close transitions
- Removing single documents

All writes go through a Unit of Work: the reconciled document set and the
status change are committed together or not at all.
"""

from typing import List, Sequence
import logging

from exchange_api.core.interfaces import APPLICATIONS_SEQUENCE, APPLICATION_DOCUMENTS_SEQUENCE
from exchange_api.domain.document_reconciler import (
    DocumentInput,
    creation_seed,
    reconcile_documents,
    update_seed,
    validate_document_inputs,
)
from exchange_api.domain.entities import (
    Application,
    ApplicationNotFoundError,
    DocumentNotFoundError,
    IdAllocationError,
    ValidationFailure,
    to_reason,
)
from exchange_api.domain.enums import Status
from exchange_api.domain.unit_of_work import AbstractUnitOfWork
from exchange_api.domain.value_objects import ApplicationId, ExchangeProgramId
from exchange_api.domain.visibility import CallerIdentity, filter_applications

logger = logging.getLogger(__name__)


async def _allocate(uow: AbstractUnitOfWork, sequence_name: str, what: str) -> int:
    fresh_id = await uow.ids.allocate(sequence_name)
    if fresh_id is None:
        logger.error(f"Id allocation failed for {sequence_name}")
        raise IdAllocationError(f"Couldn't get id for the new {what}")
    return fresh_id


class ApplicationService:
    """
    Application service for student applications.

    Orchestrates:
    - Id allocation (uow.ids)
    - Document reconciliation (pure domain functions)
    - Persistence (uow.applications)
    """

    async def publish(
        self,
        uow: AbstractUnitOfWork,
        program_id: int,
        student_id: int,
        reason: str,
        status_id: int,
        application_documents: Sequence[DocumentInput],
        required_documents: Sequence[DocumentInput],
    ) -> Application:
        """
        Create a new application with freshly numbered documents.

        Raises:
            IdAllocationError: Allocator could not provide an id
            ValidationFailure: Unknown/deleted program, duplicate document ids,
                or a Cancelled/Closed initial status
        """
        if status_id in (Status.CANCELLED, Status.CLOSED):
            raise ValidationFailure("A new application cannot start Cancelled or Closed")

        application_id = await _allocate(uow, APPLICATIONS_SEQUENCE, "application")
        fresh_document_id = await _allocate(uow, APPLICATION_DOCUMENTS_SEQUENCE, "application document")

        validate_document_inputs(application_documents, required_documents)

        program = await uow.exchange_programs.get_by_id(ExchangeProgramId(program_id))
        if program is None or program.is_deleted:
            logger.warning(f"Publish rejected: exchange program {program_id} unavailable")
            raise ValidationFailure(f"Exchange program {program_id} is not available")

        reconciled = reconcile_documents(
            creation_seed(fresh_document_id),
            application_documents,
            required_documents,
        )

        application = Application(
            id=ApplicationId(application_id),
            program_id=program_id,
            student_id=student_id,
            reason=to_reason(reason),
            status_id=status_id,
            documents=reconciled.all(),
        )

        await uow.applications.save(application)
        uow.add_post_commit_hook(
            lambda: logger.info(
                f"✅ Application {application_id} published for program {program_id} "
                f"(documents up to id {reconciled.last_id})"
            )
        )
        return application

    async def get_by_id(self, uow: AbstractUnitOfWork, application_id: int) -> Application:
        """
        Raises:
            ApplicationNotFoundError: No such application
        """
        application = await uow.applications.get_by_id(ApplicationId(application_id))
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def list_visible(self, uow: AbstractUnitOfWork, caller: CallerIdentity) -> List[Application]:
        """
        List the applications the caller may see.

        Applications and programs are read through the same unit of work.

        Raises:
            ApplicationNotFoundError: No applications stored at all
        """
        applications = await uow.applications.get_all()
        if not applications:
            raise ApplicationNotFoundError()

        programs = await uow.exchange_programs.get_all()
        visible = filter_applications(caller, applications, programs)

        logger.debug(
            f"User {caller.user_id} (role {caller.role_id}, org {caller.organization_id}) "
            f"sees {len(visible)}/{len(applications)} applications"
        )
        return visible

    async def update(
        self,
        uow: AbstractUnitOfWork,
        caller: CallerIdentity,
        application_id: int,
        reason: str,
        status_id: int,
        application_documents: Sequence[DocumentInput],
        required_documents: Sequence[DocumentInput],
    ) -> Application:
        """
        Update an application.

        A requested status of Cancelled or Closed is dispatched to the
        dedicated transition with the request's reason; documents in the
        request are then ignored.

        Raises:
            ApplicationNotFoundError: No such application
            IdAllocationError: Allocator could not provide an id
            ValidationFailure: Duplicate document ids, deleted application,
                or an invalid transition
        """
        if status_id == Status.CANCELLED:
            logger.info(f"Update of application {application_id} redirected to cancel by user {caller.user_id}")
            return await self.cancel(uow, application_id, reason)

        if status_id == Status.CLOSED:
            logger.info(f"Update of application {application_id} redirected to close by user {caller.user_id}")
            return await self.close(uow, application_id, reason)

        fresh_document_id = await _allocate(uow, APPLICATION_DOCUMENTS_SEQUENCE, "application document")

        validate_document_inputs(application_documents, required_documents)

        application = await self.get_by_id(uow, application_id)

        reconciled = reconcile_documents(
            update_seed(application.document_ids, fresh_document_id),
            application_documents,
            required_documents,
        )

        application.update_details(reason, status_id)
        application.replace_documents(reconciled.all())

        await uow.applications.save(application)
        logger.info(
            f"✏️  Application {application_id} updated by user {caller.user_id} "
            f"({len(application.documents)} documents, last id {reconciled.last_id})"
        )
        return application

    async def cancel(self, uow: AbstractUnitOfWork, application_id: int, reason: str) -> Application:
        """Pending -> Cancelled"""
        application = await self.get_by_id(uow, application_id)
        application.cancel(reason)
        await uow.applications.save(application)
        logger.info(f"🚫 Application {application_id} cancelled")
        return application

    async def close(self, uow: AbstractUnitOfWork, application_id: int, reason: str) -> Application:
        """Pending -> Closed"""
        application = await self.get_by_id(uow, application_id)
        application.close(reason)
        await uow.applications.save(application)
        logger.info(f"🔒 Application {application_id} closed")
        return application

    async def delete_document(self, uow: AbstractUnitOfWork, application_id: int, document_id: int) -> None:
        """
        Raises:
            DocumentNotFoundError: Nothing matched the pair of ids
        """
        deleted = await uow.applications.delete_document(ApplicationId(application_id), document_id)
        if not deleted:
            raise DocumentNotFoundError(application_id, document_id)
