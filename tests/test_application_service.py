"""
Tests for ApplicationService against an in-memory database.
"""
import pytest
import pytest_asyncio

from exchange_api.application.application_service import ApplicationService
from exchange_api.application.exchange_program_service import ExchangeProgramService
from exchange_api.core.interfaces import IIdAllocator
from exchange_api.domain.document_reconciler import DocumentInput
from exchange_api.domain.entities import (
    ApplicationNotFoundError,
    DocumentNotFoundError,
    DuplicateDocumentIdError,
    IdAllocationError,
    InvalidStateTransitionError,
    ValidationFailure,
)
from exchange_api.domain.enums import Role, Status
from exchange_api.domain.visibility import CallerIdentity
from tests.conftest import program_fields

service = ApplicationService()
programs = ExchangeProgramService()

ADMIN = CallerIdentity(user_id=1, role_id=Role.ADMINISTRATOR)


class ExhaustedAllocator(IIdAllocator):
    """Allocator that never has an id left"""

    async def allocate(self, sequence_name):
        return None


def doc(document_id: int = 0, category: str = "passport") -> DocumentInput:
    return DocumentInput(id=document_id, category=category, url="", status_id=Status.PENDING)


@pytest_asyncio.fixture
async def program_id(make_uow):
    async with make_uow() as uow:
        program = await programs.publish(uow, **program_fields(organization_id=7))
    return program.id.value


async def publish(make_uow, program_id, student_id=10, application_documents=None, required_documents=None,
                  status_id=Status.PENDING):
    async with make_uow() as uow:
        return await service.publish(
            uow,
            program_id=program_id,
            student_id=student_id,
            reason="",
            status_id=status_id,
            application_documents=application_documents or [],
            required_documents=required_documents or [],
        )


async def load(make_uow, application_id):
    async with make_uow() as uow:
        return await service.get_by_id(uow, application_id)


# ============================================
# Publish
# ============================================

@pytest.mark.asyncio
async def test_publish_numbers_documents_from_fresh_id(make_uow, program_id):
    application = await publish(
        make_uow, program_id,
        application_documents=[doc(category="passport"), doc(category="transcript")],
        required_documents=[doc(category="visa")],
    )

    assert application.id.value == 1
    stored = await load(make_uow, 1)
    assert [d.id for d in stored.application_documents] == [1, 2]
    assert [d.id for d in stored.required_documents] == [3]
    assert stored.status_id == Status.PENDING


@pytest.mark.asyncio
async def test_second_publish_gets_next_ids(make_uow, program_id):
    await publish(make_uow, program_id, application_documents=[doc(), doc()])
    second = await publish(make_uow, program_id, student_id=11, required_documents=[doc()])

    assert second.id.value == 2
    assert second.document_ids == [3]


@pytest.mark.asyncio
async def test_publish_with_only_required_documents(make_uow, program_id):
    application = await publish(make_uow, program_id, required_documents=[doc(), doc()])

    assert application.application_documents == []
    assert [d.id for d in application.required_documents] == [1, 2]


@pytest.mark.asyncio
async def test_publish_for_unknown_program_is_rejected(make_uow, program_id):
    with pytest.raises(ValidationFailure):
        await publish(make_uow, program_id + 1, application_documents=[doc()])

    async with make_uow() as uow:
        assert await uow.applications.get_all() == []


@pytest.mark.asyncio
async def test_publish_for_closed_program_is_rejected(make_uow, program_id):
    async with make_uow() as uow:
        await programs.close(uow, program_id)

    with pytest.raises(ValidationFailure):
        await publish(make_uow, program_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_id", [Status.CANCELLED, Status.CLOSED])
async def test_publish_cannot_start_cancelled_or_closed(make_uow, program_id, status_id):
    with pytest.raises(ValidationFailure):
        await publish(make_uow, program_id, status_id=status_id)


@pytest.mark.asyncio
async def test_publish_rejects_duplicate_document_ids(make_uow, program_id):
    with pytest.raises(DuplicateDocumentIdError):
        await publish(make_uow, program_id, application_documents=[doc(4)], required_documents=[doc(4)])


@pytest.mark.asyncio
async def test_publish_fails_when_no_id_is_available(make_uow, program_id):
    with pytest.raises(IdAllocationError) as exc_info:
        async with make_uow() as uow:
            uow.ids = ExhaustedAllocator()
            await service.publish(
                uow,
                program_id=program_id,
                student_id=10,
                reason="",
                status_id=Status.PENDING,
                application_documents=[doc()],
                required_documents=[],
            )

    assert "Couldn't get id" in exc_info.value.message


# ============================================
# Read / list
# ============================================

@pytest.mark.asyncio
async def test_get_missing_application(make_uow):
    with pytest.raises(ApplicationNotFoundError):
        await load(make_uow, 42)


@pytest.mark.asyncio
async def test_list_with_empty_store_is_not_found(make_uow):
    with pytest.raises(ApplicationNotFoundError):
        async with make_uow() as uow:
            await service.list_visible(uow, ADMIN)


@pytest.mark.asyncio
async def test_list_applies_visibility(make_uow, program_id):
    await publish(make_uow, program_id, student_id=10)
    await publish(make_uow, program_id, student_id=20)

    async with make_uow() as uow:
        student_view = await service.list_visible(uow, CallerIdentity(20, Role.STUDENT))
        organization_view = await service.list_visible(uow, CallerIdentity(5, Role.ORGANIZATION, organization_id=7))
        other_organization_view = await service.list_visible(uow, CallerIdentity(6, Role.ORGANIZATION, organization_id=8))

    assert [a.student_id for a in student_view] == [20]
    assert [a.id.value for a in organization_view] == [1, 2]
    assert other_organization_view == []


# ============================================
# Update
# ============================================

@pytest.mark.asyncio
async def test_update_reconciles_documents(make_uow, program_id):
    await publish(make_uow, program_id, application_documents=[doc(), doc()], required_documents=[doc()])

    async with make_uow() as uow:
        updated = await service.update(
            uow, ADMIN,
            application_id=1,
            reason="reviewed",
            status_id=Status.APPROVED,
            application_documents=[doc(1, "passport"), doc(category="diploma")],
            required_documents=[doc(3, "visa")],
        )

    assert [d.id for d in updated.application_documents] == [1, 4]
    stored = await load(make_uow, 1)
    assert stored.document_ids == [1, 4, 3]
    assert stored.status_id == Status.APPROVED
    assert stored.reason.value == "reviewed"


@pytest.mark.asyncio
async def test_update_numbers_after_the_applications_own_documents(make_uow, program_id):
    """Document ids only need to be unique inside one application"""
    await publish(make_uow, program_id, application_documents=[doc(), doc()])
    await publish(make_uow, program_id, student_id=11, application_documents=[doc(), doc(), doc()])

    async with make_uow() as uow:
        updated = await service.update(
            uow, ADMIN,
            application_id=1,
            reason="",
            status_id=Status.PENDING,
            application_documents=[doc(1), doc(2), doc()],
            required_documents=[],
        )

    assert updated.document_ids == [1, 2, 3]


@pytest.mark.asyncio
async def test_update_without_documents_draws_from_fresh_id(make_uow, program_id):
    await publish(make_uow, program_id, student_id=11, application_documents=[doc(), doc()])
    await publish(make_uow, program_id)

    async with make_uow() as uow:
        updated = await service.update(
            uow, ADMIN,
            application_id=2,
            reason="",
            status_id=Status.PENDING,
            application_documents=[doc()],
            required_documents=[],
        )

    assert updated.document_ids == [3]


@pytest.mark.asyncio
async def test_update_missing_application(make_uow, program_id):
    with pytest.raises(ApplicationNotFoundError):
        async with make_uow() as uow:
            await service.update(uow, ADMIN, 9, "", Status.PENDING, [], [])


@pytest.mark.asyncio
async def test_update_with_duplicate_ids_changes_nothing(make_uow, program_id):
    await publish(make_uow, program_id, application_documents=[doc(), doc()])

    with pytest.raises(DuplicateDocumentIdError):
        async with make_uow() as uow:
            await service.update(uow, ADMIN, 1, "x", Status.APPROVED, [doc(1)], [doc(1)])

    stored = await load(make_uow, 1)
    assert stored.document_ids == [1, 2]
    assert stored.status_id == Status.PENDING


@pytest.mark.asyncio
async def test_update_to_cancelled_behaves_like_cancel(make_uow, program_id):
    await publish(make_uow, program_id, application_documents=[doc()])

    async with make_uow() as uow:
        await service.update(uow, ADMIN, 1, "changed my mind", Status.CANCELLED, [doc(), doc()], [])

    stored = await load(make_uow, 1)
    assert stored.status_id == Status.CANCELLED
    assert stored.reason.value == "changed my mind"
    assert stored.document_ids == [1]


@pytest.mark.asyncio
async def test_update_to_closed_needs_a_reason(make_uow, program_id):
    await publish(make_uow, program_id)

    with pytest.raises(ValidationFailure):
        async with make_uow() as uow:
            await service.update(uow, ADMIN, 1, "  ", Status.CLOSED, [], [])

    stored = await load(make_uow, 1)
    assert stored.status_id == Status.PENDING


@pytest.mark.asyncio
async def test_update_to_closed_from_approved_is_invalid(make_uow, program_id):
    await publish(make_uow, program_id, status_id=Status.APPROVED)

    with pytest.raises(InvalidStateTransitionError):
        async with make_uow() as uow:
            await service.update(uow, ADMIN, 1, "late", Status.CLOSED, [], [])


# ============================================
# Cancel / Close / delete document
# ============================================

@pytest.mark.asyncio
async def test_cancel_and_close(make_uow, program_id):
    await publish(make_uow, program_id)
    await publish(make_uow, program_id, student_id=11)

    async with make_uow() as uow:
        await service.cancel(uow, 1, "no funding")
        await service.close(uow, 2, "deadline")

    assert (await load(make_uow, 1)).status_id == Status.CANCELLED
    assert (await load(make_uow, 2)).status_id == Status.CLOSED


@pytest.mark.asyncio
async def test_cancel_twice_is_invalid(make_uow, program_id):
    await publish(make_uow, program_id)

    async with make_uow() as uow:
        await service.cancel(uow, 1, "no funding")

    with pytest.raises(InvalidStateTransitionError):
        async with make_uow() as uow:
            await service.cancel(uow, 1, "again")


@pytest.mark.asyncio
async def test_cancel_missing_application(make_uow):
    with pytest.raises(ApplicationNotFoundError):
        async with make_uow() as uow:
            await service.cancel(uow, 3, "reason")


@pytest.mark.asyncio
async def test_delete_document(make_uow, program_id):
    await publish(make_uow, program_id, application_documents=[doc(), doc()])

    async with make_uow() as uow:
        await service.delete_document(uow, 1, 2)

    assert (await load(make_uow, 1)).document_ids == [1]

    with pytest.raises(DocumentNotFoundError):
        async with make_uow() as uow:
            await service.delete_document(uow, 1, 2)
