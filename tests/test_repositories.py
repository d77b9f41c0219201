"""
Tests for the SQLAlchemy repositories and the id allocator.
"""
import pytest

from exchange_api.core.interfaces import (
    APPLICATIONS_SEQUENCE,
    APPLICATION_DOCUMENTS_SEQUENCE,
    EXCHANGE_PROGRAMS_SEQUENCE,
)
from exchange_api.domain.entities import Application, Document, ExchangeProgram
from exchange_api.domain.enums import DocumentType, Status
from exchange_api.domain.value_objects import ApplicationId, ExchangeProgramId, ProgramName, Reason
from exchange_api.repositories.id_allocator import MAX_ID
from tests.conftest import program_fields


def make_program(program_id: int, organization_id: int = 1) -> ExchangeProgram:
    fields = program_fields(organization_id=organization_id)
    fields["name"] = ProgramName(fields["name"])
    return ExchangeProgram(id=ExchangeProgramId(program_id), **fields)


def make_document(document_id: int, document_type=DocumentType.APPLICATION, category="cv") -> Document:
    return Document(
        id=document_id,
        document_type=document_type,
        category=category,
        url=f"https://files.example.com/{document_id}",
        status_id=Status.PENDING,
    )


def make_application(application_id: int, documents, program_id: int = 1, student_id: int = 10) -> Application:
    return Application(
        id=ApplicationId(application_id),
        program_id=program_id,
        student_id=student_id,
        reason=Reason("motivated"),
        status_id=Status.PENDING,
        documents=documents,
    )


# ============================================
# Id allocator
# ============================================

@pytest.mark.asyncio
async def test_allocator_starts_at_one(make_uow):
    async with make_uow() as uow:
        assert await uow.ids.allocate(APPLICATIONS_SEQUENCE) == 1
        assert await uow.ids.allocate(APPLICATION_DOCUMENTS_SEQUENCE) == 1
        assert await uow.ids.allocate(EXCHANGE_PROGRAMS_SEQUENCE) == 1


@pytest.mark.asyncio
async def test_allocator_returns_max_plus_one(make_uow):
    async with make_uow() as uow:
        await uow.exchange_programs.save(make_program(4))

    async with make_uow() as uow:
        assert await uow.ids.allocate(EXCHANGE_PROGRAMS_SEQUENCE) == 5


@pytest.mark.asyncio
async def test_allocator_unknown_sequence_returns_none(make_uow):
    async with make_uow() as uow:
        assert await uow.ids.allocate("Invoices") is None


@pytest.mark.asyncio
async def test_allocator_exhausted_sequence_returns_none(make_uow):
    async with make_uow() as uow:
        await uow.exchange_programs.save(make_program(MAX_ID))

    async with make_uow() as uow:
        assert await uow.ids.allocate(EXCHANGE_PROGRAMS_SEQUENCE) is None


# ============================================
# Exchange program repository
# ============================================

@pytest.mark.asyncio
async def test_program_round_trip(make_uow):
    async with make_uow() as uow:
        await uow.exchange_programs.save(make_program(1, organization_id=9))

    async with make_uow() as uow:
        program = await uow.exchange_programs.get_by_id(ExchangeProgramId(1))

    assert program.name.value == "Semester in Lisbon"
    assert program.organization_id == 9
    assert program.required_documents_spec == "Learning agreement"
    assert program.status_id == Status.ACTIVE


@pytest.mark.asyncio
async def test_program_missing_returns_none(make_uow):
    async with make_uow() as uow:
        assert await uow.exchange_programs.get_by_id(ExchangeProgramId(1)) is None
        assert await uow.exchange_programs.get_all() == []


# ============================================
# Application repository
# ============================================

@pytest.mark.asyncio
async def test_application_round_trip_keeps_document_order(make_uow):
    documents = [
        make_document(3, category="transcript"),
        make_document(1, category="passport"),
        make_document(2, DocumentType.REQUIRED, category="visa"),
    ]
    async with make_uow() as uow:
        await uow.applications.save(make_application(1, documents))

    async with make_uow() as uow:
        application = await uow.applications.get_by_id(ApplicationId(1))

    assert [d.id for d in application.application_documents] == [3, 1]
    assert [d.id for d in application.required_documents] == [2]
    assert application.reason.value == "motivated"


@pytest.mark.asyncio
async def test_save_synchronises_documents(make_uow):
    async with make_uow() as uow:
        await uow.applications.save(make_application(1, [make_document(1), make_document(2)]))

    async with make_uow() as uow:
        application = await uow.applications.get_by_id(ApplicationId(1))
        application.replace_documents([
            make_document(2, category="updated"),
            make_document(3, DocumentType.REQUIRED),
        ])
        await uow.applications.save(application)

    async with make_uow() as uow:
        application = await uow.applications.get_by_id(ApplicationId(1))

    assert application.document_ids == [2, 3]
    assert application.documents[0].category == "updated"


@pytest.mark.asyncio
async def test_document_ids_are_scoped_to_their_application(make_uow):
    async with make_uow() as uow:
        await uow.applications.save(make_application(1, [make_document(1)]))
        await uow.applications.save(make_application(2, [make_document(1)]))

    async with make_uow() as uow:
        assert await uow.applications.delete_document(ApplicationId(1), 1) is True

    async with make_uow() as uow:
        first = await uow.applications.get_by_id(ApplicationId(1))
        second = await uow.applications.get_by_id(ApplicationId(2))

    assert first.documents == []
    assert second.document_ids == [1]


@pytest.mark.asyncio
async def test_delete_missing_document_returns_false(make_uow):
    async with make_uow() as uow:
        await uow.applications.save(make_application(1, [make_document(1)]))

    async with make_uow() as uow:
        assert await uow.applications.delete_document(ApplicationId(1), 2) is False
        assert await uow.applications.delete_document(ApplicationId(5), 1) is False


@pytest.mark.asyncio
async def test_get_by_student_id(make_uow):
    async with make_uow() as uow:
        await uow.applications.save(make_application(1, [], student_id=10))
        await uow.applications.save(make_application(2, [], student_id=20))
        await uow.applications.save(make_application(3, [], student_id=10))

    async with make_uow() as uow:
        applications = await uow.applications.get_by_student_id(10)

    assert [a.id.value for a in applications] == [1, 3]


@pytest.mark.asyncio
async def test_failed_unit_of_work_rolls_back(make_uow):
    with pytest.raises(RuntimeError):
        async with make_uow() as uow:
            await uow.applications.save(make_application(1, [make_document(1)]))
            raise RuntimeError("boom")

    async with make_uow() as uow:
        assert await uow.applications.get_all() == []


@pytest.mark.asyncio
async def test_post_commit_hooks_run_after_commit_only(make_uow):
    calls = []

    async with make_uow() as uow:
        uow.add_post_commit_hook(lambda: calls.append("sync"))

        async def async_hook():
            calls.append("async")

        uow.add_post_commit_hook(async_hook)

    with pytest.raises(RuntimeError):
        async with make_uow() as uow:
            uow.add_post_commit_hook(lambda: calls.append("never"))
            raise RuntimeError("boom")

    assert calls == ["sync", "async"]
