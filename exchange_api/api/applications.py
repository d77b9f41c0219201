"""
Applications API - student applications to exchange programs.

Every route requires a bearer token. Listing and updating additionally
resolve the caller's role and organization from the database.
"""
from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from exchange_api.api.auth import get_current_user_id
from exchange_api.api.errors import unexpected_error
from exchange_api.application.application_service import ApplicationService
from exchange_api.application.identity import resolve_caller
from exchange_api.db.connection import get_db_session
from exchange_api.domain.document_reconciler import DocumentInput
from exchange_api.domain.entities import Application, DomainError, Document
from exchange_api.domain.enums import Status
from exchange_api.domain.unit_of_work import get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user_id)])

service = ApplicationService()


# ============================================
# Pydantic Models
# ============================================

class DocumentValues(BaseModel):
    """A document in requests and responses. id <= 0 marks a new document."""
    id: int = Field(0, description="Existing document id, or 0/negative for a new one")
    category: str = Field(..., max_length=100)
    url: str = ""
    status_id: int = Status.PENDING
    reason: Optional[str] = None


class PublishApplicationRequest(BaseModel):
    program_id: int = Field(..., gt=0)
    student_id: int = Field(..., gt=0)
    reason: str = ""
    status_id: Status = Status.PENDING
    application_documents: List[DocumentValues] = Field(default_factory=list)
    required_documents: List[DocumentValues] = Field(default_factory=list)


class UpdateApplicationRequest(BaseModel):
    id: int = Field(..., gt=0)
    reason: str = ""
    status_id: Status
    application_documents: List[DocumentValues] = Field(default_factory=list)
    required_documents: List[DocumentValues] = Field(default_factory=list)


class TransitionApplicationRequest(BaseModel):
    """Body of cancel and close"""
    id: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


class ApplicationResponse(BaseModel):
    id: int
    program_id: int
    student_id: int
    reason: str
    status_id: int
    application_documents: List[DocumentValues]
    required_documents: List[DocumentValues]


# ============================================
# Conversion helpers
# ============================================

def _to_inputs(documents: List[DocumentValues]) -> List[DocumentInput]:
    return [
        DocumentInput(
            id=d.id,
            category=d.category,
            url=d.url,
            status_id=d.status_id,
            reason=d.reason,
        )
        for d in documents
    ]


def _document_values(document: Document) -> DocumentValues:
    return DocumentValues(
        id=document.id,
        category=document.category,
        url=document.url,
        status_id=document.status_id,
        reason=document.reason,
    )


def to_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        id=application.id.value,
        program_id=application.program_id,
        student_id=application.student_id,
        reason=application.reason.value,
        status_id=int(application.status_id),
        application_documents=[_document_values(d) for d in application.application_documents],
        required_documents=[_document_values(d) for d in application.required_documents],
    )


# ============================================
# Endpoints
# ============================================

@router.post("/applications", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def publish_application(
    request: PublishApplicationRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """Publish a new application; new documents get fresh ids"""
    try:
        async with get_unit_of_work(db) as uow:
            application = await service.publish(
                uow,
                program_id=request.program_id,
                student_id=request.student_id,
                reason=request.reason,
                status_id=request.status_id,
                application_documents=_to_inputs(request.application_documents),
                required_documents=_to_inputs(request.required_documents),
            )
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Publish application", e)

    return to_response(application)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            application = await service.get_by_id(uow, application_id)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Get application", e)

    return to_response(application)


@router.get("/applications", response_model=List[ApplicationResponse])
async def list_applications(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session)
):
    """Applications visible to the caller (role and organization scoped)"""
    try:
        async with get_unit_of_work(db) as uow:
            caller = await resolve_caller(uow, user_id)
            applications = await service.list_visible(uow, caller)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("List applications", e)

    return [to_response(application) for application in applications]


@router.put("/applications", response_model=ApplicationResponse)
async def update_application(
    request: UpdateApplicationRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Update an application.

    status_id Cancelled/Closed behaves exactly like the cancel/close routes,
    using this request's reason.
    """
    try:
        async with get_unit_of_work(db) as uow:
            caller = await resolve_caller(uow, user_id)
            application = await service.update(
                uow,
                caller,
                application_id=request.id,
                reason=request.reason,
                status_id=request.status_id,
                application_documents=_to_inputs(request.application_documents),
                required_documents=_to_inputs(request.required_documents),
            )
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Update application", e)

    return to_response(application)


@router.put("/applications/cancel", response_model=ApplicationResponse)
async def cancel_application(
    request: TransitionApplicationRequest,
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            application = await service.cancel(uow, request.id, request.reason)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Cancel application", e)

    return to_response(application)


@router.put("/applications/close", response_model=ApplicationResponse)
async def close_application(
    request: TransitionApplicationRequest,
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            application = await service.close(uow, request.id, request.reason)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Close application", e)

    return to_response(application)


@router.delete("/applications/{application_id}/documents/{document_id}")
async def delete_application_document(
    application_id: int = Path(..., gt=0),
    document_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            await service.delete_document(uow, application_id, document_id)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Delete application document", e)

    return {"deleted": True, "application_id": application_id, "document_id": document_id}
