"""
Exchange Programs API - programs offered by organizations.

DELETE closes a program (soft delete); programs are never removed.
"""
from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from typing import List
import logging

from exchange_api.api.auth import get_current_user_id
from exchange_api.api.errors import unexpected_error
from exchange_api.application.exchange_program_service import ExchangeProgramService
from exchange_api.application.identity import resolve_caller
from exchange_api.db.connection import get_db_session
from exchange_api.domain.entities import DomainError, ExchangeProgram
from exchange_api.domain.enums import Status
from exchange_api.domain.unit_of_work import get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user_id)])

service = ExchangeProgramService()


# ============================================
# Pydantic Models
# ============================================

class ExchangeProgramFields(BaseModel):
    """Fields shared by publish and update"""
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    limit_application_date: date
    start_date: date
    finish_date: date
    application_documents: str = Field("", description="Documents the applicant must submit")
    required_documents: str = Field("", description="Documents the institution will request")
    images_url: str = ""
    country_id: int
    state_id: int
    status_id: Status = Status.ACTIVE

    @model_validator(mode="after")
    def check_not_deleted(self):
        if self.status_id == Status.DELETED:
            raise ValueError("Use DELETE /exchange-programs/{id} to close a program")
        return self


class PublishExchangeProgramRequest(ExchangeProgramFields):
    organization_id: int = Field(..., ge=0)


class UpdateExchangeProgramRequest(ExchangeProgramFields):
    id: int = Field(..., gt=0)


class ExchangeProgramResponse(BaseModel):
    id: int
    name: str
    description: str
    limit_application_date: date
    start_date: date
    finish_date: date
    application_documents: str
    required_documents: str
    images_url: str
    organization_id: int
    country_id: int
    state_id: int
    status_id: int


def to_response(program: ExchangeProgram) -> ExchangeProgramResponse:
    return ExchangeProgramResponse(
        id=program.id.value,
        name=program.name.value,
        description=program.description,
        limit_application_date=program.limit_application_date,
        start_date=program.start_date,
        finish_date=program.finish_date,
        application_documents=program.application_documents_spec,
        required_documents=program.required_documents_spec,
        images_url=program.images_url,
        organization_id=program.organization_id,
        country_id=program.country_id,
        state_id=program.state_id,
        status_id=int(program.status_id),
    )


# ============================================
# Endpoints
# ============================================

@router.post("/exchange-programs", response_model=ExchangeProgramResponse, status_code=status.HTTP_201_CREATED)
async def publish_exchange_program(
    request: PublishExchangeProgramRequest,
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            program = await service.publish(
                uow,
                name=request.name,
                description=request.description,
                limit_application_date=request.limit_application_date,
                start_date=request.start_date,
                finish_date=request.finish_date,
                application_documents_spec=request.application_documents,
                required_documents_spec=request.required_documents,
                images_url=request.images_url,
                organization_id=request.organization_id,
                country_id=request.country_id,
                state_id=request.state_id,
                status_id=request.status_id,
            )
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Publish exchange program", e)

    return to_response(program)


@router.get("/exchange-programs/{program_id}", response_model=ExchangeProgramResponse)
async def get_exchange_program(
    program_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            program = await service.get_by_id(uow, program_id)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Get exchange program", e)

    return to_response(program)


@router.get("/exchange-programs", response_model=List[ExchangeProgramResponse])
async def list_exchange_programs(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session)
):
    """Programs visible to the caller; empty while the caller has a pending application"""
    try:
        async with get_unit_of_work(db) as uow:
            caller = await resolve_caller(uow, user_id)
            programs = await service.list_visible(uow, caller)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("List exchange programs", e)

    return [to_response(program) for program in programs]


@router.put("/exchange-programs", response_model=ExchangeProgramResponse)
async def update_exchange_program(
    request: UpdateExchangeProgramRequest,
    db: AsyncSession = Depends(get_db_session)
):
    try:
        async with get_unit_of_work(db) as uow:
            program = await service.update(
                uow,
                program_id=request.id,
                name=request.name,
                description=request.description,
                limit_application_date=request.limit_application_date,
                start_date=request.start_date,
                finish_date=request.finish_date,
                application_documents_spec=request.application_documents,
                required_documents_spec=request.required_documents,
                images_url=request.images_url,
                country_id=request.country_id,
                state_id=request.state_id,
                status_id=request.status_id,
            )
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Update exchange program", e)

    return to_response(program)


@router.delete("/exchange-programs/{program_id}", response_model=ExchangeProgramResponse)
async def close_exchange_program(
    program_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db_session)
):
    """Close (soft delete) a program"""
    try:
        async with get_unit_of_work(db) as uow:
            program = await service.close(uow, program_id)
    except DomainError:
        raise
    except Exception as e:
        raise unexpected_error("Close exchange program", e)

    return to_response(program)
