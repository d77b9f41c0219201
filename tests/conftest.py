"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database.
"""
from datetime import date

import httpx
import pytest
import pytest_asyncio

from exchange_api.api.auth import create_access_token
from exchange_api.db.connection import build_engine, build_session_maker, create_tables, get_db_session
from exchange_api.db.models import User
from exchange_api.domain.enums import Role, Status
from exchange_api.domain.unit_of_work import SQLAlchemyUnitOfWork

# Not a real bcrypt hash - users created this way cannot log in
UNUSABLE_PASSWORD_HASH = "!"


@pytest_asyncio.fixture
async def session_maker():
    """Create an in-memory test database"""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    yield build_session_maker(engine)

    await engine.dispose()


@pytest.fixture
def make_uow(session_maker):
    """Factory for fresh Units of Work (one session each)"""
    def _make():
        return SQLAlchemyUnitOfWork(session_maker())
    return _make


@pytest.fixture
def add_user(session_maker):
    """Insert a user row directly and return its id"""
    async def _add(username: str, role: Role = Role.STUDENT, organization_id: int = 0, is_active: bool = True) -> int:
        async with session_maker() as session:
            user = User(
                username=username,
                password_hash=UNUSABLE_PASSWORD_HASH,
                role_id=int(role),
                organization_id=organization_id,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user.id
    return _add


def auth_headers(user_id: int, role: Role = Role.STUDENT, organization_id: int = 0) -> dict:
    token, _ = create_access_token(user_id, int(role), organization_id)
    return {"Authorization": f"Bearer {token}"}


def program_payload(organization_id: int = 1, **overrides) -> dict:
    payload = {
        "name": "Semester in Lisbon",
        "description": "One semester at a partner university",
        "limit_application_date": "2027-03-01",
        "start_date": "2027-09-01",
        "finish_date": "2028-01-31",
        "application_documents": "Transcript, motivation letter",
        "required_documents": "Learning agreement",
        "images_url": "https://cdn.example.com/lisbon.jpg",
        "organization_id": organization_id,
        "country_id": 351,
        "state_id": 11,
        "status_id": int(Status.ACTIVE),
    }
    payload.update(overrides)
    return payload


def program_fields(organization_id: int = 1, **overrides) -> dict:
    """Keyword arguments for ExchangeProgramService.publish"""
    fields = {
        "name": "Semester in Lisbon",
        "description": "One semester at a partner university",
        "limit_application_date": date(2027, 3, 1),
        "start_date": date(2027, 9, 1),
        "finish_date": date(2028, 1, 31),
        "application_documents_spec": "Transcript, motivation letter",
        "required_documents_spec": "Learning agreement",
        "images_url": "https://cdn.example.com/lisbon.jpg",
        "organization_id": organization_id,
        "country_id": 351,
        "state_id": 11,
        "status_id": Status.ACTIVE,
    }
    fields.update(overrides)
    return fields


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client bound to the app, using the in-memory database"""
    from exchange_api.main import app

    async def override_get_db_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

    app.dependency_overrides.clear()
