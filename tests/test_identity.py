"""
Tests for caller identity resolution.
"""
import pytest

from exchange_api.application.identity import resolve_caller
from exchange_api.domain.entities import UnauthorizedError
from exchange_api.domain.enums import Role


@pytest.mark.asyncio
async def test_resolves_role_and_organization(make_uow, add_user):
    user_id = await add_user("uni_porto", Role.ORGANIZATION, organization_id=7)

    async with make_uow() as uow:
        caller = await resolve_caller(uow, user_id)

    assert caller.user_id == user_id
    assert caller.role_id == Role.ORGANIZATION
    assert caller.organization_id == 7
    assert caller.is_affiliated


@pytest.mark.asyncio
async def test_missing_user_id_is_unauthorized(make_uow):
    with pytest.raises(UnauthorizedError):
        async with make_uow() as uow:
            await resolve_caller(uow, None)


@pytest.mark.asyncio
async def test_unknown_user_is_unauthorized(make_uow):
    with pytest.raises(UnauthorizedError) as exc_info:
        async with make_uow() as uow:
            await resolve_caller(uow, 404)

    assert "404" in exc_info.value.message


@pytest.mark.asyncio
async def test_deactivated_user_is_unauthorized(make_uow, add_user):
    user_id = await add_user("former_student", is_active=False)

    with pytest.raises(UnauthorizedError):
        async with make_uow() as uow:
            await resolve_caller(uow, user_id)
