"""
Caller identity resolution.

Turns the user id taken from a bearer token into the role/organization
context the visibility rules need.
"""

from typing import Optional
import logging

from exchange_api.domain.entities import UnauthorizedError
from exchange_api.domain.unit_of_work import AbstractUnitOfWork
from exchange_api.domain.visibility import CallerIdentity

logger = logging.getLogger(__name__)


async def resolve_caller(uow: AbstractUnitOfWork, user_id: Optional[int]) -> CallerIdentity:
    """
    Resolve the caller for the current request.

    Args:
        uow: Unit of Work (users repository)
        user_id: Id claim from the token, None if absent or unparseable

    Returns:
        CallerIdentity

    Raises:
        UnauthorizedError: No id, unknown user or deactivated user
    """
    if user_id is None:
        logger.warning("Caller rejected: missing user id")
        raise UnauthorizedError("Missing user id")

    user = await uow.users.get_by_id(user_id)

    if user is None:
        logger.warning(f"Caller rejected: user {user_id} not found")
        raise UnauthorizedError(f"User {user_id} not found")

    if not user.is_active:
        logger.warning(f"Caller rejected: user {user_id} is deactivated")
        raise UnauthorizedError(f"User {user_id} is deactivated")

    return CallerIdentity(
        user_id=user.id,
        role_id=user.role_id,
        organization_id=user.organization_id or 0,
    )
