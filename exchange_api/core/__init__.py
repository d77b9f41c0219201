"""Core module containing interfaces."""

from exchange_api.core.interfaces import (
    IApplicationRepository,
    IExchangeProgramRepository,
    IIdAllocator,
    IUserRepository,
)

__all__ = [
    "IApplicationRepository",
    "IExchangeProgramRepository",
    "IIdAllocator",
    "IUserRepository",
]
