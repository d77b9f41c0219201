"""Database package - all database-related code."""
from exchange_api.db.connection import init_db, get_db_session, close_db
from exchange_api.db.models import Base, ApplicationModel, ApplicationDocumentModel, ExchangeProgramModel, User

__all__ = [
    "init_db",
    "get_db_session",
    "close_db",
    "Base",
    "ApplicationModel",
    "ApplicationDocumentModel",
    "ExchangeProgramModel",
    "User",
]
