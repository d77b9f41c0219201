"""
Core interfaces for the Exchange Programs service.

Repositories return domain entities from exchange_api.domain.entities,
except IUserRepository which hands back the ORM User row.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from exchange_api.domain.entities import Application, ExchangeProgram
    from exchange_api.domain.value_objects import ApplicationId, ExchangeProgramId
    from exchange_api.db.models import User


# Sequence names understood by IIdAllocator
APPLICATIONS_SEQUENCE = "Applications"
APPLICATION_DOCUMENTS_SEQUENCE = "ApplicationDocuments"
EXCHANGE_PROGRAMS_SEQUENCE = "ExchangePrograms"


class IIdAllocator(ABC):
    """Hands out fresh integer ids per named sequence"""

    @abstractmethod
    async def allocate(self, sequence_name: str) -> Optional[int]:
        """
        Get the next free id of a sequence.

        Args:
            sequence_name: One of the *_SEQUENCE names

        Returns:
            Fresh id, or None if the sequence is unknown or exhausted
        """
        pass


class IApplicationRepository(ABC):
    """
    Interface for application storage and retrieval.

    Implementations must persist an application and its documents together.
    """

    @abstractmethod
    async def get_by_id(self, application_id: 'ApplicationId') -> Optional['Application']:
        """Get application with documents, None if missing"""
        pass

    @abstractmethod
    async def get_all(self) -> List['Application']:
        """All applications ordered by id"""
        pass

    @abstractmethod
    async def get_by_student_id(self, student_id: int) -> List['Application']:
        """Applications submitted by one student, ordered by id"""
        pass

    @abstractmethod
    async def save(self, application: 'Application') -> 'Application':
        """
        Insert or update an application and synchronise its documents.

        Documents missing from the entity are removed from storage.
        """
        pass

    @abstractmethod
    async def delete_document(self, application_id: 'ApplicationId', document_id: int) -> bool:
        """
        Remove a single document.

        Returns:
            True if a document was deleted, False if none matched
        """
        pass


class IExchangeProgramRepository(ABC):
    """Interface for exchange program storage and retrieval"""

    @abstractmethod
    async def get_by_id(self, program_id: 'ExchangeProgramId') -> Optional['ExchangeProgram']:
        pass

    @abstractmethod
    async def get_all(self) -> List['ExchangeProgram']:
        """All exchange programs ordered by id"""
        pass

    @abstractmethod
    async def save(self, program: 'ExchangeProgram') -> 'ExchangeProgram':
        """Insert or update an exchange program"""
        pass


class IUserRepository(ABC):
    """Interface for user lookups"""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional['User']:
        """Get user by database ID"""
        pass
