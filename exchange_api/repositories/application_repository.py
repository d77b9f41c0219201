"""
Application Repository implementation using SQLAlchemy.

Handles conversion between:
- Domain entities (Application, Document) → ORM models (ApplicationModel, ApplicationDocumentModel)
- ORM models → Domain entities
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
import logging

from exchange_api.core.interfaces import IApplicationRepository
from exchange_api.domain.entities import Application, Document
from exchange_api.domain.enums import DocumentType
from exchange_api.domain.value_objects import ApplicationId, optional_reason
from exchange_api.db.models import ApplicationModel, ApplicationDocumentModel

logger = logging.getLogger(__name__)


class ApplicationRepository(IApplicationRepository):
    """SQLAlchemy implementation of IApplicationRepository"""

    def __init__(self, db_session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self._db = db_session

    def _select(self):
        return select(ApplicationModel).options(selectinload(ApplicationModel.documents))

    async def get_by_id(self, application_id: ApplicationId) -> Optional[Application]:
        """Retrieve application by ID with documents"""
        result = await self._db.execute(
            self._select().where(ApplicationModel.id == application_id.value)
        )
        db_application = result.scalar_one_or_none()

        if db_application is None:
            return None

        return self._to_domain(db_application)

    async def get_all(self) -> List[Application]:
        """All applications ordered by id"""
        result = await self._db.execute(self._select().order_by(ApplicationModel.id))
        return [self._to_domain(row) for row in result.scalars().all()]

    async def get_by_student_id(self, student_id: int) -> List[Application]:
        """Applications submitted by one student"""
        result = await self._db.execute(
            self._select()
            .where(ApplicationModel.student_id == student_id)
            .order_by(ApplicationModel.id)
        )
        return [self._to_domain(row) for row in result.scalars().all()]

    async def save(self, application: Application) -> Application:
        """
        Insert or update an application and its documents.

        Document rows are synchronised in place: rows whose id is no longer
        present are removed, others updated, new ones added.

        Args:
            application: Domain Application entity

        Returns:
            Saved application
        """
        result = await self._db.execute(
            self._select().where(ApplicationModel.id == application.id.value)
        )
        db_application = result.scalar_one_or_none()

        if db_application is None:
            db_application = ApplicationModel(id=application.id.value)
            db_application.documents = []
            self._db.add(db_application)

        db_application.program_id = application.program_id
        db_application.student_id = application.student_id
        db_application.reason = application.reason.value
        db_application.status_id = int(application.status_id)

        self._sync_documents(db_application, application.documents)

        await self._db.flush()

        logger.info(
            f"💾 Saved application {application.id} "
            f"with {len(application.documents)} document(s)"
        )

        return application

    def _sync_documents(self, db_application: ApplicationModel, documents: List[Document]) -> None:
        existing = {row.id: row for row in db_application.documents}
        wanted_ids = {document.id for document in documents}

        for row in list(db_application.documents):
            if row.id not in wanted_ids:
                db_application.documents.remove(row)

        for position, document in enumerate(documents):
            row = existing.get(document.id)
            if row is None:
                row = ApplicationDocumentModel(id=document.id)
                db_application.documents.append(row)
            row.document_type = int(document.document_type)
            row.position = position
            row.category = document.category
            row.url = document.url
            row.status_id = document.status_id
            row.reason = document.reason

    async def delete_document(self, application_id: ApplicationId, document_id: int) -> bool:
        """Remove a single document, True if a row was deleted"""
        result = await self._db.execute(
            delete(ApplicationDocumentModel).where(
                ApplicationDocumentModel.application_id == application_id.value,
                ApplicationDocumentModel.id == document_id,
            )
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"🗑️  Deleted document {document_id} from application {application_id}")
        return deleted

    # Conversion helpers

    def _to_domain(self, db_application: ApplicationModel) -> Application:
        return Application(
            id=ApplicationId(db_application.id),
            program_id=db_application.program_id,
            student_id=db_application.student_id,
            reason=optional_reason(db_application.reason),
            status_id=db_application.status_id,
            documents=[self._document_to_domain(row) for row in db_application.documents],
        )

    @staticmethod
    def _document_to_domain(row: ApplicationDocumentModel) -> Document:
        return Document(
            id=row.id,
            document_type=DocumentType(row.document_type),
            category=row.category,
            url=row.url,
            status_id=row.status_id,
            reason=row.reason,
        )
