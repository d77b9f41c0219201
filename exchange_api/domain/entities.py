"""
Domain Entities - Rich business objects with identity and lifecycle.

Entities differ from value objects in that they have:
- Identity (tracked by ID, not by value)
- Mutable state (can change over time)
- Business logic (methods that enforce invariants)

The Application entity is an aggregate root - it owns Documents.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from .enums import DocumentType, Status
from .value_objects import ApplicationId, ExchangeProgramId, ProgramName, Reason


# Domain exceptions

class DomainError(Exception):
    """Base exception for domain layer errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a requested entity doesn't exist"""
    pass


class UnauthorizedError(DomainError):
    """Raised when the caller identity is missing or cannot be resolved"""
    pass


class ValidationFailure(DomainError):
    """Raised when a request violates a domain rule"""
    pass


class ApplicationNotFoundError(NotFoundError):
    """Raised when application doesn't exist"""

    def __init__(self, application_id: Optional[int] = None):
        self.application_id = application_id
        if application_id is None:
            super().__init__("No applications found")
        else:
            super().__init__(f"Application {application_id} not found")


class ExchangeProgramNotFoundError(NotFoundError):
    """Raised when exchange program doesn't exist"""

    def __init__(self, program_id: Optional[int] = None):
        self.program_id = program_id
        if program_id is None:
            super().__init__("No exchange programs found")
        else:
            super().__init__(f"Exchange program {program_id} not found")


class DocumentNotFoundError(NotFoundError):
    """Raised when a document doesn't exist within its application"""

    def __init__(self, application_id: int, document_id: int):
        self.application_id = application_id
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found in application {application_id}")


class InvalidStateTransitionError(ValidationFailure):
    """Raised when a lifecycle transition is not allowed from the current status"""

    def __init__(self, entity: str, current: Status, target: Status):
        self.current = current
        self.target = target
        super().__init__(
            f"{entity} cannot move from {current.name} to {target.name}"
        )


class DuplicateDocumentIdError(ValidationFailure):
    """Raised when the same positive document id is supplied more than once"""

    def __init__(self, document_ids: Iterable[int]):
        self.document_ids = sorted(document_ids)
        ids = ", ".join(str(i) for i in self.document_ids)
        super().__init__(f"Duplicate document ids: {ids}")


class IdAllocationError(ValidationFailure):
    """Raised when the id allocator cannot provide a fresh id"""
    pass


class InvalidExchangeProgramError(ValidationFailure):
    """Raised when exchange program fields are inconsistent"""
    pass


def to_reason(text: Optional[str]) -> Reason:
    """Build a Reason from request text, ValidationFailure if it breaks a limit"""
    try:
        return Reason(text or "")
    except ValueError as e:
        raise ValidationFailure(str(e))


def to_program_name(text: str) -> ProgramName:
    """Build a ProgramName from request text, ValidationFailure if blank or too long"""
    try:
        return ProgramName(text)
    except ValueError as e:
        raise ValidationFailure(str(e))


@dataclass
class Document:
    """
    Document entity - part of the Application aggregate.

    Application documents and required documents share one id space per
    application; document_type tells them apart.
    """

    id: int
    document_type: DocumentType
    category: str
    url: str
    status_id: int
    reason: Optional[str] = None

    @property
    def is_required(self) -> bool:
        return self.document_type == DocumentType.REQUIRED

    def __repr__(self) -> str:
        return f"Document(id={self.id}, type={self.document_type.name}, category={self.category})"


@dataclass
class Application:
    """
    Application aggregate root.

    Invariants:
    1. Every document id is unique within the application
    2. Cancel and Close only happen from Pending and always carry a reason
    3. Generic updates never write Cancelled or Closed directly
    """

    id: ApplicationId
    program_id: int
    student_id: int
    reason: Reason
    status_id: int = Status.PENDING
    documents: List[Document] = field(default_factory=list)

    def __post_init__(self):
        self._check_unique_ids(self.documents)

    @staticmethod
    def _check_unique_ids(documents: Iterable[Document]) -> None:
        seen = set()
        duplicates = set()
        for document in documents:
            if document.id in seen:
                duplicates.add(document.id)
            seen.add(document.id)
        if duplicates:
            raise DuplicateDocumentIdError(duplicates)

    # Read helpers

    @property
    def application_documents(self) -> List[Document]:
        return [d for d in self.documents if d.document_type == DocumentType.APPLICATION]

    @property
    def required_documents(self) -> List[Document]:
        return [d for d in self.documents if d.document_type == DocumentType.REQUIRED]

    @property
    def document_ids(self) -> List[int]:
        return [d.id for d in self.documents]

    @property
    def is_pending(self) -> bool:
        return self.status_id == Status.PENDING

    @property
    def is_deleted(self) -> bool:
        return self.status_id == Status.DELETED

    # Business logic methods

    def cancel(self, reason: str) -> None:
        """Pending -> Cancelled, recording why"""
        self._transition(Status.CANCELLED, reason)

    def close(self, reason: str) -> None:
        """Pending -> Closed, recording why"""
        self._transition(Status.CLOSED, reason)

    def _transition(self, target: Status, reason: str) -> None:
        if not self.is_pending:
            raise InvalidStateTransitionError("Application", Status(self.status_id), target)
        new_reason = to_reason(reason)
        if new_reason.is_blank:
            raise ValidationFailure(f"A reason is required to move an application to {target.name}")
        self.reason = new_reason
        self.status_id = target

    def update_details(self, reason: str, status_id: int) -> None:
        """
        Generic field update.

        Raises:
            ValidationFailure: application deleted, or target status is
                Cancelled/Closed (use cancel/close instead)
        """
        if self.is_deleted:
            raise ValidationFailure(f"Application {self.id} is deleted")
        if status_id in (Status.CANCELLED, Status.CLOSED):
            raise ValidationFailure(
                f"Status {Status(status_id).name} must be set through its dedicated transition"
            )
        self.reason = to_reason(reason)
        self.status_id = status_id

    def replace_documents(self, documents: Iterable[Document]) -> None:
        """Replace the whole document set (output of the reconciler)"""
        documents = list(documents)
        self._check_unique_ids(documents)
        self.documents = documents

    def __repr__(self) -> str:
        return (
            f"Application(id={self.id}, program={self.program_id}, "
            f"student={self.student_id}, status={self.status_id}, documents={len(self.documents)})"
        )


@dataclass
class ExchangeProgram:
    """
    Exchange program offered by an organization.

    application_documents_spec / required_documents_spec describe, in free
    text, which documents applicants submit and which the institution asks for.
    """

    id: ExchangeProgramId
    name: ProgramName
    description: str
    limit_application_date: date
    start_date: date
    finish_date: date
    application_documents_spec: str
    required_documents_spec: str
    images_url: str
    organization_id: int
    country_id: int
    state_id: int
    status_id: int = Status.ACTIVE

    def __post_init__(self):
        self._validate_dates(self.limit_application_date, self.start_date, self.finish_date)

    @staticmethod
    def _validate_dates(limit_application_date: date, start_date: date, finish_date: date) -> None:
        if finish_date < start_date:
            raise InvalidExchangeProgramError(
                f"Finish date {finish_date} is before start date {start_date}"
            )
        if limit_application_date > start_date:
            raise InvalidExchangeProgramError(
                f"Application deadline {limit_application_date} is after start date {start_date}"
            )

    @property
    def is_deleted(self) -> bool:
        return self.status_id == Status.DELETED

    def update_details(
        self,
        name: str,
        description: str,
        limit_application_date: date,
        start_date: date,
        finish_date: date,
        application_documents_spec: str,
        required_documents_spec: str,
        images_url: str,
        country_id: int,
        state_id: int,
        status_id: int,
    ) -> None:
        """Update every field except id and owning organization"""
        if self.is_deleted:
            raise ValidationFailure(f"Exchange program {self.id} is deleted")
        self._validate_dates(limit_application_date, start_date, finish_date)

        self.name = to_program_name(name)
        self.description = description
        self.limit_application_date = limit_application_date
        self.start_date = start_date
        self.finish_date = finish_date
        self.application_documents_spec = application_documents_spec
        self.required_documents_spec = required_documents_spec
        self.images_url = images_url
        self.country_id = country_id
        self.state_id = state_id
        self.status_id = status_id

    def close(self) -> None:
        """Soft delete - the only destructive transition for a program"""
        if self.is_deleted:
            raise InvalidStateTransitionError("Exchange program", Status.DELETED, Status.DELETED)
        self.status_id = Status.DELETED

    def __repr__(self) -> str:
        return (
            f"ExchangeProgram(id={self.id}, name={self.name}, "
            f"organization={self.organization_id}, status={self.status_id})"
        )
