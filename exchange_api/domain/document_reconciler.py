"""
Document reconciliation - stable id allocation for an application's documents.

Application documents and required documents draw ids from one shared,
increasing sequence per application. Incoming documents either carry a
positive id (already persisted, passed through untouched) or an id <= 0
(new, must be numbered).

Numbering is a fold over a single counter value: first over the
application documents, then over the required documents, so required
document ids always continue after the application documents.

Everything here is pure - no I/O and no shared state.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Set, Tuple

from .entities import Document, DuplicateDocumentIdError
from .enums import DocumentType


@dataclass(frozen=True)
class DocumentInput:
    """Caller-supplied document. id <= 0 marks a new document."""

    id: int
    category: str
    url: str
    status_id: int
    reason: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.id <= 0

    def to_document(self, document_id: int, document_type: DocumentType) -> Document:
        return Document(
            id=document_id,
            document_type=document_type,
            category=self.category,
            url=self.url,
            status_id=self.status_id,
            reason=self.reason,
        )


@dataclass(frozen=True)
class ReconciledDocuments:
    """Result of a reconciliation: both sub-lists plus the final counter"""

    application_documents: Tuple[Document, ...]
    required_documents: Tuple[Document, ...]
    last_id: int

    def all(self) -> list:
        return list(self.application_documents) + list(self.required_documents)


def creation_seed(fresh_id: int) -> int:
    """Counter seed for a new parent: the first assigned id equals fresh_id"""
    return fresh_id - 1


def update_seed(persisted_ids: Iterable[int], fresh_id: int) -> int:
    """Counter seed for an existing parent: its highest persisted id, if any"""
    return max(persisted_ids, default=creation_seed(fresh_id))


def find_duplicate_ids(
    application_inputs: Iterable[DocumentInput],
    required_inputs: Iterable[DocumentInput],
) -> Set[int]:
    """Positive ids that appear more than once across both lists"""
    counts = Counter(
        d.id for d in list(application_inputs) + list(required_inputs) if not d.is_new
    )
    return {document_id for document_id, count in counts.items() if count > 1}


def validate_document_inputs(
    application_inputs: Sequence[DocumentInput],
    required_inputs: Sequence[DocumentInput],
) -> None:
    """
    Reject inputs the reconciler cannot number safely.

    Raises:
        DuplicateDocumentIdError: same positive id supplied twice
    """
    duplicates = find_duplicate_ids(application_inputs, required_inputs)
    if duplicates:
        raise DuplicateDocumentIdError(duplicates)


def _number(
    counter: int,
    inputs: Sequence[DocumentInput],
    document_type: DocumentType,
) -> Tuple[int, Tuple[Document, ...]]:
    """Number one sub-list, returning the advanced counter and its documents"""
    documents = []
    for document in inputs:
        if document.is_new:
            counter += 1
            documents.append(document.to_document(counter, document_type))
        else:
            documents.append(document.to_document(document.id, document_type))
    return counter, tuple(documents)


def reconcile_documents(
    existing_max_id: int,
    application_inputs: Sequence[DocumentInput],
    required_inputs: Sequence[DocumentInput],
) -> ReconciledDocuments:
    """
    Merge incoming documents into a collision-free, consistently numbered set.

    The counter starts above both existing_max_id and every positive id in
    the input, so a new document can never reuse an id that is passed
    through later in either list.

    Args:
        existing_max_id: Highest id already used by the parent (or a seed
            from creation_seed/update_seed)
        application_inputs: Applicant documents, numbered first
        required_inputs: Institution-requested documents, numbered second

    Returns:
        ReconciledDocuments with both sub-lists in received order and the
        last allocated id
    """
    passthrough_ids = [d.id for d in list(application_inputs) + list(required_inputs) if not d.is_new]
    counter = max([existing_max_id] + passthrough_ids)

    counter, application_documents = _number(counter, application_inputs, DocumentType.APPLICATION)
    counter, required_documents = _number(counter, required_inputs, DocumentType.REQUIRED)

    return ReconciledDocuments(
        application_documents=application_documents,
        required_documents=required_documents,
        last_id=counter,
    )
