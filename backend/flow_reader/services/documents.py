"""
Document store.

Documents are registered by the viewer after it has imported a file; the
backend keeps their metadata and reading progress and is the foreign-key
target for chat sessions.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from flow_reader.core.clock import utcnow
from flow_reader.core.exceptions import DocumentNotFoundError
from flow_reader.models.document import Document

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Unknown Author"


def list_documents(db: Session) -> List[Document]:
    """Return all documents, most recently read first."""
    return db.query(Document).order_by(Document.updated_at.desc()).all()


def get_document(db: Session, document_id: UUID) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise DocumentNotFoundError()
    return document


def register_document(
    db: Session,
    title: str,
    location: str,
    file_type: str,
    author: Optional[str] = None,
    total_units: Optional[int] = None,
) -> Document:
    """
    Persist metadata for an imported book.

    Args:
        db: Database session
        title: Display title
        location: Where the viewer stored the file
        file_type: "pdf" or "epub"
        author: Author name, "Unknown Author" when missing
        total_units: Page count if the viewer already knows it

    Returns:
        The stored Document
    """
    now = utcnow()
    document = Document(
        title=title,
        author=author or DEFAULT_AUTHOR,
        location=location,
        file_type=file_type,
        last_position=1,
        total_units=total_units,
        created_at=now,
        updated_at=now,
    )
    db.add(document)
    db.commit()
    db.refresh(document)

    logger.info(f"Registered document {document.id} ({file_type})")
    return document


def update_progress(
    db: Session,
    document_id: UUID,
    position: int,
    total_units: Optional[int] = None,
) -> Document:
    """Record the page the viewer reports and bump ``updated_at``."""
    document = get_document(db, document_id)
    document.last_position = position
    if total_units is not None:
        document.total_units = total_units
    document.updated_at = utcnow()
    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, document_id: UUID) -> None:
    """Delete a document together with its sessions and their messages."""
    document = get_document(db, document_id)
    db.delete(document)
    db.commit()
    logger.info(f"Deleted document {document_id}")
