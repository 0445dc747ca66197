from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from flow_reader.core.deps import get_db, parse_uuid
from flow_reader.schemas.document import DocumentCreate, DocumentOut, ProgressUpdate
from flow_reader.services import documents as document_service

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=List[DocumentOut])
def list_documents(db: Session = Depends(get_db)):
    """
    List all registered documents, most recently read first.
    """
    return document_service.list_documents(db)


@router.get("/{document_id}", response_model=DocumentOut)
def get_document(document_id: str, db: Session = Depends(get_db)):
    doc_uuid = parse_uuid(document_id, "문서 ID")
    return document_service.get_document(db, doc_uuid)


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def register_document(data: DocumentCreate, db: Session = Depends(get_db)):
    """
    Register a book the viewer has imported.
    """
    return document_service.register_document(
        db,
        title=data.title,
        author=data.author,
        location=data.location,
        file_type=data.file_type,
        total_units=data.total_units,
    )


@router.patch("/{document_id}/progress", response_model=DocumentOut)
def update_progress(
    document_id: str,
    data: ProgressUpdate,
    db: Session = Depends(get_db),
):
    """
    Save the current page reported by the viewer.
    """
    doc_uuid = parse_uuid(document_id, "문서 ID")
    return document_service.update_progress(
        db, doc_uuid, position=data.position, total_units=data.total_units
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(document_id: str, db: Session = Depends(get_db)):
    """
    Delete a document and all of its chat sessions and messages.
    """
    doc_uuid = parse_uuid(document_id, "문서 ID")
    document_service.delete_document(db, doc_uuid)
    return None
