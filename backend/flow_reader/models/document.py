import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship

from flow_reader.core.clock import utcnow
from flow_reader.db.base import Base


class Document(Base):
    """
    A book registered with the reader.

    The rendering layer owns the file itself; this row only records where it
    lives and how far the user has read.
    """

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint("file_type IN ('pdf', 'epub')", name="ck_documents_file_type"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    author = Column(String, nullable=True)

    # Opaque per-format location handed over by the viewer
    location = Column(String, nullable=False)
    file_type = Column(String(10), nullable=False)

    last_position = Column(Integer, nullable=False, default=1)
    total_units = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    chat_sessions = relationship(
        "ChatSession",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="desc(ChatSession.updated_at)",
    )
