from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.skywriter.models import Base

DEFAULT_MIME_TYPE = "text/html; charset=UTF-8"
DEFAULT_EXTENSION = ".html"


class Route(Base):
    """
    Write-once path -> document mapping.

    The route a document's `path_id` points at is its canonical path; every other
    route with the same `document_id` is a permanent redirect.
    """

    __tablename__ = "routes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    path: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True, index=True)

    # Deferred: a new document and its first route reference each other.
    document_id: Mapped[int] = mapped_column(
        ForeignKey(
            "documents.id",
            ondelete="CASCADE",
            deferrable=True,
            initially="DEFERRED",
            use_alter=True,
            name="routes_document_id_fkey",
        ),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "current_record_id IS NOT NULL OR draft_record_id IS NOT NULL",
            name="documents_must_have_content",
        ),
        CheckConstraint(
            "current_record_id IS NULL OR draft_record_id IS NULL OR current_record_id <> draft_record_id",
            name="draft_must_differ_from_current",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    path_id: Mapped[int] = mapped_column(
        ForeignKey("routes.id", ondelete="CASCADE", name="documents_path_id_fkey"),
        nullable=False,
        unique=True,
    )

    current_record_id: Mapped[int | None] = mapped_column(
        ForeignKey("document_records.id", ondelete="SET NULL", name="documents_current_record_id_fkey"),
        nullable=True,
        index=True,
    )
    draft_record_id: Mapped[int | None] = mapped_column(
        ForeignKey("document_records.id", ondelete="SET NULL", name="documents_draft_record_id_fkey"),
        nullable=True,
        index=True,
    )

    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class DocumentRecord(Base):
    """
    Immutable content snapshot. Never updated in place: a change is a new record
    plus a pointer swap on the owning document, then the old record is deleted.
    """

    __tablename__ = "document_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data: Mapped[str] = mapped_column(Text, nullable=False, default="")
    style: Mapped[str] = mapped_column(Text, nullable=False, default="")
    script: Mapped[str] = mapped_column(Text, nullable=False, default="")
    server: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Composition graph: these point at documents, not records.
    template_id: Mapped[int | None] = mapped_column(
        ForeignKey("documents.id", ondelete="SET NULL", use_alter=True, name="document_records_template_id_fkey"),
        nullable=True,
    )
    slot_id: Mapped[int | None] = mapped_column(
        ForeignKey("documents.id", ondelete="SET NULL", use_alter=True, name="document_records_slot_id_fkey"),
        nullable=True,
    )

    content_type: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    data_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    has_eta: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mime_type: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_MIME_TYPE)
    extension: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_EXTENSION)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
