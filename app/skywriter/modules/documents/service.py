"""
Version controller: the single write path for documents.

Every write is classified once into a WriteIntent, then path/published changes are
applied, then the intent's handler swaps record pointers. Records that lose their
last pointer are deleted in the same transaction.

Intent        | When (existing document unless noted)
--------------|------------------------------------------------------------------
CREATE        | no document matches the query (requires `path`)
WRITE_DRAFT   | draft=True
METADATA_ONLY | draft not True, no record fields sent
PROMOTE_DRAFT | draft not True, record fields sent, published=True, a draft exists
DIRECT_REPLACE| draft not True, record fields sent, anything else

METADATA_ONLY exists so that toggling `published` or renaming never drops a draft.

Concurrency: there is no version column on documents. Two writers racing on the same
document both commit; the later pointer swap wins and the earlier record is orphaned
from the caller's point of view.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from app.skywriter.db import transaction
from app.skywriter.modules.documents.classifiers import DEFAULT_CLASSIFIERS, Classifiers
from app.skywriter.modules.documents.errors import DocumentNotFound, ValidationError
from app.skywriter.modules.documents.lookup import FoundDocument, find_document
from app.skywriter.modules.documents.models import Document
from app.skywriter.modules.documents.reader import build_dual_document
from app.skywriter.modules.documents.records import create_record, delete_record, get_record, records_identical
from app.skywriter.modules.documents.routing import claim_route, create_document_route, create_route
from app.skywriter.modules.documents.schemas import DualDocument, WriteInput

logger = logging.getLogger(__name__)


class WriteIntent(str, enum.Enum):
    CREATE = "create"
    WRITE_DRAFT = "write_draft"
    PROMOTE_DRAFT = "promote_draft"
    METADATA_ONLY = "metadata_only"
    DIRECT_REPLACE = "direct_replace"


def classify_write(write: WriteInput, existing: Document | None) -> WriteIntent:
    if existing is None:
        return WriteIntent.CREATE
    if write.draft is True:
        return WriteIntent.WRITE_DRAFT
    if not write.has_content_fields:
        return WriteIntent.METADATA_ONLY
    if write.published is True and existing.draft_record_id is not None:
        return WriteIntent.PROMOTE_DRAFT
    return WriteIntent.DIRECT_REPLACE


@dataclass
class WriteOutcome:
    """What a handler did; used for logging."""

    created_record_id: int | None = None
    deleted_record_ids: list[int] = field(default_factory=list)

    def deleted(self, *record_ids: int | None) -> None:
        self.deleted_record_ids.extend(rid for rid in record_ids if rid is not None)


def _create_document(s: Session, write: WriteInput, classifiers: Classifiers) -> tuple[Document, WriteOutcome]:
    if not write.path:
        raise ValidationError("path is required when creating a new document")

    record = create_record(s, write.fields, None, classifiers=classifiers)
    route = create_document_route(s, write.path)

    is_draft = write.draft is True
    doc = Document(
        path_id=route.id,
        published=write.published if write.published is not None else not is_draft,
        current_record_id=None if is_draft else record.id,
        draft_record_id=record.id if is_draft else None,
    )
    s.add(doc)
    s.flush()
    claim_route(s, route, doc)
    return doc, WriteOutcome(created_record_id=record.id)


def _apply_metadata(s: Session, found: FoundDocument, write: WriteInput) -> None:
    doc = found.document
    if write.path and write.path != found.route.path:
        new_route = create_route(s, write.path, doc.id)
        doc.path_id = new_route.id
    if write.published is not None and write.published != doc.published:
        doc.published = write.published
    s.flush()


def _write_draft(s: Session, doc: Document, write: WriteInput, classifiers: Classifiers) -> WriteOutcome:
    out = WriteOutcome()
    current = get_record(s, doc.current_record_id)
    old_draft_id = doc.draft_record_id
    # Drafts merge onto the published record only; a draft-only document starts from the write alone.
    base = current

    candidate = create_record(s, write.fields, base, classifiers=classifiers)

    if current is not None and records_identical(candidate, current):
        # No-op edit: collapse back to the published record.
        delete_record(s, candidate.id)
        out.deleted(candidate.id)
        if old_draft_id is not None:
            doc.draft_record_id = None
            s.flush()
            delete_record(s, old_draft_id)
            out.deleted(old_draft_id)
        return out

    doc.draft_record_id = candidate.id
    s.flush()
    out.created_record_id = candidate.id
    if old_draft_id is not None:
        delete_record(s, old_draft_id)
        out.deleted(old_draft_id)
    return out


def _replace_current(s: Session, doc: Document, write: WriteInput, base_id: int | None, classifiers: Classifiers) -> WriteOutcome:
    """Create a new current record from `base_id` + the write, drop the draft, delete both old records."""
    old_current_id = doc.current_record_id
    old_draft_id = doc.draft_record_id

    record = create_record(s, write.fields, get_record(s, base_id), classifiers=classifiers)
    doc.current_record_id = record.id
    doc.draft_record_id = None
    s.flush()

    out = WriteOutcome(created_record_id=record.id)
    delete_record(s, old_current_id)
    delete_record(s, old_draft_id)
    out.deleted(old_current_id, old_draft_id)
    return out


def _promote_draft(s: Session, doc: Document, write: WriteInput, classifiers: Classifiers) -> WriteOutcome:
    return _replace_current(s, doc, write, doc.draft_record_id, classifiers)


def _direct_replace(s: Session, doc: Document, write: WriteInput, classifiers: Classifiers) -> WriteOutcome:
    return _replace_current(s, doc, write, doc.current_record_id, classifiers)


def _metadata_only(s: Session, doc: Document, write: WriteInput, classifiers: Classifiers) -> WriteOutcome:
    return WriteOutcome()


_Handler = Callable[[Session, Document, WriteInput, Classifiers], WriteOutcome]

# CREATE is handled before a document exists and has no entry here.
INTENT_HANDLERS: dict[WriteIntent, _Handler] = {
    WriteIntent.WRITE_DRAFT: _write_draft,
    WriteIntent.PROMOTE_DRAFT: _promote_draft,
    WriteIntent.METADATA_ONLY: _metadata_only,
    WriteIntent.DIRECT_REPLACE: _direct_replace,
}


def _split_query_and_input(query: Any, payload: dict | WriteInput | None) -> tuple[Any, WriteInput]:
    if payload is None:
        # Combined form: one mapping carries both the identity and the write.
        if not isinstance(query, dict):
            raise ValidationError("A write payload is required.")
        return query, WriteInput.from_payload(query)
    if isinstance(payload, WriteInput):
        return query, payload
    if not isinstance(payload, dict):
        raise ValidationError("Write payload must be an object.")
    return query, WriteInput.from_payload(payload)


def upsert(
    s: Session,
    query: Any,
    payload: dict | WriteInput | None = None,
    *,
    classifiers: Classifiers = DEFAULT_CLASSIFIERS,
) -> DualDocument:
    """
    Create or edit a document.

    `query` identifies the document (id, path, or a mapping with either). With a
    single mapping argument it is also the write payload. Runs in one transaction
    on `s`: any failure rolls everything back and the original exception propagates.
    Returns the document's current and draft views as of commit.
    """
    query, write = _split_query_and_input(query, payload)

    with transaction(s):
        found = find_document(s, query)
        intent = classify_write(write, found.document if found else None)

        if found is None:
            doc, outcome = _create_document(s, write, classifiers)
            redirect = False
        else:
            doc = found.document
            redirect = found.redirect
            _apply_metadata(s, found, write)
            outcome = INTENT_HANDLERS[intent](s, doc, write, classifiers)

    logger.info(
        "UPSERT: doc=%s intent=%s created_record=%s deleted_records=%s",
        doc.id,
        intent.value,
        outcome.created_record_id,
        outcome.deleted_record_ids,
    )

    found_after = find_document(s, doc.id)
    if found_after is None:  # pragma: no cover - the row was just written
        raise DocumentNotFound(f"Document {doc.id} vanished after commit")
    found_after.redirect = redirect
    return build_dual_document(s, found_after)


def clear_draft(s: Session, query: Any) -> DualDocument:
    """
    Discard a document's draft and return to the published record.

    A draft that is the document's only record is kept: documents always hold content.
    """
    with transaction(s):
        found = find_document(s, query)
        if found is None:
            raise DocumentNotFound("Document not found")
        doc = found.document
        draft_id = doc.draft_record_id
        if draft_id is not None and doc.current_record_id is not None:
            doc.draft_record_id = None
            s.flush()
            delete_record(s, draft_id)
            logger.info("CLEAR_DRAFT: doc=%s deleted_record=%s", doc.id, draft_id)

    return build_dual_document(s, found)
