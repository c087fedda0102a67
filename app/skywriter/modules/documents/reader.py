from __future__ import annotations

from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.skywriter.modules.documents.lookup import FoundDocument, find_document
from app.skywriter.modules.documents.models import Document, DocumentRecord, Route
from app.skywriter.modules.documents.schemas import SORT_FIELDS, DocumentInstance, DualDocument, ListOptions

Which = Literal["current", "draft"]


def _instance(doc: Document, route: Route, record: DocumentRecord) -> DocumentInstance:
    return DocumentInstance(
        id=doc.id,
        record_id=record.id,
        path=route.path,
        title=record.title,
        content=record.content,
        data=record.data,
        style=record.style,
        script=record.script,
        server=record.server,
        template_id=record.template_id,
        slot_id=record.slot_id,
        content_type=record.content_type,
        data_type=record.data_type,
        has_eta=record.has_eta,
        mime_type=record.mime_type,
        extension=record.extension,
        published=doc.published,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def get_instance(s: Session, document_id: int, which: Which) -> DocumentInstance | None:
    """The current or draft version of a document, or None if that pointer is empty."""
    if which not in ("current", "draft"):
        raise ValueError(f"which must be 'current' or 'draft' (got {which!r})")
    record_column = Document.current_record_id if which == "current" else Document.draft_record_id
    row = s.execute(
        select(Document, Route, DocumentRecord)
        .join(Route, Route.id == Document.path_id)
        .join(DocumentRecord, DocumentRecord.id == record_column)
        .where(Document.id == document_id)
    ).one_or_none()
    if row is None:
        return None
    doc, route, record = row
    return _instance(doc, route, record)


def build_dual_document(s: Session, found: FoundDocument, *, include_draft: bool = True) -> DualDocument:
    doc = found.document
    current = get_instance(s, doc.id, "current") if doc.current_record_id is not None else None
    draft = None
    if include_draft and doc.draft_record_id is not None:
        draft = get_instance(s, doc.id, "draft")
    return DualDocument(
        id=doc.id,
        path=found.route.path,
        redirect=found.redirect,
        published=doc.published,
        current=current,
        draft=draft,
    )


def get_dual_document(
    s: Session,
    query: Any,
    *,
    draft: bool = False,
    published: bool | None = None,
) -> DualDocument | None:
    """
    Look up one document by id or path (redirects followed).

    The draft instance is only read when `draft=True`; `published` filters by status.
    Returns None when nothing matches or nothing is visible.
    """
    found = find_document(s, query, published=published)
    if found is None:
        return None
    result = build_dual_document(s, found, include_draft=draft)
    if result.current is None and result.draft is None:
        return None
    return result


def get_many(s: Session, options: ListOptions | None = None) -> list[DualDocument]:
    """List canonical documents with filtering, sorting and pagination."""
    opts = options or ListOptions()

    stmt = (
        select(Document, Route)
        .join(Route, Route.id == Document.path_id)
        .outerjoin(DocumentRecord, DocumentRecord.id == Document.current_record_id)
    )
    if opts.published is not None:
        stmt = stmt.where(Document.published == opts.published)
    if opts.starts_with_path is not None:
        stmt = stmt.where(Route.path.startswith(opts.starts_with_path, autoescape=True))

    sort_by = opts.sort_by if opts.sort_by in SORT_FIELDS else "created_at"
    sort_column = {
        "created_at": Document.created_at,
        "updated_at": Document.updated_at,
        "title": DocumentRecord.title,
        "path": Route.path,
    }[sort_by]
    if (opts.sort_order or "").lower() == "asc":
        stmt = stmt.order_by(sort_column.asc(), Document.id.asc())
    else:
        stmt = stmt.order_by(sort_column.desc(), Document.id.desc())

    if opts.limit is not None:
        stmt = stmt.limit(opts.limit)
    if opts.offset:
        stmt = stmt.offset(opts.offset)

    results: list[DualDocument] = []
    for doc, route in s.execute(stmt).all():
        dual = build_dual_document(s, FoundDocument(document=doc, route=route, redirect=False), include_draft=opts.draft)
        if dual.current is None and dual.draft is None:
            continue
        results.append(dual)
    return results
