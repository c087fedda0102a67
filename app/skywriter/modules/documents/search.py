"""
Document search ranked by reuse.

A document that other documents' current records name as their template or slot is
a building block; the more often it is reused, the higher it ranks. Ties (including
the common zero-usage case) fall back to newest first. Only current records are
searched; drafts are never visible here.
"""

from __future__ import annotations

from sqlalchemy import func, select, union_all
from sqlalchemy.orm import Session, aliased

from app.skywriter.modules.documents.models import Document, DocumentRecord, Route
from app.skywriter.modules.documents.schemas import SearchOptions, SearchResult


def _usage_counts():
    """Subquery: document_id -> number of other documents' current records referencing it."""
    referrer = aliased(Document)
    rec = aliased(DocumentRecord)

    def _refs(column):
        return (
            select(column.label("document_id"))
            .select_from(referrer)
            .join(rec, rec.id == referrer.current_record_id)
            .where(column.is_not(None), column != referrer.id)
        )

    refs = union_all(_refs(rec.template_id), _refs(rec.slot_id)).subquery("refs")
    return (
        select(refs.c.document_id, func.count().label("usage_count"))
        .group_by(refs.c.document_id)
        .subquery("usage")
    )


def usage_count(s: Session, document_id: int) -> int:
    usage = _usage_counts()
    n = s.execute(select(usage.c.usage_count).where(usage.c.document_id == document_id)).scalar_one_or_none()
    return int(n or 0)


def search(s: Session, options: SearchOptions | str) -> list[SearchResult]:
    """Case-insensitive substring match on canonical path and current title."""
    opts = SearchOptions(query=options) if isinstance(options, str) else options
    usage = _usage_counts()
    total = func.coalesce(usage.c.usage_count, 0)

    stmt = (
        select(Document, Route.path, DocumentRecord.title)
        .join(Route, Route.id == Document.path_id)
        .join(DocumentRecord, DocumentRecord.id == Document.current_record_id)
        .outerjoin(usage, usage.c.document_id == Document.id)
        .where(
            Route.path.icontains(opts.query, autoescape=True)
            | DocumentRecord.title.icontains(opts.query, autoescape=True)
        )
    )
    if opts.published is not None:
        stmt = stmt.where(Document.published == opts.published)
    stmt = stmt.order_by(total.desc(), Document.created_at.desc(), Document.id.desc()).limit(opts.limit)

    return [
        SearchResult(id=doc.id, path=path, published=doc.published, title=title)
        for doc, path, title in s.execute(stmt).all()
    ]
