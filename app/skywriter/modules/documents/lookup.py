from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.skywriter.modules.documents.errors import ValidationError
from app.skywriter.modules.documents.models import Document, Route
from app.skywriter.modules.documents.schemas import DualDocument


@dataclass(frozen=True)
class DocumentQuery:
    id: int | None = None
    path: str | None = None


@dataclass
class FoundDocument:
    document: Document
    route: Route  # canonical route
    redirect: bool


def _is_id(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def normalize_document_query(query: Any) -> DocumentQuery:
    """
    Accepts a document id, a path, a mapping with `id`/`path` (id wins), a Route
    (uses its document_id) or a DualDocument (uses its id).
    """
    if isinstance(query, DocumentQuery):
        return query
    if _is_id(query):
        return DocumentQuery(id=query)
    if isinstance(query, str):
        return DocumentQuery(path=query)
    if isinstance(query, Route):
        return DocumentQuery(id=query.document_id)
    if isinstance(query, DualDocument):
        return DocumentQuery(id=query.id)
    if isinstance(query, dict):
        doc_id = query.get("id")
        path = query.get("path")
        if doc_id is not None:
            if not _is_id(doc_id):
                raise ValidationError("id must be an integer.")
            return DocumentQuery(id=doc_id)
        if path is not None:
            if not isinstance(path, str):
                raise ValidationError("path must be a string.")
            return DocumentQuery(path=path)
        return DocumentQuery()
    raise ValidationError(f"Unsupported document query: {query!r}")


def find_document(s: Session, query: Any, *, published: bool | None = None) -> FoundDocument | None:
    """
    Resolve a document by id or by any of its paths.

    Lookups by id are never redirects; lookups by path are a redirect when the
    matched route is not the document's canonical one.
    """
    q = normalize_document_query(query)

    if q.id is not None:
        doc = s.get(Document, q.id)
        matched_route_id = doc.path_id if doc else None
    elif q.path is not None:
        route = s.execute(select(Route).where(Route.path == q.path)).scalar_one_or_none()
        if route is None:
            return None
        doc = s.get(Document, route.document_id)
        matched_route_id = route.id
    else:
        return None

    if doc is None:
        return None
    if published is not None and doc.published != published:
        return None

    canonical = s.get(Route, doc.path_id)
    if canonical is None:  # pragma: no cover - FK guarantees this
        return None
    return FoundDocument(document=doc, route=canonical, redirect=matched_route_id != doc.path_id)
