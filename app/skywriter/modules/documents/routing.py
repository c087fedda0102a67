"""
Route registry.

Routes are write-once rows. A document's `path_id` names its canonical route; any
other route carrying the same `document_id` redirects to it. Renaming a document
never touches an existing route, it only adds one.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.skywriter.db import transaction
from app.skywriter.modules.documents.errors import DocumentNotFound, PathConflict, ValidationError
from app.skywriter.modules.documents.lookup import find_document
from app.skywriter.modules.documents.models import Document, Route

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "/_"

# Route owner used while a new document row does not exist yet (see create_document_route).
PLACEHOLDER_DOCUMENT_ID = 0


def path_problem(path: str | None) -> str | None:
    """Return why `path` cannot be a route, or None if it can."""
    if not path:
        return "Route path cannot be empty"
    if path.startswith(RESERVED_PREFIX):
        return f'Route path "{path}" cannot start with "{RESERVED_PREFIX}"'
    if path.endswith("_"):
        return f'Route path "{path}" cannot end with "_"'
    if path.endswith("/") and path != "/":
        return f'Route path "{path}" cannot end with "/"'
    return None


def route_by_path(s: Session, path: str) -> Route | None:
    return s.execute(select(Route).where(Route.path == path)).scalar_one_or_none()


def create_route(s: Session, path: str, document_id: int) -> Route:
    """
    Insert a new immutable route. Raises PathConflict when the path is taken or
    breaks the path rules; nothing else is modified.
    """
    problem = path_problem(path)
    if problem:
        logger.warning("ROUTE: rejected path=%r: %s", path, problem)
        raise PathConflict(problem)
    if route_by_path(s, path) is not None:
        logger.warning("ROUTE: rejected path=%r: already exists", path)
        raise PathConflict(f'Path "{path}" already exists in routes')

    route = Route(path=path, document_id=document_id)
    s.add(route)
    s.flush()
    logger.info("ROUTE: created id=%s path=%r document_id=%s", route.id, path, document_id)
    return route


def create_document_route(s: Session, path: str) -> Route:
    """
    First route of a document that is about to be inserted. The owner is a
    placeholder until `claim_route` runs; the deferred FK on routes.document_id
    lets both rows land in the same transaction.
    """
    return create_route(s, path, PLACEHOLDER_DOCUMENT_ID)


def claim_route(s: Session, route: Route, document: Document) -> None:
    if route.document_id != PLACEHOLDER_DOCUMENT_ID:
        raise ValueError(f"Route {route.id} already belongs to document {route.document_id}.")
    route.document_id = document.id
    s.flush()


def get_redirects(s: Session, query: Any) -> list[Route]:
    """All non-canonical routes of a document, newest first."""
    found = find_document(s, query)
    if found is None:
        return []
    doc = found.document
    return list(
        s.execute(
            select(Route)
            .where(Route.document_id == doc.id, Route.id != doc.path_id)
            .order_by(Route.created_at.desc(), Route.id.desc())
        ).scalars()
    )


def add_redirect(s: Session, query: Any, path: str) -> Route:
    """Point an additional path at an existing document."""
    with transaction(s):
        found = find_document(s, query)
        if found is None:
            raise DocumentNotFound("Document does not exist")
        route = create_route(s, path, found.document.id)
    return route


def remove_redirect(s: Session, route_query: Any) -> bool:
    """
    Delete a redirect route by id or path. Returns False when no such route exists;
    the canonical route of a document cannot be removed (rename via upsert instead).
    """
    if route_query is None or route_query == "":
        raise ValidationError("Invalid redirect path")

    route_id = None
    route_path = None
    if isinstance(route_query, int) and not isinstance(route_query, bool):
        route_id = route_query
    elif isinstance(route_query, str):
        route_path = route_query
    elif isinstance(route_query, dict) and isinstance(route_query.get("id"), int):
        route_id = route_query["id"]
    elif isinstance(route_query, dict) and isinstance(route_query.get("path"), str):
        route_path = route_query["path"]
    else:
        raise ValidationError(f"Unsupported redirect query: {route_query!r}")

    with transaction(s):
        route = s.get(Route, route_id) if route_id is not None else route_by_path(s, route_path or "")
        if route is None:
            return False
        doc = s.get(Document, route.document_id)
        if doc is not None and doc.path_id == route.id:
            raise ValidationError("Cannot delete canonical path. Use upsert to change the document path instead.")
        s.delete(route)
        s.flush()
        logger.info("ROUTE: removed redirect id=%s path=%r", route.id, route.path)
    return True
