from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from app.skywriter.db import db_session
from app.skywriter.modules.documents.errors import DocumentNotFound, PathConflict, ValidationError
from app.skywriter.modules.documents.reader import get_dual_document, get_many
from app.skywriter.modules.documents.routing import add_redirect, get_redirects, remove_redirect
from app.skywriter.modules.documents.schemas import ListOptions, SearchOptions
from app.skywriter.modules.documents.search import search
from app.skywriter.modules.documents.service import clear_draft, upsert

bp = Blueprint("documents_api", __name__)


@bp.errorhandler(ValidationError)
def _validation_error(e: ValidationError):
    return jsonify({"error": str(e)}), 400


@bp.errorhandler(PathConflict)
def _path_conflict(e: PathConflict):
    return jsonify({"error": str(e)}), 409


@bp.errorhandler(DocumentNotFound)
def _not_found(e: DocumentNotFound):
    return jsonify({"error": str(e)}), 404


def _arg_bool(name: str) -> bool | None:
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return None
    if raw in ("1", "true", "yes"):
        return True
    if raw in ("0", "false", "no"):
        return False
    raise ValidationError(f"{name} must be true or false.")


def _arg_int(name: str, default: int | None = None, *, minimum: int = 0) -> int | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer.")
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}.")
    return value


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


@bp.get("")
def list_documents():
    max_limit = current_app.config.get("LIST_MAX_LIMIT", 500)
    limit = _arg_int("limit", minimum=1)
    options = ListOptions(
        sort_by=(request.args.get("sort_by") or "created_at").strip(),
        sort_order=(request.args.get("sort_order") or "desc").strip(),
        published=_arg_bool("published"),
        draft=bool(_arg_bool("draft")),
        limit=min(limit, max_limit) if limit is not None else max_limit,
        offset=_arg_int("offset", 0) or 0,
        starts_with_path=request.args.get("starts_with_path") or None,
    )
    docs = get_many(db_session(), options)
    return jsonify([d.to_dict() for d in docs])


@bp.get("/search")
def search_documents():
    default_limit = current_app.config.get("SEARCH_DEFAULT_LIMIT", 10)
    max_limit = current_app.config.get("SEARCH_MAX_LIMIT", 100)
    try:
        limit = _arg_int("limit", default_limit, minimum=1) or default_limit
    except ValidationError:
        return jsonify({"error": "Limit must be a positive integer"}), 400
    options = SearchOptions(
        query=request.args.get("query") or "",
        limit=min(limit, max_limit),
        published=_arg_bool("published"),
    )
    results = search(db_session(), options)
    return jsonify([r.to_dict() for r in results])


@bp.get("/lookup")
def lookup_document():
    doc_id = _arg_int("id", minimum=1)
    path = request.args.get("path")
    if doc_id is None and not path:
        raise ValidationError("id or path is required.")
    doc = get_dual_document(
        db_session(),
        doc_id if doc_id is not None else path,
        draft=bool(_arg_bool("draft")),
        published=_arg_bool("published"),
    )
    if doc is None:
        raise DocumentNotFound("Document not found")
    return jsonify(doc.to_dict())


@bp.post("")
def upsert_document():
    """
    Body: either {"query": {...}, "input": {...}} or one combined object carrying
    `id`/`path` plus the write fields.
    """
    payload = _json_body()
    if "input" in payload:
        query = payload.get("query") or {}
        data = payload.get("input")
        if not isinstance(data, dict):
            raise ValidationError("input must be an object.")
        doc = upsert(db_session(), query, data)
    else:
        doc = upsert(db_session(), payload)
    return jsonify(doc.to_dict())


@bp.delete("/<int:doc_id>/draft")
def clear_document_draft(doc_id: int):
    doc = clear_draft(db_session(), doc_id)
    return jsonify(doc.to_dict())


@bp.get("/<int:doc_id>/redirects")
def list_redirects(doc_id: int):
    routes = get_redirects(db_session(), doc_id)
    return jsonify([
        {"id": r.id, "path": r.path, "document_id": r.document_id, "created_at": r.created_at.isoformat()}
        for r in routes
    ])


@bp.post("/<int:doc_id>/redirects")
def create_redirect(doc_id: int):
    payload = _json_body()
    path = payload.get("path")
    if not isinstance(path, str) or not path:
        raise ValidationError("path is required.")
    route = add_redirect(db_session(), doc_id, path)
    return jsonify({"id": route.id, "path": route.path, "document_id": route.document_id}), 201


@bp.delete("/redirects/<int:route_id>")
def delete_redirect(route_id: int):
    if not remove_redirect(db_session(), route_id):
        return jsonify({"error": "Redirect not found"}), 404
    return jsonify({"ok": True})
