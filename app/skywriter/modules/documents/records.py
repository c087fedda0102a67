"""
Record store: creates immutable content snapshots.

Field resolution for a new record, per field:
- the caller sent the key (even as None/empty) -> use it
- otherwise, a base record was given -> inherit the base value
- otherwise -> the column default

`content_type` and `has_eta` are derived from the resolved content unless pinned
explicitly. `data` and `data_type` travel together: new data is classified and
stored as canonical JSON, inherited data keeps its stored type.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.skywriter.modules.documents.classifiers import DEFAULT_CLASSIFIERS, Classifiers
from app.skywriter.modules.documents.models import DEFAULT_EXTENSION, DEFAULT_MIME_TYPE, DocumentRecord
from app.skywriter.modules.documents.schemas import COMPARED_FIELDS

_TEXT_DEFAULTS = {
    "title": "",
    "content": "",
    "style": "",
    "script": "",
    "server": "",
}

# Never blank: an explicit None falls back to the base record, then the default.
_FORMAT_DEFAULTS = {
    "mime_type": DEFAULT_MIME_TYPE,
    "extension": DEFAULT_EXTENSION,
}


def _merge(fields: dict[str, Any], base: DocumentRecord | None, key: str, default: Any) -> Any:
    if key in fields:
        v = fields[key]
        return default if v is None and isinstance(default, str) else v
    if base is not None:
        return getattr(base, key)
    return default


def resolve_record_fields(
    fields: dict[str, Any],
    base: DocumentRecord | None = None,
    *,
    classifiers: Classifiers = DEFAULT_CLASSIFIERS,
) -> dict[str, Any]:
    """Compute the full column set for a new record without touching the session."""
    out: dict[str, Any] = {}
    for key, default in _TEXT_DEFAULTS.items():
        out[key] = _merge(fields, base, key, default)

    for key in ("template_id", "slot_id"):
        out[key] = _merge(fields, base, key, None)

    for key, default in _FORMAT_DEFAULTS.items():
        v = fields.get(key)
        if v is None:
            v = getattr(base, key) if base is not None else default
        out[key] = v

    content = out["content"]

    pinned_type = fields.get("content_type")
    out["content_type"] = pinned_type if pinned_type is not None else classifiers.content_type(content)

    pinned_eta = fields.get("has_eta")
    out["has_eta"] = pinned_eta if pinned_eta is not None else classifiers.has_templates(content)

    if "data_type" in fields:
        # Explicit type: store the data exactly as given.
        out["data"] = _merge(fields, base, "data", "")
        out["data_type"] = fields["data_type"]
    elif "data" in fields:
        out["data_type"], out["data"] = classifiers.data(fields["data"] or "")
    elif base is not None:
        out["data"] = base.data
        out["data_type"] = base.data_type
    else:
        out["data"] = ""
        out["data_type"] = None

    return out


def create_record(
    s: Session,
    fields: dict[str, Any],
    base: DocumentRecord | None = None,
    *,
    classifiers: Classifiers = DEFAULT_CLASSIFIERS,
) -> DocumentRecord:
    """Insert one new record; `base` is read, never modified."""
    record = DocumentRecord(**resolve_record_fields(fields, base, classifiers=classifiers))
    s.add(record)
    s.flush()
    return record


def get_record(s: Session, record_id: int | None) -> DocumentRecord | None:
    if record_id is None:
        return None
    return s.get(DocumentRecord, record_id)


def delete_record(s: Session, record_id: int | None) -> None:
    """Delete an orphaned record. Callers must have dropped every pointer to it first."""
    record = get_record(s, record_id)
    if record is None:
        return
    s.delete(record)
    s.flush()


def records_identical(a: DocumentRecord, b: DocumentRecord) -> bool:
    return all(getattr(a, f) == getattr(b, f) for f in COMPARED_FIELDS)
