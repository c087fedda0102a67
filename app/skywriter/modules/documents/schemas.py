from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.skywriter.modules.documents.errors import ValidationError

# Fields whose presence in a write means "produce a new record".
CONTENT_FIELDS = (
    "title",
    "content",
    "data",
    "style",
    "script",
    "server",
    "template_id",
    "slot_id",
    "mime_type",
    "extension",
)

# Derived fields a caller may pin explicitly instead of letting the classifiers decide.
OVERRIDE_FIELDS = ("content_type", "data_type", "has_eta")

RECORD_INPUT_FIELDS = CONTENT_FIELDS + OVERRIDE_FIELDS

# Everything that makes two records interchangeable.
COMPARED_FIELDS = RECORD_INPUT_FIELDS

_TEXT_FIELDS = frozenset({"title", "content", "data", "style", "script", "server", "mime_type", "extension"})
_REFERENCE_FIELDS = frozenset({"template_id", "slot_id"})


def _optional_bool(payload: dict, key: str) -> bool | None:
    v = payload.get(key)
    if v is None:
        return None
    if not isinstance(v, bool):
        raise ValidationError(f"{key} must be a boolean.")
    return v


def _check_field(key: str, value: Any) -> Any:
    if value is None:
        return None
    if key in _TEXT_FIELDS and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string.")
    if key in _REFERENCE_FIELDS and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValidationError(f"{key} must be a document id.")
    if key in ("content_type", "data_type") and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string.")
    if key == "has_eta" and not isinstance(value, bool):
        raise ValidationError("has_eta must be a boolean.")
    return value


@dataclass(frozen=True)
class WriteInput:
    """
    One write request. `fields` holds only the record fields the caller actually sent;
    a key mapped to None means "set to empty", an absent key means "keep".
    """

    path: str | None = None
    published: bool | None = None
    draft: bool | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "WriteInput":
        path = payload.get("path")
        if path is not None and not isinstance(path, str):
            raise ValidationError("path must be a string.")
        fields = {k: _check_field(k, payload[k]) for k in RECORD_INPUT_FIELDS if k in payload}
        return cls(
            path=path,
            published=_optional_bool(payload, "published"),
            draft=_optional_bool(payload, "draft"),
            fields=fields,
        )

    @property
    def has_content_fields(self) -> bool:
        return bool(self.fields)


@dataclass(frozen=True)
class DocumentInstance:
    """One materialized version (current or draft) of a document."""

    id: int
    record_id: int
    path: str
    title: str
    content: str
    data: str
    style: str
    script: str
    server: str
    template_id: int | None
    slot_id: int | None
    content_type: str
    data_type: str | None
    has_eta: bool
    mime_type: str
    extension: str
    published: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "record_id": self.record_id,
            "path": self.path,
            "title": self.title,
            "content": self.content,
            "data": self.data,
            "style": self.style,
            "script": self.script,
            "server": self.server,
            "template_id": self.template_id,
            "slot_id": self.slot_id,
            "content_type": self.content_type,
            "data_type": self.data_type,
            "has_eta": self.has_eta,
            "mime_type": self.mime_type,
            "extension": self.extension,
            "published": self.published,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class DualDocument:
    id: int
    path: str
    redirect: bool
    published: bool
    current: DocumentInstance | None = None
    draft: DocumentInstance | None = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "id": self.id,
            "path": self.path,
            "redirect": self.redirect,
            "published": self.published,
        }
        if self.current is not None:
            out["current"] = self.current.to_dict()
        if self.draft is not None:
            out["draft"] = self.draft.to_dict()
        return out


@dataclass(frozen=True)
class SearchResult:
    id: int
    path: str
    published: bool
    title: str
    redirect: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "redirect": self.redirect,
            "published": self.published,
            "title": self.title,
        }


SORT_FIELDS = ("created_at", "updated_at", "title", "path")


@dataclass(frozen=True)
class ListOptions:
    sort_by: str = "created_at"
    sort_order: str = "desc"
    published: bool | None = None
    draft: bool = False
    limit: int | None = None
    offset: int = 0
    starts_with_path: str | None = None


@dataclass(frozen=True)
class SearchOptions:
    query: str = ""
    limit: int = 10
    published: bool | None = None
