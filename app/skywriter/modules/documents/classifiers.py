"""
Content classifiers used by the record store.

All three are pure functions of their input. The record store takes them through a
`Classifiers` bundle so tests can swap in deterministic stand-ins.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import yaml

CONTENT_TYPE_MARKDOWN = "markdown"
CONTENT_TYPE_HTML = "html"

DATA_TYPE_JSON = "json"
DATA_TYPE_YAML = "yaml"


_FULL_DOCTYPE_RE = re.compile(r"^\s*<!doctype\s+html\b", re.I)
_HTML_OPEN_RE = re.compile(r"<html\b[\s>]", re.I)
_HTML_CLOSE_RE = re.compile(r"</html>", re.I)
_BODY_OPEN_RE = re.compile(r"<body\b[\s>]", re.I)
_BODY_CLOSE_RE = re.compile(r"</body>", re.I)

_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]*`")

_MARKDOWN_SIGNALS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"(^|\n)#{1,6}\s+\S"), 3),  # headings
    (re.compile(r"(^|\n)>\s+\S"), 2),  # blockquote
    (re.compile(r"(^|\n)(-|\*|\+)\s+\S"), 2),  # unordered list
    (re.compile(r"(^|\n)\d+\.\s+\S"), 2),  # ordered list
    (re.compile(r"(^|\n)(\*\*|__)\S"), 1),  # bold
    (re.compile(r"(^|\n)(\*|_)\S"), 1),  # italic
    (re.compile(r"\[[^\]]+\]\([^)]+\)"), 2),  # link
    (re.compile(r"!\[[^\]]*\]\([^)]+\)"), 2),  # image
    (re.compile(r"(\n|^)\|.+\|\s*(\n|$)"), 1),  # table row
    (re.compile(r"(\n|^)(-{3,}|\*{3,}|_{3,})(\n|$)"), 1),  # horizontal rule
)

_TAG_RE = re.compile(r"</?[a-z][a-z0-9:-]*\b[^>]*>", re.I)
_TAG_NAME_RE = re.compile(r"^</?\s*([a-z][a-z0-9:-]*)", re.I)
_BLOCK_TAG_RE = re.compile(
    r"</?(div|p|h[1-6]|ul|ol|li|table|thead|tbody|tr|td|th|section|article|header|footer|nav|main|aside"
    r"|blockquote|pre|code)\b",
    re.I,
)
_CLOSING_TAG_RE = re.compile(r"</[a-z][a-z0-9:-]*\s*>", re.I)
_HTML_ATTR_RE = re.compile(r"style\s*=|class\s*=|id\s*=|data-")

# Markdown with only these tags embedded is still Markdown.
_INLINE_TAGS = frozenset({"a", "img", "br", "span", "strong", "em", "code", "kbd", "sup", "sub"})


def detect_content_type(text: str | None) -> str:
    """Classify page content as "markdown" or "html" (empty content is markdown)."""
    s = (text or "").strip()
    if not s:
        return CONTENT_TYPE_MARKDOWN

    if _FULL_DOCTYPE_RE.search(s):
        return CONTENT_TYPE_HTML
    if _HTML_OPEN_RE.search(s) and _HTML_CLOSE_RE.search(s):
        return CONTENT_TYPE_HTML
    if _BODY_OPEN_RE.search(s) and _BODY_CLOSE_RE.search(s):
        return CONTENT_TYPE_HTML

    # Code samples must not count as markup.
    stripped = _INLINE_CODE_RE.sub("", _FENCED_CODE_RE.sub("", s))

    md_score = sum(weight for pattern, weight in _MARKDOWN_SIGNALS if pattern.search(stripped))

    tags = _TAG_RE.findall(stripped)
    html_score = 0
    if len(tags) >= 6:
        html_score += 2
    if sum(1 for t in tags if _BLOCK_TAG_RE.search(t)) >= 2:
        html_score += 3
    if _CLOSING_TAG_RE.search(stripped):
        html_score += 2
    if _HTML_ATTR_RE.search(stripped):
        html_score += 1

    tag_names = []
    for t in tags:
        m = _TAG_NAME_RE.match(t)
        if m:
            tag_names.append(m.group(1).lower())

    has_block_markup = any(name not in _INLINE_TAGS for name in tag_names)
    if tag_names and has_block_markup and html_score > md_score:
        return CONTENT_TYPE_HTML
    return CONTENT_TYPE_MARKDOWN


def has_eta_templates(text: str | None) -> bool:
    """True when the text contains a `<% ... %>` template tag."""
    s = text or ""
    start = s.find("<%")
    if start == -1:
        return False
    return s.find("%>", start + 2) != -1


def _is_structured(value: Any) -> bool:
    return isinstance(value, (dict, list))


def parse_structured_data(text: str) -> tuple[str, Any]:
    """
    Parse `text` as JSON, then YAML. Only objects and arrays are accepted.

    Raises ValueError when the text is empty, malformed, or a bare scalar.
    """
    s = (text or "").strip()
    if not s:
        raise ValueError("Empty input")

    try:
        value = json.loads(s)
    except json.JSONDecodeError:
        pass
    else:
        if _is_structured(value):
            return DATA_TYPE_JSON, value

    try:
        value = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ValueError(f"Input is neither valid JSON nor valid YAML: {e}") from e
    if _is_structured(value):
        return DATA_TYPE_YAML, value

    raise ValueError("Input is neither a JSON nor a YAML object/array")


def _json_key(key: Any) -> Any:
    if key is None or isinstance(key, (str, int, float, bool)):
        return key
    if hasattr(key, "isoformat"):
        return key.isoformat()
    return str(key)


def _string_keys(value: Any) -> Any:
    # YAML keys can be dates or other non-scalar values; JSON keys cannot.
    if isinstance(value, dict):
        return {_json_key(k): _string_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_string_keys(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    # YAML can yield dates/timestamps; store their ISO text.
    return json.dumps(_string_keys(value), ensure_ascii=False, separators=(",", ":"), default=str)


def detect_and_normalize_data(data: str | None) -> tuple[str | None, str]:
    """
    Detect the serialization of `data` and re-serialize it as canonical JSON.

    Returns (data_type, normalized). Empty, unparseable or unserializable input
    comes back unchanged with a None type.
    """
    raw = data or ""
    if not raw:
        return None, raw
    try:
        data_type, value = parse_structured_data(raw)
        normalized = canonical_json(value)
    except (TypeError, ValueError):
        return None, raw
    return data_type, normalized


@dataclass(frozen=True)
class Classifiers:
    content_type: Callable[[str], str] = detect_content_type
    has_templates: Callable[[str], bool] = has_eta_templates
    data: Callable[[str], tuple[str | None, str]] = detect_and_normalize_data


DEFAULT_CLASSIFIERS = Classifiers()
