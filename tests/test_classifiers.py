"""Tests for content, template and data classifiers."""
import pytest

from app.skywriter.modules.documents.classifiers import (
    canonical_json,
    detect_and_normalize_data,
    detect_content_type,
    has_eta_templates,
    parse_structured_data,
)


def test_empty_content_is_markdown():
    assert detect_content_type("") == "markdown"
    assert detect_content_type(None) == "markdown"
    assert detect_content_type("   \n ") == "markdown"


def test_markdown_heading_and_list():
    assert detect_content_type("# Hello\n\n- one\n- two\n") == "markdown"


def test_full_html_documents():
    assert detect_content_type("<!DOCTYPE html><html><body>Hi</body></html>") == "html"
    assert detect_content_type("<html>\n<p>x</p>\n</html>") == "html"
    assert detect_content_type("<body class='x'>hi</body>") == "html"


def test_block_markup_fragment_is_html():
    assert detect_content_type("<div><p>Hi</p><p>There</p></div>") == "html"


def test_markdown_with_inline_tags_stays_markdown():
    assert detect_content_type("Some **bold** text and <strong>more</strong>") == "markdown"


def test_html_inside_code_fences_is_ignored():
    text = "# Example\n\n```\n<div><p>x</p><p>y</p></div>\n```\n"
    assert detect_content_type(text) == "markdown"


def test_eta_template_detection():
    assert has_eta_templates("Hello <%= it.name %>!") is True
    assert has_eta_templates("<% unclosed") is False
    assert has_eta_templates("%> reversed <%") is False
    assert has_eta_templates(None) is False


def test_parse_structured_data_json_then_yaml():
    assert parse_structured_data('{"a": 1}') == ("json", {"a": 1})
    assert parse_structured_data("[1, 2]") == ("json", [1, 2])
    assert parse_structured_data("a: 1\nb: [x, y]") == ("yaml", {"a": 1, "b": ["x", "y"]})


@pytest.mark.parametrize("text", ["", "42", "just some words", "a: [1, 2"])
def test_parse_structured_data_rejects_scalars_and_garbage(text):
    with pytest.raises(ValueError):
        parse_structured_data(text)


def test_detect_and_normalize_data():
    assert detect_and_normalize_data('{ "a" : 1,  "b": [1, 2] }') == ("json", '{"a":1,"b":[1,2]}')
    assert detect_and_normalize_data("title: Hello\ntags:\n  - x\n") == ("yaml", '{"title":"Hello","tags":["x"]}')


def test_unparseable_data_is_kept_verbatim():
    assert detect_and_normalize_data("") == (None, "")
    assert detect_and_normalize_data(None) == (None, "")
    assert detect_and_normalize_data("plain words") == (None, "plain words")


def test_yaml_dates_become_iso_strings():
    assert detect_and_normalize_data("when: 2024-01-02") == ("yaml", '{"when":"2024-01-02"}')


def test_canonical_json_keeps_unicode():
    assert canonical_json({"k": "é"}) == '{"k":"é"}'


def test_yaml_date_keys_become_iso_strings():
    assert detect_and_normalize_data("2024-01-01: launch") == ("yaml", '{"2024-01-01":"launch"}')
    assert detect_and_normalize_data("events:\n  2024-01-01: [a]\n  7: b\n") == (
        "yaml",
        '{"events":{"2024-01-01":["a"],"7":"b"}}',
    )


def test_unserializable_data_is_kept_verbatim(monkeypatch):
    from app.skywriter.modules.documents import classifiers

    monkeypatch.setattr(classifiers, "parse_structured_data", lambda text: ("yaml", {("a", "b"): 1}))
    monkeypatch.setattr(classifiers, "_json_key", lambda key: key)
    assert classifiers.detect_and_normalize_data("anything") == (None, "anything")
