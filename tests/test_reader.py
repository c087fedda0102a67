"""Tests for document listing and single-document reads."""
import pytest

from app.skywriter import create_app
from app.skywriter.models import Base
from app.skywriter.modules.documents.reader import get_dual_document, get_instance, get_many
from app.skywriter.modules.documents.schemas import ListOptions
from app.skywriter.modules.documents.service import upsert


@pytest.fixture()
def s(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    session = app.extensions["sqlalchemy_sessionmaker"]()
    yield session
    session.close()


@pytest.fixture()
def docs(s):
    out = {}
    for path, title, published in [
        ("/blog/b", "Bravo", True),
        ("/about", "Alpha", True),
        ("/blog/a", "Charlie", False),
    ]:
        out[path] = upsert(s, {"path": path, "title": title, "content": title.lower(), "published": published})
    return out


def test_default_order_is_newest_first(s, docs):
    paths = [d.path for d in get_many(s)]
    assert paths == ["/blog/a", "/about", "/blog/b"]


def test_sort_by_path_and_title(s, docs):
    assert [d.path for d in get_many(s, ListOptions(sort_by="path", sort_order="asc"))] == [
        "/about",
        "/blog/a",
        "/blog/b",
    ]
    assert [d.current.title for d in get_many(s, ListOptions(sort_by="title", sort_order="desc"))] == [
        "Charlie",
        "Bravo",
        "Alpha",
    ]


def test_unknown_sort_field_falls_back_to_created_at(s, docs):
    assert [d.path for d in get_many(s, ListOptions(sort_by="nope"))] == ["/blog/a", "/about", "/blog/b"]


def test_filters(s, docs):
    assert {d.path for d in get_many(s, ListOptions(published=True))} == {"/about", "/blog/b"}
    assert {d.path for d in get_many(s, ListOptions(published=False))} == {"/blog/a"}
    assert {d.path for d in get_many(s, ListOptions(starts_with_path="/blog"))} == {"/blog/a", "/blog/b"}


def test_starts_with_path_escapes_wildcards(s, docs):
    upsert(s, {"path": "/100%", "content": "x", "published": True})
    assert [d.path for d in get_many(s, ListOptions(starts_with_path="/100%"))] == ["/100%"]
    assert get_many(s, ListOptions(starts_with_path="/_")) == []


def test_pagination(s, docs):
    opts = ListOptions(sort_by="path", sort_order="asc", limit=2, offset=1)
    assert [d.path for d in get_many(s, opts)] == ["/blog/a", "/blog/b"]


def test_drafts_only_when_requested(s, docs):
    doc = docs["/about"]
    upsert(s, {"id": doc.id, "content": "draft text", "draft": True})

    plain = {d.path: d for d in get_many(s)}
    assert plain["/about"].draft is None

    with_drafts = {d.path: d for d in get_many(s, ListOptions(draft=True))}
    assert with_drafts["/about"].draft.content == "draft text"
    assert with_drafts["/about"].current.content == "alpha"


def test_draft_only_documents_need_draft_flag(s):
    doc = upsert(s, {"path": "/wip", "content": "x", "draft": True})
    assert get_dual_document(s, doc.id) is None
    assert get_dual_document(s, doc.id, draft=True).draft.content == "x"
    assert get_many(s) == []
    assert [d.path for d in get_many(s, ListOptions(draft=True))] == ["/wip"]


def test_get_dual_document_published_filter(s, docs):
    assert get_dual_document(s, "/blog/a", published=True) is None
    assert get_dual_document(s, "/blog/a", published=False).path == "/blog/a"


def test_get_instance(s, docs):
    doc = docs["/about"]
    inst = get_instance(s, doc.id, "current")
    assert inst.title == "Alpha"
    assert inst.path == "/about"
    assert get_instance(s, doc.id, "draft") is None
    with pytest.raises(ValueError):
        get_instance(s, doc.id, "other")


def test_instance_to_dict(s, docs):
    out = docs["/about"].to_dict()
    assert out["path"] == "/about"
    assert out["current"]["title"] == "Alpha"
    assert "draft" not in out
    assert isinstance(out["current"]["created_at"], str)


def test_instance_timestamps_come_from_the_record(s, docs):
    from app.skywriter.modules.documents.models import DocumentRecord

    doc = upsert(s, {"id": docs["/about"].id, "content": "draft text", "draft": True})
    current_rec = s.get(DocumentRecord, doc.current.record_id)
    draft_rec = s.get(DocumentRecord, doc.draft.record_id)

    assert doc.current.created_at == current_rec.created_at
    assert doc.draft.created_at == draft_rec.created_at
    assert doc.draft.created_at >= doc.current.created_at
