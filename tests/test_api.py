"""Tests for the documents JSON API."""
import pytest

from app.skywriter import create_app
from app.skywriter.models import Base


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    return app.test_client()


def _create(client, path="/hello", **extra):
    r = client.post("/api/documents", json={"path": path, "content": "# Hi", "published": True, **extra})
    assert r.status_code == 200
    return r.json


def test_create_and_lookup(client):
    doc = _create(client)
    assert doc["current"]["content"] == "# Hi"
    assert doc["current"]["content_type"] == "markdown"
    assert "draft" not in doc

    r = client.get("/api/documents/lookup", query_string={"path": "/hello"})
    assert r.status_code == 200
    assert r.json["id"] == doc["id"]

    r = client.get("/api/documents/lookup", query_string={"id": doc["id"]})
    assert r.json["path"] == "/hello"


def test_lookup_errors(client):
    assert client.get("/api/documents/lookup", query_string={"path": "/missing"}).status_code == 404
    assert client.get("/api/documents/lookup").status_code == 400
    assert client.get("/api/documents/lookup", query_string={"id": "abc"}).status_code == 400


def test_draft_flow_with_query_and_input(client):
    doc = _create(client)
    r = client.post("/api/documents", json={"query": {"id": doc["id"]}, "input": {"content": "v2", "draft": True}})
    assert r.status_code == 200
    assert r.json["draft"]["content"] == "v2"
    assert r.json["current"]["content"] == "# Hi"

    r = client.get("/api/documents/lookup", query_string={"id": doc["id"], "draft": "true"})
    assert r.json["draft"]["content"] == "v2"

    r = client.delete(f"/api/documents/{doc['id']}/draft")
    assert r.status_code == 200
    assert "draft" not in r.json


def test_write_errors_map_to_status_codes(client):
    assert client.post("/api/documents", json={"path": "/_x", "content": "x"}).status_code == 409
    assert client.post("/api/documents", json={"content": "no path"}).status_code == 400
    assert client.post("/api/documents", json={"path": "/x", "content": 1}).status_code == 400
    assert client.post("/api/documents", data="not json", content_type="text/plain").status_code == 400
    assert client.post("/api/documents", json={"query": {}, "input": "nope"}).status_code == 400
    assert client.delete("/api/documents/999/draft").status_code == 404


def test_list(client):
    _create(client, "/a")
    _create(client, "/b", published=False)
    r = client.get("/api/documents", query_string={"sort_by": "path", "sort_order": "asc"})
    assert [d["path"] for d in r.json] == ["/a", "/b"]

    r = client.get("/api/documents", query_string={"published": "true"})
    assert [d["path"] for d in r.json] == ["/a"]

    r = client.get("/api/documents", query_string={"limit": "1", "offset": "1", "sort_by": "path", "sort_order": "asc"})
    assert [d["path"] for d in r.json] == ["/b"]

    assert client.get("/api/documents", query_string={"published": "maybe"}).status_code == 400


def test_search(client):
    _create(client, "/guide", title="Guide")
    r = client.get("/api/documents/search", query_string={"query": "guide"})
    assert r.status_code == 200
    assert [d["path"] for d in r.json] == ["/guide"]


@pytest.mark.parametrize("limit", ["0", "-1", "abc"])
def test_search_rejects_bad_limit(client, limit):
    r = client.get("/api/documents/search", query_string={"query": "x", "limit": limit})
    assert r.status_code == 400
    assert r.json["error"] == "Limit must be a positive integer"


def test_redirects(client):
    doc = _create(client)
    r = client.post(f"/api/documents/{doc['id']}/redirects", json={"path": "/hi"})
    assert r.status_code == 201
    route_id = r.json["id"]

    r = client.get(f"/api/documents/{doc['id']}/redirects")
    assert [x["path"] for x in r.json] == ["/hi"]

    r = client.get("/api/documents/lookup", query_string={"path": "/hi"})
    assert r.json["redirect"] is True

    assert client.post(f"/api/documents/{doc['id']}/redirects", json={"path": "/hi"}).status_code == 409
    assert client.post("/api/documents/999/redirects", json={"path": "/x"}).status_code == 404
    assert client.post(f"/api/documents/{doc['id']}/redirects", json={}).status_code == 400

    assert client.delete(f"/api/documents/redirects/{route_id}").status_code == 200
    assert client.delete(f"/api/documents/redirects/{route_id}").status_code == 404


def test_unknown_api_route_is_json_404(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json["error"] == "Not found"
