import pytest

from app.skywriter import create_app
from app.skywriter.config import load_settings
from app.skywriter.db import session_scope
from app.skywriter.models import Base
from app.skywriter.modules.documents.reader import get_dual_document
from app.skywriter.modules.documents.seed import seed_if_empty


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


def test_health_ok(app):
    client = app.test_client()
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_missing_schema_returns_503(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'empty.db'}")
    monkeypatch.setenv("ENV", "test")

    client = create_app().test_client()
    r = client.get("/api/documents")
    assert r.status_code == 503
    assert r.json["error"] == "schema_out_of_date"
    assert "documents (table)" in r.json["missing"]

    # Non-API routes stay up.
    assert client.get("/healthz").status_code == 200


def test_seed_if_empty_is_idempotent(app):
    with session_scope(app) as s:
        assert seed_if_empty(s) is True
        assert seed_if_empty(s) is False
        root = get_dual_document(s, "/")
        assert root.current.title == "Home"
        assert root.published is True


def test_production_requires_postgres(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "a-real-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError):
        create_app()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SEARCH_MAX_LIMIT", "25")
    monkeypatch.delenv("LIST_MAX_LIMIT", raising=False)
    settings = load_settings()
    assert settings.search_max_limit == 25
    assert settings.list_max_limit == 500

    monkeypatch.setenv("SEARCH_MAX_LIMIT", "lots")
    with pytest.raises(RuntimeError):
        load_settings()
