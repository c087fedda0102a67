import logging

from flask import Flask, jsonify, request
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.skywriter.config import load_config
from app.skywriter.db import init_db, teardown_db_session
from app.skywriter.models import Base  # noqa: F401  (registers all tables before any module import)
from app.skywriter.routes import bp as routes_bp
from app.skywriter.modules.documents.api import bp as documents_api_bp

REQUIRED_TABLES = ("routes", "documents", "document_records")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(documents_api_bp, url_prefix="/api/documents")

    app.teardown_appcontext(teardown_db_session)

    # Migration health (lean): checked on the first API request, so tests and
    # release scripts can create the schema after the app is built.
    app.config.setdefault("_schema_health_ok", True)
    app.config.setdefault("_schema_health_missing", [])
    app.config.setdefault("_schema_health_checked", False)

    def _run_schema_health_check() -> None:
        missing: list[str] = []
        try:
            engine = app.extensions.get("sqlalchemy_engine")
            if engine is None:
                raise RuntimeError("sqlalchemy_engine not initialized")
            insp = sa_inspect(engine)
            for table in REQUIRED_TABLES:
                if not insp.has_table(table):
                    missing.append(f"{table} (table)")
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)
            missing.append("(inspection failed)")

        app.config["_schema_health_checked"] = True
        app.config["_schema_health_missing"] = missing
        app.config["_schema_health_ok"] = not missing
        if missing:
            app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if not request.path.startswith("/api/"):
            return None
        if not app.config.get("_schema_health_checked") or not app.config.get("_schema_health_ok"):
            _run_schema_health_check()
        if app.config.get("_schema_health_ok"):
            return None
        return jsonify({"error": "schema_out_of_date", "missing": app.config.get("_schema_health_missing") or []}), 503

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        return jsonify({"error": "Request body too large."}), 413

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
