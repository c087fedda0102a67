import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.skywriter.models import Base
from app.skywriter.modules.documents.seed import seed_if_empty
from scripts._db_utils import create_script_engine, script_session


def seed_only(*, database_url: str | None = None) -> bool:
    """
    Create the root document if the store is empty (idempotent).
    Returns True when a document was created.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///skywriter.db").strip()

    # Direct engine/session so this can run in release without importing app.wsgi.
    with script_session(db_url) as s:
        created = seed_if_empty(s)
    print("Seeded root document." if created else "Documents already present; nothing to seed.", flush=True)
    return created


def main() -> None:
    """Local bootstrap: create tables without Alembic, then seed."""
    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///skywriter.db").strip()
    engine = create_script_engine(db_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    seed_only(database_url=db_url)


if __name__ == "__main__":
    main()
