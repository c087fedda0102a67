from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.skywriter.db import make_engine, make_sessionmaker


def create_script_engine(db_url: str):
    # Same engine setup as the app so SQLite enforces FKs in scripts too.
    return make_engine(db_url, pool_recycle=1800)


@contextmanager
def script_session(db_url: str):
    engine = create_script_engine(db_url)
    s: Session = make_sessionmaker(engine)()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()
