import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    search_default_limit: int
    search_max_limit: int
    list_max_limit: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///skywriter.db"),
        search_default_limit=_getenv_int("SEARCH_DEFAULT_LIMIT", 10),
        search_max_limit=_getenv_int("SEARCH_MAX_LIMIT", 100),
        list_max_limit=_getenv_int("LIST_MAX_LIMIT", 500),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "SEARCH_DEFAULT_LIMIT": s.search_default_limit,
        "SEARCH_MAX_LIMIT": s.search_max_limit,
        "LIST_MAX_LIMIT": s.list_max_limit,
        # request body limit for document writes (5MB)
        "MAX_CONTENT_LENGTH": 5 * 1024 * 1024,
    }
