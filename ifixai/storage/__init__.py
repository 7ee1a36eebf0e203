"""Storage backend selection helpers."""

from __future__ import annotations

from ifixai.config.settings import settings
from ifixai.storage.sqlite_store import SqliteChatStore


_store: SqliteChatStore | None = None


def create_store() -> SqliteChatStore:
    return SqliteChatStore(db_path=settings.sqlite_db_path, seed_models=settings.seed_default_models)


def get_store() -> SqliteChatStore:
    """Process-wide store, created on first use."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


def set_store(store: SqliteChatStore | None) -> None:
    global _store
    _store = store
