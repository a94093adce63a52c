# services/api/deps.py
"""
Dependency providers shared by main.py and routers/*.
"""
import logging

from fastapi import HTTPException, Request

from adapters.cached import CachedStorage
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_storage_adapter(settings: Settings) -> CachedStorage:
    """
    Create the audit-trail adapter selected by STORAGE_BACKEND.

    Raises:
        ValueError: for an unknown backend name
    """
    backend = settings.storage_backend.lower()

    if backend == "sqlite":
        from adapters.sqlite import SqliteAdapter

        inner = SqliteAdapter.from_url(settings.db_url)
        logger.info(f"✓ SQLite adapter initialized ({settings.db_url.split('://')[0]})")
    elif backend == "json":
        from adapters.json import JsonAdapter

        inner = JsonAdapter(data_dir=settings.data_dir)
        logger.info(f"✓ JSON adapter initialized ({settings.data_dir})")
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")

    return CachedStorage(inner, ttl=settings.audit_cache_ttl)


# ---- DI helper (used by routers/*) ----
def get_storage_adapter(request: Request):
    adapter = getattr(request.app.state, "storage_adapter", None)
    if adapter is None:
        raise HTTPException(
            status_code=503,
            detail="Storage adapter not configured on app.state.storage_adapter",
        )
    return adapter


__all__ = ["build_storage_adapter", "get_storage_adapter", "get_settings"]
