"""
Read-through TTL cache in front of any storage adapter.
"""
from typing import List, Optional

from cachetools import TTLCache

from adapters.base import StorageAdapter
from models.audit import AuditRecord


class CachedStorage:
    """
    Caches list_audit_records per pdf_id for a few seconds.
    Inserts invalidate the affected pdf_id, so a client that signs and then
    immediately reads the trail always sees its own record.
    """

    def __init__(self, inner: StorageAdapter, ttl: int = 5, maxsize: int = 256):
        self.inner = inner
        self.backend_name = getattr(inner, "backend_name", "unknown")
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self.hits = 0
        self.misses = 0

    def insert_audit_record(self, record: AuditRecord) -> str:
        audit_id = self.inner.insert_audit_record(record)
        self._cache.pop(record.pdf_id, None)
        return audit_id

    def list_audit_records(self, pdf_id: str) -> List[AuditRecord]:
        cached = self._cache.get(pdf_id)
        if cached is not None:
            self.hits += 1
            return list(cached)

        self.misses += 1
        records = self.inner.list_audit_records(pdf_id)
        self._cache[pdf_id] = tuple(records)
        return records

    def get_audit_record(self, audit_id: str) -> Optional[AuditRecord]:
        return self.inner.get_audit_record(audit_id)

    def ping(self) -> None:
        self.inner.ping()

    def cache_size(self) -> int:
        return len(self._cache)
