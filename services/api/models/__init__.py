from __future__ import annotations

from .field import (
    AbsoluteBox,
    BakeResult,
    FieldType,
    NormalizedField,
    PageGeometry,
    SkippedField,
)
from .audit import AuditRecord
from .field_store import FieldStore

__all__ = [
    "AbsoluteBox",
    "AuditRecord",
    "BakeResult",
    "FieldStore",
    "FieldType",
    "NormalizedField",
    "PageGeometry",
    "SkippedField",
]
