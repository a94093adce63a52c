from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def _gen_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditRecord(BaseModel):
    """
    One signing event: which document, what went in, what came out.
    Hashes are SHA-256 hex digests of the original and baked PDF bytes.
    """
    audit_id: str = Field(default_factory=_gen_id)
    pdf_id: str
    original_hash: str
    signed_hash: str
    field_data: List[Dict[str, Any]] = Field(default_factory=list)
    signed_filename: str
    applied_count: int = 0
    skipped_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "AuditRecord":
        """
        Build from an adapter row. `field_data` may arrive as a JSON string
        (SQLite text column) or as an already-decoded list (JSON file).
        """
        data = dict(row)
        raw = data.get("field_data")
        if isinstance(raw, str):
            try:
                data["field_data"] = json.loads(raw) if raw else []
            except json.JSONDecodeError:
                data["field_data"] = []
        created = data.get("created_at")
        if isinstance(created, datetime) and created.tzinfo is None:
            data["created_at"] = created.replace(tzinfo=timezone.utc)
        return cls.model_validate(data)

    def to_api(self, signed_url: Optional[str] = None) -> Dict[str, Any]:
        out = {
            "auditId": self.audit_id,
            "pdfId": self.pdf_id,
            "originalHash": self.original_hash,
            "signedHash": self.signed_hash,
            "fieldData": self.field_data,
            "signedFilename": self.signed_filename,
            "appliedCount": self.applied_count,
            "skippedCount": self.skipped_count,
            "createdAt": self.created_at.isoformat(),
        }
        if signed_url:
            out["signedPdfUrl"] = signed_url
        return out
