"""
JSON file storage adapter for the signing service.
Simple file-based audit trail for quick demos and testing.
Not production-ready (no cross-process locking).
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from models.audit import AuditRecord

logger = logging.getLogger(__name__)


class AuditFileCorrupt(RuntimeError):
    """audit_trail.json exists but is not a JSON list; nothing is written over it."""


class JsonAdapter:
    """
    JSON file-based storage adapter.
    Stores the audit trail as a single list in <data_dir>/audit_trail.json.
    Uses atomic file operations for basic consistency.
    """

    backend_name = "json"

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON adapter.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self.audit_file = self.data_dir / "audit_trail.json"
        self._lock = threading.Lock()

        if not self.audit_file.exists():
            self._write_file(self.audit_file, [])

    def _read_file(self, filepath: Path) -> List[Dict[str, Any]]:
        """
        Read and parse a JSON file.

        Raises:
            AuditFileCorrupt: if the file is not a JSON list
        """
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                rows = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Audit file {filepath} is not valid JSON: {e}")
            raise AuditFileCorrupt(f"Audit file {filepath} is corrupt: {e}") from e

        if not isinstance(rows, list):
            logger.error(f"Audit file {filepath} does not hold a list")
            raise AuditFileCorrupt(f"Audit file {filepath} is corrupt: expected a list")
        return rows

    def _write_file(self, filepath: Path, data: List[Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        # Write to temporary file first
        tmp_file = filepath.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        # Atomic rename
        tmp_file.replace(filepath)

    def insert_audit_record(self, record: AuditRecord) -> str:
        """Append one record."""
        with self._lock:
            rows = self._read_file(self.audit_file)
            rows.append(record.model_dump(mode="json"))
            self._write_file(self.audit_file, rows)
        return record.audit_id

    def list_audit_records(self, pdf_id: str) -> List[AuditRecord]:
        """Records for pdf_id, newest first."""
        rows = [r for r in self._read_file(self.audit_file) if r.get("pdf_id") == pdf_id]
        records = [AuditRecord.from_storage(r) for r in rows]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def get_audit_record(self, audit_id: str) -> Optional[AuditRecord]:
        row = next(
            (r for r in self._read_file(self.audit_file) if r.get("audit_id") == audit_id),
            None,
        )
        return AuditRecord.from_storage(row) if row else None

    def ping(self) -> None:
        if not self.data_dir.is_dir():
            raise RuntimeError(f"Data directory missing: {self.data_dir}")
        self._read_file(self.audit_file)
