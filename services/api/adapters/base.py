"""
Storage adapter interface for the signing service.
Defines the contract that all audit-trail backends must implement.
"""

from typing import Protocol, List, Optional

from models.audit import AuditRecord


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    This allows swapping between SQLite and the JSON file store
    without changing the router or business logic code.
    """

    backend_name: str

    # ========== Audit trail ==========

    def insert_audit_record(self, record: AuditRecord) -> str:
        """
        Append one signing event.

        Returns:
            The stored record's audit_id.
        """
        ...

    def list_audit_records(self, pdf_id: str) -> List[AuditRecord]:
        """
        All records for a document identifier, newest first.
        Unknown pdf_id returns an empty list.
        """
        ...

    def get_audit_record(self, audit_id: str) -> Optional[AuditRecord]:
        """
        Fetch a single record.

        Returns:
            AuditRecord, or None if not found.
        """
        ...

    # ========== Health ==========

    def ping(self) -> None:
        """
        Cheap connectivity check used by /readyz.

        Raises:
            Exception: if the backend is not usable.
        """
        ...
