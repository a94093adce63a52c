# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import json
import os
import sqlite3
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    insert,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from models.audit import AuditRecord

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///") and db_url != "sqlite:///:memory:":
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every checkout sees an empty db
        engine = create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA temp_store=MEMORY;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

audit_trail = Table(
    "audit_trail",
    metadata,
    Column("audit_id", String, primary_key=True),
    Column("pdf_id", String, nullable=False),
    Column("original_hash", String(64), nullable=False),
    Column("signed_hash", String(64), nullable=False),
    Column("field_data", Text, nullable=False, default="[]"),  # JSON list
    Column("signed_filename", String, nullable=False),
    Column("applied_count", Integer, nullable=False, default=0),
    Column("skipped_count", Integer, nullable=False, default=0),
    Column("created_at", DateTime, nullable=False),
)

Index("idx_audit_pdf_created", audit_trail.c.pdf_id, audit_trail.c.created_at)

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine
    backend_name: str = "sqlite"

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/signatures.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def insert_audit_record(self, record: AuditRecord) -> str:
        with self.engine.begin() as conn:
            conn.execute(
                insert(audit_trail).values(
                    audit_id=record.audit_id,
                    pdf_id=record.pdf_id,
                    original_hash=record.original_hash,
                    signed_hash=record.signed_hash,
                    field_data=json.dumps(record.field_data, default=str),
                    signed_filename=record.signed_filename,
                    applied_count=record.applied_count,
                    skipped_count=record.skipped_count,
                    # stored naive, always UTC
                    created_at=record.created_at.replace(tzinfo=None),
                )
            )
        return record.audit_id

    def list_audit_records(self, pdf_id: str) -> List[AuditRecord]:
        with self.engine.begin() as conn:
            q = (
                select(audit_trail)
                .where(audit_trail.c.pdf_id == pdf_id)
                .order_by(audit_trail.c.created_at.desc())
            )
            rows = conn.execute(q).mappings().all()
            return [AuditRecord.from_storage(dict(row)) for row in rows]

    def get_audit_record(self, audit_id: str) -> Optional[AuditRecord]:
        with self.engine.begin() as conn:
            row = conn.execute(
                select(audit_trail).where(audit_trail.c.audit_id == audit_id)
            ).mappings().first()
            return AuditRecord.from_storage(dict(row)) if row else None

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
