# services/api/routers/audit.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse

from core.hashing import compute_hash, hashes_match
from core.validation import resolve_signed_path
from deps import get_settings, get_storage_adapter
from routers.signing import signed_pdf_url
from schemas.signing import AuditListResponse, VerifyRequest, VerifyResponse
from settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["audit"])

# DI aliases (no default!)
Storage = Annotated[object, Depends(get_storage_adapter)]
AppSettings = Annotated[Settings, Depends(get_settings)]


@router.get("/audit/{pdf_id}", response_model=AuditListResponse)
async def get_audit_trail(pdf_id: str, request: Request, storage: Storage, settings: AppSettings):
    """
    All signing events for a document identifier, newest first.
    Unknown identifiers return an empty list.
    """
    try:
        records = storage.list_audit_records(pdf_id)
    except Exception as e:
        logger.error(f"Error in /audit for {pdf_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return AuditListResponse(
        records=[
            r.to_api(signed_url=signed_pdf_url(request, settings, r.signed_filename))
            for r in records
        ]
    )


@router.get("/audit/records/{audit_id}")
async def get_audit_record(audit_id: str, request: Request, storage: Storage, settings: AppSettings):
    record = storage.get_audit_record(audit_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="AUDIT_RECORD_NOT_FOUND")
    return {
        "success": True,
        "record": record.to_api(signed_url=signed_pdf_url(request, settings, record.signed_filename)),
    }


@router.post("/verify", response_model=VerifyResponse)
async def verify_pdf(body: VerifyRequest, settings: AppSettings):
    """
    Recompute the SHA-256 of a stored signed PDF and compare it with expectedHash.

    Only the basename of pdfUrl is used; the file must live in the signed
    directory.
    """
    path = resolve_signed_path(settings.signed_pdf_dir, body.pdf_url)
    data = path.read_bytes()

    return VerifyResponse(
        is_valid=hashes_match(data, body.expected_hash),
        actual_hash=compute_hash(data),
        expected_hash=body.expected_hash,
    )


@router.get("/signed-pdfs/{filename}")
async def download_signed_pdf(filename: str, settings: AppSettings):
    path = resolve_signed_path(settings.signed_pdf_dir, filename)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=path.name,
        content_disposition_type="inline",
    )
