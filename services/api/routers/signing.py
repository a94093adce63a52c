# services/api/routers/signing.py
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from core.hashing import compute_hash
from core.pdf_source import PdfSourceError, resolve_pdf_bytes
from core.stamping import (
    PdfLoadError,
    SignatureImageError,
    bake_fields,
    fields_from_payload,
    load_signature,
)
from core.validation import (
    coerce_unchecked_style,
    decode_base64,
    safe_pdf_id,
    validate_sign_request,
)
from deps import get_settings, get_storage_adapter
from models.audit import AuditRecord
from models.field import SkippedField
from schemas.signing import ErrorResponse, SignRequest, SignResponse, SkippedFieldOut
from settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["signing"])

# ---- DI aliases (no default value allowed) ----
Storage = Annotated[object, Depends(get_storage_adapter)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(by_alias=True),
    )


def public_base_url(request: Request, settings: Settings) -> str:
    """Origin used in signedPdfUrl; PUBLIC_BASE_URL wins over the request's own."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def signed_pdf_url(request: Request, settings: Settings, filename: str) -> str:
    return f"{public_base_url(request, settings)}/signed-pdfs/{filename}"


@router.post(
    "/sign-pdf",
    response_model=SignResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def sign_pdf(body: SignRequest, request: Request, storage: Storage, settings: AppSettings):
    """
    Bake all placed fields into the PDF, store the result and record an audit entry.

    Fields are applied in the order given. Fields that cannot be drawn (page
    out of range, empty text, unsupported image, ...) are reported in
    `skipped` and do not fail the request.
    """
    all_fields = body.all_fields or []
    logger.info(
        f"Received /sign-pdf: pdfId={body.pdf_id!r}, "
        f"hasPdfBase64={bool(body.pdf_base64)}, hasPdfUrl={bool(body.pdf_url)}, "
        f"hasSignature={bool(body.signature_image_base64)}, totalFields={len(all_fields)}"
    )

    try:
        validate_sign_request(body.pdf_id, all_fields)
    except HTTPException as e:
        return _error(e.status_code, str(e.detail))
    pdf_id = body.pdf_id.strip()

    # 1) Source PDF
    try:
        pdf_bytes = await resolve_pdf_bytes(
            pdf_id,
            pdf_base64=body.pdf_base64,
            pdf_url=body.pdf_url,
            sample_dir=settings.sample_pdf_dir,
            timeout=settings.pdf_fetch_timeout,
        )
    except PdfSourceError as e:
        return _error(e.status_code, str(e))

    original_hash = compute_hash(pdf_bytes)
    logger.info(f"Original PDF hash: {original_hash}")

    # 2) Signature image (shared by every signature field)
    try:
        sig_bytes = decode_base64(body.signature_image_base64) if body.signature_image_base64 else None
        signature = load_signature(sig_bytes)
    except ValueError as e:
        return _error(400, f"Failed to embed signature: {e}")
    except SignatureImageError as e:
        return _error(400, str(e))

    # 3) Bake (one document, one writer)
    payload = [f.to_payload() for f in all_fields]
    fields, positions, invalid = fields_from_payload(payload)
    unchecked_style = coerce_unchecked_style(settings.checkbox_unchecked_style)

    try:
        result = await _bake_limited(request, pdf_bytes, fields, signature, unchecked_style)
    except PdfLoadError as e:
        logger.error(f"Error loading PDF: {e}")
        return _error(400, str(e))

    skipped: List[SkippedField] = list(invalid)
    for s in result.skipped:
        s.index = positions[s.index]
        skipped.append(s)
    skipped.sort(key=lambda s: s.index)

    signed_hash = compute_hash(result.pdf_bytes)
    logger.info(f"Signed PDF size: {len(result.pdf_bytes)} bytes")

    # 4) Persist file
    signed_dir = Path(settings.signed_pdf_dir)
    signed_dir.mkdir(parents=True, exist_ok=True)
    signed_filename = f"{safe_pdf_id(pdf_id)}-signed-{int(time.time() * 1000)}.pdf"
    (signed_dir / signed_filename).write_bytes(result.pdf_bytes)
    logger.info(f"✅ Signed PDF saved at {signed_dir / signed_filename}")

    url = signed_pdf_url(request, settings, signed_filename)

    # 5) Audit trail
    record = AuditRecord(
        pdf_id=pdf_id,
        original_hash=original_hash,
        signed_hash=signed_hash,
        field_data=payload,
        signed_filename=signed_filename,
        applied_count=result.applied,
        skipped_count=len(skipped),
    )
    try:
        audit_id = storage.insert_audit_record(record)
    except Exception as e:
        logger.error(f"Failed to write audit record for {pdf_id}: {e}", exc_info=True)
        # no audit record, no signed file
        (signed_dir / signed_filename).unlink(missing_ok=True)
        return _error(500, f"Failed to record audit trail: {e}")

    logger.info(f"✅ Returning signedPdfUrl: {url}")
    return SignResponse(
        signed_pdf_url=url,
        original_hash=original_hash,
        signed_hash=signed_hash,
        audit_id=audit_id,
        applied_count=result.applied,
        skipped=[SkippedFieldOut(**s.to_api()) for s in skipped],
    )


async def _bake_limited(request: Request, pdf_bytes, fields, signature, unchecked_style):
    """
    Run the bake in the threadpool, bounded by app.state.signing_semaphore.
    """
    sem = getattr(request.app.state, "signing_semaphore", None)
    if sem is None:
        # No semaphore configured → run directly (e.g. tests)
        return await run_in_threadpool(
            bake_fields, pdf_bytes, fields, signature, unchecked_style=unchecked_style
        )

    async with sem:
        return await run_in_threadpool(
            bake_fields, pdf_bytes, fields, signature, unchecked_style=unchecked_style
        )
