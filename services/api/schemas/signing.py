"""
Pydantic schemas for signing, audit and verification endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import ApiModel
from .field import FieldIn


class SignRequest(ApiModel):
    """
    Body of POST /sign-pdf.

    The PDF comes from, in order of preference: pdfBase64, pdfUrl, a sample
    file named after pdfId, or a generated placeholder page.
    """
    pdf_id: Optional[str] = Field(None, description="Caller's document identifier")
    pdf_base64: Optional[str] = Field(None, description="PDF bytes, base64 (data URI prefix allowed)")
    pdf_url: Optional[str] = Field(None, description="HTTP(S) URL to fetch the PDF from")
    signature_image_base64: Optional[str] = Field(
        None,
        description="PNG/JPEG signature, base64 (data URI prefix allowed); used by signature fields",
    )
    all_fields: Optional[List[FieldIn]] = Field(None, description="Placed fields, applied in order")


class SkippedFieldOut(ApiModel):
    index: int
    field_id: Optional[str] = None
    page: Optional[Any] = None
    type: Optional[str] = None
    reason: str


class SignResponse(ApiModel):
    success: bool = True
    signed_pdf_url: str
    original_hash: str
    signed_hash: str
    audit_id: str
    applied_count: int = 0
    skipped: List[SkippedFieldOut] = Field(default_factory=list)


class ErrorResponse(ApiModel):
    success: bool = False
    error: str


class AuditListResponse(ApiModel):
    success: bool = True
    records: List[Dict[str, Any]] = Field(default_factory=list)


class VerifyRequest(ApiModel):
    pdf_url: str = Field(..., min_length=1, description="signedPdfUrl (or bare filename) to check")
    expected_hash: str = Field(..., min_length=1, description="SHA-256 hex digest to compare against")


class VerifyResponse(ApiModel):
    success: bool = True
    is_valid: bool
    actual_hash: str
    expected_hash: str
