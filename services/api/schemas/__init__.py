"""
Pydantic schemas for API request/response validation.
"""
from .base import ApiModel
from .field import FieldIn
from .page import PageInfo, PageRenderRequest, PagesInspectResponse, PdfPayload
from .signing import (
    AuditListResponse,
    ErrorResponse,
    SignRequest,
    SignResponse,
    SkippedFieldOut,
    VerifyRequest,
    VerifyResponse,
)
