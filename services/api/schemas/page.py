# services/api/schemas/page.py
from __future__ import annotations

from pydantic import Field
from typing import List

from .base import ApiModel


class PdfPayload(ApiModel):
    """A PDF sent inline, base64 encoded (data URI prefix allowed)."""
    pdf_base64: str = Field(..., min_length=1)


class PageRenderRequest(PdfPayload):
    page: int = Field(1, ge=1, description="1-based page number")
    scale: float = Field(1.5, gt=0, description="Zoom factor (1.0 = 72 DPI)")


class PageInfo(ApiModel):
    """Single page MediaBox size in PDF points (1/72 inch)."""
    page: int = Field(ge=1, description="1-based page number")
    width_pt: float = Field(description="Page width in points")
    height_pt: float = Field(description="Page height in points")
    rotation: int = Field(0, description="/Rotate in degrees; informational, fields are not rotated")


class PagesInspectResponse(ApiModel):
    page_count: int
    pages: List[PageInfo]
