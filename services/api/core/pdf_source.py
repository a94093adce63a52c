# services/api/core/pdf_source.py
"""
Resolve the PDF a signing request refers to.

Order: inline base64 -> remote URL -> <sample_dir>/<pdf_id>.pdf -> generated
placeholder page.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx
from fpdf import FPDF

from core.validation import decode_base64

logger = logging.getLogger(__name__)

# A4 portrait in points
SAMPLE_PAGE_SIZE = (595.28, 841.89)
SAMPLE_TEXT = "Sample PDF for Signature"


class PdfSourceError(Exception):
    """The request's PDF could not be obtained; `status_code` is the HTTP mapping."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


async def resolve_pdf_bytes(
    pdf_id: str,
    *,
    pdf_base64: Optional[str] = None,
    pdf_url: Optional[str] = None,
    sample_dir: Optional[str] = None,
    timeout: float = 30.0,
) -> bytes:
    if pdf_base64 and pdf_base64.strip():
        try:
            data = decode_base64(pdf_base64)
        except ValueError as e:
            raise PdfSourceError(f"Failed to decode PDF data: {e}", status_code=400) from e
        logger.info(f"PDF decoded from base64: {len(data)} bytes")
        return data

    if pdf_url and pdf_url.strip():
        return await fetch_pdf_bytes(pdf_url.strip(), timeout=timeout)

    logger.warning("No pdfBase64/pdfUrl provided, falling back to sample file or placeholder.")
    if sample_dir:
        sample_path = Path(sample_dir) / f"{pdf_id}.pdf"
        if sample_path.is_file():
            logger.info(f"Using sample PDF {sample_path}")
            return sample_path.read_bytes()

    logger.info("Sample file not found, creating in-memory sample PDF.")
    return build_sample_pdf()


async def fetch_pdf_bytes(url: str, timeout: float = 30.0) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            r = await client.get(url)
            r.raise_for_status()
            logger.info(f"Fetched PDF from {url} ({len(r.content)} bytes)")
            return r.content
    except httpx.TimeoutException as e:
        logger.error(f"Timeout fetching PDF: {url}")
        raise PdfSourceError("PDF fetch timeout", status_code=504) from e
    except httpx.HTTPStatusError as e:
        logger.error(f"Failed to fetch PDF: HTTP {e.response.status_code}")
        raise PdfSourceError(
            f"Failed to fetch PDF: HTTP {e.response.status_code}", status_code=502
        ) from e
    except httpx.RequestError as e:
        logger.error(f"Error fetching PDF: {e}")
        raise PdfSourceError(f"Failed to fetch PDF: {e}", status_code=502) from e


def build_sample_pdf(text: str = SAMPLE_TEXT) -> bytes:
    """
    One A4 page with a heading, used when a request carries no document.
    Text baseline sits 800pt above the bottom edge, 50pt from the left.
    """
    width, height = SAMPLE_PAGE_SIZE
    pdf = FPDF(orientation="P", unit="pt", format=(width, height))
    pdf.set_auto_page_break(auto=False)
    pdf.add_page()
    pdf.set_font("Helvetica", size=24)
    # fpdf2 measures y from the top edge
    pdf.text(x=50, y=height - 800, text=text)

    data = pdf.output()
    if isinstance(data, str):
        return data.encode("latin-1")
    return bytes(data)
