# services/api/core/preview.py

from __future__ import annotations
import io
import threading
from typing import Any, Dict, List

import pypdfium2 as pdfium

# PDFium is not thread-safe, even across separate documents.
# Every call into pypdfium2 in this process goes through this lock.
PDFIUM_LOCK = threading.Lock()


class PreviewError(Exception):
    pass


class PageNotFound(PreviewError):
    pass


def _open(pdf_bytes: bytes) -> pdfium.PdfDocument:
    try:
        return pdfium.PdfDocument(pdf_bytes)
    except pdfium.PdfiumError as e:
        raise PreviewError(f"Failed to load PDF: {e}") from e


def inspect_pages(pdf_bytes: bytes) -> List[Dict[str, Any]]:
    """
    Page sizes in points, 1-based page numbers, in document order.

    Sizes are the MediaBox, the same box fields are baked against, so the
    editor's fractions line up with the output. `rotation` is informational
    (0/90/180/270); fields are not rotated with the page.
    """
    with PDFIUM_LOCK:
        doc = _open(pdf_bytes)
        try:
            pages = []
            for i in range(len(doc)):
                page = doc[i]
                left, bottom, right, top = page.get_mediabox()
                pages.append({
                    "page": i + 1,
                    "width_pt": float(right - left),
                    "height_pt": float(top - bottom),
                    "rotation": int(page.get_rotation()),
                })
                page.close()
            return pages
        finally:
            doc.close()


def render_page_png(pdf_bytes: bytes, page: int, scale: float = 1.0) -> bytes:
    """
    Rasterize one page (1-based) to PNG bytes.
    scale is a zoom factor, not DPI: DPI ≈ 72 * scale.
    """
    with PDFIUM_LOCK:
        doc = _open(pdf_bytes)
        try:
            if not (1 <= page <= len(doc)):
                raise PageNotFound(f"Page {page} not found (PDF has {len(doc)} pages)")

            pdf_page = doc[page - 1]
            pil_page = pdf_page.render(scale=scale).to_pil()
            pdf_page.close()
        finally:
            doc.close()

    bio = io.BytesIO()
    pil_page.save(bio, format="PNG")
    return bio.getvalue()
