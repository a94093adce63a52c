"""
Tests for page inspection and preview rendering.

Run with: pytest tests/test_preview.py -v
"""
import io
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image
from reportlab.pdfgen import canvas

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core import preview
from core.preview import PDFIUM_LOCK, PageNotFound, PreviewError, inspect_pages, render_page_png


def make_pdf(pages=1, size=(612, 792)) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=size)
    for i in range(pages):
        c.drawString(72, 72, f"Page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def lock_watch(monkeypatch):
    """Records whether PDFIUM_LOCK was held each time a document was opened."""
    seen = []
    real_document = preview.pdfium.PdfDocument

    def watched(data):
        seen.append(PDFIUM_LOCK.locked())
        return real_document(data)

    monkeypatch.setattr(preview.pdfium, "PdfDocument", watched)
    return seen


class TestPdfiumLock:
    """All pypdfium2 work is serialized behind one process-wide lock."""

    def test_inspect_holds_lock(self, lock_watch):
        inspect_pages(make_pdf(pages=2))
        assert lock_watch == [True]
        assert not PDFIUM_LOCK.locked()

    def test_render_holds_lock(self, lock_watch):
        render_page_png(make_pdf(), 1, scale=0.25)
        assert lock_watch == [True]
        assert not PDFIUM_LOCK.locked()

    def test_lock_released_on_error(self):
        with pytest.raises(PageNotFound):
            render_page_png(make_pdf(), 9)
        assert not PDFIUM_LOCK.locked()

        with pytest.raises(PreviewError):
            inspect_pages(b"not a pdf")
        assert not PDFIUM_LOCK.locked()

    def test_concurrent_renders(self):
        pdf = make_pdf(pages=3)
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda p: render_page_png(pdf, p, 0.5), [1, 2, 3] * 4))

        assert len(results) == 12
        for png in results:
            assert Image.open(io.BytesIO(png)).size == (306, 396)


class TestInspectPages:
    def test_sizes_and_rotation(self):
        pages = inspect_pages(make_pdf(pages=2, size=(595.28, 841.89)))
        assert [p["page"] for p in pages] == [1, 2]
        assert pages[0]["width_pt"] == pytest.approx(595.28, abs=0.01)
        assert pages[0]["height_pt"] == pytest.approx(841.89, abs=0.01)
        assert pages[0]["rotation"] == 0
