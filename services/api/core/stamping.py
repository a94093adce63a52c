# services/api/core/stamping.py
"""
Bake field values into a PDF.

Every touched page gets one reportlab overlay (same page size, bottom-left
origin, points) that is merged onto the original page with pypdf. Geometry
comes from core.geometry; this module only turns layouts into drawing calls.
"""

from __future__ import annotations

import io
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import Image
from pypdf import PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from core.geometry import convert_coordinates, layout_for
from core.validation import parse_image_data_uri, sanitize_text_for_pdf
from models.field import (
    AbsoluteBox,
    BakeResult,
    FieldType,
    NormalizedField,
    PageGeometry,
    SkippedField,
)

logger = logging.getLogger(__name__)

TEXT_FONT = "Helvetica"
TEXT_COLOR = (0, 0, 0)
BORDER_COLOR = (0, 0, 0)
BORDER_WIDTH = 1.2
CHECK_COLOR = (0, 0.6, 0)
CHECK_WIDTH = 1.5
RADIO_FILL_COLOR = (0, 0.4, 1)

_TRUE_STRINGS = {"true", "1", "yes", "on", "checked", "selected"}


class StampingError(Exception):
    """Base class for errors that abort a whole bake."""


class PdfLoadError(StampingError):
    pass


class SignatureImageError(StampingError):
    pass


class FieldSkipped(Exception):
    """Raised while preparing a field that cannot be drawn; carries the reason."""

    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


# ---------- Public API -------------------------------------------------------

def load_raster(data: bytes) -> Image.Image:
    """Decode PNG/JPEG bytes into a fully loaded PIL image."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def load_signature(data: Optional[bytes]) -> Optional[Image.Image]:
    """
    Decode the separately supplied signature image.

    Raises:
        SignatureImageError: if bytes are present but not a decodable image
    """
    if not data:
        return None
    try:
        return load_raster(data)
    except Exception as e:
        raise SignatureImageError(f"Failed to embed signature: {e}") from e


def page_geometry(page) -> PageGeometry:
    """Page size from the MediaBox (origin assumed at 0,0, rotation ignored)."""
    return PageGeometry(width=float(page.mediabox.width), height=float(page.mediabox.height))


def bake_fields(
    pdf_bytes: bytes,
    fields: Iterable[NormalizedField],
    signature: Optional[Image.Image] = None,
    *,
    unchecked_style: str = "none",
) -> BakeResult:
    """
    Draw every field onto its page and return the new PDF.

    Fields are applied in input order. A field that cannot be drawn (missing
    page, empty value, bad image, ...) is recorded in `BakeResult.skipped`
    and never stops the rest of the batch.

    Raises:
        PdfLoadError: if `pdf_bytes` is not a readable PDF
    """
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        page_count = len(reader.pages)
    except Exception as e:
        raise PdfLoadError(f"Failed to load PDF: {e}") from e

    logger.info(f"PDF loaded ({page_count} pages)")

    overlays: Dict[int, Tuple[canvas.Canvas, io.BytesIO]] = {}
    result = BakeResult(pdf_bytes=b"", page_count=page_count)

    for index, field in enumerate(fields):
        if not (0 <= field.page_index < page_count):
            logger.warning(
                f"Page {field.page} not found (PDF has {page_count} pages). Skipping field."
            )
            result.skipped.append(_skipped(index, field, "page_out_of_range"))
            continue

        page = reader.pages[field.page_index]
        geom = page_geometry(page)
        box = convert_coordinates(field, geom.width, geom.height)

        if field.page_index not in overlays:
            buf = io.BytesIO()
            overlays[field.page_index] = (canvas.Canvas(buf, pagesize=(geom.width, geom.height)), buf)
        c = overlays[field.page_index][0]

        try:
            draw = _prepare(field, box, signature, unchecked_style)
            c.saveState()
            try:
                draw(c)
            finally:
                c.restoreState()
        except FieldSkipped as s:
            logger.warning(f"Skipping {field.type.value} field #{index} on page {field.page}: {s}")
            result.skipped.append(_skipped(index, field, s.reason))
            continue
        except Exception as e:
            logger.error(f"Error drawing {field.type.value} field #{index}: {e}", exc_info=True)
            result.skipped.append(_skipped(index, field, "render_error"))
            continue

        result.applied += 1
        logger.debug(f"Added {field.type.value} on page {field.page}")

    result.pdf_bytes = _merge_overlays(reader, overlays)
    logger.info(
        f"All fields processed: {result.applied} applied, {len(result.skipped)} skipped"
    )
    return result


# ---------- Internals --------------------------------------------------------

def _skipped(index: int, field: NormalizedField, reason: str) -> SkippedField:
    return SkippedField(
        index=index,
        reason=reason,
        page=field.page,
        type=field.type.value,
        field_id=field.field_id,
    )


def _is_checked(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _prepare(
    field: NormalizedField,
    box: AbsoluteBox,
    signature: Optional[Image.Image],
    unchecked_style: str,
):
    """
    Validate the field and return a callable that draws it onto a canvas.
    Everything that can fail for data reasons fails here, before drawing.
    """
    ftype = field.type
    place = layout_for(ftype)

    if ftype in (FieldType.TEXT, FieldType.DATE):
        if field.value is None or str(field.value) == "":
            raise FieldSkipped("empty_value")
        text = sanitize_text_for_pdf(str(field.value))
        layout = place(box)
        return lambda c: _draw_text(c, text, layout)

    if ftype == FieldType.CHECKBOX:
        layout = place(box)
        checked = _is_checked(field.value)
        return lambda c: _draw_checkbox(c, layout, checked, unchecked_style)

    if ftype == FieldType.RADIO:
        layout = place(box)
        selected = _is_checked(field.value)
        return lambda c: _draw_radio(c, layout, selected)

    if ftype == FieldType.SIGNATURE:
        if signature is None:
            raise FieldSkipped("no_signature", "no signature image supplied")
        return _prepare_raster(signature, box, place)

    if ftype == FieldType.IMAGE:
        if not field.value:
            raise FieldSkipped("empty_value")
        try:
            _fmt, raw = parse_image_data_uri(field.value)
        except ValueError as e:
            raise FieldSkipped("unsupported_image", str(e)) from e
        try:
            img = load_raster(raw)
        except Exception as e:
            raise FieldSkipped("invalid_image", str(e)) from e
        return _prepare_raster(img, box, place)

    raise FieldSkipped("unsupported_type", f"unsupported field type: {ftype}")


def _prepare_raster(img: Image.Image, box: AbsoluteBox, place):
    img_w, img_h = img.size
    if img_w == 0 or img_h == 0:
        raise FieldSkipped("empty_image", "image has zero width or height")
    if img.mode == "CMYK":
        img = img.convert("RGB")
    elif img.mode not in ("RGB", "RGBA", "L"):
        img = img.convert("RGBA")
    fit = place(box, img_w, img_h)
    return lambda c: _draw_image(c, img, fit)


def _draw_text(c: canvas.Canvas, text: str, layout) -> None:
    c.setFillColorRGB(*TEXT_COLOR)
    c.setFont(TEXT_FONT, layout.font_size)
    c.drawString(layout.x, layout.y, text)


def _draw_checkbox(c: canvas.Canvas, layout, checked: bool, unchecked_style: str) -> None:
    c.setStrokeColorRGB(*BORDER_COLOR)
    c.setLineWidth(BORDER_WIDTH)
    c.rect(layout.x, layout.y, layout.size, layout.size, stroke=1, fill=0)

    if checked:
        p1, p2, p3 = layout.check_mark()
        path = c.beginPath()
        path.moveTo(*p1)
        path.lineTo(*p2)
        path.lineTo(*p3)
        c.setStrokeColorRGB(*CHECK_COLOR)
        c.setLineWidth(CHECK_WIDTH)
        c.drawPath(path, stroke=1, fill=0)
    elif unchecked_style == "cross":
        for (x0, y0), (x1, y1) in layout.cross():
            c.line(x0, y0, x1, y1)


def _draw_radio(c: canvas.Canvas, layout, selected: bool) -> None:
    c.setStrokeColorRGB(*BORDER_COLOR)
    c.setLineWidth(BORDER_WIDTH)
    c.circle(layout.cx, layout.cy, layout.radius, stroke=1, fill=0)

    if selected:
        c.setFillColorRGB(*RADIO_FILL_COLOR)
        c.circle(layout.cx, layout.cy, layout.inner_radius, stroke=0, fill=1)


def _draw_image(c: canvas.Canvas, img: Image.Image, fit: AbsoluteBox) -> None:
    c.drawImage(
        ImageReader(img),
        fit.x,
        fit.y,
        width=fit.width,
        height=fit.height,
        mask="auto",
    )


def _merge_overlays(reader: PdfReader, overlays: Dict[int, Tuple[canvas.Canvas, io.BytesIO]]) -> bytes:
    writer = PdfWriter()

    for idx, page in enumerate(reader.pages):
        if idx in overlays:
            c, buf = overlays[idx]
            c.showPage()
            c.save()
            buf.seek(0)
            overlay_page = PdfReader(buf).pages[0]
            page.merge_page(overlay_page)
        writer.add_page(page)

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def fields_from_payload(
    payload: Iterable[dict],
) -> Tuple[List[NormalizedField], List[int], List[SkippedField]]:
    """
    Convert raw `allFields` dicts into NormalizedField objects.

    Entries with an unknown type or an unparsable page are returned as
    skipped instead of failing the request. `positions` holds the payload
    index of every converted field.
    """
    fields: List[NormalizedField] = []
    positions: List[int] = []
    skipped: List[SkippedField] = []
    for index, raw in enumerate(payload):
        try:
            fields.append(NormalizedField.from_api(raw))
            positions.append(index)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring field #{index}: {e}")
            skipped.append(
                SkippedField(
                    index=index,
                    reason="invalid_field",
                    page=raw.get("page") if isinstance(raw, dict) else None,
                    type=_raw_type(raw),
                )
            )
    return fields, positions, skipped


def _raw_type(raw) -> Optional[str]:
    if not isinstance(raw, dict) or raw.get("type") is None:
        return None
    return str(raw.get("type"))
