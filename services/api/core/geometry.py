# services/api/core/geometry.py
"""
Field-to-page geometry.

Pure functions only: map a normalized field box onto a page in PDF points and
decide how each field type is laid out inside that box. Nothing here touches
a document; the stamping module turns these layouts into drawing calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from models.field import AbsoluteBox, FieldType

# ---------- Layout constants -------------------------------------------------

TEXT_FONT_RATIO = 0.6
TEXT_MAX_FONT_PT = 16.0
TEXT_INSET_PT = 2.0

CHECKBOX_RATIO = 0.6
CHECKBOX_MIN_PT = 8.0
CHECKBOX_MAX_PT = 14.0

# Tick polyline as fractions of the checkbox square (bottom-left origin)
CHECK_MARK_POINTS: Tuple[Tuple[float, float], ...] = (
    (0.2, 0.45),
    (0.45, 0.2),
    (0.8, 0.75),
)

RADIO_RATIO = 0.3
RADIO_MIN_RADIUS_PT = 4.0
RADIO_MAX_RADIUS_PT = 8.0
RADIO_INNER_RATIO = 0.6


# ---------- Coordinate transform ---------------------------------------------

def convert_coordinates(box, page_width: float, page_height: float) -> AbsoluteBox:
    """
    Convert a top-left origin, fraction-of-page box into a bottom-left origin
    box in points.

    `box` is anything with x / y / width / height attributes (a NormalizedField,
    an AbsoluteBox-like object) or a mapping with those keys.
    """
    x, y, w, h = _box_values(box)

    left_pt = x * page_width
    top_pt = y * page_height
    width_pt = w * page_width
    height_pt = h * page_height
    bottom_pt = page_height - (top_pt + height_pt)

    return AbsoluteBox(x=left_pt, y=bottom_pt, width=width_pt, height=height_pt)


def _box_values(box) -> Tuple[float, float, float, float]:
    if isinstance(box, dict):
        return (
            float(box["x"]),
            float(box["y"]),
            float(box["width"]),
            float(box["height"]),
        )
    return float(box.x), float(box.y), float(box.width), float(box.height)


# ---------- Aspect-fit -------------------------------------------------------

def fit_contain(content_width: float, content_height: float, box: AbsoluteBox) -> AbsoluteBox:
    """
    Largest centered rectangle with the content's aspect ratio that fits in
    `box` (CSS object-fit: contain). Small content is scaled up.

    Raises:
        ValueError: if either content dimension is zero. Callers are expected
        to check the raster before getting here.
    """
    if content_width == 0 or content_height == 0:
        raise ValueError(
            f"content must have non-zero size, got {content_width}x{content_height}"
        )

    scale = min(box.width / content_width, box.height / content_height)

    draw_width = content_width * scale
    draw_height = content_height * scale
    draw_x = box.x + (box.width - draw_width) / 2
    draw_y = box.y + (box.height - draw_height) / 2

    return AbsoluteBox(x=draw_x, y=draw_y, width=draw_width, height=draw_height)


# ---------- Per-type layouts -------------------------------------------------

def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class TextLayout:
    x: float
    y: float            # baseline
    font_size: float


@dataclass(frozen=True)
class CheckboxLayout:
    x: float
    y: float
    size: float

    def check_mark(self) -> Tuple[Tuple[float, float], ...]:
        """Absolute points of the two-segment tick."""
        return tuple(
            (self.x + self.size * fx, self.y + self.size * fy)
            for fx, fy in CHECK_MARK_POINTS
        )

    def cross(self) -> Tuple[Tuple[Tuple[float, float], Tuple[float, float]], ...]:
        """Two diagonals, used when unchecked boxes are drawn crossed out."""
        x0, y0 = self.x, self.y
        x1, y1 = self.x + self.size, self.y + self.size
        return (((x0, y0), (x1, y1)), ((x0, y1), (x1, y0)))


@dataclass(frozen=True)
class RadioLayout:
    cx: float
    cy: float
    radius: float
    inner_radius: float


def text_layout(box: AbsoluteBox) -> TextLayout:
    font_size = min(box.height * TEXT_FONT_RATIO, TEXT_MAX_FONT_PT)
    return TextLayout(
        x=box.x + TEXT_INSET_PT,
        y=box.y + (box.height - font_size) / 2,
        font_size=font_size,
    )


def checkbox_size(box: AbsoluteBox) -> float:
    return clamp(min(box.width, box.height) * CHECKBOX_RATIO, CHECKBOX_MIN_PT, CHECKBOX_MAX_PT)


def checkbox_layout(box: AbsoluteBox) -> CheckboxLayout:
    size = checkbox_size(box)
    return CheckboxLayout(
        x=box.x + (box.width - size) / 2,
        y=box.y + (box.height - size) / 2,
        size=size,
    )


def radio_radius(box: AbsoluteBox) -> float:
    return clamp(min(box.width, box.height) * RADIO_RATIO, RADIO_MIN_RADIUS_PT, RADIO_MAX_RADIUS_PT)


def radio_layout(box: AbsoluteBox) -> RadioLayout:
    radius = radio_radius(box)
    return RadioLayout(
        cx=box.x + box.width / 2,
        cy=box.y + box.height / 2,
        radius=radius,
        inner_radius=radius * RADIO_INNER_RATIO,
    )


def image_layout(box: AbsoluteBox, content_width: float, content_height: float) -> AbsoluteBox:
    return fit_contain(content_width, content_height, box)


# Field type -> layout function. Image and signature layouts also need the
# raster's intrinsic size, so they take two extra arguments.
LAYOUT_POLICIES: Dict[FieldType, Callable[..., object]] = {
    FieldType.TEXT: text_layout,
    FieldType.DATE: text_layout,
    FieldType.CHECKBOX: checkbox_layout,
    FieldType.RADIO: radio_layout,
    FieldType.IMAGE: image_layout,
    FieldType.SIGNATURE: image_layout,
}


def layout_for(field_type: FieldType) -> Callable[..., object]:
    return LAYOUT_POLICIES[FieldType(field_type)]
