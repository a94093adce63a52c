"""
Tests for field geometry: coordinate transform, aspect-fit and per-type layouts.

Run with: pytest tests/test_geometry.py -v
"""
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.geometry import (
    CHECKBOX_MAX_PT,
    CHECKBOX_MIN_PT,
    RADIO_MAX_RADIUS_PT,
    RADIO_MIN_RADIUS_PT,
    TEXT_MAX_FONT_PT,
    LAYOUT_POLICIES,
    checkbox_layout,
    convert_coordinates,
    fit_contain,
    image_layout,
    layout_for,
    radio_layout,
    text_layout,
)
from models.field import AbsoluteBox, FieldType, NormalizedField

LETTER = (612.0, 792.0)
A4 = (595.28, 841.89)


class TestConvertCoordinates:
    """Top-left fractions -> bottom-left points."""

    def test_letter_example(self):
        box = convert_coordinates({"x": 0.1, "y": 0.1, "width": 0.2, "height": 0.05}, *LETTER)
        assert box.x == pytest.approx(61.2)
        assert box.y == pytest.approx(673.2)
        assert box.width == pytest.approx(122.4)
        assert box.height == pytest.approx(39.6)

    def test_full_page(self):
        box = convert_coordinates({"x": 0, "y": 0, "width": 1, "height": 1}, *A4)
        assert box == AbsoluteBox(x=0, y=0, width=595.28, height=841.89)

    def test_accepts_field_objects(self):
        field = NormalizedField(type=FieldType.TEXT, x=0.5, y=0.5, width=0.25, height=0.1)
        box = convert_coordinates(field, 400, 400)
        assert box.x == pytest.approx(200)
        assert box.y == pytest.approx(160)
        assert box.width == pytest.approx(100)
        assert box.height == pytest.approx(40)

    def test_top_edge_maps_to_page_top(self):
        """A box touching the top of the page ends exactly at page height."""
        box = convert_coordinates({"x": 0.3, "y": 0.0, "width": 0.2, "height": 0.1}, *LETTER)
        assert box.y + box.height == pytest.approx(LETTER[1])

    def test_bottom_edge_maps_to_zero(self):
        box = convert_coordinates({"x": 0.3, "y": 0.9, "width": 0.2, "height": 0.1}, *LETTER)
        assert box.y == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize("page", [LETTER, A4, (300.0, 144.0)])
    def test_scales_with_page(self, page):
        """Width/height are linear in the page size; left edge is x * width."""
        width, height = page
        box = convert_coordinates({"x": 0.25, "y": 0.4, "width": 0.5, "height": 0.2}, width, height)
        assert box.x == pytest.approx(0.25 * width)
        assert box.width == pytest.approx(0.5 * width)
        assert box.height == pytest.approx(0.2 * height)
        assert box.y == pytest.approx(height * (1 - 0.4 - 0.2))

    def test_out_of_range_is_not_rejected(self):
        box = convert_coordinates({"x": 1.2, "y": -0.1, "width": 0.2, "height": 0.1}, 100, 100)
        assert box.x == pytest.approx(120)
        assert box.y == pytest.approx(100)


class TestFitContain:
    """Aspect-fit (object-fit: contain) placement."""

    def test_wide_image_in_square(self):
        fit = fit_contain(800, 400, AbsoluteBox(0, 0, 200, 200))
        assert fit == AbsoluteBox(x=0, y=50, width=200, height=100)

    def test_tall_image_in_square(self):
        fit = fit_contain(100, 400, AbsoluteBox(10, 20, 200, 200))
        assert fit.width == pytest.approx(50)
        assert fit.height == pytest.approx(200)
        assert fit.x == pytest.approx(10 + 75)
        assert fit.y == pytest.approx(20)

    def test_small_image_is_scaled_up(self):
        fit = fit_contain(10, 5, AbsoluteBox(0, 0, 100, 100))
        assert fit.width == pytest.approx(100)
        assert fit.height == pytest.approx(50)

    def test_same_aspect_fills_box(self):
        fit = fit_contain(300, 150, AbsoluteBox(5, 5, 60, 30))
        assert fit.x == pytest.approx(5)
        assert fit.y == pytest.approx(5)
        assert fit.width == pytest.approx(60)
        assert fit.height == pytest.approx(30)

    @pytest.mark.parametrize(
        "content,box",
        [
            ((640, 480), AbsoluteBox(12, 34, 150, 40)),
            ((50, 900), AbsoluteBox(0, 0, 80, 80)),
            ((1, 1), AbsoluteBox(100, 100, 30, 70)),
        ],
    )
    def test_contained_centered_and_aspect_preserved(self, content, box):
        cw, ch = content
        fit = fit_contain(cw, ch, box)

        assert fit.x >= box.x - 1e-9
        assert fit.y >= box.y - 1e-9
        assert fit.x + fit.width <= box.x + box.width + 1e-9
        assert fit.y + fit.height <= box.y + box.height + 1e-9

        assert fit.width / fit.height == pytest.approx(cw / ch)
        # at least one dimension touches the box
        assert fit.width == pytest.approx(box.width) or fit.height == pytest.approx(box.height)
        # centered
        assert fit.x + fit.width / 2 == pytest.approx(box.x + box.width / 2)
        assert fit.y + fit.height / 2 == pytest.approx(box.y + box.height / 2)

    def test_zero_content_raises(self):
        with pytest.raises(ValueError):
            fit_contain(0, 100, AbsoluteBox(0, 0, 10, 10))
        with pytest.raises(ValueError):
            fit_contain(100, 0, AbsoluteBox(0, 0, 10, 10))


class TestTextLayout:
    """Text and date fields."""

    def test_font_scales_with_height(self):
        layout = text_layout(AbsoluteBox(100, 200, 150, 20))
        assert layout.font_size == pytest.approx(12)
        assert layout.x == pytest.approx(102)
        assert layout.y == pytest.approx(200 + (20 - 12) / 2)

    def test_font_capped(self):
        layout = text_layout(AbsoluteBox(0, 0, 300, 100))
        assert layout.font_size == TEXT_MAX_FONT_PT
        assert layout.y == pytest.approx((100 - TEXT_MAX_FONT_PT) / 2)

    def test_letter_example_box(self):
        box = convert_coordinates({"x": 0.1, "y": 0.1, "width": 0.2, "height": 0.05}, *LETTER)
        layout = text_layout(box)
        assert layout.font_size == TEXT_MAX_FONT_PT
        assert layout.x == pytest.approx(63.2)


class TestCheckboxLayout:
    """Checkbox square and tick."""

    def test_centered_square(self):
        layout = checkbox_layout(AbsoluteBox(0, 0, 40, 20))
        assert layout.size == pytest.approx(12)
        assert layout.x == pytest.approx(14)
        assert layout.y == pytest.approx(4)

    def test_size_clamped(self):
        assert checkbox_layout(AbsoluteBox(0, 0, 5, 5)).size == CHECKBOX_MIN_PT
        assert checkbox_layout(AbsoluteBox(0, 0, 500, 500)).size == CHECKBOX_MAX_PT

    def test_check_mark_inside_square(self):
        layout = checkbox_layout(AbsoluteBox(50, 60, 30, 30))
        points = layout.check_mark()
        assert len(points) == 3
        for px, py in points:
            assert layout.x <= px <= layout.x + layout.size
            assert layout.y <= py <= layout.y + layout.size
        # tick: down then up
        assert points[1][1] < points[0][1] < points[2][1]

    def test_cross_spans_square(self):
        layout = checkbox_layout(AbsoluteBox(0, 0, 20, 20))
        (a, b), (c, d) = layout.cross()
        assert a == (layout.x, layout.y)
        assert b == (layout.x + layout.size, layout.y + layout.size)
        assert c == (layout.x, layout.y + layout.size)
        assert d == (layout.x + layout.size, layout.y)


class TestRadioLayout:
    """Radio circle and dot."""

    def test_centered(self):
        layout = radio_layout(AbsoluteBox(10, 10, 40, 20))
        assert layout.cx == pytest.approx(30)
        assert layout.cy == pytest.approx(20)
        assert layout.radius == pytest.approx(6)
        assert layout.inner_radius == pytest.approx(3.6)

    def test_radius_clamped(self):
        assert radio_layout(AbsoluteBox(0, 0, 4, 4)).radius == RADIO_MIN_RADIUS_PT
        assert radio_layout(AbsoluteBox(0, 0, 400, 400)).radius == RADIO_MAX_RADIUS_PT


class TestSizingSweep:
    """Checkbox and radio sizes over boxes from 1pt to 1000pt."""

    SIZES = range(1, 1001)

    def test_checkbox_monotonic_and_clamped(self):
        previous = None
        for side in self.SIZES:
            size = checkbox_layout(AbsoluteBox(0, 0, side, side)).size
            assert CHECKBOX_MIN_PT <= size <= CHECKBOX_MAX_PT
            if previous is not None:
                assert size >= previous
            previous = size

    def test_radio_monotonic_and_clamped(self):
        previous = None
        for side in self.SIZES:
            radius = radio_layout(AbsoluteBox(0, 0, side, side)).radius
            assert RADIO_MIN_RADIUS_PT <= radius <= RADIO_MAX_RADIUS_PT
            if previous is not None:
                assert radius >= previous
            previous = radius

    def test_sweep_uses_smaller_side(self):
        """A wide, short box sizes off its height."""
        for side in self.SIZES:
            wide = checkbox_layout(AbsoluteBox(0, 0, 1000, side)).size
            square = checkbox_layout(AbsoluteBox(0, 0, side, side)).size
            assert wide == square
            assert radio_layout(AbsoluteBox(0, 0, 1000, side)).radius == radio_layout(
                AbsoluteBox(0, 0, side, side)
            ).radius


class TestLayoutPolicies:
    """Every field type has a layout."""

    def test_all_types_covered(self):
        assert set(LAYOUT_POLICIES) == set(FieldType)

    def test_lookup_by_string(self):
        assert layout_for("text") is text_layout
        assert layout_for("date") is text_layout
        assert layout_for(FieldType.SIGNATURE) is image_layout
        assert layout_for("image") is image_layout

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            layout_for("dropdown")
