# services/api/models/field_store.py
from __future__ import annotations

from dataclasses import replace
from datetime import date
from itertools import count
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .field import FieldType, NormalizedField

DEFAULT_WIDTH = 0.2
DEFAULT_HEIGHT = 0.08
MIN_WIDTH = 0.05
MIN_HEIGHT = 0.03

CORNERS = ("top-left", "top-right", "bottom-left", "bottom-right")


def default_value(field_type: FieldType) -> Any:
    """Initial value for a freshly placed field."""
    field_type = FieldType(field_type)
    if field_type == FieldType.TEXT:
        return ""
    if field_type == FieldType.DATE:
        return date.today().isoformat()
    if field_type in (FieldType.CHECKBOX, FieldType.RADIO):
        return False
    return None


class FieldStore:
    """
    Ordered collection of placed fields.

    Every mutation returns a NEW store; fields are replaced by id, never
    edited in place, so earlier snapshots stay valid (undo, diffing, ...).

    Drag and resize clamp the box to the page the way the editor does;
    anything else (including values) is stored as given.
    """

    def __init__(self, fields: Tuple[NormalizedField, ...] = (), _ids: Optional[Iterator[int]] = None):
        self._fields: Tuple[NormalizedField, ...] = tuple(fields)
        if _ids is None:
            start = 1 + max((int(f.field_id) for f in self._fields if _is_int(f.field_id)), default=0)
            _ids = count(start)
        self._ids = _ids

    # --------------------
    # Read access
    # --------------------
    def __iter__(self) -> Iterator[NormalizedField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, field_id: str) -> NormalizedField:
        for f in self._fields:
            if f.field_id == str(field_id):
                return f
        raise KeyError(f"Unknown field id: {field_id}")

    def by_page(self, page: int) -> List[NormalizedField]:
        return [f for f in self._fields if f.page == page]

    def to_payload(self) -> List[Dict[str, Any]]:
        """`allFields` body for POST /sign-pdf."""
        return [f.to_api() for f in self._fields]

    # --------------------
    # Mutations (all return a new store)
    # --------------------
    def place(self, field_type: FieldType, page: int, x: float, y: float) -> "FieldStore":
        field_type = FieldType(field_type)
        new_field = NormalizedField(
            type=field_type,
            page=page,
            x=x,
            y=y,
            width=DEFAULT_WIDTH,
            height=DEFAULT_HEIGHT,
            value=default_value(field_type),
            field_id=str(next(self._ids)),
        )
        return self._with(self._fields + (new_field,))

    def move(self, field_id: str, x: float, y: float) -> "FieldStore":
        f = self.get(field_id)
        return self._replace(
            f,
            x=max(0.0, min(1.0 - f.width, x)),
            y=max(0.0, min(1.0 - f.height, y)),
        )

    def resize(self, field_id: str, corner: str, dx: float, dy: float) -> "FieldStore":
        """
        Drag `corner` by (dx, dy) page fractions.

        Right/bottom edges clamp the size to [minimum, distance to page edge].
        Left/top edges move the origin only while the size stays above the
        minimum and the origin stays on the page.
        """
        if corner not in CORNERS:
            raise ValueError(f"corner must be one of {CORNERS}, got {corner!r}")

        f = self.get(field_id)
        x, y, width, height = f.x, f.y, f.width, f.height

        if "right" in corner:
            width = max(MIN_WIDTH, min(1.0 - f.x, f.width + dx))
        if "bottom" in corner:
            height = max(MIN_HEIGHT, min(1.0 - f.y, f.height + dy))
        if "left" in corner:
            new_width = f.width - dx
            if new_width > MIN_WIDTH and f.x + dx >= 0:
                x = f.x + dx
                width = new_width
        if "top" in corner:
            new_height = f.height - dy
            if new_height > MIN_HEIGHT and f.y + dy >= 0:
                y = f.y + dy
                height = new_height

        return self._replace(f, x=x, y=y, width=width, height=height)

    def set_value(self, field_id: str, value: Any) -> "FieldStore":
        return self._replace(self.get(field_id), value=value)

    def toggle(self, field_id: str) -> "FieldStore":
        f = self.get(field_id)
        if f.type not in (FieldType.CHECKBOX, FieldType.RADIO):
            raise ValueError(f"Only checkbox/radio fields can be toggled, got {f.type.value}")
        return self._replace(f, value=not bool(f.value))

    def delete(self, field_id: str) -> "FieldStore":
        target = self.get(field_id)
        return self._with(tuple(f for f in self._fields if f is not target))

    # --------------------
    # Internals
    # --------------------
    def _with(self, fields: Tuple[NormalizedField, ...]) -> "FieldStore":
        return FieldStore(fields, _ids=self._ids)

    def _replace(self, target: NormalizedField, **changes) -> "FieldStore":
        updated = replace(target, **changes)
        return self._with(tuple(updated if f is target else f for f in self._fields))


def _is_int(value: Optional[str]) -> bool:
    try:
        int(value)  # type: ignore[arg-type]
        return True
    except (TypeError, ValueError):
        return False
