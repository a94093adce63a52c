# services/api/models/field.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class FieldType(str, Enum):
    TEXT = "text"
    DATE = "date"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    IMAGE = "image"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class PageGeometry:
    """Page size in PDF points (1/72 inch), origin bottom-left."""
    width: float
    height: float


@dataclass(frozen=True)
class AbsoluteBox:
    """Box in PDF points, origin bottom-left, ready for a drawing primitive."""
    x: float
    y: float
    width: float
    height: float


def safe_float(val: Any, default: float = 0.0) -> float:
    try:
        if val is None:
            return default
        s = str(val).strip()
        if not s:
            return default
        return float(s)
    except (TypeError, ValueError):
        return default


def parse_page(val: Any) -> int:
    """
    1-based page number from JSON. Missing means page 1.
    Raises ValueError for anything that is not a whole number ("two", 1.5, true).
    """
    if val is None or (isinstance(val, str) and not val.strip()):
        return 1
    if isinstance(val, bool):
        raise ValueError(f"page must be a whole number, got {val!r}")
    if isinstance(val, float):
        if not val.is_integer():
            raise ValueError(f"page must be a whole number, got {val!r}")
        return int(val)
    return int(str(val).strip())


@dataclass
class NormalizedField:
    """
    A placed annotation, as authored in the editor.

    x / y / width / height are fractions of the page (top-left origin).
    They are NOT range-checked: boxes hanging off the page are drawn
    partially (or not at all) rather than rejected.
    """

    type: FieldType
    page: int = 1                # 1-based
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    value: Any = None
    field_id: Optional[str] = None

    # --------------------
    # Conversions – API payloads (frontend JSON)
    # --------------------
    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "NormalizedField":
        """
        Build from an incoming `allFields` entry.
        Raises ValueError for an unknown field type.
        """
        raw_id = data.get("id", data.get("field_id"))
        return cls(
            type=FieldType(str(data.get("type") or "").strip().lower()),
            page=parse_page(data.get("page")),
            x=safe_float(data.get("x")),
            y=safe_float(data.get("y")),
            width=safe_float(data.get("width")),
            height=safe_float(data.get("height")),
            value=data.get("value"),
            field_id=str(raw_id) if raw_id is not None else None,
        )

    def to_api(self) -> Dict[str, Any]:
        """
        Shape stored in the audit trail and echoed back to the frontend.
        """
        return {
            "id": self.field_id,
            "type": self.type.value,
            "page": self.page,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "value": self.value,
        }

    @property
    def page_index(self) -> int:
        """0-based index into the document."""
        return self.page - 1


@dataclass
class SkippedField:
    """A field the renderer could not apply, and why."""
    index: int
    reason: str
    page: Optional[int] = None
    type: Optional[str] = None
    field_id: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "fieldId": self.field_id,
            "page": self.page,
            "type": self.type,
            "reason": self.reason,
        }


@dataclass
class BakeResult:
    pdf_bytes: bytes
    page_count: int
    applied: int = 0
    skipped: list = field(default_factory=list)
