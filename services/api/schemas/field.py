"""
Pydantic schema for a single placed field, as sent by the editor.
"""
from typing import Any, Optional

from pydantic import Field, field_validator

from models.field import safe_float

from .base import ApiModel


class FieldIn(ApiModel):
    """
    One entry of `allFields`.

    NOTE:
    - `id`, `type` and `page` are taken as sent. A missing or unknown type,
      or a page that is not a whole number, skips just that field
      (`invalid_field`) instead of rejecting the whole request.
    - Unparsable coordinates read as 0.
    - Coordinates are fractions of the page (top-left origin) and are NOT
      range-checked; boxes hanging off the page are drawn as far as they go.
    """
    id: Optional[Any] = Field(None, description="Editor-side field id")
    type: Optional[Any] = Field(None, description="text | date | checkbox | radio | image | signature")
    page: Optional[Any] = Field(1, description="1-based page number")

    x: float = Field(0.0, description="Left edge, fraction of page width")
    y: float = Field(0.0, description="Top edge, fraction of page height")
    width: float = Field(0.0, description="Fraction of page width")
    height: float = Field(0.0, description="Fraction of page height")

    value: Any = Field(
        None,
        description="Text / ISO date string / bool / image data URI; unused for signatures",
    )

    @field_validator("x", "y", "width", "height", mode="before")
    @classmethod
    def _coerce_coordinate(cls, v):
        return safe_float(v)

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "page": self.page,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "value": self.value,
        }
