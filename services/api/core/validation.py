"""
Validation utilities for the signing service.
Ensures request payloads are usable and provides clear error messages.
"""
import base64
import binascii
import os
import re
from pathlib import Path
from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from fastapi import HTTPException

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*?);base64,", re.IGNORECASE)
_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

SUPPORTED_IMAGE_MIME = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
}


def validate_sign_request(pdf_id: Optional[str], all_fields: Optional[List[Any]]) -> None:
    """
    Reject signing requests that cannot produce anything.

    Raises:
        HTTPException: 400 if pdfId is blank or allFields is missing/empty
    """
    if not pdf_id or not str(pdf_id).strip() or not all_fields:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: pdfId, allFields",
        )


def decode_base64(data: str) -> bytes:
    """
    Decode a base64 payload that may carry a `data:...;base64,` prefix.

    Raises:
        ValueError: if the payload is empty or not valid base64
    """
    if not data or not data.strip():
        raise ValueError("empty base64 payload")

    payload = data.strip()
    match = _DATA_URI_RE.match(payload)
    if match:
        payload = payload[match.end():]
    payload = "".join(payload.split())

    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64 payload: {e}") from e

    if not decoded:
        raise ValueError("empty base64 payload")
    return decoded


def parse_image_data_uri(value: Any) -> Tuple[str, bytes]:
    """
    Split an image data URI into (format, raw bytes).

    Only PNG and JPEG are accepted, e.g. `data:image/png;base64,iVBOR...`.

    Raises:
        ValueError: if the value is not a supported image data URI
    """
    if not isinstance(value, str):
        raise ValueError("image value must be a data URI string")

    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ValueError("image value is not a base64 data URI")

    mime = (match.group("mime") or "").lower()
    fmt = SUPPORTED_IMAGE_MIME.get(mime)
    if fmt is None:
        raise ValueError(f"unsupported image format: {mime or 'unknown'}")

    return fmt, decode_base64(value)


def sanitize_text_for_pdf(text: Any) -> str:
    """
    Replace anything outside 7-bit ASCII with '?', so standard-14 fonts
    (WinAnsi encoding) never see a glyph they cannot encode.
    Non-string values render as an empty string.
    """
    if not isinstance(text, str):
        return ""
    return "".join(ch if ord(ch) < 128 else "?" for ch in text)


def safe_pdf_id(pdf_id: str) -> str:
    """
    Make a client-supplied pdfId safe to embed in a filename.
    """
    cleaned = _UNSAFE_ID_CHARS.sub("_", str(pdf_id).strip()).strip("._")
    return cleaned or "document"


def resolve_signed_path(signed_dir: str, pdf_url: Optional[str]) -> Path:
    """
    Map a signedPdfUrl (or bare filename) to a file inside `signed_dir`.

    Only the basename is honoured, so a URL can never point outside the
    signed directory.

    Raises:
        HTTPException: 400 if no filename can be derived, 404 if the file is missing
    """
    if not pdf_url or not pdf_url.strip():
        raise HTTPException(status_code=400, detail="pdfUrl is required")

    path_part = urlparse(pdf_url.strip()).path or pdf_url.strip()
    filename = os.path.basename(path_part.replace("\\", "/"))
    if not filename or filename in (".", ".."):
        raise HTTPException(status_code=400, detail=f"Cannot derive a filename from {pdf_url!r}")

    path = Path(signed_dir) / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"Signed PDF not found: {filename}")
    return path


def coerce_unchecked_style(style: Optional[str]) -> str:
    """
    Coerce the checkbox unchecked style to "none" or "cross".
    Unknown values fall back to "none".
    """
    if not style:
        return "none"

    style_lower = style.lower().strip()
    if style_lower in ("none", "cross"):
        return style_lower

    return "none"
