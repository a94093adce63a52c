"""
Tests for validation functions.

Run with: pytest tests/test_validation.py -v
"""
import base64

import pytest
from fastapi import HTTPException

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.validation import (
    validate_sign_request,
    decode_base64,
    parse_image_data_uri,
    sanitize_text_for_pdf,
    safe_pdf_id,
    resolve_signed_path,
    coerce_unchecked_style,
)


class TestValidateSignRequest:
    """Tests for the /sign-pdf precondition check."""

    def test_valid_request(self):
        validate_sign_request("doc-1", [{"type": "text"}])

    def test_missing_pdf_id(self):
        with pytest.raises(HTTPException) as exc:
            validate_sign_request(None, [{"type": "text"}])
        assert exc.value.status_code == 400
        assert exc.value.detail == "Missing required fields: pdfId, allFields"

    def test_blank_pdf_id(self):
        with pytest.raises(HTTPException) as exc:
            validate_sign_request("   ", [{"type": "text"}])
        assert exc.value.status_code == 400

    def test_empty_fields(self):
        with pytest.raises(HTTPException) as exc:
            validate_sign_request("doc-1", [])
        assert exc.value.status_code == 400

        with pytest.raises(HTTPException):
            validate_sign_request("doc-1", None)


class TestDecodeBase64:
    """Tests for base64 payload decoding."""

    def test_plain(self):
        encoded = base64.b64encode(b"%PDF-1.4 hello").decode()
        assert decode_base64(encoded) == b"%PDF-1.4 hello"

    def test_data_uri_prefix(self):
        encoded = base64.b64encode(b"abc").decode()
        assert decode_base64(f"data:application/pdf;base64,{encoded}") == b"abc"

    def test_whitespace_is_ignored(self):
        encoded = base64.b64encode(b"some longer payload").decode()
        wrapped = encoded[:8] + "\n" + encoded[8:] + "\n"
        assert decode_base64(wrapped) == b"some longer payload"

    def test_empty(self):
        with pytest.raises(ValueError):
            decode_base64("")
        with pytest.raises(ValueError):
            decode_base64("   ")

    def test_garbage(self):
        with pytest.raises(ValueError):
            decode_base64("not base64 at all!!")


class TestParseImageDataUri:
    """Tests for image data URI parsing."""

    def test_png(self):
        raw = b"\x89PNG fake"
        fmt, data = parse_image_data_uri("data:image/png;base64," + base64.b64encode(raw).decode())
        assert fmt == "png"
        assert data == raw

    def test_jpeg_variants(self):
        payload = base64.b64encode(b"jpeg").decode()
        assert parse_image_data_uri("data:image/jpeg;base64," + payload)[0] == "jpeg"
        assert parse_image_data_uri("data:image/jpg;base64," + payload)[0] == "jpeg"
        assert parse_image_data_uri("DATA:IMAGE/JPEG;base64," + payload)[0] == "jpeg"

    def test_unsupported_format(self):
        payload = base64.b64encode(b"gif").decode()
        with pytest.raises(ValueError, match="unsupported image format"):
            parse_image_data_uri("data:image/gif;base64," + payload)

    def test_not_a_data_uri(self):
        with pytest.raises(ValueError):
            parse_image_data_uri("iVBORw0KGgo=")
        with pytest.raises(ValueError):
            parse_image_data_uri(None)


class TestSanitizeText:
    """Tests for text sanitizing before drawing with standard fonts."""

    def test_ascii_unchanged(self):
        assert sanitize_text_for_pdf("John Smith 2024-01-01") == "John Smith 2024-01-01"

    def test_non_ascii_replaced(self):
        assert sanitize_text_for_pdf("Zoë → ok") == "Zo? ? ok"

    def test_non_string(self):
        assert sanitize_text_for_pdf(None) == ""
        assert sanitize_text_for_pdf(42) == ""


class TestSafePdfId:
    """Tests for filename-safe document ids."""

    def test_keeps_safe_chars(self):
        assert safe_pdf_id("contract_2024-v1.2") == "contract_2024-v1.2"

    def test_replaces_unsafe(self):
        assert safe_pdf_id("../../etc/passwd") == "etc_passwd"
        assert safe_pdf_id("my doc") == "my_doc"

    def test_fallback(self):
        assert safe_pdf_id("///") == "document"


class TestResolveSignedPath:
    """Tests for mapping a signedPdfUrl onto the signed directory."""

    def test_full_url(self, tmp_path):
        (tmp_path / "doc-signed-1.pdf").write_bytes(b"%PDF")
        path = resolve_signed_path(str(tmp_path), "http://localhost:8000/signed-pdfs/doc-signed-1.pdf")
        assert path == tmp_path / "doc-signed-1.pdf"

    def test_bare_filename(self, tmp_path):
        (tmp_path / "a.pdf").write_bytes(b"%PDF")
        assert resolve_signed_path(str(tmp_path), "a.pdf").name == "a.pdf"

    def test_traversal_uses_basename(self, tmp_path):
        (tmp_path / "a.pdf").write_bytes(b"%PDF")
        path = resolve_signed_path(str(tmp_path), "../../a.pdf")
        assert path == tmp_path / "a.pdf"

    def test_missing_file(self, tmp_path):
        with pytest.raises(HTTPException) as exc:
            resolve_signed_path(str(tmp_path), "nope.pdf")
        assert exc.value.status_code == 404

    def test_empty(self, tmp_path):
        with pytest.raises(HTTPException) as exc:
            resolve_signed_path(str(tmp_path), "")
        assert exc.value.status_code == 400

        with pytest.raises(HTTPException) as exc:
            resolve_signed_path(str(tmp_path), "http://host/")
        assert exc.value.status_code == 400


class TestCoerceUncheckedStyle:
    """Tests for checkbox unchecked style coercion."""

    def test_valid_styles(self):
        assert coerce_unchecked_style("none") == "none"
        assert coerce_unchecked_style("cross") == "cross"

    def test_case_insensitive(self):
        assert coerce_unchecked_style("CROSS") == "cross"
        assert coerce_unchecked_style(" None ") == "none"

    def test_invalid_defaults(self):
        assert coerce_unchecked_style("invalid") == "none"
        assert coerce_unchecked_style("") == "none"
        assert coerce_unchecked_style(None) == "none"
