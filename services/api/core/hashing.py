# services/api/core/hashing.py
import hashlib


def compute_hash(data: bytes) -> str:
    """SHA-256 hex digest of the given bytes."""
    return hashlib.sha256(data).hexdigest()


def hashes_match(data: bytes, expected_hash: str) -> bool:
    return compute_hash(data) == (expected_hash or "").strip().lower()
