"""
Utility functions for kld-registry.

Provides canonical JSON serialization, base64url encoding, file reading
and helpers for scrubbing sensitive buffers.
"""

import base64
import json
from typing import Any, Union

from .errors import FileReadError


def canonicalize(obj: Any) -> bytes:
    """
    Convert object to canonical JSON bytes.

    Canonical JSON:
    - Lexicographically sorted keys
    - No whitespace
    - UTF-8 encoded
    """
    s = json.dumps(obj, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return s.encode('utf-8')


def b64url_encode(b: Union[bytes, bytearray]) -> str:
    """URL-safe base64 encode bytes to string (no padding)."""
    return base64.urlsafe_b64encode(b).rstrip(b'=').decode('ascii')


def b64url_decode(s: str) -> bytes:
    """URL-safe base64 decode string to bytes (handles missing padding)."""
    padding = 4 - (len(s) % 4)
    if padding != 4:
        s += '=' * padding
    return base64.urlsafe_b64decode(s.encode('ascii'))


def read_file(path: str) -> bytes:
    """Read a whole file, mapping OS failures to FileReadError."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileReadError(str(path), e.strerror or str(e)) from e


def zero_bytes(buf: bytearray) -> None:
    """Overwrite a mutable buffer with zero bytes in place."""
    for i in range(len(buf)):
        buf[i] = 0


def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only the last N characters.
    Useful for logging.
    """
    if len(value) <= visible_chars:
        return '*' * len(value)
    return '*' * (len(value) - visible_chars) + value[-visible_chars:]
