"""Hash, XOR and one-time-pad helpers for identity strings."""

from __future__ import annotations

import hashlib
import re
import secrets
import uuid

from .config import IDENT_STR


def hash_ris(ris: bytes) -> str:
    """Commit to an identity string half.

    Returns the SHA-256 hex digest, which never contains the ``-`` or ``,``
    delimiters of the canonical coin string.
    """
    return hashlib.sha256(ris).hexdigest()


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """Byte-wise XOR of two equal-length byte strings."""
    if len(a) != len(b):
        raise ValueError(f"Cannot XOR {len(a)} bytes with {len(b)} bytes")
    return bytes(x ^ y for x, y in zip(a, b))


def make_otp(message: bytes) -> tuple[bytes, bytes]:
    """Split ``message`` into a random pad and its ciphertext.

    Returns (key, ciphertext); ``xor_bytes(key, ciphertext) == message``.
    """
    key = secrets.token_bytes(len(message))
    return key, xor_bytes(key, message)


def make_guid() -> str:
    """Globally unique coin id without ``-`` characters."""
    return uuid.uuid4().hex


def identity_tag(owner: str, ident_str: str = IDENT_STR) -> bytes:
    """Encode ``owner`` as ``<IDENT>:<owner>``."""
    if not owner or ":" in owner:
        raise ValueError(f"Owner identity must be non-empty and contain no ':', got {owner!r}")
    return f"{ident_str}:{owner}".encode("utf-8")


def parse_identity_tag(data: bytes, ident_str: str = IDENT_STR) -> str | None:
    """Return the owner encoded in ``data``, or None if it is not an identity tag."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    match = re.fullmatch(re.escape(ident_str) + r":([^:]+)", text)
    if match is None:
        return None
    return match.group(1)
