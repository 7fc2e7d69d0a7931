"""Blind RSA signatures for coins.

Key generation uses the ``cryptography`` package; blinding, signing and
verification are textbook RSA over the SHA-256 digest of the message, read as
an integer and reduced mod n (a 256-bit value, not a full-domain hash):

    m        = H(message) mod n
    blinded  = m * r^e mod n
    s'       = blinded^d mod n
    s        = s' * r^-1 mod n      (== m^d mod n)
    verify:    s^e mod n == m
"""

from __future__ import annotations

import hashlib
import math
import secrets
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import rsa

PUBLIC_EXPONENT = 65537


@dataclass(frozen=True)
class BankKey:
    """An RSA key pair. Immutable once generated."""

    n: int
    e: int
    d: int = field(repr=False)

    @property
    def bits(self) -> int:
        return self.n.bit_length()

    def public(self) -> tuple[int, int]:
        """Return (n, e)."""
        return self.n, self.e


def generate_keypair(bits: int = 2048) -> BankKey:
    """Generate an RSA key pair of ``bits`` modulus size."""
    private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=bits)
    numbers = private_key.private_numbers()
    return BankKey(
        n=numbers.public_numbers.n,
        e=numbers.public_numbers.e,
        d=numbers.d,
    )


def message_digest(message: str | bytes, n: int) -> int:
    """SHA-256 digest of ``message`` as an integer reduced mod ``n``."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return int.from_bytes(hashlib.sha256(message).digest(), "big") % n


def blind(message: str | bytes, n: int, e: int) -> tuple[int, int]:
    """Blind ``message`` for signing.

    Returns (blinded, blinding_factor).
    """
    m = message_digest(message, n)
    while True:
        r = secrets.randbelow(n - 2) + 2
        if math.gcd(r, n) == 1:
            break
    return (m * pow(r, e, n)) % n, r


def sign_blinded(blinded: int, key: BankKey) -> int:
    """Sign a blinded digest with the private exponent."""
    if not isinstance(blinded, int) or isinstance(blinded, bool):
        raise TypeError(f"Blinded digest must be an int, got {type(blinded).__name__}")
    if not 0 <= blinded < key.n:
        raise ValueError("Blinded digest out of range for this key")
    return pow(blinded, key.d, key.n)


def unblind(signature: int, blinding_factor: int, n: int) -> int:
    """Remove the blinding factor from a signature on a blinded digest."""
    return (signature * pow(blinding_factor, -1, n)) % n


def verify_signature(signature: int | None, message: str | bytes, n: int, e: int) -> bool:
    """Check an unblinded signature against the plain message."""
    if signature is None or not 0 <= signature < n:
        return False
    return pow(signature, e, n) == message_digest(message, n)
