"""Exceptions raised by the coin protocol."""

from __future__ import annotations


class CoinError(Exception):
    """Base class for protocol failures."""


class FormatError(CoinError, ValueError):
    """A canonical coin string or serialized form is malformed."""


class CoinStateError(CoinError, ValueError):
    """A coin lifecycle transition was attempted out of order."""


class InvalidSignatureError(CoinError):
    """The bank's signature on a coin does not verify."""


class SigningError(CoinError):
    """The signing primitive failed."""


class TamperedTokenError(CoinError):
    """A revealed identity string does not match its commitment."""

    def __init__(self, guid: str, side: str, index: int) -> None:
        super().__init__(f"Hash mismatch at {side} RIS {index} of coin {guid}, coin tampered")
        self.guid = guid
        self.side = side
        self.index = index
