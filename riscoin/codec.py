"""Canonical coin strings.

A coin is signed over its canonical string::

    <BANK_STR>-<amount>-<guid>-<left_hash_0>,...,<left_hash_k-1>-<right_hash_0>,...

Only hashes of the identity strings appear; the strings themselves stay with
the spender until a merchant asks for one half.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .config import BANK_STR, COIN_RIS_LENGTH
from .errors import FormatError

if TYPE_CHECKING:
    from .coin import Coin

CODEC_VERSION = 1

_AMOUNT = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class CoinString:
    """The public, signed content of a coin."""

    amount: int
    guid: str
    left_hashes: tuple[str, ...]
    right_hashes: tuple[str, ...]
    tag: str = field(default=BANK_STR)

    def to_string(self) -> str:
        left = ",".join(self.left_hashes)
        right = ",".join(self.right_hashes)
        return f"{self.tag}-{self.amount}-{self.guid}-{left}-{right}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": CODEC_VERSION,
            "tag": self.tag,
            "amount": self.amount,
            "guid": self.guid,
            "left_hashes": list(self.left_hashes),
            "right_hashes": list(self.right_hashes),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        ris_length: int = COIN_RIS_LENGTH,
        bank_str: str = BANK_STR,
    ) -> "CoinString":
        """Decode the structured form.

        Holds the same rules as ``parse_coin``: the result always renders to
        a canonical string that parses back to itself.
        """
        version = data.get("version")
        if version != CODEC_VERSION:
            raise FormatError(f"Unsupported coin encoding version: {version!r}")
        try:
            amount = data["amount"]
            fields = (data["tag"], data["guid"], *data["left_hashes"], *data["right_hashes"])
            decoded = cls(
                amount=amount,
                guid=data["guid"],
                left_hashes=tuple(data["left_hashes"]),
                right_hashes=tuple(data["right_hashes"]),
                tag=data["tag"],
            )
        except (KeyError, TypeError) as e:
            raise FormatError(f"Malformed coin encoding: {e}") from e
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise FormatError(f"Invalid amount: {amount!r}")
        if not all(isinstance(f, str) for f in fields):
            raise FormatError("Coin encoding fields must be strings")
        if parse_coin(decoded.to_string(), ris_length=ris_length, bank_str=bank_str) != decoded:
            raise FormatError("Coin encoding does not survive canonical form")
        return decoded


def serialize_coin(coin: "Coin") -> str:
    """Build the canonical string for ``coin``."""
    return CoinString(
        amount=coin.amount,
        guid=coin.guid,
        left_hashes=tuple(coin.left_hashes),
        right_hashes=tuple(coin.right_hashes),
        tag=coin.bank_str,
    ).to_string()


def parse_coin(
    s: str,
    ris_length: int = COIN_RIS_LENGTH,
    bank_str: str = BANK_STR,
) -> CoinString:
    """Parse a canonical coin string.

    Raises:
        FormatError: wrong field count, wrong bank tag, bad amount, empty id,
            or hash lists whose lengths differ from each other or from
            ``ris_length``.
    """
    fields = s.split("-")
    if len(fields) != 5:
        raise FormatError(f"Expected 5 fields in coin string, got {len(fields)}")

    tag, amount, guid, left, right = fields
    if tag != bank_str:
        raise FormatError(f"Invalid identity string: {tag} received, but {bank_str} expected")
    if not _AMOUNT.fullmatch(amount):
        raise FormatError(f"Invalid amount: {amount!r}")
    if not guid:
        raise FormatError("Missing coin id")

    left_hashes = tuple(left.split(","))
    right_hashes = tuple(right.split(","))
    if len(left_hashes) != len(right_hashes):
        raise FormatError(
            f"Hash list lengths differ: {len(left_hashes)} left, {len(right_hashes)} right"
        )
    if len(left_hashes) != ris_length:
        raise FormatError(f"Expected {ris_length} hashes per side, got {len(left_hashes)}")
    if not all(left_hashes) or not all(right_hashes):
        raise FormatError("Empty hash in coin string")

    return CoinString(
        amount=int(amount),
        guid=guid,
        left_hashes=left_hashes,
        right_hashes=right_hashes,
        tag=tag,
    )
