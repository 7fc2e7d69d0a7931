"""Merchant side: accepting coins and producing deposit records."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Protocol

from .codec import parse_coin
from .coin import Coin, Side
from .config import BANK_STR, COIN_RIS_LENGTH, BankConfig
from .crypto import hash_ris
from .errors import InvalidSignatureError, TamperedTokenError
from .signature import verify_signature

logger = logging.getLogger(__name__)


class RandomBits(Protocol):
    def getrandbits(self, k: int) -> int: ...


@dataclass(frozen=True)
class DepositRecord:
    """One half of a coin's identity strings, as revealed to a merchant."""

    guid: str
    side: Side
    ris: tuple[bytes, ...]
    merchant: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "guid": self.guid,
            "side": self.side.value,
            "ris": [r.hex() for r in self.ris],
        }
        if self.merchant is not None:
            d["merchant"] = self.merchant
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DepositRecord":
        return cls(
            guid=data["guid"],
            side=Side(data["side"]),
            ris=tuple(bytes.fromhex(r) for r in data["ris"]),
            merchant=data.get("merchant"),
        )


def select_side(rng: RandomBits) -> Side:
    """One fair coin flip: 0 is left, 1 is right."""
    return Side.LEFT if rng.getrandbits(1) == 0 else Side.RIGHT


def accept_coin(
    coin: Coin,
    rng: RandomBits | None = None,
    merchant: str | None = None,
    ris_length: int = COIN_RIS_LENGTH,
    bank_str: str = BANK_STR,
    public_key: tuple[int, int] | None = None,
) -> DepositRecord:
    """Accept ``coin`` as payment.

    1. Verify the bank's signature over the coin string.
    2. Pick the left or right half of every identity string (one choice
       for all indices).
    3. Check each revealed half against its hash in the coin string.

    ``ris_length`` and ``bank_str`` are the bank's, not the coin's: a coin
    minted with fewer identity strings than the bank arbitrates on is
    rejected. With ``public_key`` the signature must verify under that
    (n, e) rather than the key the coin names.

    Raises:
        InvalidSignatureError: the signature is missing or does not verify.
        FormatError: the coin string does not parse for this bank.
        TamperedTokenError: a revealed half is missing or does not match its
            hash. Raised at the first bad index.
    """
    coin_string = coin.to_string()
    n, e = public_key if public_key is not None else (coin.n, coin.e)
    if not verify_signature(coin.signature, coin_string, n, e):
        logger.warning("Rejected coin %s: invalid signature", coin.guid)
        raise InvalidSignatureError(f"Invalid coin signature for {coin.guid}")

    side = select_side(rng if rng is not None else random.SystemRandom())

    parsed = parse_coin(coin_string, ris_length=ris_length, bank_str=bank_str)
    expected = parsed.left_hashes if side is Side.LEFT else parsed.right_hashes

    revealed: list[bytes] = []
    for i in range(len(expected)):
        try:
            ris = coin.get_ris(side, i)
        except IndexError:
            ris = None
        if ris is None or hash_ris(ris) != expected[i]:
            logger.warning("Rejected coin %s: %s RIS %d tampered", coin.guid, side.value, i)
            raise TamperedTokenError(coin.guid, side.value, i)
        revealed.append(ris)

    coin.mark_spent()
    logger.debug("Accepted coin %s, revealed %s half", coin.guid, side.value)
    return DepositRecord(guid=parsed.guid, side=side, ris=tuple(revealed), merchant=merchant)


class Merchant:
    """A named merchant with its own source of randomness.

    ``config`` must match the bank's; ``public_key`` pins the bank's (n, e).
    """

    def __init__(
        self,
        name: str,
        rng: RandomBits | None = None,
        config: BankConfig | None = None,
        public_key: tuple[int, int] | None = None,
    ) -> None:
        self.name = name
        self.rng = rng if rng is not None else random.SystemRandom()
        self.config = config or BankConfig()
        self.public_key = public_key

    def accept_coin(self, coin: Coin) -> DepositRecord:
        return accept_coin(
            coin,
            rng=self.rng,
            merchant=self.name,
            ris_length=self.config.ris_length,
            bank_str=self.config.bank_str,
            public_key=self.public_key,
        )
