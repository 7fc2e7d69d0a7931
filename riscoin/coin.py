"""Coin — one unit of anonymous, blindly signed value."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .codec import CoinString, serialize_coin
from .config import BANK_STR, COIN_RIS_LENGTH, IDENT_STR
from .crypto import hash_ris, identity_tag, make_guid, make_otp
from .errors import CoinStateError
from .signature import blind as _blind, unblind as _unblind

logger = logging.getLogger(__name__)


class Side(str, Enum):
    """Which half of the identity strings a merchant asks for."""

    LEFT = "left"
    RIGHT = "right"


class CoinState(str, Enum):
    CREATED = "created"
    BLINDED = "blinded"
    SIGNED = "signed"
    UNBLINDED = "unblinded"
    SPENT = "spent"


def _check_amount(amount: Any) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValueError(f"Amount must be a positive integer, got {amount!r}")


@dataclass
class Coin:
    """A coin carrying ``ris_length`` split copies of its owner's identity.

    For every index ``i``, ``left_ident[i] XOR right_ident[i]`` is
    ``IDENT:<owner>``. Only the hashes of the halves are part of the signed
    coin string. A merchant learns one half per index; two merchants that
    learned opposite halves let the bank recover the owner.
    """

    # Identity
    guid: str
    amount: int
    owner: str = field(repr=False)

    # Bank public key the coin is issued against
    n: int = field(repr=False)
    e: int = field(repr=False)

    # Identity strings and their commitments
    left_ident: list[bytes] = field(default_factory=list, repr=False)
    right_ident: list[bytes] = field(default_factory=list, repr=False)
    left_hashes: list[str] = field(default_factory=list, repr=False)
    right_hashes: list[str] = field(default_factory=list, repr=False)

    bank_str: str = BANK_STR

    # Signing lifecycle
    blinded: int | None = field(default=None, repr=False)
    blinding_factor: int | None = field(default=None, repr=False)
    signature: int | None = field(default=None, repr=False)
    state: CoinState = CoinState.CREATED

    @classmethod
    def create(
        cls,
        owner: str,
        amount: int,
        n: int,
        e: int,
        ris_length: int = COIN_RIS_LENGTH,
        bank_str: str = BANK_STR,
        ident_str: str = IDENT_STR,
    ) -> "Coin":
        """Create a coin for ``owner`` worth ``amount``.

        Raises:
            ValueError: non-positive amount or ris_length, or an owner that is
                empty or contains ``:``.
        """
        _check_amount(amount)
        if ris_length < 1:
            raise ValueError(f"ris_length must be positive, got {ris_length}")

        tag = identity_tag(owner, ident_str)
        left_ident: list[bytes] = []
        right_ident: list[bytes] = []
        for _ in range(ris_length):
            key, ciphertext = make_otp(tag)
            left_ident.append(key)
            right_ident.append(ciphertext)

        coin = cls(
            guid=make_guid(),
            amount=amount,
            owner=owner,
            n=n,
            e=e,
            left_ident=left_ident,
            right_ident=right_ident,
            left_hashes=[hash_ris(ris) for ris in left_ident],
            right_hashes=[hash_ris(ris) for ris in right_ident],
            bank_str=bank_str,
        )
        logger.debug("Created coin %s worth %d", coin.guid, amount)
        return coin

    @property
    def ris_length(self) -> int:
        return len(self.left_hashes)

    def to_string(self) -> str:
        """Canonical string the bank's signature covers."""
        return serialize_coin(self)

    def to_coin_string(self) -> CoinString:
        return CoinString(
            amount=self.amount,
            guid=self.guid,
            left_hashes=tuple(self.left_hashes),
            right_hashes=tuple(self.right_hashes),
            tag=self.bank_str,
        )

    def get_ris(self, side: Side, index: int) -> bytes:
        """Return one half of the identity string at ``index``."""
        if side is Side.LEFT:
            return self.left_ident[index]
        return self.right_ident[index]

    def _transition(self, expected: tuple[CoinState, ...], target: CoinState) -> None:
        if self.state not in expected:
            raise CoinStateError(
                f"Coin {self.guid} is {self.state.value}, cannot become {target.value}"
            )
        self.state = target

    def blind(self) -> int:
        """Blind the coin string for signing. Returns the blinded digest."""
        self._transition((CoinState.CREATED,), CoinState.BLINDED)
        self.blinded, self.blinding_factor = _blind(self.to_string(), self.n, self.e)
        return self.blinded

    def receive_signature(self, signature: int) -> None:
        """Store the bank's signature on the blinded digest."""
        self._transition((CoinState.BLINDED,), CoinState.SIGNED)
        self.signature = signature

    def unblind(self) -> int:
        """Turn the blinded signature into one over the plain coin string."""
        self._transition((CoinState.SIGNED,), CoinState.UNBLINDED)
        self.signature = _unblind(self.signature, self.blinding_factor, self.n)
        self.blinding_factor = None
        return self.signature

    def mark_spent(self) -> None:
        """Record an acceptance. A spent coin can be accepted again."""
        self._transition((CoinState.UNBLINDED, CoinState.SPENT), CoinState.SPENT)

    def to_dict(self, include_secrets: bool = False) -> dict[str, Any]:
        """Serialize the coin.

        The public view carries what a merchant may see. Owner and identity
        strings are only included with ``include_secrets``.
        """
        d: dict[str, Any] = {
            "guid": self.guid,
            "amount": self.amount,
            "n": self.n,
            "e": self.e,
            "bank_str": self.bank_str,
            "left_hashes": list(self.left_hashes),
            "right_hashes": list(self.right_hashes),
            "signature": self.signature,
            "state": self.state.value,
        }
        if include_secrets:
            d["owner"] = self.owner
            d["left_ident"] = [ris.hex() for ris in self.left_ident]
            d["right_ident"] = [ris.hex() for ris in self.right_ident]
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coin":
        """Deserialize a coin.

        Without the secrets the result is a public view: its string and
        signature can be checked, but it has no owner (``owner == ""``) and no
        identity strings, so a merchant rejects it as tampered.

        Raises:
            ValueError: bad amount, bad owner, or identity strings that do not
                line up with the hashes.
        """
        _check_amount(data["amount"])
        has_secrets = "owner" in data
        left_ident = [bytes.fromhex(h) for h in data.get("left_ident", [])]
        right_ident = [bytes.fromhex(h) for h in data.get("right_ident", [])]
        if has_secrets:
            identity_tag(data["owner"])
            if not len(left_ident) == len(right_ident) == len(data["left_hashes"]):
                raise ValueError(f"Coin {data['guid']}: identity strings do not match its hashes")
        elif left_ident or right_ident:
            raise ValueError(f"Coin {data['guid']}: identity strings without an owner")
        return cls(
            guid=data["guid"],
            amount=data["amount"],
            owner=data.get("owner", ""),
            n=data["n"],
            e=data["e"],
            left_ident=left_ident,
            right_ident=right_ident,
            left_hashes=list(data["left_hashes"]),
            right_hashes=list(data["right_hashes"]),
            bank_str=data.get("bank_str", BANK_STR),
            signature=data.get("signature"),
            state=CoinState(data.get("state", CoinState.CREATED.value)),
        )
