"""Double-spend arbitration.

When two deposit records for the same coin reach the bank, XOR the
revealed identity strings pairwise. A spender who paid twice revealed the
left half to one merchant and the right half to the other for at least one
index (with high probability for every index), so some pair decodes to
``IDENT:<owner>``. A merchant who deposits the same record twice reveals the
same half both times, which never decodes.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import COIN_RIS_LENGTH, IDENT_STR
from .crypto import parse_identity_tag, xor_bytes
from .merchant import DepositRecord

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    SPENDER_IDENTIFIED = "spender_identified"
    MERCHANT_DUPLICATE = "merchant_duplicate"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class Outcome:
    """Result of arbitrating two deposits of one coin."""

    guid: str
    verdict: Verdict
    identity: str | None = None
    index: int | None = None

    @property
    def resolved(self) -> bool:
        """False when an operator has to look at the deposits."""
        return self.verdict is not Verdict.INCONCLUSIVE

    @property
    def hash(self) -> str:
        """Deterministic hash of this outcome, for audit trails."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"guid": self.guid, "verdict": self.verdict.value}
        if self.identity is not None:
            d["identity"] = self.identity
        if self.index is not None:
            d["index"] = self.index
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Outcome":
        return cls(
            guid=data["guid"],
            verdict=Verdict(data["verdict"]),
            identity=data.get("identity"),
            index=data.get("index"),
        )


def _reveal(a: bytes, b: bytes, ident_str: str) -> str | None:
    if len(a) != len(b):
        return None
    return parse_identity_tag(xor_bytes(a, b), ident_str)


def determine_cheater(
    guid: str,
    ris1: DepositRecord,
    ris2: DepositRecord,
    ris_length: int = COIN_RIS_LENGTH,
    ident_str: str = IDENT_STR,
) -> Outcome:
    """Decide who cheated, given two deposit records for coin ``guid``.

    Returns SPENDER_IDENTIFIED with the owner at the first index whose XOR
    decodes to an identity tag, MERCHANT_DUPLICATE if both records reveal the
    same half with identical strings, and INCONCLUSIVE otherwise.

    Raises:
        ValueError: a record is for a different coin or does not hold
            exactly ``ris_length`` strings.
    """
    for record in (ris1, ris2):
        if record.guid != guid:
            raise ValueError(f"Deposit record for coin {record.guid} given for coin {guid}")
        if len(record.ris) != ris_length:
            raise ValueError(
                f"Deposit record holds {len(record.ris)} identity strings, expected {ris_length}"
            )

    for i, (part1, part2) in enumerate(zip(ris1.ris, ris2.ris)):
        identity = _reveal(part1, part2, ident_str)
        if identity is not None:
            logger.info("Double spending detected for coin %s, coin creator is %s", guid, identity)
            return Outcome(
                guid=guid, verdict=Verdict.SPENDER_IDENTIFIED, identity=identity, index=i
            )

    if ris1.side == ris2.side and ris1.ris == ris2.ris:
        logger.info("Coin %s: RIS identical, merchant is trying to double report", guid)
        return Outcome(guid=guid, verdict=Verdict.MERCHANT_DUPLICATE)

    logger.warning(
        "Coin %s: deposits differ (%s/%s) but reveal no identity, needs review",
        guid, ris1.side.value, ris2.side.value,
    )
    return Outcome(guid=guid, verdict=Verdict.INCONCLUSIVE)
