"""Protocol constants and bank configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

BANK_STR = "ELECTRONIC_BANK"
IDENT_STR = "IDENT"
COIN_RIS_LENGTH = 20
DEFAULT_KEY_BITS = 2048
MIN_KEY_BITS = 1024


@dataclass(frozen=True)
class BankConfig:
    """Settings fixed for the lifetime of a bank."""

    key_bits: int = DEFAULT_KEY_BITS
    ris_length: int = COIN_RIS_LENGTH
    bank_str: str = BANK_STR
    ident_str: str = IDENT_STR

    def __post_init__(self) -> None:
        if self.key_bits < MIN_KEY_BITS:
            raise ValueError(f"key_bits must be at least {MIN_KEY_BITS}, got {self.key_bits}")
        if self.ris_length < 1:
            raise ValueError(f"ris_length must be positive, got {self.ris_length}")
        if "-" in self.bank_str or not self.bank_str:
            raise ValueError(f"Invalid bank tag: {self.bank_str!r}")
        if ":" in self.ident_str or self.ident_str == self.bank_str:
            raise ValueError(f"Invalid identity tag: {self.ident_str!r}")

    @classmethod
    def from_env(cls) -> "BankConfig":
        """Build a config, overriding defaults from RISCOIN_* variables."""
        return cls(
            key_bits=int(os.environ.get("RISCOIN_KEY_BITS", DEFAULT_KEY_BITS)),
            ris_length=int(os.environ.get("RISCOIN_RIS_LENGTH", COIN_RIS_LENGTH)),
        )
