"""Bank — issues coins by blind signature and settles deposits."""

from __future__ import annotations

import logging

from .arbitration import Outcome, determine_cheater
from .config import BankConfig
from .errors import SigningError
from .ledger import DepositLedger
from .merchant import DepositRecord
from .signature import BankKey, generate_keypair, sign_blinded

logger = logging.getLogger(__name__)


class Bank:
    """The issuer.

    The key pair is generated once, when the bank is constructed, and never
    changes afterwards.
    """

    def __init__(
        self,
        config: BankConfig | None = None,
        key: BankKey | None = None,
        ledger: DepositLedger | None = None,
    ) -> None:
        self.config = config or BankConfig()
        self.key = key if key is not None else generate_keypair(self.config.key_bits)
        self.ledger = ledger if ledger is not None else DepositLedger()
        logger.info("Bank ready with %d-bit key", self.key.bits)

    @property
    def n(self) -> int:
        return self.key.n

    @property
    def e(self) -> int:
        return self.key.e

    @property
    def public_key(self) -> tuple[int, int]:
        return self.key.public()

    def sign(self, blinded: int) -> int:
        """Sign a blinded coin digest.

        Raises:
            SigningError: the signing primitive rejected the input.
        """
        try:
            signature = sign_blinded(blinded, self.key)
        except (TypeError, ValueError) as e:
            raise SigningError(str(e)) from e
        logger.debug("Signed blinded coin digest")
        return signature

    def deposit(self, record: DepositRecord) -> Outcome | None:
        """Accept a merchant's deposit.

        Returns None the first time a coin is deposited. Later deposits of
        the same coin are arbitrated against the first one.

        Raises:
            ValueError: the record does not hold ``config.ris_length``
                identity strings. The ledger is left untouched.
        """
        if len(record.ris) != self.config.ris_length:
            raise ValueError(
                f"Deposit for coin {record.guid} holds {len(record.ris)} identity strings, "
                f"expected {self.config.ris_length}"
            )
        first = self.ledger.record(record)
        if first is None:
            logger.debug("Deposited coin %s", record.guid)
            return None
        logger.info("Coin %s deposited twice, arbitrating", record.guid)
        return determine_cheater(
            record.guid,
            first,
            record,
            ris_length=self.config.ris_length,
            ident_str=self.config.ident_str,
        )
