"""riscoin — anonymous offline e-cash with double-spend identification."""

from .arbitration import Outcome, Verdict, determine_cheater
from .bank import Bank
from .codec import CoinString, parse_coin, serialize_coin
from .coin import Coin, CoinState, Side
from .config import BANK_STR, COIN_RIS_LENGTH, IDENT_STR, BankConfig
from .crypto import hash_ris, xor_bytes
from .errors import (
    CoinError,
    CoinStateError,
    FormatError,
    InvalidSignatureError,
    SigningError,
    TamperedTokenError,
)
from .ledger import DepositLedger, LedgerStorage
from .merchant import DepositRecord, Merchant, accept_coin
from .signature import BankKey, blind, generate_keypair, sign_blinded, unblind, verify_signature

__version__ = "1.0.0"

__all__ = [
    "BANK_STR",
    "IDENT_STR",
    "COIN_RIS_LENGTH",
    "BankConfig",
    "Bank",
    "BankKey",
    "Coin",
    "CoinState",
    "CoinString",
    "Side",
    "DepositRecord",
    "DepositLedger",
    "LedgerStorage",
    "Merchant",
    "Outcome",
    "Verdict",
    "accept_coin",
    "determine_cheater",
    "parse_coin",
    "serialize_coin",
    "hash_ris",
    "xor_bytes",
    "generate_keypair",
    "blind",
    "sign_blinded",
    "unblind",
    "verify_signature",
    "CoinError",
    "CoinStateError",
    "FormatError",
    "InvalidSignatureError",
    "SigningError",
    "TamperedTokenError",
]
