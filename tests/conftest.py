"""Shared fixtures: one bank key for the whole session, coins issued against it."""

import pytest

from riscoin import Bank, BankConfig, Coin, accept_coin, generate_keypair

RIS_LENGTH = 3
CONFIG = BankConfig(key_bits=1024, ris_length=RIS_LENGTH)


class FixedBits:
    """Random source that always returns the same bit."""

    def __init__(self, bit: int) -> None:
        self.bit = bit

    def getrandbits(self, k: int) -> int:
        return self.bit


LEFT_BITS = FixedBits(0)
RIGHT_BITS = FixedBits(1)


@pytest.fixture(scope="session")
def bank_key():
    return generate_keypair(1024)


@pytest.fixture
def bank(bank_key):
    return Bank(CONFIG, key=bank_key)


def issue(bank, owner="alice", amount=20, ris_length=RIS_LENGTH):
    """Create, blind, sign and unblind a coin."""
    coin = Coin.create(owner, amount, bank.n, bank.e, ris_length=ris_length)
    coin.receive_signature(bank.sign(coin.blind()))
    coin.unblind()
    return coin


@pytest.fixture
def coin(bank):
    return issue(bank)


def spend(coin, bits=None, merchant=None):
    """Accept ``coin`` under the test bank's ris_length."""
    return accept_coin(coin, rng=bits, merchant=merchant, ris_length=RIS_LENGTH)
