"""Tests for the deposit ledger, its JSON storage, and bank deposits."""

import tempfile
import threading
from pathlib import Path

import pytest

from riscoin import Bank, DepositLedger, DepositRecord, FormatError, LedgerStorage, Side, Verdict

from conftest import CONFIG, LEFT_BITS, RIGHT_BITS, issue, spend


def _record(guid="g", side=Side.LEFT, merchant=None):
    return DepositRecord(guid, side, (b"\x01\x02", b"\x03\x04"), merchant=merchant)


class TestDepositLedger:
    def test_first_record(self):
        ledger = DepositLedger()
        assert ledger.record(_record()) is None
        assert "g" in ledger
        assert len(ledger) == 1

    def test_second_record_returns_first(self):
        ledger = DepositLedger()
        first = _record(merchant="a")
        ledger.record(first)
        assert ledger.record(_record(merchant="b")) is first
        assert ledger.get("g") is first
        assert len(ledger) == 1

    def test_separate_coins(self):
        ledger = DepositLedger()
        ledger.record(_record("g1"))
        ledger.record(_record("g2"))
        assert len(ledger) == 2
        assert {r.guid for r in ledger.records()} == {"g1", "g2"}
        assert ledger.get("missing") is None

    def test_concurrent_deposits_seen_once(self):
        ledger = DepositLedger()
        results = []
        barrier = threading.Barrier(8)

        def deposit(i):
            barrier.wait()
            results.append(ledger.record(_record(merchant=f"m{i}")))

        threads = [threading.Thread(target=deposit, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(None) == 1
        first = ledger.get("g")
        assert all(r is first for r in results if r is not None)


class TestLedgerStorage:
    def test_write_and_read(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LedgerStorage(tmpdir)
            record = _record(merchant="shop")
            path = storage.write(record)
            assert path.name == "g.json"
            assert storage.read("g") == record

    def test_read_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert LedgerStorage(tmpdir).read("nonexistent") is None

    def test_iterates_sorted(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LedgerStorage(tmpdir)
            storage.write(_record("g2", Side.RIGHT))
            storage.write(_record("g1"))
            records = list(storage)
            assert [r.guid for r in records] == ["g1", "g2"]
            assert records[1].side is Side.RIGHT

    def test_no_temporary_files_left(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LedgerStorage(tmpdir)
            storage.write(_record())
            storage.write(_record())
            assert sorted(p.name for p in Path(tmpdir).iterdir()) == ["g.json"]

    @pytest.mark.parametrize(
        "content", ["{not json", "[]", '{"guid": "g"}', '{"guid": "g", "side": "up", "ris": []}']
    )
    def test_corrupt_file(self, content):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LedgerStorage(tmpdir)
            (storage.directory / "g.json").write_text(content, encoding="utf-8")
            with pytest.raises(FormatError, match="Corrupt"):
                storage.read("g")
            with pytest.raises(FormatError):
                list(storage)

    @pytest.mark.parametrize("guid", ["", "../escape", "a/b", ".hidden"])
    def test_invalid_guid(self, guid):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError):
                LedgerStorage(tmpdir).path_for(guid)


class TestPersistentLedger:
    def test_first_deposit_written_through(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LedgerStorage(tmpdir)
            ledger = DepositLedger(storage)
            first = _record(merchant="a")
            ledger.record(first)
            ledger.record(_record(merchant="b"))
            assert storage.read("g") == first

    def test_reloaded_after_restart(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            DepositLedger(LedgerStorage(tmpdir)).record(_record("g1", merchant="a"))
            ledger = DepositLedger(LedgerStorage(tmpdir))
            assert "g1" in ledger
            assert len(ledger) == 1
            assert ledger.record(_record("g1", merchant="b")).merchant == "a"

    def test_double_spend_across_restart(self, bank_key):
        with tempfile.TemporaryDirectory() as tmpdir:
            bank = Bank(CONFIG, key=bank_key, ledger=DepositLedger(LedgerStorage(tmpdir)))
            coin = issue(bank)
            assert bank.deposit(spend(coin, LEFT_BITS, merchant="m1")) is None

            restarted = Bank(CONFIG, key=bank_key, ledger=DepositLedger(LedgerStorage(tmpdir)))
            outcome = restarted.deposit(spend(coin, RIGHT_BITS, merchant="m2"))
            assert outcome.verdict is Verdict.SPENDER_IDENTIFIED
            assert outcome.identity == "alice"


class TestBankDeposit:
    def test_first_deposit(self, bank, coin):
        assert bank.deposit(spend(coin, LEFT_BITS)) is None
        assert coin.guid in bank.ledger

    def test_double_spend(self, bank, coin):
        bank.deposit(spend(coin, LEFT_BITS, merchant="m1"))
        outcome = bank.deposit(spend(coin, RIGHT_BITS, merchant="m2"))
        assert outcome.verdict is Verdict.SPENDER_IDENTIFIED
        assert outcome.identity == "alice"

    def test_merchant_double_report(self, bank, coin):
        record = spend(coin, LEFT_BITS, merchant="m1")
        bank.deposit(record)
        outcome = bank.deposit(record)
        assert outcome.verdict is Verdict.MERCHANT_DUPLICATE

    def test_different_coins_independent(self, bank):
        c1 = issue(bank)
        c2 = issue(bank)
        assert bank.deposit(spend(c1, LEFT_BITS)) is None
        assert bank.deposit(spend(c2, RIGHT_BITS)) is None

    @pytest.mark.parametrize("ris", [(), (b"\x00",), (b"\x00",) * 4])
    def test_malformed_deposit_rejected(self, bank, coin, ris):
        with pytest.raises(ValueError, match="expected 3"):
            bank.deposit(DepositRecord(coin.guid, Side.LEFT, ris, merchant="mallory"))
        assert coin.guid not in bank.ledger

        assert bank.deposit(spend(coin, LEFT_BITS, merchant="m1")) is None
        outcome = bank.deposit(spend(coin, RIGHT_BITS, merchant="m2"))
        assert outcome.verdict is Verdict.SPENDER_IDENTIFIED
        assert outcome.identity == "alice"
