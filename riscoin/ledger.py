"""Deposit ledger: the first deposit seen for each coin."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterator

from .errors import FormatError
from .merchant import DepositRecord

logger = logging.getLogger(__name__)


class LedgerStorage:
    """One JSON file per coin id under ``directory``.

    Files are written to a temporary name and renamed into place, so a crash
    mid-write never leaves a half-written deposit behind.
    """

    def __init__(self, directory: str | Path = ".riscoin") -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, guid: str) -> Path:
        if not guid or "/" in guid or os.sep in guid or guid.startswith("."):
            raise ValueError(f"Invalid coin id for storage: {guid!r}")
        return self.directory / f"{guid}.json"

    def write(self, record: DepositRecord) -> Path:
        path = self.path_for(record.guid)
        tmp = path.parent / (path.name + ".tmp")
        tmp.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp, path)
        return path

    def read(self, guid: str) -> DepositRecord | None:
        """Return the stored deposit for ``guid``, or None if there is none.

        Raises:
            FormatError: the file exists but does not hold a deposit record.
        """
        path = self.path_for(guid)
        if not path.exists():
            return None
        return self._decode(path)

    def __iter__(self) -> Iterator[DepositRecord]:
        for path in sorted(self.directory.glob("*.json")):
            yield self._decode(path)

    @staticmethod
    def _decode(path: Path) -> DepositRecord:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return DepositRecord.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise FormatError(f"Corrupt deposit file {path}: {e}") from e


class DepositLedger:
    """Map from coin id to its first deposit.

    ``record`` is insert-if-absent-else-return-existing under a lock, so
    concurrent deposits of one coin see the second deposit exactly once.
    With a ``storage`` every first deposit is written through to disk and
    the ledger is reloaded from it on construction.
    """

    def __init__(self, storage: LedgerStorage | None = None) -> None:
        self.storage = storage
        self._records: dict[str, DepositRecord] = {}
        self._lock = threading.Lock()
        if storage is not None:
            for deposit in storage:
                self._records[deposit.guid] = deposit
            logger.info("Loaded %d deposits from %s", len(self._records), storage.directory)

    def record(self, deposit: DepositRecord) -> DepositRecord | None:
        """Store ``deposit`` if its coin is new.

        Returns None for a new coin, otherwise the deposit already on file.
        """
        with self._lock:
            existing = self._records.get(deposit.guid)
            if existing is None:
                if self.storage is not None:
                    self.storage.write(deposit)
                self._records[deposit.guid] = deposit
            return existing

    def get(self, guid: str) -> DepositRecord | None:
        with self._lock:
            return self._records.get(guid)

    def records(self) -> list[DepositRecord]:
        with self._lock:
            return list(self._records.values())

    def __contains__(self, guid: object) -> bool:
        with self._lock:
            return guid in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
