"""Saved results and attempt ledgers, one pair of records per test id.

Records are JSON strings under ``testResult_<id>`` and ``testAttempts_<id>``.
A record that cannot be decoded is reported and then treated as missing, so
a damaged entry never blocks grading.
"""
from __future__ import annotations

import json
import logging
from typing import Protocol

from cloze_trainer.models import AttemptLedger, Result

log = logging.getLogger("cloze_trainer.store")

RESULT_PREFIX = "testResult_"
LEDGER_PREFIX = "testAttempts_"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...
    def keys(self, prefix: str = "") -> list[str]: ...
    def close(self) -> None: ...


def result_key(test_id: str) -> str:
    return f"{RESULT_PREFIX}{test_id}"


def ledger_key(test_id: str) -> str:
    return f"{LEDGER_PREFIX}{test_id}"


class ResultStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def close(self) -> None:
        self.kv.close()

    def _load(self, key: str) -> dict | None:
        raw = self.kv.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            log.warning("Ignoring unreadable record %s", key)
            return None
        if not isinstance(data, dict):
            log.warning("Ignoring record %s: expected an object", key)
            return None
        return data

    # ── Results ───────────────────────────────────────────────────────────

    def get(self, test_id: str) -> Result | None:
        data = self._load(result_key(test_id))
        if data is None:
            return None
        try:
            return Result.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Ignoring malformed result for test %s: %s", test_id, e)
            return None

    def put(self, test_id: str, result: Result) -> None:
        self.kv.set(result_key(test_id), json.dumps(result.to_dict()))

    # ── Ledgers ───────────────────────────────────────────────────────────

    def get_ledger(self, test_id: str) -> AttemptLedger | None:
        data = self._load(ledger_key(test_id))
        if data is None:
            return None
        try:
            return AttemptLedger.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Ignoring malformed ledger for test %s: %s", test_id, e)
            return None

    def put_ledger(self, test_id: str, ledger: AttemptLedger) -> None:
        self.kv.set(ledger_key(test_id), json.dumps(ledger.to_dict()))

    def clear(self, test_id: str) -> None:
        self.kv.delete(result_key(test_id))
        self.kv.delete(ledger_key(test_id))

    # ── Completion state ──────────────────────────────────────────────────

    def is_partially_complete(self, test_id: str) -> bool:
        if self.get_ledger(test_id) is None:
            return False
        result = self.get(test_id)
        return result is None or not result.is_complete

    def is_fully_complete(self, test_id: str) -> bool:
        result = self.get(test_id)
        return result is not None and result.is_complete

    def is_untouched(self, test_id: str) -> bool:
        return self.get_ledger(test_id) is None and self.get(test_id) is None

    def attempted_ids(self) -> list[str]:
        ids = {k[len(RESULT_PREFIX):] for k in self.kv.keys(RESULT_PREFIX)}
        ids.update(k[len(LEDGER_PREFIX):] for k in self.kv.keys(LEDGER_PREFIX))
        return sorted(ids)
