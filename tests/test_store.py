"""Tests for the key-value backends and the result store."""
from __future__ import annotations

import json

import pytest

from cloze_trainer.kvstore import MemoryKeyValueStore, SqliteKeyValueStore
from cloze_trainer.ledger import init_ledger
from cloze_trainer.models import AttemptRecord, AttemptStatus, Result
from cloze_trainer.store import ResultStore, ledger_key, result_key


@pytest.fixture(params=["memory", "sqlite"])
def kv(request, tmp_path):
    if request.param == "memory":
        store = MemoryKeyValueStore()
    else:
        store = SqliteKeyValueStore(tmp_path / "kv.db")
    yield store
    store.close()


@pytest.fixture
def result():
    return Result([AttemptRecord("Paris", AttemptStatus.CORRECT)], score=1, total_blanks=1)


class TestKeyValue:
    def test_missing_key(self, kv):
        assert kv.get("nope") is None

    def test_set_get_overwrite(self, kv):
        kv.set("a", "1")
        kv.set("a", "2")
        assert kv.get("a") == "2"

    def test_delete(self, kv):
        kv.set("a", "1")
        kv.delete("a")
        kv.delete("a")
        assert kv.get("a") is None

    def test_keys_by_prefix(self, kv):
        kv.set("testResult_1", "{}")
        kv.set("testResult_2", "{}")
        kv.set("testAttempts_1", "{}")
        kv.set("testResultX", "{}")
        assert kv.keys("testResult_") == ["testResult_1", "testResult_2"]

    def test_sqlite_persists(self, tmp_path):
        first = SqliteKeyValueStore(tmp_path / "kv.db")
        first.set("k", "v")
        first.close()
        second = SqliteKeyValueStore(tmp_path / "kv.db")
        assert second.get("k") == "v"
        second.close()


class TestKeys:
    def test_keys(self):
        assert result_key("7") == "testResult_7"
        assert ledger_key("7") == "testAttempts_7"


class TestResultStore:
    def test_absent(self, kv):
        store = ResultStore(kv)
        assert store.get("1") is None
        assert store.get_ledger("1") is None
        assert store.is_untouched("1")

    def test_result_roundtrip(self, kv, result):
        store = ResultStore(kv)
        store.put("1", result)
        assert store.get("1") == result
        assert json.loads(kv.get("testResult_1"))["totalBlanks"] == 1

    def test_ledger_roundtrip(self, kv):
        store = ResultStore(kv)
        ledger = init_ledger(2)
        ledger.answers[0] = AttemptRecord("x", AttemptStatus.INCORRECT)
        ledger.scoring_eligible[0] = False
        store.put_ledger("1", ledger)
        assert store.get_ledger("1") == ledger

    def test_clear(self, kv, result):
        store = ResultStore(kv)
        store.put("1", result)
        store.put_ledger("1", init_ledger(1))
        store.clear("1")
        assert store.get("1") is None
        assert store.get_ledger("1") is None
        assert store.is_untouched("1")

    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", '{"answers": 5}', '{"score": 1}'])
    def test_malformed_result_is_absent(self, kv, raw):
        kv.set("testResult_1", raw)
        assert ResultStore(kv).get("1") is None

    @pytest.mark.parametrize("raw", ["", "null", '{"answers": ["x"]}', '{"answers": [{"status": "bogus"}]}'])
    def test_malformed_ledger_is_absent(self, kv, raw):
        kv.set("testAttempts_1", raw)
        assert ResultStore(kv).get_ledger("1") is None

    def test_attempted_ids(self, kv, result):
        store = ResultStore(kv)
        store.put("a", result)
        store.put_ledger("a", init_ledger(1))
        store.put_ledger("b", init_ledger(1))
        assert store.attempted_ids() == ["a", "b"]


class TestCompletionState:
    def test_partial_when_ledger_only(self, mem_store):
        mem_store.put_ledger("1", init_ledger(1))
        assert mem_store.is_partially_complete("1")
        assert not mem_store.is_fully_complete("1")
        assert not mem_store.is_untouched("1")

    def test_complete(self, mem_store, result):
        mem_store.put_ledger("1", init_ledger(1))
        mem_store.put("1", result)
        assert mem_store.is_fully_complete("1")
        assert not mem_store.is_partially_complete("1")

    def test_incomplete_result_with_ledger_is_partial(self, mem_store, result):
        result.is_complete = False
        mem_store.put_ledger("1", init_ledger(1))
        mem_store.put("1", result)
        assert mem_store.is_partially_complete("1")
        assert not mem_store.is_fully_complete("1")

    def test_legacy_result_is_complete(self, mem_store):
        mem_store.kv.set("testResult_1", json.dumps({
            "answers": [{"userInput": "Paris", "status": "correct"}],
            "score": 1,
            "totalBlanks": 1,
        }))
        assert mem_store.is_fully_complete("1")
        assert not mem_store.is_partially_complete("1")

    def test_result_without_ledger_is_not_partial(self, mem_store, result):
        mem_store.put("1", result)
        assert not mem_store.is_partially_complete("1")
