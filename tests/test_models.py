"""Tests for data models and their stored JSON form."""
from __future__ import annotations

import pytest

from cloze_trainer.models import (
    SETTLED_STATUSES,
    AttemptLedger,
    AttemptRecord,
    AttemptStatus,
    BlankItem,
    Result,
    TextItem,
)


class TestTestDefinition:
    def test_blanks_in_content_order(self, verbs_test):
        blanks = verbs_test.blanks()
        assert [b.canonical for b in blanks] == ["went", "caught", "slept"]
        assert verbs_test.blank_count == 3

    def test_indexed_items(self, capital_test):
        indexed = list(capital_test.indexed_items())
        assert indexed[0] == (TextItem("The capital is "), None)
        assert indexed[1][1] == 0
        assert indexed[2][1] is None

    def test_canonical_is_first_official(self):
        b = BlankItem(("slept", "had slept"))
        assert b.canonical == "slept"


class TestStatuses:
    def test_settled(self):
        assert AttemptStatus.INCORRECT not in SETTLED_STATUSES
        assert AttemptStatus.REVEALED in SETTLED_STATUSES

    def test_str_values(self):
        assert AttemptStatus("partial") is AttemptStatus.PARTIAL


class TestLedgerJSON:
    def test_wire_keys(self):
        ledger = AttemptLedger(
            answers=[AttemptRecord("Pariss", AttemptStatus.INCORRECT), None],
            scoring_eligible=[False, True],
        )
        assert ledger.to_dict() == {
            "answers": [{"userInput": "Pariss", "status": "incorrect"}, None],
            "scoringEligible": [False, True],
        }

    def test_from_dict(self):
        ledger = AttemptLedger.from_dict({
            "answers": [None, {"userInput": "went", "status": "correct"}],
            "scoringEligible": [True, True],
        })
        assert ledger.answers[0] is None
        assert ledger.status_at(1) == AttemptStatus.CORRECT

    def test_missing_eligibility_defaults_true(self):
        ledger = AttemptLedger.from_dict({"answers": [None, None]})
        assert ledger.scoring_eligible == [True, True]

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            AttemptLedger.from_dict({"answers": [None], "scoringEligible": [True, False]})

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            AttemptLedger.from_dict({"answers": [{"userInput": "x", "status": "maybe"}]})

    def test_copy_is_independent(self):
        ledger = AttemptLedger([AttemptRecord("a", AttemptStatus.INCORRECT)], [False])
        clone = ledger.copy()
        clone.answers[0].user_input = "b"
        clone.scoring_eligible[0] = True
        assert ledger.answers[0].user_input == "a"
        assert ledger.scoring_eligible[0] is False


class TestResultJSON:
    def test_wire_keys(self):
        result = Result([AttemptRecord("Paris", AttemptStatus.CORRECT)], 1, 1)
        assert result.to_dict() == {
            "answers": [{"userInput": "Paris", "status": "correct"}],
            "score": 1,
            "totalBlanks": 1,
            "isComplete": True,
        }

    def test_legacy_result_without_flag_is_complete(self):
        result = Result.from_dict({
            "answers": [{"userInput": "Paris", "status": "correct"}],
            "score": 1,
            "totalBlanks": 1,
        })
        assert result.is_complete is True

    def test_explicit_incomplete(self):
        result = Result.from_dict({
            "answers": [], "score": 0, "totalBlanks": 0, "isComplete": False,
        })
        assert result.is_complete is False
