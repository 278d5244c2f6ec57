"""Submission rounds over one test: partial, final and single-blank reveal.

The ``grade_*`` functions are pure: they take a test, the prior ledger (or
None) and the typed inputs, and return new state without touching the
caller's ledger. ``GradingEngine`` binds them to a catalog and a result
store, loading state before a round and saving it after.

Inputs arrive one per blank that still awaits an answer, in content order.
Settled blanks (correct, partial, revealed) take no input and are skipped
positionally, so the blank index always comes from the content order.
"""
from __future__ import annotations

import logging

from cloze_trainer import views
from cloze_trainer.catalog import TestCatalog
from cloze_trainer.ledger import (
    all_settled,
    apply_classification,
    fits,
    init_ledger,
    locked_mask,
    tally,
)
from cloze_trainer.ledger import reveal as reveal_in_ledger
from cloze_trainer.matcher import classify
from cloze_trainer.models import (
    AttemptLedger,
    AttemptRecord,
    AttemptStatus,
    Result,
    RoundOutcome,
    TestDefinition,
    TextItem,
)
from cloze_trainer.store import ResultStore

log = logging.getLogger("cloze_trainer.grading")

NO_INPUT_NOTICE = "Please fill in at least one answer before submitting."


class NoInputProvided(Exception):
    """A partial round arrived with every input empty. Nothing was saved."""

    def __init__(self, test_id: str):
        super().__init__(NO_INPUT_NOTICE)
        self.test_id = test_id


def full_text(test: TestDefinition) -> str:
    """The answer key: text items joined with each blank's canonical answer."""
    return "".join(
        item.value if isinstance(item, TextItem) else item.canonical
        for item in test.items
    )


def _start(test: TestDefinition, ledger: AttemptLedger | None) -> AttemptLedger:
    if ledger is None:
        return init_ledger(test.blank_count)
    if not fits(ledger, test.blank_count):
        log.warning(
            "Discarding ledger for test %s: %d entries for %d blanks",
            test.id, len(ledger.answers), test.blank_count,
        )
        return init_ledger(test.blank_count)
    return ledger.copy()


def assign_inputs(
    test: TestDefinition,
    ledger: AttemptLedger,
    raw_inputs: list[str],
    strip_input: bool = True,
) -> dict[int, str]:
    """Map each blank awaiting input to its raw string.

    Missing trailing inputs count as empty; surplus ones are dropped.
    """
    open_slots = [i for i, locked in enumerate(locked_mask(ledger)) if not locked]
    if len(raw_inputs) > len(open_slots):
        log.warning(
            "Test %s: %d inputs for %d open blanks, ignoring the rest",
            test.id, len(raw_inputs), len(open_slots),
        )
    assigned: dict[int, str] = {}
    for position, index in enumerate(open_slots):
        value = raw_inputs[position] if position < len(raw_inputs) else ""
        value = value or ""
        assigned[index] = value.strip() if strip_input else value
    return assigned


def _snapshot(ledger: AttemptLedger) -> list[AttemptRecord]:
    return [
        AttemptRecord(r.user_input, r.status) if r is not None
        else AttemptRecord("", AttemptStatus.INCORRECT)
        for r in ledger.answers
    ]


def _grade(
    test: TestDefinition,
    ledger: AttemptLedger,
    assigned: dict[int, str],
    skip_empty: bool,
) -> int:
    score = 0
    for index, blank in enumerate(test.blanks()):
        if index not in assigned:
            # settled earlier: carry forward untouched
            if ledger.status_at(index) == AttemptStatus.CORRECT:
                score += 1
            continue
        answer = assigned[index]
        if skip_empty and not answer.strip():
            continue
        was_eligible = ledger.scoring_eligible[index]
        status = classify(answer, blank, ledger.status_at(index))
        if status == AttemptStatus.CORRECT and not was_eligible:
            # a latched blank can never again reach correct
            status = AttemptStatus.PARTIAL
        apply_classification(ledger, index, answer, status)
        if status == AttemptStatus.CORRECT and was_eligible:
            score += 1
    return score


def grade_partial(
    test: TestDefinition,
    ledger: AttemptLedger | None,
    raw_inputs: list[str],
    strip_input: bool = True,
) -> RoundOutcome:
    """Grade the filled-in blanks; empty ones stay open for the next round.

    Raises NoInputProvided when every input that lands on an open blank is
    empty. Surplus inputs do not count.
    """
    ledger = _start(test, ledger)
    assigned = assign_inputs(test, ledger, raw_inputs, strip_input)
    if not any(value.strip() for value in assigned.values()):
        raise NoInputProvided(test.id)
    score = _grade(test, ledger, assigned, skip_empty=True)
    if not all_settled(ledger):
        return RoundOutcome(ledger=ledger)
    result = Result(
        answers=_snapshot(ledger),
        score=score,
        total_blanks=test.blank_count,
        is_complete=True,
    )
    return RoundOutcome(ledger=ledger, result=result)


def grade_final(
    test: TestDefinition,
    ledger: AttemptLedger | None,
    raw_inputs: list[str],
    strip_input: bool = True,
) -> tuple[AttemptLedger, Result]:
    """Grade every open blank as it stands, empty ones included, and finish."""
    ledger = _start(test, ledger)
    assigned = assign_inputs(test, ledger, raw_inputs, strip_input)
    score = _grade(test, ledger, assigned, skip_empty=False)
    result = Result(
        answers=_snapshot(ledger),
        score=score,
        total_blanks=test.blank_count,
        is_complete=True,
    )
    return ledger, result


def reveal_blank(
    test: TestDefinition,
    ledger: AttemptLedger | None,
    index: int,
) -> AttemptLedger:
    if not 0 <= index < test.blank_count:
        raise IndexError(f"test {test.id} has no blank {index}")
    ledger = _start(test, ledger)
    reveal_in_ledger(ledger, index)
    return ledger


def settled_result(test: TestDefinition, ledger: AttemptLedger) -> Result | None:
    """The result a fully settled ledger stands for, or None if any blank is open."""
    if not all_settled(ledger):
        return None
    return Result(
        answers=_snapshot(ledger),
        score=tally(ledger),
        total_blanks=test.blank_count,
        is_complete=True,
    )


class GradingEngine:
    """Runs rounds against stored state. Unknown test ids yield None."""

    def __init__(self, catalog: TestCatalog, store: ResultStore, strip_input: bool = True):
        self.catalog = catalog
        self.store = store
        self.strip_input = strip_input

    def _ledger(self, test: TestDefinition) -> AttemptLedger | None:
        ledger = self.store.get_ledger(test.id)
        if ledger is not None and not fits(ledger, test.blank_count):
            log.warning("Stored ledger for test %s does not match its blanks", test.id)
            return None
        return ledger

    def _finished(self, test: TestDefinition) -> Result | None:
        if self.store.is_fully_complete(test.id):
            return self.store.get(test.id)
        return None

    def submit_partial(self, test_id, raw_inputs: list[str]) -> RoundOutcome | None:
        test = self.catalog.get(test_id)
        if test is None:
            return None
        done = self._finished(test)
        if done is not None:
            log.info("Test %s already finished, partial round ignored", test.id)
            return RoundOutcome(ledger=self._ledger(test) or init_ledger(test.blank_count), result=done)

        outcome = grade_partial(test, self._ledger(test), raw_inputs, self.strip_input)
        self.store.put_ledger(test.id, outcome.ledger)
        if outcome.result is not None:
            self.store.put(test.id, outcome.result)
            log.info(
                "Test %s completed: %d/%d",
                test.id, outcome.result.score, outcome.result.total_blanks,
            )
        else:
            open_count = locked_mask(outcome.ledger).count(False)
            log.info("Test %s partial round saved, %d blanks open", test.id, open_count)
        return outcome

    def submit_final(self, test_id, raw_inputs: list[str]) -> Result | None:
        test = self.catalog.get(test_id)
        if test is None:
            return None
        done = self._finished(test)
        if done is not None:
            return done

        ledger, result = grade_final(test, self._ledger(test), raw_inputs, self.strip_input)
        self.store.put_ledger(test.id, ledger)
        self.store.put(test.id, result)
        log.info("Test %s submitted: %d/%d", test.id, result.score, result.total_blanks)
        return result

    def reveal(self, test_id, index: int) -> AttemptLedger | None:
        test = self.catalog.get(test_id)
        if test is None:
            return None
        prior = self._ledger(test)
        if self._finished(test) is not None:
            return prior

        ledger = reveal_blank(test, prior, index)
        self.store.put_ledger(test.id, ledger)
        log.info("Test %s: revealed blank %d", test.id, index)
        result = settled_result(test, ledger)
        if result is not None:
            self.store.put(test.id, result)
            log.info(
                "Test %s completed by reveal: %d/%d",
                test.id, result.score, result.total_blanks,
            )
        return ledger

    def reset(self, test_id) -> bool:
        test = self.catalog.get(test_id)
        if test is None:
            return False
        self.store.clear(test.id)
        log.info("Test %s reset", test.id)
        return True

    def full_text(self, test_id) -> str | None:
        test = self.catalog.get(test_id)
        return full_text(test) if test is not None else None

    # ── Read models for the presentation layer ───────────────────────────

    def view(self, test_id) -> dict | None:
        test = self.catalog.get(test_id)
        if test is None:
            return None
        ledger = self._ledger(test)
        state = views.progress_state(self.store, test.id)
        return {
            "id": test.id,
            "name": test.name,
            "title": f"({test.id}) {test.name}",
            "state": state,
            "items": views.render_items(test, ledger),
            "can_submit_partial": state == views.IN_PROGRESS,
        }

    def review(self, test_id) -> dict | None:
        test = self.catalog.get(test_id)
        if test is None:
            return None
        result = self.store.get(test.id)
        if result is None:
            return None
        return {
            "id": test.id,
            "name": test.name,
            "score": result.score,
            "total_blanks": result.total_blanks,
            "score_line": views.score_line(result),
            "items": views.review_items(test, result, self._ledger(test)),
            "full_text": full_text(test),
        }

    def overview(self) -> list[dict]:
        return [views.overview_row(test, self.store) for test in self.catalog]

    def stats(self) -> dict:
        rows = self.overview()
        complete = [r for r in rows if r["state"] == views.COMPLETE]
        results = [self.store.get(r["id"]) for r in complete]
        score = sum(r.score for r in results if r is not None)
        graded = sum(r.total_blanks for r in results if r is not None)
        return {
            "total_tests": len(rows),
            "complete": len(complete),
            "in_progress": sum(1 for r in rows if r["state"] == views.IN_PROGRESS),
            "not_taken": sum(1 for r in rows if r["state"] == views.NOT_TAKEN),
            "total_score": score,
            "blanks_graded": graded,
            "accuracy": round(100 * score / graded, 1) if graded else 0,
            "stale_records": [
                test_id for test_id in self.store.attempted_ids()
                if test_id not in self.catalog
            ],
        }
