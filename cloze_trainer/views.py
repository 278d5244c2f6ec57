"""Turn stored progress into what the presentation layer draws.

Nothing here decides grades; it only reads ledgers and results.
"""
from __future__ import annotations

from cloze_trainer.ledger import is_locked
from cloze_trainer.matcher import matched_official
from cloze_trainer.models import (
    AttemptLedger,
    AttemptStatus,
    BlankItem,
    Result,
    TestDefinition,
)
from cloze_trainer.store import ResultStore

COMPLETE = "complete"
IN_PROGRESS = "in_progress"
NOT_TAKEN = "not_taken"

EMPTY_ANSWER = "___"


def progress_state(store: ResultStore, test_id: str) -> str:
    if store.is_fully_complete(test_id):
        return COMPLETE
    if store.is_partially_complete(test_id):
        return IN_PROGRESS
    return NOT_TAKEN


def overview_row(test: TestDefinition, store: ResultStore) -> dict:
    state = progress_state(store, test.id)
    if state == COMPLETE:
        result = store.get(test.id)
        score = f"{result.score}/{result.total_blanks}"
        action = "review"
    elif state == IN_PROGRESS:
        score = "-"
        action = "resume"
    else:
        score = "Not taken"
        action = "start"
    return {"id": test.id, "name": test.name, "state": state, "score": score, "action": action}


def score_line(result: Result) -> str:
    return f"Score: {result.score} out of {result.total_blanks} correct"


def blank_view(blank: BlankItem, index: int, ledger: AttemptLedger | None) -> dict:
    """One blank while the test is being taken.

    Settled blanks are frozen. A revealed blank shows the struck-through last
    input beside the official answer. An incorrect blank stays editable,
    prefilled with the rejected input and flagged until the user edits it.
    """
    record = ledger.answers[index] if ledger is not None else None
    view = {
        "index": index,
        "locked": False,
        "status": None,
        "user_input": "",
        "flagged": False,
        "struck": False,
        "official_answer": None,
    }
    if record is None:
        return view
    view["status"] = record.status.value
    view["user_input"] = record.user_input
    if record.status == AttemptStatus.INCORRECT:
        view["flagged"] = True
    else:
        view["locked"] = is_locked(ledger, index)
    if record.status == AttemptStatus.REVEALED:
        view["struck"] = bool(record.user_input)
        view["official_answer"] = blank.canonical
    return view


def render_items(test: TestDefinition, ledger: AttemptLedger | None) -> list[dict]:
    items = []
    for item, index in test.indexed_items():
        if index is None:
            items.append({"type": "text", "value": item.value})
        else:
            items.append({"type": "blank", **blank_view(item, index, ledger)})
    return items


def _second_chance(
    blank: BlankItem, index: int, user_input: str, ledger: AttemptLedger | None,
) -> bool:
    return (
        ledger is not None
        and index < len(ledger.scoring_eligible)
        and ledger.scoring_eligible[index] is False
        and matched_official(user_input, blank)
    )


def review_blank(
    blank: BlankItem, index: int, result: Result, ledger: AttemptLedger | None,
) -> dict:
    """One blank on the finished test.

    correct: the input as typed. partial: the input, plus the official answer
    in parentheses unless it was an official answer found on a retry.
    incorrect: struck input (or ___), the official answer and any additional
    answers. revealed: struck last input beside the official answer.
    """
    record = result.answers[index]
    view = {
        "index": index,
        "status": record.status.value,
        "user_input": record.user_input,
        "struck": False,
        "official_answer": None,
        "additional_answers": [],
        "explanation": blank.explanation,
    }
    if record.status == AttemptStatus.PARTIAL:
        if not _second_chance(blank, index, record.user_input, ledger):
            view["official_answer"] = blank.canonical
    elif record.status == AttemptStatus.INCORRECT:
        view["user_input"] = record.user_input or EMPTY_ANSWER
        view["struck"] = True
        view["official_answer"] = blank.canonical
        view["additional_answers"] = list(blank.additional_answers)
    elif record.status == AttemptStatus.REVEALED:
        view["struck"] = bool(record.user_input)
        view["official_answer"] = blank.canonical
    return view


def review_items(
    test: TestDefinition, result: Result, ledger: AttemptLedger | None,
) -> list[dict]:
    items = []
    for item, index in test.indexed_items():
        if index is None:
            items.append({"type": "text", "value": item.value})
        elif index < len(result.answers):
            items.append({"type": "blank", **review_blank(item, index, result, ledger)})
    return items
