"""Per-test attempt ledger: one record and one scoring-eligibility latch per blank.

The eligibility latch only ever goes from True to False. It drops the first
time a blank is marked incorrect or revealed, and from then on the blank can
no longer score, even if a later try matches the official answer.

Matching an additional answer leaves the latch alone. Those answers already
settle the blank as ``partial`` and never score, so latching them changes
nothing today.
"""
from __future__ import annotations

from cloze_trainer.models import (
    SETTLED_STATUSES,
    AttemptLedger,
    AttemptRecord,
    AttemptStatus,
)


def init_ledger(blank_count: int) -> AttemptLedger:
    return AttemptLedger(
        answers=[None] * blank_count,
        scoring_eligible=[True] * blank_count,
    )


def fits(ledger: AttemptLedger, blank_count: int) -> bool:
    return (
        len(ledger.answers) == blank_count
        and len(ledger.scoring_eligible) == blank_count
    )


def is_locked(ledger: AttemptLedger, index: int) -> bool:
    return ledger.status_at(index) in SETTLED_STATUSES


def locked_mask(ledger: AttemptLedger) -> list[bool]:
    """Which blanks are frozen this round; False entries expect an input."""
    return [is_locked(ledger, i) for i in range(len(ledger.answers))]


def all_settled(ledger: AttemptLedger) -> bool:
    return all(is_locked(ledger, i) for i in range(len(ledger.answers)))


def tally(ledger: AttemptLedger) -> int:
    return sum(
        1 for r in ledger.answers
        if r is not None and r.status == AttemptStatus.CORRECT
    )


def apply_classification(
    ledger: AttemptLedger,
    index: int,
    user_answer: str,
    new_status: AttemptStatus,
) -> None:
    ledger.answers[index] = AttemptRecord(user_answer, new_status)
    if new_status == AttemptStatus.INCORRECT:
        ledger.scoring_eligible[index] = False


def reveal(ledger: AttemptLedger, index: int) -> bool:
    """Lock blank *index* as revealed, keeping the last typed input.

    Returns False when nothing changed: the blank was already revealed, or it
    is settled as correct/partial and must stay that way.
    """
    record = ledger.answers[index]
    if record is not None and record.status in SETTLED_STATUSES:
        return False
    last_input = record.user_input if record is not None else ""
    ledger.answers[index] = AttemptRecord(last_input, AttemptStatus.REVEALED)
    ledger.scoring_eligible[index] = False
    return True
