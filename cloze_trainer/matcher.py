"""Classify a typed answer against a blank's answer lists."""
from __future__ import annotations

from cloze_trainer.models import AttemptStatus, BlankItem


def matched_official(user_answer: str, blank: BlankItem) -> bool:
    return user_answer in blank.official_answers


def matched_additional(user_answer: str, blank: BlankItem) -> bool:
    return user_answer in blank.additional_answers


def classify(
    user_answer: str,
    blank: BlankItem,
    prior_status: AttemptStatus | None = None,
) -> AttemptStatus:
    """Grade one answer. Comparison is exact: no trimming, no case folding.

    An official answer typed after the blank was already marked incorrect
    only earns ``partial``: the retry is shown as right but never scores.
    """
    if matched_official(user_answer, blank):
        if prior_status == AttemptStatus.INCORRECT:
            return AttemptStatus.PARTIAL
        return AttemptStatus.CORRECT
    if matched_additional(user_answer, blank):
        return AttemptStatus.PARTIAL
    return AttemptStatus.INCORRECT
