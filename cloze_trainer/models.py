from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union


class AttemptStatus(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    REVEALED = "revealed"


# Blanks in one of these states are frozen and never collected as input again.
SETTLED_STATUSES = frozenset({
    AttemptStatus.CORRECT,
    AttemptStatus.PARTIAL,
    AttemptStatus.REVEALED,
})


@dataclass(frozen=True)
class TextItem:
    value: str


@dataclass(frozen=True)
class BlankItem:
    official_answers: tuple[str, ...]
    additional_answers: tuple[str, ...] = ()
    explanation: str | None = None

    @property
    def canonical(self) -> str:
        return self.official_answers[0]


ContentItem = Union[TextItem, BlankItem]


@dataclass(frozen=True)
class TestDefinition:
    __test__ = False  # not a pytest class

    id: str
    name: str
    items: tuple[ContentItem, ...]

    def blanks(self) -> list[BlankItem]:
        return [item for item in self.items if isinstance(item, BlankItem)]

    @property
    def blank_count(self) -> int:
        return sum(1 for item in self.items if isinstance(item, BlankItem))

    def indexed_items(self) -> Iterator[tuple[ContentItem, int | None]]:
        """Yield (item, blank_index) in content order; text items get None."""
        index = 0
        for item in self.items:
            if isinstance(item, BlankItem):
                yield item, index
                index += 1
            else:
                yield item, None


@dataclass
class AttemptRecord:
    user_input: str
    status: AttemptStatus

    def to_dict(self) -> dict:
        return {"userInput": self.user_input, "status": self.status.value}

    @classmethod
    def from_dict(cls, raw: dict) -> AttemptRecord:
        if not isinstance(raw, dict):
            raise TypeError(f"attempt record must be an object, got {type(raw).__name__}")
        user_input = raw.get("userInput", "")
        if not isinstance(user_input, str):
            raise TypeError(f"userInput must be a string, got {type(user_input).__name__}")
        return cls(user_input=user_input, status=AttemptStatus(raw["status"]))


@dataclass
class AttemptLedger:
    answers: list[AttemptRecord | None]
    scoring_eligible: list[bool]

    def copy(self) -> AttemptLedger:
        return AttemptLedger(
            answers=[
                AttemptRecord(r.user_input, r.status) if r is not None else None
                for r in self.answers
            ],
            scoring_eligible=list(self.scoring_eligible),
        )

    def status_at(self, index: int) -> AttemptStatus | None:
        record = self.answers[index]
        return record.status if record is not None else None

    def to_dict(self) -> dict:
        return {
            "answers": [r.to_dict() if r is not None else None for r in self.answers],
            "scoringEligible": list(self.scoring_eligible),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> AttemptLedger:
        answers = [
            AttemptRecord.from_dict(r) if r is not None else None
            for r in raw["answers"]
        ]
        eligible = raw.get("scoringEligible")
        if eligible is None:
            eligible = [True] * len(answers)
        if len(eligible) != len(answers):
            raise ValueError("answers and scoringEligible differ in length")
        # null eligibility entries never latched
        return cls(answers=answers, scoring_eligible=[e is not False for e in eligible])


@dataclass
class Result:
    answers: list[AttemptRecord]
    score: int
    total_blanks: int
    is_complete: bool = True

    def to_dict(self) -> dict:
        return {
            "answers": [r.to_dict() for r in self.answers],
            "score": self.score,
            "totalBlanks": self.total_blanks,
            "isComplete": self.is_complete,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Result:
        return cls(
            answers=[AttemptRecord.from_dict(r) for r in raw["answers"]],
            score=int(raw["score"]),
            total_blanks=int(raw["totalBlanks"]),
            # Results written before partial submission existed have no flag.
            is_complete=raw.get("isComplete") is not False,
        )


@dataclass
class RoundOutcome:
    """What a partial round leaves behind: the ledger and, once every blank
    is settled, the finished result."""
    ledger: AttemptLedger
    result: Result | None = None

    @property
    def is_complete(self) -> bool:
        return self.result is not None
