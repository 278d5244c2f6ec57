"""Shared test fixtures."""
from __future__ import annotations

import pytest

from cloze_trainer.catalog import TestCatalog, parse_catalog
from cloze_trainer.grading import GradingEngine
from cloze_trainer.kvstore import MemoryKeyValueStore, SqliteKeyValueStore
from cloze_trainer.models import BlankItem, TestDefinition, TextItem
from cloze_trainer.store import ResultStore


@pytest.fixture
def capital_test():
    """One blank: the capital of France."""
    return TestDefinition(
        id="1",
        name="Capital",
        items=(
            TextItem("The capital is "),
            BlankItem(("Paris",)),
            TextItem("."),
        ),
    )


@pytest.fixture
def verbs_test():
    """Three blanks, the second with an additional answer."""
    return TestDefinition(
        id="2",
        name="Verbs",
        items=(
            TextItem("She "),
            BlankItem(("went",)),
            TextItem(" home because she had "),
            BlankItem(("caught",), ("catched",), "Catch is irregular."),
            TextItem(" a cold and "),
            BlankItem(("slept", "had slept")),
            TextItem(" until noon."),
        ),
    )


@pytest.fixture
def catalog(capital_test, verbs_test):
    return TestCatalog([capital_test, verbs_test])


@pytest.fixture
def mem_store():
    return ResultStore(MemoryKeyValueStore())


@pytest.fixture
def sqlite_kv(tmp_path):
    """Create a fresh temporary sqlite store."""
    kv = SqliteKeyValueStore(tmp_path / "test.db")
    yield kv
    kv.close()


@pytest.fixture
def engine(catalog, mem_store):
    return GradingEngine(catalog, mem_store)


@pytest.fixture
def catalog_data():
    """Raw catalog JSON as the data file ships it."""
    return [
        {
            "id": 1,
            "name": "European capitals",
            "content": {
                "items": [
                    {"type": "text", "value": "The capital of France is "},
                    {"type": "missing", "officialAnswers": ["Paris"]},
                    {"type": "text", "value": ", of Italy "},
                    {
                        "type": "missing",
                        "officialAnswers": ["Rome"],
                        "additionalAnswers": ["Roma"],
                        "explanation": "Roma is the Italian name.",
                    },
                    {"type": "text", "value": "."},
                ]
            },
        },
        {
            "id": "prep",
            "name": "Prepositions",
            "content": {
                "items": [
                    {"type": "text", "value": "See you "},
                    {"type": "missing", "officialAnswers": ["on"]},
                    {"type": "text", "value": " Monday."},
                ]
            },
        },
    ]


@pytest.fixture
def parsed_catalog(catalog_data):
    return parse_catalog(catalog_data)
