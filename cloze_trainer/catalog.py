"""Load fill-in-the-blank tests from a JSON catalog file.

Accepted shape (a bare list, or the list under a ``"tests"`` key):

  [{"id": 1, "name": "Capitals",
    "content": {"items": [
        {"type": "text", "value": "The capital of France is "},
        {"type": "missing", "officialAnswers": ["Paris"],
         "additionalAnswers": ["paris"], "explanation": "..."},
        {"type": "text", "value": "."}]}}]
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

from cloze_trainer.models import BlankItem, ContentItem, TestDefinition, TextItem

log = logging.getLogger("cloze_trainer.catalog")


class CatalogError(ValueError):
    pass


def _string_list(raw, field: str, where: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(s, str) for s in raw):
        raise CatalogError(f"{where}: {field} must be a list of strings")
    return tuple(raw)


def parse_item(raw: dict, where: str) -> ContentItem:
    if not isinstance(raw, dict):
        raise CatalogError(f"{where}: item must be an object")
    kind = raw.get("type")
    if kind == "text":
        value = raw.get("value")
        if not isinstance(value, str):
            raise CatalogError(f"{where}: text item needs a string value")
        return TextItem(value)
    if kind == "missing":
        official = _string_list(raw.get("officialAnswers"), "officialAnswers", where)
        if not official:
            raise CatalogError(f"{where}: blank needs at least one official answer")
        explanation = raw.get("explanation")
        return BlankItem(
            official_answers=official,
            additional_answers=_string_list(
                raw.get("additionalAnswers"), "additionalAnswers", where
            ),
            explanation=explanation if isinstance(explanation, str) else None,
        )
    raise CatalogError(f"{where}: unknown item type {kind!r}")


def parse_test(raw: dict) -> TestDefinition:
    if not isinstance(raw, dict) or "id" not in raw:
        raise CatalogError("test without an id")
    test_id = str(raw["id"])
    where = f"test {test_id}"
    content = raw.get("content") or {}
    items = content.get("items") if isinstance(content, dict) else None
    if not isinstance(items, list):
        raise CatalogError(f"{where}: content.items must be a list")
    return TestDefinition(
        id=test_id,
        name=str(raw.get("name", "")),
        items=tuple(parse_item(item, f"{where}, item {i}") for i, item in enumerate(items)),
    )


class TestCatalog:
    __test__ = False

    def __init__(self, tests: list[TestDefinition]):
        self._tests: dict[str, TestDefinition] = {}
        for t in tests:
            if t.id in self._tests:
                raise CatalogError(f"duplicate test id {t.id!r}")
            self._tests[t.id] = t

    def get(self, test_id) -> TestDefinition | None:
        if test_id is None:
            return None
        return self._tests.get(str(test_id))

    def __iter__(self) -> Iterator[TestDefinition]:
        return iter(self._tests.values())

    def __len__(self) -> int:
        return len(self._tests)

    def __contains__(self, test_id) -> bool:
        return self.get(test_id) is not None


def parse_catalog(data) -> TestCatalog:
    if isinstance(data, dict):
        data = data.get("tests")
    if not isinstance(data, list):
        raise CatalogError("catalog must be a list of tests")
    return TestCatalog([parse_test(raw) for raw in data])


def load_catalog(path: Path) -> TestCatalog:
    if not path.exists():
        log.warning("Catalog %s not found, starting with no tests", path)
        return TestCatalog([])
    catalog = parse_catalog(json.loads(path.read_text()))
    log.info("Loaded %d tests from %s", len(catalog), path.name)
    return catalog
