"""FastAPI application with all routes."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from cloze_trainer.catalog import load_catalog
from cloze_trainer.config import Settings, load_settings, save_settings
from cloze_trainer.grading import GradingEngine, NoInputProvided
from cloze_trainer.kvstore import SqliteKeyValueStore
from cloze_trainer.store import ResultStore

app = FastAPI(title="Cloze Trainer")

# Global state (initialized in startup)
_engine: GradingEngine | None = None
_settings: Settings | None = None

log = logging.getLogger("cloze_trainer.app")


def get_engine() -> GradingEngine:
    assert _engine is not None
    return _engine


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


@app.on_event("startup")
async def startup():
    global _engine, _settings
    if _engine is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    catalog = load_catalog(_settings.catalog_full_path)
    store = ResultStore(SqliteKeyValueStore(_settings.db_full_path))
    _engine = GradingEngine(catalog, store, strip_input=_settings.strip_input)


@app.on_event("shutdown")
async def shutdown():
    if _engine:
        _engine.store.close()


async def _read_answers(request: Request) -> list[str]:
    body = await request.json() if await request.body() else {}
    answers = body.get("answers", [])
    if not isinstance(answers, list):
        raise HTTPException(400, "answers must be a list")
    return ["" if a is None else str(a) for a in answers]


def _not_found():
    return HTTPException(404, "Test not found")


# ── API: Listing ──────────────────────────────────────────────────────────

@app.get("/api/tests")
async def api_tests():
    return get_engine().overview()


@app.get("/api/stats")
async def api_stats():
    return get_engine().stats()


# ── API: One test ─────────────────────────────────────────────────────────

@app.get("/api/tests/{test_id}")
async def api_test_view(test_id: str):
    view = get_engine().view(test_id)
    if view is None:
        raise _not_found()
    return view


@app.get("/api/tests/{test_id}/review")
async def api_test_review(test_id: str):
    engine = get_engine()
    if engine.catalog.get(test_id) is None:
        raise _not_found()
    review = engine.review(test_id)
    if review is None:
        raise HTTPException(404, "Test has no result yet")
    return review


@app.get("/api/tests/{test_id}/full-text")
async def api_test_full_text(test_id: str):
    text = get_engine().full_text(test_id)
    if text is None:
        raise _not_found()
    return {"id": test_id, "full_text": text}


# ── API: Rounds ───────────────────────────────────────────────────────────

@app.post("/api/tests/{test_id}/partial")
async def api_submit_partial(test_id: str, request: Request):
    answers = await _read_answers(request)
    engine = get_engine()
    try:
        outcome = engine.submit_partial(test_id, answers)
    except NoInputProvided as e:
        raise HTTPException(400, str(e))
    if outcome is None:
        raise _not_found()
    return {
        "complete": outcome.is_complete,
        "result": outcome.result.to_dict() if outcome.result else None,
        "ledger": outcome.ledger.to_dict(),
        "view": engine.view(test_id),
    }


@app.post("/api/tests/{test_id}/submit")
async def api_submit_final(test_id: str, request: Request):
    answers = await _read_answers(request)
    engine = get_engine()
    result = engine.submit_final(test_id, answers)
    if result is None:
        raise _not_found()
    return {
        "complete": True,
        "result": result.to_dict(),
        "review": engine.review(test_id),
    }


@app.post("/api/tests/{test_id}/reveal")
async def api_reveal(test_id: str, request: Request):
    body = await request.json() if await request.body() else {}
    index = body.get("index")
    if not isinstance(index, int) or isinstance(index, bool):
        raise HTTPException(400, "index must be an integer")
    engine = get_engine()
    if engine.catalog.get(test_id) is None:
        raise _not_found()
    try:
        ledger = engine.reveal(test_id, index)
    except IndexError as e:
        raise HTTPException(400, str(e))
    return {
        "ledger": ledger.to_dict() if ledger else None,
        "complete": engine.store.is_fully_complete(test_id),
        "view": engine.view(test_id),
    }


@app.post("/api/tests/{test_id}/reset")
async def api_reset(test_id: str):
    engine = get_engine()
    if not engine.reset(test_id):
        raise _not_found()
    return {"id": test_id, "state": "not_taken"}


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    get_engine().strip_input = s.strip_input
    log.info("Settings updated: %s", ", ".join(sorted(k for k in body if k in known)))
    return s.to_dict()
