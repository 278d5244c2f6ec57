"""CLI entry point for cloze-trainer.

Usage:
  python -m cloze_trainer serve [--port PORT] [--host HOST]
  python -m cloze_trainer stop
  python -m cloze_trainer restart [--port PORT]
  python -m cloze_trainer status
  python -m cloze_trainer list
  python -m cloze_trainer stats
  python -m cloze_trainer answers TEST_ID
  python -m cloze_trainer reset TEST_ID
"""
from __future__ import annotations

import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "restart":
        _restart(args[1:])
    elif command == "status":
        _status()
    elif command == "list":
        _list()
    elif command == "stats":
        _stats()
    elif command == "answers":
        _answers(args[1:])
    elif command == "reset":
        _reset(args[1:])
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, restart, status, list, stats, answers, reset")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _read_pid() -> int | None:
    """Read PID from file, return None if stale or missing."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def _write_pid() -> None:
    PID_FILE.write_text(str(os.getpid()))


def _remove_pid() -> None:
    PID_FILE.unlink(missing_ok=True)


def _stop() -> bool:
    """Stop a running server. Returns True if a server was stopped."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        print(f"Stopped server (PID {pid}).")
        PID_FILE.unlink(missing_ok=True)
        return True
    except ProcessLookupError:
        print("Server was not running (stale PID file removed).")
        PID_FILE.unlink(missing_ok=True)
        return False


def _status():
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time
    _stop()
    time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    from cloze_trainer.config import load_settings

    existing = _read_pid()
    if existing is not None:
        print(f"Server already running (PID {existing}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    settings = load_settings()
    port = int(_parse_flag(args, "--port", str(settings.port)))
    host = _parse_flag(args, "--host", settings.host)
    _write_pid()

    print(f"Starting Cloze Trainer on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "cloze_trainer.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        _remove_pid()


def _open_engine():
    from cloze_trainer.catalog import load_catalog
    from cloze_trainer.config import load_settings
    from cloze_trainer.grading import GradingEngine
    from cloze_trainer.kvstore import SqliteKeyValueStore
    from cloze_trainer.store import ResultStore

    settings = load_settings()
    catalog = load_catalog(settings.catalog_full_path)
    store = ResultStore(SqliteKeyValueStore(settings.db_full_path))
    return GradingEngine(catalog, store, strip_input=settings.strip_input)


def _require_test_id(args: list[str], command: str) -> str:
    if not args:
        print(f"Usage: python -m cloze_trainer {command} TEST_ID")
        sys.exit(1)
    return args[0]


def _list():
    engine = _open_engine()
    rows = engine.overview()
    if not rows:
        print("No tests in the catalog.")
    for row in rows:
        print(f"{row['id']:>6}  {row['name'][:40]:40s}  {row['score']:>10}  {row['action']}")
    engine.store.close()


def _stats():
    engine = _open_engine()
    stats = engine.stats()

    print("Cloze Trainer Stats")
    print("=" * 40)
    print(f"Tests in catalog:   {stats['total_tests']}")
    print(f"Completed:          {stats['complete']}")
    print(f"In progress:        {stats['in_progress']}")
    print(f"Not taken:          {stats['not_taken']}")
    print(f"Blanks graded:      {stats['blanks_graded']}")
    print(f"Overall accuracy:   {stats['accuracy']}%")
    if stats["stale_records"]:
        print(f"Stale records:      {', '.join(stats['stale_records'])}")
    engine.store.close()


def _answers(args: list[str]):
    test_id = _require_test_id(args, "answers")
    engine = _open_engine()
    text = engine.full_text(test_id)
    engine.store.close()
    if text is None:
        print(f"Unknown test: {test_id}")
        sys.exit(1)
    print(text)


def _reset(args: list[str]):
    test_id = _require_test_id(args, "reset")
    engine = _open_engine()
    found = engine.reset(test_id)
    engine.store.close()
    if not found:
        print(f"Unknown test: {test_id}")
        sys.exit(1)
    print(f"Test {test_id} reset.")


if __name__ == "__main__":
    main()
