from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "catalog_file": "data/tests.json",
    "db_path": "progress.db",
    "host": "127.0.0.1",
    "port": 8765,
    "strip_input": True,
}


@dataclass
class Settings:
    catalog_file: str = DEFAULTS["catalog_file"]
    db_path: str = DEFAULTS["db_path"]
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]
    strip_input: bool = DEFAULTS["strip_input"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def catalog_full_path(self) -> Path:
        return self.project_root / self.catalog_file

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def to_dict(self) -> dict:
        return {
            "catalog_file": self.catalog_file,
            "db_path": self.db_path,
            "host": self.host,
            "port": self.port,
            "strip_input": self.strip_input,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
