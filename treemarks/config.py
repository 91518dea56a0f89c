from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


@dataclass
class Settings:
    # Storage
    db_path: str = "treemarks.sqlite"
    busy_timeout_ms: int = 5000

    # Flat export wrapper folder
    export_ns_root: str = "toolbar"
    export_title: str = "Bookmarks bar"

    # Netscape HTML export
    export_html_title: str = "Bookmarks"

    # Logging / UX
    log_level: str = "INFO"
    no_color: bool = False
    log_file: str = ""

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.db_path = _env_str("TREEMARKS_DB", s.db_path)
        s.busy_timeout_ms = _env_int("TREEMARKS_BUSY_TIMEOUT_MS", s.busy_timeout_ms)

        s.export_ns_root = _env_str("TREEMARKS_EXPORT_NS_ROOT", s.export_ns_root)
        s.export_title = _env_str("TREEMARKS_EXPORT_TITLE", s.export_title)
        s.export_html_title = _env_str("TREEMARKS_EXPORT_HTML_TITLE", s.export_html_title)

        s.log_level = _env_str("TREEMARKS_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("TREEMARKS_NO_COLOR", s.no_color)
        s.log_file = _env_str("TREEMARKS_LOG_FILE", s.log_file)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)
        return s


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
