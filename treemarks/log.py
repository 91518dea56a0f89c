from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

try:
    from rich.logging import RichHandler
    _HAS_RICH = True
except Exception:
    RichHandler = None  # type: ignore
    _HAS_RICH = False

_PLAIN_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    no_color: bool = False
    log_file: Optional[str] = None


def setup_logging(cfg: LogConfig) -> None:
    level = getattr(logging, cfg.level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    handlers: List[logging.Handler] = [_console_handler(cfg)]
    if cfg.log_file:
        fh = logging.FileHandler(cfg.log_file, encoding="utf-8")
        fh.setFormatter(logging.Formatter(_PLAIN_FMT))
        handlers.append(fh)

    for handler in handlers:
        handler.setLevel(level)
        root.addHandler(handler)


def _console_handler(cfg: LogConfig) -> logging.Handler:
    force_no_color = cfg.no_color or os.getenv("NO_COLOR") is not None
    if _HAS_RICH and (not force_no_color) and sys.stderr.isatty():
        handler: logging.Handler = RichHandler(
            rich_tracebacks=True, show_time=False, show_level=True, show_path=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_PLAIN_FMT))
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
