"""Logging setup and small filesystem helpers for the CLI."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Rendering and HTTP libraries log font scans and connection chatter at DEBUG.
_THIRD_PARTY_LOGGERS = ("matplotlib", "PIL", "urllib3", "pyproj")


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure root logging for the console and, optionally, a log file.

    ``verbose`` lowers the root level to DEBUG; the chatty rendering and HTTP
    loggers stay at WARNING either way.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    for name in _THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_directories(paths: Iterable[Path]) -> None:
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, payload: Any) -> Path:
    """Write ``payload`` as sorted, indented UTF-8 JSON, replacing ``path`` atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, sort_keys=True, ensure_ascii=False)
        fh.write("\n")
    os.replace(tmp_path, path)
    return path
