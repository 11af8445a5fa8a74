from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None, path: Path) -> str | None:
    """Send yttui logs to ``path``; the terminal belongs to the UI.

    Returns an error message when the log file cannot be opened, in which case
    logging stays unconfigured.
    """
    numeric = logging.getLevelName((level or "WARNING").upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        return f"Failed to open log file: {path} ({exc})"
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("yttui")
    for old in root.handlers:
        old.close()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False
    return None
