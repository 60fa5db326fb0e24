"""Append-only debug log shared by the app and the compositor."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from tableqr.config import DEBUG_LOG_PATH


def log_debug(message: str, path: str | Path | None = None) -> None:
    try:
        log_path = Path(path or DEBUG_LOG_PATH)
        ts = datetime.now(timezone.utc).isoformat()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(f"{ts} {message}\n")
    except Exception:
        # Logging must never interfere with app flow.
        return
