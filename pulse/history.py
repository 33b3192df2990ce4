"""
Test history persistence.

Results are stored newest-first as a JSON array in
``~/.netpulse/history.json``.  Only the most recent ``MAX_HISTORY_ENTRIES``
are kept; every write replaces the file atomically (write-tmp then
rename) so an interrupted save never leaves a truncated history.
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import MAX_HISTORY_ENTRIES
from .models import TestResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULT_DIR = os.path.join(Path.home(), ".netpulse")
_DEFAULT_FILE = "history.json"


def _history_path() -> str:
    return os.path.join(_DEFAULT_DIR, _DEFAULT_FILE)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

def load_history(limit: int = MAX_HISTORY_ENTRIES) -> List[Dict[str, Any]]:
    """Return up to *limit* stored results, newest first."""
    path = _history_path()
    if not os.path.isfile(path):
        return []

    try:
        with open(path, encoding="utf-8") as fh:
            entries = json.load(fh)
    except (json.JSONDecodeError, IOError) as exc:
        logger.warning("Ignoring unreadable history file %s: %s", path, exc)
        return []

    if not isinstance(entries, list):
        return []
    return [e for e in entries if isinstance(e, dict)][:limit]


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

def record_result(result: TestResult, timestamp: Optional[str] = None) -> str:
    """Prepend *result* to the history, trimming old entries.  Returns the file path."""
    path = _history_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    entry = result.to_dict()
    entry["timestamp"] = timestamp or datetime.now(timezone.utc).isoformat()

    entries = [entry] + load_history()
    _write_atomic(path, entries[:MAX_HISTORY_ENTRIES])
    return path


def _write_atomic(path: str, entries: List[Dict[str, Any]]) -> None:
    dir_path = os.path.dirname(path) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(path)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(entries, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    except OSError:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
