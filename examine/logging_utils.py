"""JSONL run logger for audit/reproducibility.

Disabled unless a path is set via EXAMINE_RUN_LOG (environment or .env)
or set_log_path().
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


_LOG_PATH: Optional[str] = None


def _get_log_path() -> Optional[str]:
    if _LOG_PATH is not None:
        return _LOG_PATH
    return os.environ.get("EXAMINE_RUN_LOG") or None


def set_log_path(path: Optional[str]) -> None:
    global _LOG_PATH
    _LOG_PATH = path


def is_enabled() -> bool:
    return _get_log_path() is not None


def log_run(entry: Dict[str, Any]) -> None:
    """Append a JSON entry to the run log, if one is configured."""
    path = _get_log_path()
    if path is None:
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    record = dict(entry)
    record["timestamp"] = datetime.now(timezone.utc).isoformat()
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, default=str) + "\n")
