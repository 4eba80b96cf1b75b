"""Numeric coercion, digest, and path helpers."""
from __future__ import annotations

import hashlib
import json
import math
from pathlib import Path
from typing import Any, Optional


def to_finite_float(raw: Any) -> Optional[float]:
    """Coerce a raw cell to a finite float, or None if it is not numeric."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        x = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(x):
        return None
    return x


def stable_digest(*components: object) -> str:
    """Short hex digest of arbitrary JSON-able components.

    Uses stable hashing so digests are reproducible across Python processes.
    """
    payload = json.dumps(list(components), sort_keys=True, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def ensure_dir(path: str) -> Path:
    """Create directory if it doesn't exist, return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p
