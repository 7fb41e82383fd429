import hashlib
import json
from typing import Any


def redact_id(value: str | None) -> str:
    """Shorten a steam id or client id for log lines."""
    if not value:
        return "None"
    if len(value) <= 6:
        return value
    return f"{value[:6]}***"


def stable_digest(payload: Any, length: int | None = None) -> str:
    """
    sha256 of the canonical JSON form of ``payload``.

    Keys are sorted so two dicts with the same content always hash alike.
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:length] if length else digest
