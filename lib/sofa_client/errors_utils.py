from __future__ import annotations

import json

_MAX_REASON = 1000


def parse_error_payload(raw: bytes | None) -> tuple[str, str]:
    """Return ``(error, reason)`` from a CouchDB error body."""
    if not raw:
        return "", ""
    try:
        data = json.loads(raw)
    except ValueError:
        return "", raw.decode("utf-8", errors="replace").strip()[:_MAX_REASON]
    if not isinstance(data, dict):
        return "", json.dumps(data, ensure_ascii=False)[:_MAX_REASON]
    return str(data.get("error") or ""), str(data.get("reason") or "")
