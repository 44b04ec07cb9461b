from __future__ import annotations

import json
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from .errors import ValidationError

# view options the server parses as JSON values
JSON_VIEW_PARAMS = frozenset({"key", "keys", "startkey", "endkey", "start_key", "end_key"})


def quote_segment(segment: str) -> str:
    if not isinstance(segment, str) or not segment:
        raise ValidationError(f"path segment must be a non-empty string, got {segment!r}")
    return quote(segment, safe="")


def build_path(*segments: str, params: Mapping[str, Any] | None = None) -> str:
    """Join escaped path segments and an optional query string.

    >>> build_path("orders", "a/b")
    '/orders/a%2Fb'
    >>> build_path("orders", "_all_docs", params={"limit": 2, "descending": True})
    '/orders/_all_docs?limit=2&descending=true'
    """
    path = "/" + "/".join(quote_segment(s) for s in segments)
    query = encode_query(params)
    return f"{path}?{query}" if query else path


def encode_query(params: Mapping[str, Any] | None) -> str:
    if not params:
        return ""
    pairs: list[tuple[str, str]] = []
    for name, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((name, _query_value(v)) for v in value if v is not None)
        elif value is not None:
            pairs.append((name, _query_value(value)))
    return urlencode(pairs)


def _query_value(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    return str(value)


def encode_view_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, value in (params or {}).items():
        if name in JSON_VIEW_PARAMS and value is not None:
            out[name] = json.dumps(value, ensure_ascii=False)
        else:
            out[name] = value
    return out
