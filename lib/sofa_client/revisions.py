from __future__ import annotations

import json

import httpx

from .errors import ProtocolError


def strip_etag(value: str) -> str:
    """Drop the one pair of quotes CouchDB wraps around ETag values."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def conditional_headers(rev: str) -> dict[str, str]:
    if rev:
        return {"If-Match": rev}
    return {}


def extract_revision(response: httpx.Response, *, doc_id: str = "") -> str:
    """Return the revision a response reports.

    The ETag header is authoritative; endpoints that do not send one (some
    attachment and older server responses) report ``rev`` in the JSON body.
    """
    etag = response.headers.get("ETag")
    if etag:
        rev = strip_etag(etag.strip())
        if rev:
            return rev

    rev = ""
    try:
        data = json.loads(response.content) if response.content else None
    except ValueError:
        data = None
    if isinstance(data, dict):
        rev = str(data.get("rev") or data.get("_rev") or "")
        doc_id = doc_id or str(data.get("id") or "")
    if not rev:
        raise ProtocolError(
            f"malformed response: no revision in {response.request.method} {response.request.url}",
            doc_id=doc_id,
        )
    return rev
