from __future__ import annotations

import dataclasses
import json
from typing import IO, TYPE_CHECKING, Any, Callable, Mapping, TypeVar

from .attachments import AttachmentStream
from .auth import Auth, auth_username
from .errors import ProtocolError, ValidationError
from .paths import build_path, encode_view_params
from .revisions import conditional_headers, extract_revision, strip_etag
from .security import Security
from .transport import decode_json

if TYPE_CHECKING:
    from .client import Connection

T = TypeVar("T")

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}
ACCEPT_JSON = {"Accept": "application/json"}


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_document(doc: Any) -> bytes:
    try:
        return json.dumps(doc, default=_json_default, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ValidationError(f"document is not serializable: {e}") from e


def _require(value: str, what: str) -> str:
    if not value:
        raise ValidationError(f"{what} must not be empty")
    return value


class Database:
    """A named database on a connection.

    Creating one is local only; a missing database surfaces as a
    ``NotFoundError`` on the first request.
    """

    def __init__(self, connection: "Connection", name: str, auth: Auth | None = None):
        self.name = _require(name, "database name")
        self.auth = auth
        self._conn = connection

    def __repr__(self) -> str:
        return f"Database({self.name!r})"

    @property
    def username(self) -> str:
        return auth_username(self.auth if self.auth is not None else self._conn.auth)

    def _request(self, method: str, *segments: str, params: Mapping[str, Any] | None = None, **kwargs):
        path = build_path(self.name, *segments, params=params)
        return self._conn.request(method, path, auth=self.auth, **kwargs)

    # --- documents ---
    def save(self, doc: Any, doc_id: str, rev: str = "") -> str:
        """Create (``rev=""``) or update a document and return its new revision."""
        _require(doc_id, "document id")
        return self._save(doc, rev, doc_id)

    def _save(self, doc: Any, rev: str, *segments: str) -> str:
        headers = {**JSON_HEADERS, **conditional_headers(rev)}
        r = self._request("PUT", *segments, body=encode_document(doc), headers=headers)
        return extract_revision(r, doc_id="/".join(segments))

    def read(
            self,
            doc_id: str,
            *,
            params: Mapping[str, Any] | None = None,
            decode: Callable[[dict[str, Any]], T] | None = None,
    ) -> tuple[Any, str]:
        """Fetch a document. Returns ``(payload, rev)``.

        ``_id`` and ``_rev`` are removed from the payload. Pass ``decode`` to
        turn the payload into a typed value (a dataclass, for instance).
        """
        _require(doc_id, "document id")
        return self._read(params, decode, doc_id)

    def _read(self, params, decode, *segments: str) -> tuple[Any, str]:
        doc_id = "/".join(segments)
        r = self._request("GET", *segments, params=params, headers=ACCEPT_JSON)
        rev = strip_etag(r.headers.get("ETag", "").strip())
        data = decode_json(r, doc_id=doc_id, rev=rev)
        if not isinstance(data, dict):
            raise ProtocolError(f"malformed response: document {doc_id!r} is not an object", doc_id=doc_id, rev=rev)
        rev = rev or str(data.get("_rev") or "")
        if not rev:
            raise ProtocolError(f"malformed response: no revision for {doc_id!r}", doc_id=doc_id)
        data.pop("_id", None)
        data.pop("_rev", None)
        if decode is None:
            return data, rev
        try:
            return decode(data), rev
        except (TypeError, ValueError, KeyError) as e:
            raise ProtocolError(f"cannot decode document {doc_id!r}: {e}", doc_id=doc_id, rev=rev) from e

    def copy(self, from_id: str, to_id: str, from_rev: str = "") -> str:
        """Copy a document; returns the revision of the new document."""
        _require(from_id, "source document id")
        _require(to_id, "destination document id")
        headers = {**ACCEPT_JSON, **conditional_headers(from_rev), "Destination": to_id}
        r = self._request("COPY", from_id, headers=headers)
        return extract_revision(r, doc_id=to_id)

    def delete(self, doc_id: str, rev: str) -> str:
        """Mark a document deleted. The tombstone gets a new revision, returned here."""
        _require(doc_id, "document id")
        _require(rev, "revision")
        headers = {**ACCEPT_JSON, **conditional_headers(rev)}
        r = self._request("DELETE", doc_id, headers=headers)
        return extract_revision(r, doc_id=doc_id)

    # --- attachments ---
    def save_attachment(
            self,
            doc_id: str,
            rev: str,
            name: str,
            content_type: str,
            content: bytes | IO[bytes],
    ) -> str:
        _require(doc_id, "document id")
        _require(name, "attachment name")
        headers = {
            "Accept": "application/json",
            "Content-Type": content_type or "application/octet-stream",
            **conditional_headers(rev),
        }
        r = self._request("PUT", doc_id, name, body=content, headers=headers)
        return extract_revision(r, doc_id=doc_id)

    def get_attachment(self, doc_id: str, name: str, *, content_type: str = "", rev: str = "") -> AttachmentStream:
        """Open an attachment for reading. The caller must close the stream."""
        _require(doc_id, "document id")
        _require(name, "attachment name")
        headers = {"Accept": content_type or "*/*", **conditional_headers(rev)}
        r = self._request("GET", doc_id, name, headers=headers, stream=True)
        return AttachmentStream(r)

    def read_attachment(self, doc_id: str, name: str, *, content_type: str = "", rev: str = "") -> bytes:
        with self.get_attachment(doc_id, name, content_type=content_type, rev=rev) as stream:
            return stream.read()

    def delete_attachment(self, doc_id: str, rev: str, name: str) -> str:
        _require(doc_id, "document id")
        _require(name, "attachment name")
        _require(rev, "revision")
        headers = {**ACCEPT_JSON, **conditional_headers(rev)}
        r = self._request("DELETE", doc_id, name, headers=headers)
        return extract_revision(r, doc_id=doc_id)

    # --- security ---
    def get_security(self) -> Security:
        r = self._request("GET", "_security", headers=ACCEPT_JSON)
        return Security.from_dict(decode_json(r))

    def save_security(self, security: Security) -> None:
        self._request("PUT", "_security", body=encode_document(security.to_dict()), headers=JSON_HEADERS)

    # --- design documents, views, lists ---
    def save_design_doc(self, name: str, design_doc: Any, rev: str = "") -> str:
        _require(name, "design document name")
        return self._save(design_doc, rev, "_design", name)

    def read_design_doc(self, name: str) -> tuple[dict[str, Any], str]:
        _require(name, "design document name")
        return self._read(None, None, "_design", name)

    def get_view(
            self,
            design: str,
            view: str,
            *,
            params: Mapping[str, Any] | None = None,
            decode: Callable[[dict[str, Any]], T] | None = None,
    ) -> Any:
        """Query ``_design/{design}/_view/{view}``.

        ``key``-like params are JSON encoded, so pass plain Python values.
        """
        r = self._request(
            "GET", "_design", design, "_view", view,
            params=encode_view_params(params), headers=ACCEPT_JSON,
        )
        data = decode_json(r)
        if decode is None:
            return data
        try:
            return decode(data)
        except (TypeError, ValueError, KeyError) as e:
            raise ProtocolError(f"cannot decode view {design}/{view}: {e}") from e

    def get_list(self, design: str, list_name: str, view: str, *, params: Mapping[str, Any] | None = None) -> Any:
        r = self._request(
            "GET", "_design", design, "_list", list_name, view,
            params=encode_view_params(params),
        )
        if "json" in r.headers.get("Content-Type", ""):
            return decode_json(r)
        return r.text
