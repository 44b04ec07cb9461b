from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import parse_qs, unquote

import httpx
import pytest

from sofa_client import BasicAuth, new_connection

ADMIN = ("admin", "secret")


def _error(status: int, error: str, reason: str) -> httpx.Response:
    return httpx.Response(status, json={"error": error, "reason": reason})


@dataclass
class _Doc:
    rev: str
    body: dict[str, Any]
    deleted: bool = False
    attachments: dict[str, tuple[str, bytes]] = field(default_factory=dict)

    @property
    def generation(self) -> int:
        return int(self.rev.split("-", 1)[0])


@dataclass
class _Db:
    docs: dict[str, _Doc] = field(default_factory=dict)
    security: dict[str, Any] = field(default_factory=dict)


class FakeCouch:
    """In-memory stand-in for the CouchDB REST API, served via httpx.MockTransport.

    Views and list functions cannot run JavaScript here, so tests register
    Python callables under ``views``/``lists`` keyed by (db, design, name).
    """

    def __init__(self) -> None:
        self.dbs: dict[str, _Db] = {"_users": _Db()}
        self.config: dict[tuple[str, str], str] = {}
        self.sessions: dict[str, str] = {}
        self.users = {ADMIN[0]: ADMIN[1]}
        self.views: dict[tuple[str, str, str], Callable[[dict[str, dict], dict], list[dict]]] = {}
        self.lists: dict[tuple[str, str, str], Callable[[list[dict]], str]] = {}
        self.requests: list[httpx.Request] = []
        self.send_etag = True
        self.require_auth = False

    # --- helpers ---
    def _new_rev(self, current: _Doc | None) -> str:
        gen = current.generation + 1 if current else 1
        return f"{gen}-{uuid.uuid4().hex}"

    def _written(self, status: int, doc_id: str, rev: str, *, etag: bool = True) -> httpx.Response:
        headers = {"ETag": f'"{rev}"'} if etag and self.send_etag else {}
        return httpx.Response(status, json={"ok": True, "id": doc_id, "rev": rev}, headers=headers)

    def _user(self, request: httpx.Request) -> str | None:
        header = request.headers.get("Authorization", "")
        if header.startswith("Basic "):
            name, _, password = base64.b64decode(header[6:]).decode("utf-8").partition(":")
            if self.users.get(name) == password:
                return name
        cookie = request.headers.get("Cookie", "")
        if cookie.startswith("AuthSession="):
            return self.sessions.get(cookie[len("AuthSession="):])
        return None

    # --- dispatch ---
    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        segs = [unquote(s) for s in raw_path.split("/") if s]
        method = request.method

        if self.require_auth and self._user(request) is None and segs[:1] != ["_session"]:
            return _error(401, "unauthorized", "You are not authorized to access this db.")

        if not segs:
            if method == "HEAD":
                return httpx.Response(200)
            return httpx.Response(200, json={"couchdb": "Welcome", "version": "3.3.3"})
        if segs == ["_all_dbs"]:
            return httpx.Response(200, json=sorted(self.dbs))
        if segs[0] == "_session":
            return self._session(request, method)
        if segs[0] == "_config":
            return self._config(request, method, segs[1], segs[2])

        name = segs[0]
        if len(segs) == 1:
            return self._database(method, name)
        db = self.dbs.get(name)
        if db is None:
            return _error(404, "not_found", "Database does not exist.")
        rest = segs[1:]
        if rest == ["_security"]:
            if method == "PUT":
                db.security = json.loads(request.content)
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(200, json=db.security)
        if rest[0] == "_design" and len(rest) >= 4 and rest[2] in ("_view", "_list"):
            return self._query(request, name, db, rest)
        if rest[0] == "_design":
            rest = ["_design/" + rest[1], *rest[2:]]
        if len(rest) == 1:
            return self._document(request, method, db, rest[0])
        return self._attachment(request, method, db, rest[0], rest[1])

    def _session(self, request: httpx.Request, method: str) -> httpx.Response:
        if method == "POST":
            form = parse_qs(request.content.decode("utf-8"))
            name = (form.get("name") or [""])[0]
            password = (form.get("password") or [""])[0]
            if self.users.get(name) != password:
                return _error(401, "unauthorized", "Name or password is incorrect.")
            token = uuid.uuid4().hex
            self.sessions[token] = name
            return httpx.Response(
                200,
                json={"ok": True, "name": name, "roles": ["_admin"]},
                headers={"Set-Cookie": f"AuthSession={token}; Version=1; Path=/; HttpOnly"},
            )
        if method == "DELETE":
            cookie = request.headers.get("Cookie", "")
            self.sessions.pop(cookie[len("AuthSession="):], None)
            return httpx.Response(200, json={"ok": True})
        user = self._user(request)
        roles = ["_admin"] if user == ADMIN[0] else []
        return httpx.Response(200, json={"ok": True, "userCtx": {"name": user, "roles": roles}})

    def _config(self, request: httpx.Request, method: str, section: str, option: str) -> httpx.Response:
        key = (section, option)
        if method == "PUT":
            old = self.config.get(key, "")
            self.config[key] = json.loads(request.content)
            return httpx.Response(200, json=old)
        if key not in self.config:
            return _error(404, "not_found", "unknown_config_value")
        if method == "DELETE":
            return httpx.Response(200, json=self.config.pop(key))
        return httpx.Response(200, json=self.config[key])

    def _database(self, method: str, name: str) -> httpx.Response:
        if method == "PUT":
            if name in self.dbs:
                return _error(412, "file_exists", "The database could not be created, the file already exists.")
            self.dbs[name] = _Db()
            return httpx.Response(201, json={"ok": True})
        if name not in self.dbs:
            if method == "HEAD":
                return httpx.Response(404)
            return _error(404, "not_found", "Database does not exist.")
        if method == "DELETE":
            del self.dbs[name]
            return httpx.Response(200, json={"ok": True})
        live = [d for d in self.dbs[name].docs.values() if not d.deleted]
        return httpx.Response(200, json={"db_name": name, "doc_count": len(live)})

    def _document(self, request: httpx.Request, method: str, db: _Db, doc_id: str) -> httpx.Response:
        current = db.docs.get(doc_id)
        live = current is not None and not current.deleted
        if_match = request.headers.get("If-Match", "")

        if method == "GET":
            if current is None:
                return _error(404, "not_found", "missing")
            if current.deleted:
                return _error(404, "not_found", "deleted")
            body = {"_id": doc_id, "_rev": current.rev, **current.body}
            headers = {"ETag": f'"{current.rev}"'} if self.send_etag else {}
            return httpx.Response(200, json=body, headers=headers)

        if method == "PUT":
            if (live and if_match != current.rev) or (not live and if_match):
                return _error(409, "conflict", "Document update conflict.")
            rev = self._new_rev(current)
            body = json.loads(request.content)
            db.docs[doc_id] = _Doc(rev=rev, body=body, attachments=current.attachments if live else {})
            return self._written(201, doc_id, rev)

        if method == "DELETE":
            if not live:
                return _error(404, "not_found", "missing")
            if if_match != current.rev:
                return _error(409, "conflict", "Document update conflict.")
            rev = self._new_rev(current)
            db.docs[doc_id] = _Doc(rev=rev, body={}, deleted=True)
            return self._written(200, doc_id, rev)

        if method == "COPY":
            if not live:
                return _error(404, "not_found", "missing")
            if if_match and if_match != current.rev:
                return _error(409, "conflict", "Document update conflict.")
            dest = request.headers.get("Destination", "")
            target = db.docs.get(dest)
            if target is not None and not target.deleted:
                return _error(409, "conflict", "Document update conflict.")
            rev = self._new_rev(target)
            db.docs[dest] = _Doc(rev=rev, body=dict(current.body), attachments=dict(current.attachments))
            return self._written(201, dest, rev)

        return _error(405, "method_not_allowed", f"Only GET,PUT,DELETE,COPY allowed, not {method}")

    def _attachment(self, request: httpx.Request, method: str, db: _Db, doc_id: str, name: str) -> httpx.Response:
        current = db.docs.get(doc_id)
        live = current is not None and not current.deleted
        if_match = request.headers.get("If-Match", "")

        if method == "GET":
            if not live or name not in current.attachments:
                return _error(404, "not_found", "Document is missing attachment")
            content_type, data = current.attachments[name]
            return httpx.Response(200, content=data, headers={"Content-Type": content_type})

        if (live and if_match != current.rev) or (not live and if_match):
            return _error(409, "conflict", "Document update conflict.")

        if method == "PUT":
            rev = self._new_rev(current)
            attachments = dict(current.attachments) if live else {}
            attachments[name] = (request.headers.get("Content-Type", ""), request.content)
            db.docs[doc_id] = _Doc(rev=rev, body=current.body if live else {}, attachments=attachments)
            return self._written(201, doc_id, rev, etag=False)

        if method == "DELETE":
            if not live or name not in current.attachments:
                return _error(404, "not_found", "Document is missing attachment")
            rev = self._new_rev(current)
            attachments = {k: v for k, v in current.attachments.items() if k != name}
            db.docs[doc_id] = _Doc(rev=rev, body=current.body, attachments=attachments)
            return self._written(200, doc_id, rev, etag=False)

        return _error(405, "method_not_allowed", f"Only GET,PUT,DELETE allowed, not {method}")

    def _query(self, request: httpx.Request, name: str, db: _Db, rest: list[str]) -> httpx.Response:
        design = rest[1]
        ddoc = db.docs.get("_design/" + design)
        if ddoc is None or ddoc.deleted:
            return _error(404, "not_found", "missing")
        params = {k: v[0] for k, v in parse_qs(request.url.query.decode("ascii")).items()}
        if rest[2] == "_view":
            view = self.views.get((name, design, rest[3]))
            if view is None:
                return _error(404, "not_found", "missing_named_view")
            live = {k: d.body for k, d in db.docs.items() if not d.deleted and not k.startswith("_design/")}
            rows = view(live, params)
            return httpx.Response(200, json={"total_rows": len(rows), "offset": 0, "rows": rows})
        render = self.lists.get((name, design, rest[3]))
        view = self.views.get((name, design, rest[4]))
        if render is None or view is None:
            return _error(404, "not_found", "missing list or view")
        live = {k: d.body for k, d in db.docs.items() if not d.deleted and not k.startswith("_design/")}
        return httpx.Response(200, text=render(view(live, params)), headers={"Content-Type": "text/plain"})


@pytest.fixture
def fake() -> FakeCouch:
    return FakeCouch()


@pytest.fixture
def conn(fake):
    connection = new_connection("localhost", 5984, timeout_s=1.0, http_transport=httpx.MockTransport(fake.handle))
    yield connection
    connection.close()


@pytest.fixture
def admin_auth() -> BasicAuth:
    return BasicAuth(*ADMIN)


@pytest.fixture
def orders(conn):
    conn.create_db("orders")
    return conn.select_db("orders")
