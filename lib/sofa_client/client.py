from __future__ import annotations

import json
from dataclasses import replace
from http.cookies import CookieError, SimpleCookie
from typing import Any
from urllib.parse import urlencode

import httpx

from .auth import Auth
from .config_types import ClientConfig
from .database import ACCEPT_JSON, JSON_HEADERS, Database
from .errors import ConstructionError, ProtocolError
from .paths import build_path
from .transport import Body, Transport, decode_json

USERS_DB = "_users"
USER_ID_PREFIX = "org.couchdb.user:"


def build_base_url(host: str, port: int, *, secure: bool = False) -> str:
    host = (host or "").strip()
    if not host:
        raise ConstructionError("host must not be empty")
    if not isinstance(port, int) or not 0 < port < 65536:
        raise ConstructionError(f"invalid port: {port!r}")
    scheme = "https" if secure else "http"
    return f"{scheme}://{host}:{port}"


def _validate_base_url(raw: str) -> str:
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConstructionError(f"invalid base URL {raw!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConstructionError(f"invalid base URL {raw!r}: expected http(s)://host[:port]")
    return str(url).rstrip("/")


class Connection:
    """A CouchDB server reachable at one base URL.

    Holds no state besides its config and the underlying connection pool, so
    one instance may be shared by threads as far as ``httpx.Client`` allows.
    """

    def __init__(self, cfg: ClientConfig, *, http_transport: httpx.BaseTransport | None = None):
        self._cfg = replace(cfg, base_url=_validate_base_url(cfg.base_url))
        self._t = Transport(self._cfg, http_transport=http_transport)

    @property
    def base_url(self) -> str:
        return self._cfg.base_url

    @property
    def auth(self) -> Auth | None:
        return self._cfg.auth

    def close(self) -> None:
        self._t.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def request(
            self,
            method: str,
            path: str,
            *,
            body: Body = None,
            headers: dict[str, str] | None = None,
            auth: Auth | None = None,
            stream: bool = False,
    ) -> httpx.Response:
        return self._t.request(method, path, body=body, headers=headers, auth=auth, stream=stream)

    def _request_json(self, method: str, path: str, **kwargs) -> Any:
        """Internal helper for endpoints that return JSON."""
        kwargs.setdefault("headers", ACCEPT_JSON)
        return decode_json(self.request(method, path, **kwargs))

    # --- server ---
    def ping(self) -> None:
        self.request("HEAD", "/")

    def server_info(self) -> dict[str, Any]:
        data = self._request_json("GET", "/")
        return data if isinstance(data, dict) else {"raw": data}

    # --- databases ---
    def all_dbs(self, auth: Auth | None = None) -> list[str]:
        data = self._request_json("GET", "/_all_dbs", auth=auth)
        if not isinstance(data, list):
            raise ProtocolError("malformed response: /_all_dbs did not return a list")
        return [str(name) for name in data]

    def create_db(self, name: str, auth: Auth | None = None) -> None:
        self.request("PUT", build_path(name), headers=ACCEPT_JSON, auth=auth)

    def delete_db(self, name: str, auth: Auth | None = None) -> None:
        self.request("DELETE", build_path(name), headers=ACCEPT_JSON, auth=auth)

    def select_db(self, name: str, auth: Auth | None = None) -> Database:
        return Database(self, name, auth)

    # --- users ---
    def add_user(self, username: str, password: str, roles: list[str] | None = None, auth: Auth | None = None) -> str:
        """Create a plain ``_users`` entry. Returns its revision."""
        user = {"name": username, "password": password, "roles": list(roles or []), "type": "user"}
        return self.select_db(USERS_DB, auth).save(user, USER_ID_PREFIX + username, "")

    def delete_user(self, username: str, rev: str, auth: Auth | None = None) -> str:
        return self.select_db(USERS_DB, auth).delete(USER_ID_PREFIX + username, rev)

    # --- sessions ---
    def create_session(self, username: str, password: str) -> str:
        """Log in and return the ``AuthSession`` token for ``CookieAuth``."""
        body = urlencode({"name": username, "password": password})
        r = self.request(
            "POST",
            "/_session",
            body=body,
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
        )
        for raw in r.headers.get_list("Set-Cookie"):
            try:
                cookie = SimpleCookie(raw)
            except CookieError:
                continue
            morsel = cookie.get("AuthSession")
            if morsel is not None and morsel.value:
                return morsel.value
        raise ProtocolError("malformed response: /_session returned no AuthSession cookie")

    def get_session(self, auth: Auth | None = None) -> dict[str, Any]:
        data = self._request_json("GET", "/_session", auth=auth)
        return data if isinstance(data, dict) else {"raw": data}

    def destroy_session(self, auth: Auth | None = None) -> None:
        self.request("DELETE", "/_session", headers=ACCEPT_JSON, auth=auth)

    # --- server config ---
    def get_config(self, section: str, option: str, auth: Auth | None = None) -> str:
        return str(self._request_json("GET", build_path("_config", section, option), auth=auth))

    def set_config(self, section: str, option: str, value: str, auth: Auth | None = None) -> str:
        """Set a config value and return the previous one."""
        old = self._request_json(
            "PUT",
            build_path("_config", section, option),
            body=json.dumps(str(value)),
            headers=JSON_HEADERS,
            auth=auth,
        )
        return str(old or "")

    def delete_config(self, section: str, option: str, auth: Auth | None = None) -> str:
        return str(self._request_json("DELETE", build_path("_config", section, option), auth=auth) or "")


def new_connection(
        host: str,
        port: int,
        *,
        timeout_s: float = 15.0,
        auth: Auth | None = None,
        http_transport: httpx.BaseTransport | None = None,
) -> Connection:
    """Plain HTTP connection to ``host:port``."""
    url = build_base_url(host, port, secure=False)
    return Connection(ClientConfig(base_url=url, timeout_s=timeout_s, auth=auth), http_transport=http_transport)


def new_ssl_connection(
        host: str,
        port: int,
        *,
        timeout_s: float = 15.0,
        auth: Auth | None = None,
        http_transport: httpx.BaseTransport | None = None,
) -> Connection:
    """HTTPS connection to ``host:port``."""
    url = build_base_url(host, port, secure=True)
    return Connection(ClientConfig(base_url=url, timeout_s=timeout_s, auth=auth), http_transport=http_transport)
