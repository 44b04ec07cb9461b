from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Union

import httpx


@dataclass(frozen=True)
class BasicAuth:
    """HTTP Basic credentials. An empty username and password sends nothing."""

    username: str = ""
    password: str = ""

    def add_auth_headers(self, request: httpx.Request) -> None:
        if not self.username and not self.password:
            return
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        request.headers["Authorization"] = f"Basic {token}"


@dataclass(frozen=True)
class PassThroughAuth:
    """An already formed Authorization header, e.g. forwarded from a proxy."""

    auth_header: str

    def add_auth_headers(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = self.auth_header


@dataclass(frozen=True)
class CookieAuth:
    """A session token obtained from ``Connection.create_session``."""

    auth_token: str

    def add_auth_headers(self, request: httpx.Request) -> None:
        request.headers["Cookie"] = f"AuthSession={self.auth_token}"
        request.headers["X-CouchDB-WWW-Authenticate"] = "Cookie"


Auth = Union[BasicAuth, PassThroughAuth, CookieAuth]


def auth_username(auth: Auth | None) -> str:
    if isinstance(auth, BasicAuth):
        return auth.username
    return ""
