from __future__ import annotations

import json
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Iterable, Mapping

import httpx

from .auth import Auth
from .config_types import ClientConfig
from .errors import ProtocolError, TransportError, request_error
from .errors_utils import parse_error_payload

log = logging.getLogger(__name__)

Body = bytes | str | Iterable[bytes] | None


class Transport:
    def __init__(self, cfg: ClientConfig, *, http_transport: httpx.BaseTransport | None = None):
        self._cfg = cfg
        self._client = httpx.Client(
            base_url=cfg.base_url.rstrip("/"),
            timeout=cfg.timeout_s,
            headers={"User-Agent": cfg.user_agent},
            transport=http_transport,
            # session cookies travel only through CookieAuth, never the jar
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        )

    def close(self) -> None:
        self._client.close()

    def request(
            self,
            method: str,
            path: str,
            *,
            body: Body = None,
            headers: Mapping[str, str] | None = None,
            auth: Auth | None = None,
            stream: bool = False,
    ) -> httpx.Response:
        """Issue one request and classify the response.

        Returns the response for statuses below 400. A streamed response is
        left open and the caller must close it. Statuses >= 400 raise a
        ``RequestError`` subclass; network failures raise ``TransportError``.
        """
        try:
            req = self._client.build_request(method, path, content=body)
        except httpx.InvalidURL as e:
            raise TransportError(f"invalid request URL for {method} {path}: {e}") from e

        auth = auth if auth is not None else self._cfg.auth
        if auth is not None:
            auth.add_auth_headers(req)
        for name, value in (headers or {}).items():
            req.headers[name] = value

        log.debug("%s %s", method, req.url)
        try:
            r = self._client.send(req, stream=stream)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {req.url} failed: {e}") from e

        log.debug("%s %s -> %s", method, req.url, r.status_code)
        if r.status_code < 400:
            return r

        error, reason = "", ""
        try:
            if method.upper() != "HEAD":
                error, reason = parse_error_payload(r.read())
        except httpx.RequestError as e:
            raise TransportError(f"{method} {req.url} failed reading error body: {e}") from e
        finally:
            r.close()
        raise request_error(r.status_code, method.upper(), str(req.url), error, reason)


def decode_json(response: httpx.Response, *, doc_id: str = "", rev: str = "") -> Any:
    """Decode a JSON response body, keeping any known id/rev on failure."""
    try:
        return json.loads(response.content)
    except ValueError as e:
        raise ProtocolError(
            f"malformed response from {response.request.method} {response.request.url}: {e}",
            doc_id=doc_id,
            rev=rev,
        ) from e
