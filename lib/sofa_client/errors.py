from __future__ import annotations


class SofaClientError(Exception):
    """Base client error."""


class ConstructionError(SofaClientError):
    """Invalid host, port or base URL given to a connection."""


class TransportError(SofaClientError):
    """Transport/network layer error (DNS, connect, timeout)."""


class ValidationError(SofaClientError, ValueError):
    """A caller-supplied argument violates an invariant (e.g. empty id)."""


class ProtocolError(SofaClientError):
    """The server answered with success but the response is unusable.

    ``doc_id`` and ``rev`` hold whatever the client had already observed
    before failing, so a revision assigned by a successful write is never
    lost.
    """

    def __init__(self, message: str, *, doc_id: str = "", rev: str = ""):
        super().__init__(message)
        self.doc_id = doc_id
        self.rev = rev


class RequestError(SofaClientError):
    """The server answered with a status code >= 400.

    ``error`` and ``reason`` come from the ``{"error": ..., "reason": ...}``
    body and are always empty for HEAD requests.
    """

    def __init__(
            self,
            status_code: int,
            method: str,
            url: str,
            error: str = "",
            reason: str = "",
    ):
        super().__init__(f"[Error] {method} {url}: {status_code} {error} {reason}".rstrip())
        self.status_code = status_code
        self.method = method
        self.url = url
        self.error = error
        self.reason = reason

    @property
    def is_conflict(self) -> bool:
        return self.status_code in (409, 412)


class AuthError(RequestError):
    """Auth-related API error (401/403)."""


class NotFoundError(RequestError):
    """404."""


class ConflictError(RequestError):
    """Document update conflict (409)."""


class PreconditionFailedError(RequestError):
    """412, e.g. the database already exists."""


_STATUS_ERRORS: dict[int, type[RequestError]] = {
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
}


def request_error(status_code: int, method: str, url: str, error: str = "", reason: str = "") -> RequestError:
    cls = _STATUS_ERRORS.get(status_code, RequestError)
    return cls(status_code, method, url, error, reason)
