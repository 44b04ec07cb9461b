from .auth import Auth, BasicAuth, CookieAuth, PassThroughAuth
from .client import Connection, new_connection, new_ssl_connection
from .config_types import ClientConfig
from .database import Database
from .errors import (
    AuthError,
    ConflictError,
    ConstructionError,
    NotFoundError,
    PreconditionFailedError,
    ProtocolError,
    RequestError,
    SofaClientError,
    TransportError,
    ValidationError,
)
from .security import Members, Security

__all__ = [
    "Auth",
    "BasicAuth",
    "CookieAuth",
    "PassThroughAuth",
    "Connection",
    "new_connection",
    "new_ssl_connection",
    "ClientConfig",
    "Database",
    "Members",
    "Security",
    "SofaClientError",
    "ConstructionError",
    "TransportError",
    "RequestError",
    "AuthError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "ProtocolError",
    "ValidationError",
]
