from __future__ import annotations

from dataclasses import dataclass

from .auth import Auth

USER_AGENT = "sofa-client/0.1.0"


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    timeout_s: float = 15.0
    auth: Auth | None = None
    user_agent: str = USER_AGENT
