from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

import typer
from sofa_client import ClientConfig, Connection, CookieAuth, SofaClientError
from sofa_client.auth import Auth

from . import console
from .config import ENV_PROFILE, AppConfig, apply_profile, load_config, normalize_base_url, resolve_base_url


def session_auth(cfg: AppConfig) -> Auth | None:
    token = (cfg.auth.session_token or "").strip()
    return CookieAuth(token) if token else None


def make_connection(
    cfg: AppConfig,
    *,
    profile: str | None,
    base_url_override: str | None,
) -> Connection:
    effective_cfg = apply_profile(cfg, profile)
    base_url = normalize_base_url(base_url_override, warn=True) or resolve_base_url(effective_cfg)
    return Connection(
        ClientConfig(
            base_url=base_url,
            timeout_s=effective_cfg.timeout_s,
            auth=session_auth(effective_cfg),
        )
    )


def fail(action: str, exc: SofaClientError) -> typer.Exit:
    console.err(f"{action} failed: {exc}")
    return typer.Exit(code=2)


@contextmanager
def connected(action: str, *, base_url: str | None = None) -> Iterator[Connection]:
    """Open a connection for one command; client errors end the command with exit code 2."""
    cfg = load_config()
    try:
        conn = make_connection(cfg, profile=os.getenv(ENV_PROFILE) or None, base_url_override=base_url)
    except SofaClientError as e:
        raise fail(action, e) from e
    try:
        yield conn
    except SofaClientError as e:
        raise fail(action, e) from e
    finally:
        conn.close()
