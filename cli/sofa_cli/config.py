from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from . import console

APP_NAME = "sofa"
CONFIG_FILENAME = "config.toml"
BASE_URL_DEFAULT = "http://127.0.0.1:5984"
TIMEOUT_DEFAULT = 15.0
ENV_BASE_URL = "SOFA_BASE_URL"
ENV_PROFILE = "SOFA_PROFILE"

_WARNED_BASE_URL_SCHEME = False


@dataclass
class AuthConfig:
    username: str = ""
    session_token: str = ""


@dataclass
class AppConfig:
    base_url: str
    auth: AuthConfig
    timeout_s: float = TIMEOUT_DEFAULT


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig(
        base_url=BASE_URL_DEFAULT,
        auth=AuthConfig(username="", session_token=""),
        timeout_s=TIMEOUT_DEFAULT,
    )


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    if not _is_interactive():
        return
    console.warn(f"base_url missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def _is_interactive() -> bool:
    import sys
    return bool(sys.stderr.isatty() or sys.stdout.isatty())


def _parse_timeout(value: Any, default: float) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return default
    return timeout if timeout > 0 else default


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return _prune_none(
        {
            "base_url": cfg.base_url,
            "timeout_s": cfg.timeout_s,
            "auth": {
                "username": cfg.auth.username or None,
                "session_token": cfg.auth.session_token or None,
            },
        }
    )


def _prune_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune_none(item) for item in value if item is not None]
    return value


def from_toml(data: dict[str, Any]) -> AppConfig:
    base_url = normalize_base_url(str(data.get("base_url") or ""), warn=True)
    timeout_s = _parse_timeout(data.get("timeout_s"), TIMEOUT_DEFAULT)
    auth_raw = data.get("auth") or {}
    username = ""
    session_token = ""
    if isinstance(auth_raw, dict):
        username = str(auth_raw.get("username") or "")
        session_token = str(auth_raw.get("session_token") or "")
    return AppConfig(
        base_url=base_url or BASE_URL_DEFAULT,
        auth=AuthConfig(username=username, session_token=session_token),
        timeout_s=timeout_s,
    )


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def apply_profile(cfg: AppConfig, profile: str | None) -> AppConfig:
    """Overlay ``[profiles.<name>]`` from the config file onto ``cfg``."""
    if not profile:
        return cfg
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return cfg

    profiles_raw = data.get("profiles") or {}
    if not isinstance(profiles_raw, dict):
        return cfg
    prof = profiles_raw.get(profile)
    if not isinstance(prof, dict):
        return cfg

    base_url = normalize_base_url(str(prof.get("base_url") or cfg.base_url), warn=True)
    auth_raw = prof.get("auth") if isinstance(prof.get("auth"), dict) else {}
    username = str(auth_raw.get("username") or cfg.auth.username)
    session_token = str(auth_raw.get("session_token") or cfg.auth.session_token)
    return AppConfig(
        base_url=base_url or cfg.base_url,
        auth=AuthConfig(username=username, session_token=session_token),
        timeout_s=_parse_timeout(prof.get("timeout_s"), cfg.timeout_s),
    )


def resolve_base_url(cfg: AppConfig) -> str:
    env_value = os.getenv(ENV_BASE_URL, "").strip()
    if env_value:
        return normalize_base_url(env_value)
    return (cfg.base_url or BASE_URL_DEFAULT).strip().rstrip("/")


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path
