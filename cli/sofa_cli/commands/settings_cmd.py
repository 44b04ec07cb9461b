from __future__ import annotations

import os

import typer

from .. import console
from ..config import config_path, default_config, load_config, normalize_base_url, save_config

app = typer.Typer(help="Manage local CLI settings (~/.config/sofa/config.toml).")


@app.command("init")
def init_settings(
        force: bool = typer.Option(False, "--force", help="Overwrite existing config."),
        base_url: str = typer.Option(
            ...,
            "--base-url",
            prompt="CouchDB base URL",
            help="CouchDB base URL like http://127.0.0.1:5984",
        ),
):
    path = config_path()
    if os.path.exists(path) and not force:
        console.info(f"Config already exists: {path}")
        console.info("Use --force to overwrite.")
        return

    cfg = default_config()
    cfg.base_url = normalize_base_url(base_url, warn=True)
    if not cfg.base_url:
        console.err("Base URL cannot be empty.")
        raise typer.Exit(code=2)
    saved = save_config(cfg)
    console.ok(f"Config written: {saved}")


@app.command("show")
def show_settings():
    cfg = load_config()
    session_state = "(set)" if (cfg.auth.session_token or "").strip() else "(empty)"
    console.console.print(
        f"base_url={cfg.base_url} timeout_s={cfg.timeout_s} username={cfg.auth.username or '-'} session={session_state}"
    )


@app.command("get")
def get_setting(
        key: str = typer.Argument(..., help="Setting key (base_url, timeout_s, username)."),
):
    cfg = load_config()
    k = key.strip().lower()
    if k == "base_url":
        console.console.print(cfg.base_url)
        return
    if k == "timeout_s":
        console.console.print(str(cfg.timeout_s))
        return
    if k == "username":
        console.console.print(cfg.auth.username)
        return
    console.err(f"Unknown setting: {key}")
    raise typer.Exit(code=2)


@app.command("set")
def set_setting(
        base_url: str | None = typer.Option(None, "--base-url", help="Set CouchDB base URL."),
        timeout_s: float | None = typer.Option(None, "--timeout", min=0.1, help="Set request timeout in seconds."),
):
    cfg = load_config()
    if base_url is not None:
        cfg.base_url = normalize_base_url(base_url, warn=True)
    if timeout_s is not None:
        cfg.timeout_s = timeout_s
    saved = save_config(cfg)
    console.ok(f"Settings updated: {saved}")
