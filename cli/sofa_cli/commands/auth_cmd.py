from __future__ import annotations

import typer
from sofa_client import CookieAuth

from .. import console
from ..config import load_config, save_config
from ..http import connected

app = typer.Typer(help="Session login/logout.")


@app.command("login")
def login(
    username: str = typer.Option(..., "--username", prompt=True, help="CouchDB user name."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Password for login."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected("Login", base_url=base_url) as conn:
        token = conn.create_session(username, password)

    cfg = load_config()
    cfg.auth.username = username
    cfg.auth.session_token = token
    save_path = save_config(cfg)
    console.ok(f"Login successful. Session saved to {save_path}.")


@app.command("logout", help="End the server session and forget it locally.")
def logout(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    cfg = load_config()
    token = (cfg.auth.session_token or "").strip()
    try:
        if token:
            with connected("Logout", base_url=base_url) as conn:
                conn.destroy_session(CookieAuth(token))
    finally:
        cfg.auth.session_token = ""
        save_path = save_config(cfg)
        console.info(f"Session cleared from {save_path}.")


def whoami_impl(
    json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected("Session lookup", base_url=base_url) as conn:
        data = conn.get_session()

    if json_out:
        console.print_json(data)
        return
    ctx = data.get("userCtx") if isinstance(data.get("userCtx"), dict) else {}
    name = ctx.get("name")
    if not name:
        console.warn("Not logged in (anonymous).")
        return
    roles = ", ".join(ctx.get("roles") or []) or "-"
    console.console.print(f"name={name} roles={roles}")


app.command("whoami")(whoami_impl)
