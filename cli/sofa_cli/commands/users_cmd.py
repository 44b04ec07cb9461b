from __future__ import annotations

import typer

from .. import console
from ..http import connected

app = typer.Typer(help="Users in the _users database (admin only).")


@app.command("add")
def add_user(
    username: str = typer.Argument(..., help="User name."),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, confirmation_prompt=True),
    role: list[str] = typer.Option([], "--role", help="Role (repeatable)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Adding user {username}", base_url=base_url) as conn:
        rev = conn.add_user(username, password, list(role))
    console.ok(f"User {username} created, rev {rev}")


@app.command("delete")
def delete_user(
    username: str = typer.Argument(..., help="User name."),
    rev: str = typer.Option(..., "--rev", help="Current revision of the user document."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Deleting user {username}", base_url=base_url) as conn:
        new_rev = conn.delete_user(username, rev)
    console.ok(f"User {username} deleted, rev {new_rev}")
