from __future__ import annotations

import typer
from sofa_client import Members, Security

from .. import console
from ..http import connected

app = typer.Typer(help="Database security object (members/admins).")


@app.command("get")
def get_security(
    db: str = typer.Argument(..., help="Database name."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Reading security of {db}", base_url=base_url) as conn:
        security = conn.select_db(db).get_security()
    console.print_json(security.to_dict())


@app.command("set")
def set_security(
    db: str = typer.Argument(..., help="Database name."),
    member: list[str] = typer.Option([], "--member", help="Member user name (repeatable)."),
    member_role: list[str] = typer.Option([], "--member-role", help="Member role (repeatable)."),
    admin: list[str] = typer.Option([], "--admin", help="Admin user name (repeatable)."),
    admin_role: list[str] = typer.Option([], "--admin-role", help="Admin role (repeatable)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    """Replace the security object. Unlisted names and roles are dropped."""
    security = Security(
        members=Members(names=list(member), roles=list(member_role)),
        admins=Members(names=list(admin), roles=list(admin_role)),
    )
    with connected(f"Saving security of {db}", base_url=base_url) as conn:
        conn.select_db(db).save_security(security)
    console.ok(f"Security of {db} updated.")
