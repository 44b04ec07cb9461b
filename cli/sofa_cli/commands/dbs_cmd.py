from __future__ import annotations

import typer
from rich.table import Table

from .. import console
from ..http import connected

app = typer.Typer(help="Database lifecycle.")


@app.command("list")
def list_dbs(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    with connected("Listing databases", base_url=base_url) as conn:
        names = conn.all_dbs()

    if json_out:
        console.print_json(names)
        return
    table = Table(title="Databases")
    table.add_column("name", style="bold")
    for name in names:
        table.add_row(name)
    console.console.print(table)


@app.command("create")
def create_db(
    name: str = typer.Argument(..., help="Database name."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Creating {name}", base_url=base_url) as conn:
        conn.create_db(name)
    console.ok(f"Database {name} created.")


@app.command("delete")
def delete_db(
    name: str = typer.Argument(..., help="Database name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    if not yes and not typer.confirm(f"Delete database {name} and all its documents?"):
        raise typer.Exit(code=0)
    with connected(f"Deleting {name}", base_url=base_url) as conn:
        conn.delete_db(name)
    console.ok(f"Database {name} deleted.")
