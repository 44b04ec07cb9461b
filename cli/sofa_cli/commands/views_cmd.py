from __future__ import annotations

import json
from typing import Any

import typer
from rich.table import Table

from .. import console
from ..http import connected

app = typer.Typer(help="Query design document views and lists.")


def _json_option(value: str | None, flag: str) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError:
        console.err(f"{flag} must be JSON, e.g. '\"magenta\"' or '[1, 2]'.")
        raise typer.Exit(code=2)


@app.command("query")
def query_view(
    db: str = typer.Argument(..., help="Database name."),
    design: str = typer.Argument(..., help="Design document name (without _design/)."),
    view: str = typer.Argument(..., help="View name."),
    key: str | None = typer.Option(None, "--key", help="Exact key, as JSON."),
    startkey: str | None = typer.Option(None, "--startkey", help="Start key, as JSON."),
    endkey: str | None = typer.Option(None, "--endkey", help="End key, as JSON."),
    limit: int | None = typer.Option(None, "--limit", min=0),
    include_docs: bool = typer.Option(False, "--include-docs"),
    reduce: bool | None = typer.Option(None, "--reduce/--no-reduce"),
    json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    params = {
        "key": _json_option(key, "--key"),
        "startkey": _json_option(startkey, "--startkey"),
        "endkey": _json_option(endkey, "--endkey"),
        "limit": limit,
        "include_docs": include_docs or None,
        "reduce": reduce,
    }
    with connected(f"Querying {design}/{view}", base_url=base_url) as conn:
        result = conn.select_db(db).get_view(design, view, params=params)

    if json_out or not isinstance(result, dict):
        console.print_json(result)
        return
    rows = result.get("rows") or []
    table = Table(title=f"{design}/{view} ({len(rows)} rows)")
    table.add_column("id", style="bold")
    table.add_column("key")
    table.add_column("value")
    for row in rows:
        table.add_row(
            str(row.get("id", "-")),
            json.dumps(row.get("key"), ensure_ascii=False),
            json.dumps(row.get("value"), ensure_ascii=False),
        )
    console.console.print(table)


@app.command("list")
def query_list(
    db: str = typer.Argument(..., help="Database name."),
    design: str = typer.Argument(..., help="Design document name (without _design/)."),
    list_name: str = typer.Argument(..., help="List function name."),
    view: str = typer.Argument(..., help="View to feed into the list function."),
    limit: int | None = typer.Option(None, "--limit", min=0),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Rendering {design}/{list_name}", base_url=base_url) as conn:
        result = conn.select_db(db).get_list(design, list_name, view, params={"limit": limit})
    if isinstance(result, str):
        console.console.print(result, markup=False)
    else:
        console.print_json(result)
