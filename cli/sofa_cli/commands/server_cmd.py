from __future__ import annotations

import typer

from .. import console
from ..http import connected

config_app = typer.Typer(help="Server configuration (/_config).")


def ping(
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
    json_out: bool = typer.Option(False, "--json", help="Print server welcome JSON."),
):
    """Check that the server answers."""
    with connected("Ping", base_url=base_url) as conn:
        conn.ping()
        info = conn.server_info() if json_out else None
        url = conn.base_url
    if info is not None:
        console.print_json(info)
        return
    console.ok(f"{url} is up.")


@config_app.command("get")
def get_option(
    section: str = typer.Argument(..., help="Config section, e.g. couchdb."),
    option: str = typer.Argument(..., help="Option name within the section."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected("Config lookup", base_url=base_url) as conn:
        value = conn.get_config(section, option)
    console.console.print(value)


@config_app.command("set")
def set_option(
    section: str = typer.Argument(...),
    option: str = typer.Argument(...),
    value: str = typer.Argument(...),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected("Config update", base_url=base_url) as conn:
        old = conn.set_config(section, option, value)
    console.ok(f"{section}/{option} = {value} (was {old or '-'})")


@config_app.command("delete")
def delete_option(
    section: str = typer.Argument(...),
    option: str = typer.Argument(...),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected("Config delete", base_url=base_url) as conn:
        old = conn.delete_config(section, option)
    console.ok(f"{section}/{option} removed (was {old or '-'})")
