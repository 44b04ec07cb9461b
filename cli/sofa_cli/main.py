from __future__ import annotations

import typer

from .commands import auth_cmd, dbs_cmd, docs_cmd, security_cmd, server_cmd, settings_cmd, users_cmd, views_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="sofa",
        help="sofa: CouchDB command line client",
        no_args_is_help=True,
    )

    app.add_typer(settings_cmd.app, name="settings")
    app.add_typer(auth_cmd.app, name="auth")
    app.command("whoami")(auth_cmd.whoami_impl)
    app.command("ping")(server_cmd.ping)
    app.add_typer(server_cmd.config_app, name="server-config")
    app.add_typer(dbs_cmd.app, name="dbs")
    app.add_typer(docs_cmd.app, name="docs")
    app.add_typer(security_cmd.app, name="security")
    app.add_typer(views_cmd.app, name="views")
    app.add_typer(users_cmd.app, name="users")

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
