"""magistr command line: `magistr serve` and `magistr init-db`."""

import typer

from magistr.cli.db_cmd import init_db_command
from magistr.cli.serve import serve_command

app = typer.Typer(
    name="magistr",
    help="Quote board with read-through caching",
    no_args_is_help=True,
)

app.command("serve")(serve_command)
app.command("init-db")(init_db_command)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
