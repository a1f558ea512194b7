"""
CLI: ``vocabreg db`` - database management commands.
"""

from __future__ import annotations

import typer

from vocabreg.cli.utils import console, make_engine, output_json
from vocabreg.core.orm import RegistryBase

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Initialise database schema (create tables)."""
    RegistryBase.metadata.create_all(make_engine(database))
    tables = sorted(RegistryBase.metadata.tables)
    if json_out:
        output_json({"tables": tables})
        return
    console.print(f"[green]Created tables:[/green] {', '.join(tables)}")
