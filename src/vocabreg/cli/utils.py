"""
CLI utility helpers: output formatting and session management.
"""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from vocabreg.core.errors import RegistryError
from vocabreg.core.orm import RegistrySession, create_registry_engine, registry_session_factory
from vocabreg.core.settings import get_settings

console = Console()
err_console = Console(stderr=True)


# ── Session helper ───────────────────────────────────────────────────────


def make_engine(database: str | None = None) -> Engine:
    """Engine for *database*, defaulting to the configured URL."""
    settings = get_settings()
    return create_registry_engine(database or settings.database_url, echo=settings.database_echo)


def make_session_factory(database: str | None = None) -> sessionmaker[RegistrySession]:
    return registry_session_factory(make_engine(database))


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert pydantic model / object with ``to_dict`` / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_json(data: Any) -> None:
    payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
    console.print_json(json.dumps(payload, default=str))


def fail(error: RegistryError) -> NoReturn:
    """Report *error* and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {error.message}")
    raise typer.Exit(code=1)


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
