"""
Root Typer application for the vocabulary registry CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from vocabreg.cli.utils import output_json, print_table
from vocabreg.core.enums import ProviderKind, SubtaskOperation
from vocabreg.core.logging import configure_logging
from vocabreg.core.settings import get_settings

app = Typer(
    name="vocabreg",
    help="vocabreg - workflow tasks for the vocabulary registry.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from vocabreg import __version__

        typer.echo(f"vocabreg {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override VOCABREG_LOG_LEVEL."),
) -> None:
    """vocabreg CLI - create database tables, inspect and run tasks."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.log_json)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def providers(
    kind: ProviderKind | None = typer.Option(None, "--kind", "-k", help="Only this provider kind"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List registered providers with their default priorities."""
    from vocabreg.workflow.registry import get_default_registry

    registry = get_default_registry()
    rows = []
    for provider_kind, name in registry.list_providers(kind):
        provider_cls = registry.lookup(provider_kind, name)
        rows.append(
            {
                "kind": provider_kind.value,
                "name": name,
                "class": provider_cls.__name__,
                "insert": str(provider_cls.default_priority(SubtaskOperation.INSERT)),
                "delete": str(provider_cls.default_priority(SubtaskOperation.DELETE)),
            }
        )
    if json_out:
        output_json(rows)
        return
    print_table(rows, title="Providers")


# ── Sub-command registration ─────────────────────────────────────────────

from vocabreg.cli.db import app as db_app  # noqa: E402
from vocabreg.cli.task import app as task_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(task_app, name="task", help="Inspect and run persisted tasks.")
