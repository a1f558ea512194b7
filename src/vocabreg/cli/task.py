"""
CLI: ``vocabreg task`` - inspect and run persisted tasks.
"""

from __future__ import annotations

import typer

from vocabreg.cli.utils import console, fail, make_session_factory, output_json, print_dict, print_table
from vocabreg.core.enums import TaskStatus
from vocabreg.core.errors import RegistryError
from vocabreg.workflow.outcome import TaskOutcome, WorkflowOutcome, task_outcome

app = typer.Typer(no_args_is_help=True)

_STATUS_STYLE = {
    TaskStatus.SUCCESS: "green",
    TaskStatus.PARTIAL: "yellow",
    TaskStatus.ERROR: "red",
}


def _print_outcome(outcome: TaskOutcome) -> None:
    style = _STATUS_STYLE.get(outcome.status, "white")
    console.print(
        f"[bold]Task {outcome.task_id}[/bold] "
        f"(vocabulary {outcome.vocabulary_id}, version {outcome.version_id}): "
        f"[{style}]{outcome.status.value}[/{style}]"
    )
    print_table(
        [
            {
                "provider": f"{s.provider_kind.value}/{s.provider_name}",
                "operation": s.operation.value,
                "priority": s.priority if s.ranked else "unranked",
                "status": s.status.value,
                "error": next((r.value for r in s.subtask_results if r.key == "error"), ""),
            }
            for s in outcome.subtask_outcomes
        ]
    )
    print_dict({r.key: r.value for r in outcome.task_results})


@app.command()
def show(
    task_id: int = typer.Argument(..., help="Task id"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show a persisted task: its subtasks and results."""
    from vocabreg.workflow.admin import get_task

    with make_session_factory(database)() as session:
        try:
            task = get_task(session, task_id)
        except RegistryError as e:
            fail(e)
    if json_out:
        output_json({"id": task_id, **task.to_dict()})
        return
    console.print(
        f"[bold]Task {task_id}[/bold] (vocabulary {task.vocabulary_id}, "
        f"version {task.version_id}): {task.status.value}"
    )
    print_table(
        [
            {
                "provider": f"{s.provider_kind.value}/{s.provider_name}",
                "operation": s.operation.value,
                "priority": str(s.priority) if s.priority is not None else "",
                "status": s.status.value,
                "properties": s.properties,
            }
            for s in task.subtasks
        ],
        title="Subtasks",
    )
    print_dict(task.results)


@app.command()
def run(
    task_id: int = typer.Argument(..., help="Task id"),
    modified_by: str = typer.Option("SYSTEM", "--user", "-u", help="Acting user"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run one persisted task and report its outcome."""
    from vocabreg.workflow.admin import run_task

    try:
        task_info = run_task(make_session_factory(database), task_id, modified_by)
    except RegistryError as e:
        fail(e)
    outcome = task_outcome(task_info)
    if json_out:
        output_json(outcome)
    else:
        _print_outcome(outcome)
    if outcome.status is not TaskStatus.SUCCESS:
        raise typer.Exit(code=2)


@app.command("run-set")
def run_set(
    task_ids: list[int] = typer.Argument(..., help="Task ids, run in this order"),
    modified_by: str = typer.Option("SYSTEM", "--user", "-u", help="Acting user"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run several tasks of one vocabulary and report the workflow outcome."""
    from vocabreg.workflow.admin import run_task_set

    try:
        outcome: WorkflowOutcome = run_task_set(make_session_factory(database), task_ids, modified_by)
    except RegistryError as e:
        fail(e)
    if json_out:
        output_json(outcome)
    else:
        for task in outcome.task_outcomes:
            _print_outcome(task)
    if any(t.status is not TaskStatus.SUCCESS for t in outcome.task_outcomes):
        raise typer.Exit(code=2)
