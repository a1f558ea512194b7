"""
vocabreg - workflow core of a controlled-vocabulary metadata registry.

Subpackages:
- vocabreg.core: errors, logging, settings, temporal helpers, ORM
- vocabreg.workflow: subtasks, tasks, providers, runner, orchestration
- vocabreg.cli: Typer command line for administrators
"""

__version__ = "0.3.0"
