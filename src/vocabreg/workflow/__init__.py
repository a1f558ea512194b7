"""
Workflow engine: subtasks, tasks, providers and their execution.

Modules
-------
priorities      Default execution priority per provider kind and operation
subtask         Subtask identity, ordering and serialization
task            Duplicate-free subtask collections; persisted task format
registry        (kind, name) → provider factory
task_info       Execution context for one task run
runner          Priority-ordered, sequential execution of a task
methods         Access point / version artefact mutations → subtasks
outcome         Reporting models for executed tasks
admin           Persist tasks and run them in their own transactions
providers       Built-in harvest, importer, transform, publish and backup providers
"""

from vocabreg.workflow.priorities import Priority, default_priority
from vocabreg.workflow.registry import (
    ProviderRegistry,
    get_default_registry,
    provider_name,
    register_provider,
    reset_default_registry,
)
from vocabreg.workflow.runner import TaskRunner
from vocabreg.workflow.subtask import Subtask
from vocabreg.workflow.task import Task, deserialize_subtasks, serialize_subtasks
from vocabreg.workflow.task_info import TaskInfo

__all__ = [
    "Priority",
    "ProviderRegistry",
    "Subtask",
    "Task",
    "TaskInfo",
    "TaskRunner",
    "default_priority",
    "deserialize_subtasks",
    "get_default_registry",
    "provider_name",
    "register_provider",
    "reset_default_registry",
    "serialize_subtasks",
]
