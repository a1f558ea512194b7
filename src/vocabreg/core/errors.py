"""
Structured error types for the vocabulary registry.

Every error raised by the workflow core carries a category, a retryable
flag and a context describing where it happened (task, vocabulary,
version, provider, path, URL). The runner and the admin layer use this
metadata for logging and for the results they record against a task.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode of the workflow
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for logging and reporting
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        RegistryError (category, retryable, context, cause)
          ├── ProviderNotFoundError     PROVIDER    resolution failed
          ├── UnsupportedVariantError   VALIDATION  rejected by the facade
          ├── UnknownKindError          CONFIG      fatal, also a ValueError
          ├── SubtaskExecutionError     WORKFLOW    retryable
          ├── TaskAlreadyRunningError   WORKFLOW
          ├── FilesystemError           STORAGE
          ├── TaskValidationError       VALIDATION
          ├── InconsistentTaskSetError  VALIDATION
          └── TaskNotFoundError         DATABASE

Propagation:
    - Failures local to one subtask are recorded on that subtask.
    - ProviderNotFoundError is caught by the runner and recorded.
    - UnsupportedVariantError and UnknownKindError reach the caller of the
      workflow methods.

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    vocabreg, workflow

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    PROVIDER = "PROVIDER"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    WORKFLOW = "WORKFLOW"
    STORAGE = "STORAGE"
    DATABASE = "DATABASE"
    NETWORK = "NETWORK"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the identifiers the workflow deals in; anything
    else goes into ``metadata``. ``to_dict()`` serializes the non-None
    fields for logging.

    Attributes:
        task_id: Database id of the task being processed
        vocabulary_id: Vocabulary entity id
        version_id: Version entity id
        provider_kind: Provider kind value (harvest, importer, ...)
        provider_name: Short provider name (PoolParty, Sesame, ...)
        path: Filesystem path involved
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    task_id: int | None = None
    vocabulary_id: int | None = None
    version_id: int | None = None

    provider_kind: str | None = None
    provider_name: str | None = None

    path: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["task_id", "vocabulary_id", "version_id", "provider_kind",
                    "provider_name", "path", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RegistryError(Exception):
    """
    Base class for all registry errors.

    Subclasses set ``default_category`` and ``default_retryable``; both
    can be overridden per instance.

    Examples:
        >>> error = RegistryError("Fetch failed").with_context(task_id=7)
        >>> error.context.task_id
        7
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    # Default category for this error type
    default_category: ErrorCategory = ErrorCategory.INTERNAL

    # Default retryable setting
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RegistryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise FilesystemError("Can't write").with_context(path=str(target))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class ProviderNotFoundError(RegistryError):
    """No provider is registered (or constructible) for a kind and name."""

    default_category = ErrorCategory.PROVIDER
    default_retryable = False

    def __init__(self, kind: str, name: str, *, cause: Exception | None = None):
        self.kind = kind
        self.name = name
        super().__init__(
            f"No provider registered for {kind}/{name}",
            context=ErrorContext(provider_kind=kind, provider_name=name),
            cause=cause,
        )


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class UnsupportedVariantError(RegistryError):
    """A domain operation was requested for an unsupported combination."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class UnknownKindError(RegistryError, ValueError):
    """An access point or version artefact kind outside the known set.

    This is a programming or configuration defect, so it is also a
    ``ValueError`` and is never retried.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class SubtaskExecutionError(RegistryError):
    """A provider failed to carry out one subtask.

    Providers raise it to fail the current subtask with a message; the
    runner records the subtask as ERROR and moves on.
    """

    default_category = ErrorCategory.WORKFLOW
    default_retryable = True


class TaskAlreadyRunningError(RegistryError):
    """``run()`` was called for a task that is already running."""

    default_category = ErrorCategory.WORKFLOW
    default_retryable = False


class FilesystemError(RegistryError):
    """I/O error on a provider-managed file or directory."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False

    def __init__(self, message: str, *, path: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.path = path
        if path is not None:
            self.context.path = path


# =============================================================================
# TASK LOOKUP ERRORS
# =============================================================================


class TaskValidationError(RegistryError):
    """A persisted task can't be turned into an executable TaskInfo."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class InconsistentTaskSetError(TaskValidationError):
    """The tasks of one set belong to different vocabularies."""


class TaskNotFoundError(RegistryError):
    """No task row with the given id."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}", context=ErrorContext(task_id=task_id))


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, RegistryError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RegistryError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RegistryError",
    "ProviderNotFoundError",
    "UnsupportedVariantError",
    "UnknownKindError",
    "SubtaskExecutionError",
    "TaskAlreadyRunningError",
    "FilesystemError",
    "TaskValidationError",
    "InconsistentTaskSetError",
    "TaskNotFoundError",
    "is_retryable",
    "categorize_error",
]
