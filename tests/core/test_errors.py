"""Tests for vocabreg.core.errors."""

from __future__ import annotations

import pytest

from vocabreg.core.errors import (
    ErrorCategory,
    ErrorContext,
    FilesystemError,
    InconsistentTaskSetError,
    ProviderNotFoundError,
    RegistryError,
    SubtaskExecutionError,
    TaskNotFoundError,
    TaskValidationError,
    UnknownKindError,
    UnsupportedVariantError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    def test_to_dict_omits_none(self):
        ctx = ErrorContext(task_id=3, path="/tmp/x")
        assert ctx.to_dict() == {"task_id": 3, "path": "/tmp/x"}

    def test_metadata_is_merged(self):
        ctx = ErrorContext(version_id=2, metadata={"attempt": 1})
        assert ctx.to_dict() == {"version_id": 2, "attempt": 1}


class TestRegistryError:
    def test_defaults(self):
        error = RegistryError("boom")
        assert error.message == "boom"
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "boom"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = RegistryError("boom").with_context(task_id=7, extra="value")
        assert error.context.task_id == 7
        assert error.context.metadata == {"extra": "value"}

    def test_cause_is_chained(self):
        cause = OSError("disk full")
        error = RegistryError("write failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "disk full"

    def test_to_dict(self):
        error = SubtaskExecutionError("failed").with_context(provider_name="Sesame")
        data = error.to_dict()
        assert data["error_type"] == "SubtaskExecutionError"
        assert data["category"] == "WORKFLOW"
        assert data["retryable"] is True
        assert data["context"] == {"provider_name": "Sesame"}


class TestErrorSubclasses:
    def test_provider_not_found(self):
        error = ProviderNotFoundError("harvest", "NoSuchName")
        assert error.kind == "harvest"
        assert error.name == "NoSuchName"
        assert error.category is ErrorCategory.PROVIDER
        assert "harvest/NoSuchName" in error.message

    def test_unknown_kind_is_value_error(self):
        with pytest.raises(ValueError):
            raise UnknownKindError("bad type")
        assert UnknownKindError("x").category is ErrorCategory.CONFIG

    def test_unsupported_variant_is_validation(self):
        assert UnsupportedVariantError("no").category is ErrorCategory.VALIDATION

    def test_filesystem_error_carries_path(self):
        error = FilesystemError("can't delete", path="/data/1")
        assert error.path == "/data/1"
        assert error.context.path == "/data/1"
        assert error.category is ErrorCategory.STORAGE

    def test_inconsistent_task_set_is_validation_error(self):
        assert issubclass(InconsistentTaskSetError, TaskValidationError)

    def test_task_not_found(self):
        error = TaskNotFoundError(42)
        assert error.task_id == 42
        assert error.category is ErrorCategory.DATABASE


class TestHelpers:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (SubtaskExecutionError("x"), True),
            (UnknownKindError("x"), False),
            (ConnectionError(), True),
            (KeyError(), False),
        ],
    )
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (FilesystemError("x"), ErrorCategory.STORAGE),
            (TimeoutError(), ErrorCategory.NETWORK),
            (PermissionError(), ErrorCategory.STORAGE),
            (ValueError(), ErrorCategory.VALIDATION),
            (KeyError(), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) is expected
