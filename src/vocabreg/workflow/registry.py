"""Provider Registry - (kind, name) → provider factory.

Manifesto:
A subtask names its provider by kind and short name (``transform`` /
``JsonList``). The registry maps that pair to a factory producing a fresh
provider instance for every resolution, so providers never share state
across subtasks or task executions.

Provider classes follow a naming convention, which ``provider_name``
inverts: ``<Name><KindTitle>Provider`` living in
``vocabreg.workflow.providers.<kind value>``. For example
``JsonListTransformProvider`` in ``providers.transform`` is registered as
``(TRANSFORM, "JsonList")``.

ARCHITECTURE
────────────
::

    ProviderRegistry
      ├── .register(cls, factory=None)  ─ store under (kind, provider_name(cls))
      ├── .resolve(kind, name)          ─ fresh instance or ProviderNotFoundError
      ├── .lookup(kind, name)           ─ class or None
      ├── .has(kind, name)              ─ existence check
      └── .list_providers(kind=None)    ─ sorted (kind, name) pairs

    @register_provider                  ─ declare a built-in provider
    get_default_registry()              ─ process-wide registry of built-ins
    reset_default_registry()            ─ rebuild on next access (testing)

BEST PRACTICES
──────────────
- Built-in providers use ``@register_provider``; tests build their own
  ``ProviderRegistry`` and pass it explicitly.
- Call ``reset_default_registry()`` in test fixtures.

Tags:
    vocabreg, workflow, registry, provider-registry, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from vocabreg.core.enums import ProviderKind
from vocabreg.core.errors import ProviderNotFoundError
from vocabreg.core.logging import get_logger

if TYPE_CHECKING:
    from vocabreg.workflow.providers.base import WorkflowProvider

log = get_logger(__name__)

PROVIDER_SUFFIX = "Provider"


def provider_name(provider_cls: type) -> str:
    """Short name of a provider class, e.g. ``PoolPartyHarvestProvider`` → ``PoolParty``.

    Raises:
        ValueError: If the class name does not follow the convention
    """
    kind = ProviderKind(provider_cls.provider_kind)
    suffix = kind.kind_title + PROVIDER_SUFFIX
    class_name = provider_cls.__name__
    if not class_name.endswith(suffix) or class_name == suffix:
        raise ValueError(
            f"Provider class {class_name} must be named <Name>{suffix}"
        )
    return class_name[: -len(suffix)]


class ProviderRegistry:
    """Injectable provider registry.

    Safe for concurrent resolution: resolution reads the mapping under a
    lock and each call builds a new provider.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._classes: dict[tuple[ProviderKind, str], type[WorkflowProvider]] = {}
        self._factories: dict[tuple[ProviderKind, str], Callable[[], WorkflowProvider]] = {}

    def register(
        self,
        provider_cls: type[WorkflowProvider],
        factory: Callable[[], WorkflowProvider] | None = None,
    ) -> str:
        """Register a provider class; returns its short name.

        Raises:
            ValueError: If another class is registered under the same key
        """
        name = provider_name(provider_cls)
        key = (ProviderKind(provider_cls.provider_kind), name)
        with self._lock:
            existing = self._classes.get(key)
            if existing is not None and existing is not provider_cls:
                raise ValueError(
                    f"Provider {key[0].value}/{name} already registered by {existing.__name__}"
                )
            self._classes[key] = provider_cls
            self._factories[key] = factory or provider_cls
        return name

    def lookup(self, kind: ProviderKind | str, name: str) -> type[WorkflowProvider] | None:
        with self._lock:
            return self._classes.get((ProviderKind(kind), name))

    def has(self, kind: ProviderKind | str, name: str) -> bool:
        return self.lookup(kind, name) is not None

    def resolve(self, kind: ProviderKind | str, name: str) -> WorkflowProvider:
        """Build a fresh provider for (*kind*, *name*).

        Raises:
            ProviderNotFoundError: If nothing is registered, or construction fails
        """
        kind = ProviderKind(kind)
        with self._lock:
            factory = self._factories.get((kind, name))
        if factory is None:
            log.warning("registry.provider_not_found", provider_kind=kind.value, provider_name=name)
            raise ProviderNotFoundError(kind.value, name)
        try:
            return factory()
        except Exception as e:
            log.error(
                "registry.provider_construction_failed",
                provider_kind=kind.value,
                provider_name=name,
                error=str(e),
            )
            raise ProviderNotFoundError(kind.value, name, cause=e) from e

    def list_providers(self, kind: ProviderKind | str | None = None) -> list[tuple[ProviderKind, str]]:
        with self._lock:
            keys = list(self._classes)
        if kind is not None:
            keys = [k for k in keys if k[0] is ProviderKind(kind)]
        return sorted(keys, key=lambda k: (k[0].value, k[1]))

    def unregister(self, kind: ProviderKind | str, name: str) -> bool:
        key = (ProviderKind(kind), name)
        with self._lock:
            if key not in self._classes:
                return False
            del self._classes[key]
            del self._factories[key]
            return True

    def clear(self) -> None:
        """Clear all providers (for testing)."""
        with self._lock:
            self._classes.clear()
            self._factories.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._classes)


# === GLOBAL DEFAULT REGISTRY ===

_declared: list[type[WorkflowProvider]] = []
_default_registry: ProviderRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> ProviderRegistry:
    """Get the process-wide registry, populated with every declared provider.

    Built lazily on first access; importing ``vocabreg.workflow.providers``
    declares the built-in providers.
    """
    global _default_registry
    if _default_registry is None:
        import vocabreg.workflow.providers  # noqa: F401

        with _default_lock:
            if _default_registry is None:
                registry = ProviderRegistry()
                for provider_cls in _declared:
                    registry.register(provider_cls)
                _default_registry = registry
    return _default_registry


def reset_default_registry() -> None:
    """Reset the global registry (for testing); it is rebuilt on next access."""
    global _default_registry
    with _default_lock:
        _default_registry = None


# === DECORATOR API ===


def register_provider(
    provider_cls: type[WorkflowProvider] | None = None,
    *,
    registry: ProviderRegistry | None = None,
) -> Any:
    """Class decorator declaring a provider.

    Without ``registry`` the class becomes a built-in, present in every
    default registry. With one, it is registered there only.

    Example:
        >>> @register_provider
        ... class PoolPartyHarvestProvider(WorkflowProvider):
        ...     provider_kind = ProviderKind.HARVEST
    """

    def decorator(cls: type[WorkflowProvider]) -> type[WorkflowProvider]:
        if registry is not None:
            registry.register(cls)
            return cls
        provider_name(cls)
        if cls not in _declared:
            _declared.append(cls)
        if _default_registry is not None:
            _default_registry.register(cls)
        return cls

    if provider_cls is not None:
        return decorator(provider_cls)
    return decorator
