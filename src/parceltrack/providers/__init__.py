"""Provider registry for parceltrack.

A plain mapping from provider name to a zero-argument factory. Nothing is
registered at import time: build a registry with default_registry() (or
register factories yourself) when the process starts.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterator, List

from .base import ProviderBase

ProviderFactory = Callable[[], ProviderBase]


class ProviderRegistry:
    def __init__(self) -> None:
        self._factories: Dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Add or replace the factory for ``name``."""
        self._factories[name.lower()] = factory

    def create(self, name: str) -> ProviderBase:
        try:
            factory = self._factories[name.lower()]
        except KeyError:
            raise KeyError(
                f"Unknown provider {name!r}; known providers: {', '.join(self.names()) or 'none'}"
            ) from None
        return factory()

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


def default_registry() -> ProviderRegistry:
    """Registry with the built-in providers, credentials read from env."""
    from .auspost import AusPostProvider

    registry = ProviderRegistry()
    registry.register(AusPostProvider.provider, AusPostProvider.from_env)
    return registry


def get_provider_names() -> list[str]:
    return default_registry().names()
