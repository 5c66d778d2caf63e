"""Provider registry binding configuration labels to provider descriptors."""

from __future__ import annotations

from samantha.backend.base import BackendDescriptor
from samantha.errors import ProviderNotFoundError
from samantha.frontend.base import FrontendDescriptor


class ProviderRegistry:
    """Registry of front-end and back-end provider descriptors."""

    def __init__(self) -> None:
        self._frontends: dict[str, FrontendDescriptor] = {}
        self._backends: dict[str, BackendDescriptor] = {}

    def register_frontend(self, descriptor: FrontendDescriptor) -> None:
        self._frontends[descriptor.label.lower()] = descriptor

    def register_backend(self, descriptor: BackendDescriptor) -> None:
        self._backends[descriptor.label.lower()] = descriptor

    def frontend(self, label: str) -> FrontendDescriptor:
        descriptor = self._frontends.get(label.lower())
        if descriptor is None:
            raise ProviderNotFoundError(label)
        return descriptor

    def backend(self, label: str) -> BackendDescriptor:
        descriptor = self._backends.get(label.lower())
        if descriptor is None:
            raise ProviderNotFoundError(label)
        return descriptor

    def frontend_labels(self) -> list[str]:
        return sorted(self._frontends)

    def backend_labels(self) -> list[str]:
        return sorted(self._backends)


def default_registry() -> ProviderRegistry:
    """Build the registry holding every bundled provider."""

    from samantha.backend.echo import EchoDescriptor
    from samantha.backend.watson import WatsonDescriptor
    from samantha.frontend.telegram import TelegramDescriptor

    registry = ProviderRegistry()
    registry.register_frontend(TelegramDescriptor())
    registry.register_backend(WatsonDescriptor())
    registry.register_backend(EchoDescriptor())
    return registry
