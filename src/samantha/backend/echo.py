"""Echo back-end provider, answering without any remote service."""

from __future__ import annotations

from samantha.backend.base import BackendDescriptor, BackendProvider, BackendProviderConfig, Output, Response


class EchoProvider(BackendProvider):
    """Send every line of the input back as its own response."""

    label = "echo"

    async def message(self, text: str) -> Response:
        return Response(outputs=[Output(response_type="text", text=line) for line in text.split("\n")])

    async def stop(self) -> None:
        return None


class EchoDescriptor(BackendDescriptor):
    label = "echo"

    async def initialize(self, config: BackendProviderConfig) -> BackendProvider:
        return EchoProvider()
