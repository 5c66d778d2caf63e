"""Front-end manager."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

from loguru import logger

from samantha.capsule import Capsule
from samantha.channel import CapsuleChannel, Pipe
from samantha.errors import (
    ChannelClosedError,
    ConfigurationError,
    DeliveryError,
    ProviderInitError,
    UnknownFrontendError,
)
from samantha.frontend.base import FrontendProvider, FrontendProviderConfig, ProviderMessage
from samantha.registry import ProviderRegistry


class FrontendManager:
    """Merge user inputs of every activated front-end and route replies back to them."""

    def __init__(
        self,
        providers: Iterable[FrontendProvider],
        channel: CapsuleChannel,
        user_input: Pipe[ProviderMessage],
    ) -> None:
        self._providers: dict[str, FrontendProvider] = {}
        for provider in providers:
            label = provider.get_label()
            if label in self._providers:
                raise ConfigurationError(f"frontend provider {label} is activated twice")
            self._providers[label] = provider
        self._channel = channel
        self._user_input = user_input
        self._tasks: list[asyncio.Task[None]] = []

    @classmethod
    async def initialize(
        cls,
        configs: Sequence[FrontendProviderConfig],
        registry: ProviderRegistry,
        channel: CapsuleChannel,
    ) -> FrontendManager:
        """Build every activated provider. The first failure aborts the whole startup."""

        user_input: Pipe[ProviderMessage] = Pipe(1)
        providers: list[FrontendProvider] = []
        try:
            for config in configs:
                descriptor = registry.frontend(config.label)
                if not config.is_activated:
                    logger.debug("frontend.provider.skipped provider={}", config.label)
                    continue
                if any(provider.get_label() == config.label for provider in providers):
                    raise ConfigurationError(f"frontend provider {config.label} is activated twice")
                logger.debug("frontend.provider.initialize provider={}", config.label)
                try:
                    provider = await descriptor.initialize(config, user_input)
                except Exception as exc:
                    raise ProviderInitError(config.label, exc) from exc
                providers.append(provider)
        except Exception:
            await _stop_all(providers)
            raise

        if not providers:
            logger.warning("frontend.manager.no_provider_activated")
        return cls(providers, channel, user_input)

    @property
    def providers(self) -> dict[str, FrontendProvider]:
        return dict(self._providers)

    @property
    def user_input(self) -> Pipe[ProviderMessage]:
        return self._user_input

    async def start(self) -> None:
        """Run the providers and the dispatch loop until one of the inputs is closed."""

        for provider in self._providers.values():
            task = asyncio.create_task(provider.start(), name=f"frontend:{provider.get_label()}")
            task.add_done_callback(self._on_provider_exit)
            self._tasks.append(task)

        logger.info("frontend.manager.start providers={}", ",".join(self._providers))
        try:
            await self._listen()
        finally:
            await self.close()

    async def message(self, capsule: Capsule) -> None:
        """Deliver a capsule coming back from the back-end to its front-end."""

        provider = self._providers.get(capsule.frontend_provider)
        if provider is None:
            raise UnknownFrontendError(capsule.frontend_provider)
        await provider.message(capsule)

    async def _listen(self) -> None:
        inbound = asyncio.ensure_future(self._user_input.receive())
        outbound = asyncio.ensure_future(self._channel.to_frontend.receive())
        try:
            while True:
                done, _ = await asyncio.wait({inbound, outbound}, return_when=asyncio.FIRST_COMPLETED)
                if inbound in done:
                    user_message = inbound.result()
                    if user_message is None:
                        return
                    try:
                        await self._send_to_backend(user_message)
                    except ChannelClosedError:
                        return
                    inbound = asyncio.ensure_future(self._user_input.receive())
                if outbound in done:
                    capsule = outbound.result()
                    if capsule is None:
                        return
                    await self._deliver(capsule)
                    outbound = asyncio.ensure_future(self._channel.to_frontend.receive())
        finally:
            for task in (inbound, outbound):
                if not task.done():
                    task.cancel()

    async def _send_to_backend(self, user_message: ProviderMessage) -> None:
        capsule = user_message.to_capsule()
        logger.debug(
            "frontend.manager.inbound provider={} id={} content={}",
            capsule.frontend_provider,
            capsule.original_message,
            capsule.content[:100],
        )
        await self._channel.to_backend.send(capsule)

    async def _deliver(self, capsule: Capsule) -> None:
        try:
            await self.message(capsule)
        except DeliveryError as exc:
            logger.error("frontend.manager.deliver.failed id={} error={}", capsule.original_message, exc)
        except Exception:
            logger.exception(
                "frontend.manager.deliver.error provider={} id={}", capsule.frontend_provider, capsule.original_message
            )

    async def close(self) -> None:
        """Stop every provider, close the user input and wait for the provider tasks."""
        logger.info("frontend.manager.stopping")
        await _stop_all(self._providers.values())
        self._user_input.close()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("frontend.manager.stopped")

    def _on_provider_exit(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("frontend.provider.crashed task={}", task.get_name())
            # A dead provider can neither receive users nor deliver replies.
            self._user_input.close()


async def _stop_all(providers: Iterable[FrontendProvider]) -> None:
    for provider in providers:
        try:
            await provider.stop()
        except Exception:
            logger.exception("frontend.provider.stop.error provider={}", provider.get_label())
