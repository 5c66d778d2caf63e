"""Back-end manager."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from samantha.backend.base import BackendProvider, BackendProviderConfig
from samantha.capsule import Capsule, ContentType
from samantha.channel import CapsuleChannel
from samantha.errors import (
    ChannelClosedError,
    ConfigurationError,
    ContentNotImplementedError,
    ProviderCallError,
    ProviderInitError,
)
from samantha.registry import ProviderRegistry


class BackendManager:
    """Apply the single activated NLU provider to every capsule."""

    def __init__(self, provider: BackendProvider, channel: CapsuleChannel) -> None:
        self._provider = provider
        self._channel = channel

    @classmethod
    async def initialize(
        cls,
        configs: Sequence[BackendProviderConfig],
        registry: ProviderRegistry,
        channel: CapsuleChannel,
    ) -> BackendManager:
        """Build the one activated back-end provider."""

        for config in configs:
            registry.backend(config.label)
        activated = [config for config in configs if config.is_activated]
        if len(activated) != 1:
            raise ConfigurationError(f"exactly one backend provider must be activated, found {len(activated)}")

        config = activated[0]
        logger.debug("backend.provider.initialize provider={}", config.label)
        try:
            provider = await registry.backend(config.label).initialize(config)
        except Exception as exc:
            raise ProviderInitError(config.label, exc) from exc
        return cls(provider, channel)

    @property
    def provider(self) -> BackendProvider:
        return self._provider

    async def start(self) -> None:
        """Process capsules one at a time until the channel is closed."""

        logger.info("backend.manager.start provider={}", self._provider.get_label())
        try:
            while True:
                capsule = await self._channel.to_backend.receive()
                if capsule is None:
                    break
                await self.process(capsule)
                if self._channel.closed:
                    logger.warning("backend.manager.dropped id={} reason=channel_closed", capsule.original_message)
                    break
                try:
                    await self._channel.to_frontend.send(capsule)
                except ChannelClosedError:
                    logger.warning("backend.manager.dropped id={} reason=channel_closed", capsule.original_message)
                    break
        finally:
            await self._stop_provider()

    async def process(self, capsule: Capsule) -> Capsule:
        """Fill ``capsule`` with the provider responses, or with the error that prevented them."""

        logger.debug(
            "backend.manager.capsule provider={} id={} content={}",
            capsule.frontend_provider,
            capsule.original_message,
            capsule.content[:100],
        )
        if capsule.content_type is not ContentType.TEXT:
            capsule.error = ContentNotImplementedError(capsule.content_type.value)
            return capsule

        label = self._provider.get_label()
        try:
            response = await self._provider.message(capsule.content)
        except Exception as exc:
            logger.opt(exception=exc).warning("backend.provider.error provider={} id={}", label, capsule.original_message)
            error = ProviderCallError(f"sending a message to {label}: {exc}")
            error.__cause__ = exc
            capsule.error = error
            return capsule

        logger.debug("backend.provider.response provider={} response={}", label, response)
        capsule.responses.extend(response.texts())
        return capsule

    async def _stop_provider(self) -> None:
        logger.info("backend.manager.stopping provider={}", self._provider.get_label())
        try:
            await self._provider.stop()
        except Exception:
            logger.exception("backend.provider.stop.error provider={}", self._provider.get_label())
        logger.info("backend.manager.stopped")
