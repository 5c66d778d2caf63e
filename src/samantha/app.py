"""Process lifecycle: wire both managers to one capsule channel and run them."""

from __future__ import annotations

import asyncio
import signal
from contextlib import suppress

from loguru import logger

from samantha.backend.manager import BackendManager
from samantha.channel import CapsuleChannel
from samantha.config import Settings, load_backend_config, load_frontend_config
from samantha.frontend.manager import FrontendManager
from samantha.registry import ProviderRegistry, default_registry


class Samantha:
    """Front-end and back-end managers sharing one capsule channel."""

    def __init__(self, frontend: FrontendManager, backend: BackendManager, channel: CapsuleChannel) -> None:
        self.frontend = frontend
        self.backend = backend
        self.channel = channel

    @classmethod
    async def build(cls, settings: Settings, registry: ProviderRegistry | None = None) -> Samantha:
        """Load the provider configuration files and initialize both managers.

        Any configuration or provider error propagates before a worker starts.
        """
        registry = registry or default_registry()
        frontend_configs = load_frontend_config(settings.frontend_config_file)
        backend_configs = load_backend_config(settings.backend_config_file)

        channel = CapsuleChannel(settings.channel_capacity)
        frontend = await FrontendManager.initialize(frontend_configs, registry, channel)
        try:
            backend = await BackendManager.initialize(backend_configs, registry, channel)
        except BaseException:
            await frontend.close()
            raise
        return cls(frontend, backend, channel)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Run both managers until ``stop_event`` is set or one of them exits.

        Shutdown closes the channel, then waits for both managers to drain.
        """
        workers = [
            asyncio.create_task(self.frontend.start(), name="frontend"),
            asyncio.create_task(self.backend.start(), name="backend"),
        ]
        waiter = asyncio.create_task(stop_event.wait())
        try:
            await asyncio.wait({waiter, *workers}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            self.channel.close()
            results = await asyncio.gather(*workers, return_exceptions=True)
            for worker, result in zip(workers, results, strict=True):
                if isinstance(result, BaseException):
                    logger.opt(exception=result).error("samantha.worker.failed worker={}", worker.get_name())
        logger.info("samantha.shutdown graceful")


async def serve(settings: Settings, registry: ProviderRegistry | None = None) -> None:
    """Build the application and run it until SIGINT or SIGTERM."""

    app = await Samantha.build(settings, registry)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
    try:
        await app.run(stop_event)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
