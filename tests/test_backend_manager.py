import asyncio
import uuid

import pytest

from samantha.backend.base import BackendProviderConfig, Response
from samantha.backend.manager import BackendManager
from samantha.capsule import Capsule, ContentType
from samantha.channel import CapsuleChannel
from samantha.errors import (
    ConfigurationError,
    ContentNotImplementedError,
    ProviderCallError,
    ProviderInitError,
    ProviderNotFoundError,
)
from samantha.registry import ProviderRegistry

from fakes import FailingBackend, FakeBackend, FakeBackendDescriptor, eventually


def _capsule(content: str = "hello", content_type: ContentType = ContentType.TEXT) -> Capsule:
    return Capsule(
        original_message=uuid.uuid4(),
        frontend_provider="alpha",
        content=content,
        user="bob",
        content_type=content_type,
    )


def _registry(*descriptors: FakeBackendDescriptor) -> ProviderRegistry:
    registry = ProviderRegistry()
    for descriptor in descriptors:
        registry.register_backend(descriptor)
    return registry


@pytest.mark.asyncio
async def test_initialize_builds_the_activated_provider() -> None:
    descriptor = FakeBackendDescriptor("beta")
    configs = [
        BackendProviderConfig(label="Beta", assistantID="a1"),
        BackendProviderConfig(label="beta", isActivated=False),
    ]

    manager = await BackendManager.initialize(configs, _registry(descriptor), CapsuleChannel())

    assert manager.provider is descriptor.provider
    assert descriptor.configs[0].assistant_id == "a1"


@pytest.mark.asyncio
@pytest.mark.parametrize("activated", [0, 2])
async def test_initialize_requires_exactly_one_activated_provider(activated: int) -> None:
    configs = [BackendProviderConfig(label="beta", isActivated=index < activated) for index in range(2)]

    with pytest.raises(ConfigurationError, match=f"found {activated}"):
        await BackendManager.initialize(configs, _registry(FakeBackendDescriptor("beta")), CapsuleChannel())


@pytest.mark.asyncio
async def test_initialize_unknown_label() -> None:
    with pytest.raises(ProviderNotFoundError):
        await BackendManager.initialize(
            [BackendProviderConfig(label="gamma")], _registry(FakeBackendDescriptor("beta")), CapsuleChannel()
        )


@pytest.mark.asyncio
async def test_initialize_wraps_provider_failure() -> None:
    with pytest.raises(ProviderInitError) as exc_info:
        await BackendManager.initialize(
            [BackendProviderConfig(label="beta")], _registry(FakeBackendDescriptor("beta", fail=True)), CapsuleChannel()
        )

    assert exc_info.value.label == "beta"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_process_keeps_provider_output_order() -> None:
    manager = BackendManager(FakeBackend("beta", lambda _text: ["A", "B"]), CapsuleChannel())

    capsule = await manager.process(_capsule())

    assert capsule.responses == ["A", "B"]
    assert capsule.error is None


@pytest.mark.asyncio
async def test_process_attaches_provider_error() -> None:
    manager = BackendManager(FailingBackend("beta"), CapsuleChannel())

    capsule = await manager.process(_capsule())

    assert isinstance(capsule.error, ProviderCallError)
    assert "service unavailable" in str(capsule.error)
    assert isinstance(capsule.error.__cause__, RuntimeError)
    assert capsule.responses == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content_type", [ContentType.IMAGE, ContentType.AUDIO])
async def test_unsupported_content_never_reaches_provider(content_type: ContentType) -> None:
    provider = FakeBackend("beta")
    manager = BackendManager(provider, CapsuleChannel())

    capsule = await manager.process(_capsule("", content_type))

    assert provider.calls == []
    assert isinstance(capsule.error, ContentNotImplementedError)
    assert "not implemented" in str(capsule.error)


@pytest.mark.asyncio
async def test_start_returns_every_capsule_once_then_stops_on_close() -> None:
    channel = CapsuleChannel()
    provider = FakeBackend("beta", lambda text: [text.upper()])
    manager = BackendManager(provider, channel)
    task = asyncio.create_task(manager.start())

    sent = [_capsule("one"), _capsule("two", ContentType.AUDIO)]
    for capsule in sent:
        await channel.to_backend.send(capsule)
    returned = [await asyncio.wait_for(channel.to_frontend.receive(), timeout=1) for _ in sent]

    assert [capsule.original_message for capsule in returned] == [capsule.original_message for capsule in sent]
    assert returned[0].responses == ["ONE"]
    assert isinstance(returned[1].error, ContentNotImplementedError)

    channel.close()
    await asyncio.wait_for(task, timeout=1)
    assert provider.stop_calls == 1
    assert provider.calls == ["one"]


@pytest.mark.asyncio
async def test_start_survives_provider_stop_failure() -> None:
    class BrokenStop(FakeBackend):
        async def stop(self) -> None:
            raise RuntimeError("session already gone")

    channel = CapsuleChannel()
    task = asyncio.create_task(BackendManager(BrokenStop("beta"), channel).start())
    await asyncio.sleep(0)

    channel.close()
    await asyncio.wait_for(task, timeout=1)


class SlowBackend(FakeBackend):
    def __init__(self, label: str) -> None:
        super().__init__(label)
        self.release = asyncio.Event()

    async def message(self, text: str) -> Response:
        response = await super().message(text)
        await self.release.wait()
        return response


@pytest.mark.asyncio
async def test_capsule_finished_after_close_is_dropped() -> None:
    provider = SlowBackend("beta")
    channel = CapsuleChannel()
    manager = BackendManager(provider, channel)
    task = asyncio.create_task(manager.start())
    capsule = _capsule()
    await channel.to_backend.send(capsule)
    await eventually(lambda: provider.calls == ["hello"])

    channel.close()
    provider.release.set()
    await asyncio.wait_for(task, timeout=1)

    assert capsule.responses == ["hello"]
    assert len(channel.to_frontend) == 0
    assert provider.stop_calls == 1
