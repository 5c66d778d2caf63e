"""IBM Watson Assistant v2 back-end provider."""

from __future__ import annotations

import uuid
from typing import Any

import httpx
from loguru import logger

from samantha.backend.base import BackendDescriptor, BackendProvider, BackendProviderConfig, Intent, Output, Response
from samantha.errors import ConfigurationError

DEFAULT_VERSION = "2021-06-14"


def convert_response(status_code: int, body: dict[str, Any]) -> Response:
    """Convert a Watson message result to a ``Response``.

    Multi-line texts are split so that every line becomes its own output.
    """
    output = body.get("output") or {}
    outputs: list[Output] = []
    for generic in output.get("generic") or []:
        if "text" not in generic:
            continue
        response_type = str(generic.get("response_type", "text"))
        for line in str(generic["text"]).split("\n"):
            outputs.append(Output(response_type=response_type, text=line))

    intents = [
        Intent(intent=str(item.get("intent", "")), confidence=float(item.get("confidence", 0.0)))
        for item in output.get("intents") or []
    ]
    return Response(status_code=status_code, outputs=outputs, intents=intents)


class WatsonProvider(BackendProvider):
    """Client of one Watson Assistant session."""

    label = "watson"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        assistant_id: str,
        version: str = DEFAULT_VERSION,
        user_id: uuid.UUID | None = None,
    ) -> None:
        self._client = client
        self._assistant_id = assistant_id
        self._version = version
        self._user_id = user_id
        self._session_id: str | None = None

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def create_session(self) -> None:
        response = await self._client.post(
            f"/v2/assistants/{self._assistant_id}/sessions",
            params={"version": self._version},
        )
        response.raise_for_status()
        self._session_id = str(response.json()["session_id"])
        logger.info("watson.session.created session_id={}", self._session_id)

    async def message(self, text: str) -> Response:
        if self._session_id is None:
            raise RuntimeError("watson session is not open")
        payload: dict[str, Any] = {"input": {"message_type": "text", "text": text}}
        if self._user_id is not None:
            payload["context"] = {"global": {"system": {"user_id": str(self._user_id)}}}

        response = await self._client.post(
            f"/v2/assistants/{self._assistant_id}/sessions/{self._session_id}/message",
            params={"version": self._version},
            json=payload,
        )
        response.raise_for_status()
        return convert_response(response.status_code, response.json())

    async def stop(self) -> None:
        session_id, self._session_id = self._session_id, None
        try:
            if session_id is not None:
                response = await self._client.delete(
                    f"/v2/assistants/{self._assistant_id}/sessions/{session_id}",
                    params={"version": self._version},
                )
                response.raise_for_status()
                logger.info("watson.session.deleted session_id={}", session_id)
        finally:
            await self._client.aclose()


class WatsonDescriptor(BackendDescriptor):
    label = "watson"

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None, timeout: float = 15.0) -> None:
        self._transport = transport
        self._timeout = timeout

    async def initialize(self, config: BackendProviderConfig) -> BackendProvider:
        if not config.url:
            raise ConfigurationError("watson url is empty")
        if not config.assistant_id:
            raise ConfigurationError("watson assistant id is empty")

        client = httpx.AsyncClient(
            base_url=config.url.rstrip("/"),
            auth=httpx.BasicAuth("apikey", config.token),
            timeout=self._timeout,
            transport=self._transport,
        )
        provider = WatsonProvider(
            client,
            assistant_id=config.assistant_id,
            version=config.version or DEFAULT_VERSION,
            user_id=config.user_id,
        )
        try:
            await provider.create_session()
        except BaseException:
            await client.aclose()
            raise
        return provider
