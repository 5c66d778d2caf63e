"""Back-end provider contracts."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BackendProviderConfig(BaseModel):
    """Static configuration of one back-end provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    is_activated: bool = Field(default=True, alias="isActivated")
    url: str = ""
    version: str = ""
    token: str = ""
    assistant_id: str = Field(default="", alias="assistantID")
    user_id: uuid.UUID | None = Field(default=None, alias="userID")

    @field_validator("label")
    @classmethod
    def _lower_label(cls, value: str) -> str:
        return value.strip().lower()


@dataclass(frozen=True)
class Output:
    """One response item. Its position in the response is significant."""

    response_type: str
    text: str


@dataclass(frozen=True)
class Intent:
    intent: str
    confidence: float


@dataclass(frozen=True)
class Response:
    """Structured answer of a back-end provider."""

    status_code: int = 200
    outputs: list[Output] = field(default_factory=list)
    intents: list[Intent] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [output.text for output in self.outputs]

    def __str__(self) -> str:
        return f"StatusCode: {self.status_code} Outputs: {self.outputs} Intents: {self.intents}"


class BackendProvider(ABC):
    """Live client of a natural-language-understanding service."""

    label: str = "base"

    @abstractmethod
    async def message(self, text: str) -> Response:
        """Send ``text`` to the service and return its structured answer."""

    @abstractmethod
    async def stop(self) -> None:
        """Close the session with the service."""

    def get_label(self) -> str:
        return self.label


class BackendDescriptor(ABC):
    """Stateless factory registered under a label."""

    label: str = "base"

    @abstractmethod
    async def initialize(self, config: BackendProviderConfig) -> BackendProvider:
        """Build a live provider from ``config``."""
