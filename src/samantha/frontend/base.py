"""Front-end provider contracts."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from samantha.capsule import Capsule, ContentType, ensure_message_id
from samantha.channel import Pipe


class SystemLogStatus(StrEnum):
    ERROR = "Error"
    INFO = "Info"


def system_log(content: str, status: SystemLogStatus) -> str:
    """Format ``content`` as a system notice shown to the user."""
    return f"[SYSTEM]{status.value}: {content}"


class AuthorizedUser(BaseModel):
    """User allowed to talk through a front-end provider."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class FrontendProviderConfig(BaseModel):
    """Static configuration of one front-end provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    is_activated: bool = Field(default=False, alias="isActivated")
    token: str = ""
    authorized_users: tuple[AuthorizedUser, ...] = Field(default=(), alias="authorizedUsers")

    @field_validator("label")
    @classmethod
    def _lower_label(cls, value: str) -> str:
        return value.strip().lower()


@dataclass(frozen=True)
class ProviderMessage:
    """User input handed by a front-end provider to the front-end manager."""

    original_message: uuid.UUID
    provider_label: str
    content: str
    user: str
    content_type: ContentType = ContentType.TEXT

    def __post_init__(self) -> None:
        object.__setattr__(self, "original_message", ensure_message_id(self.original_message))

    def to_capsule(self) -> Capsule:
        return Capsule(
            original_message=self.original_message,
            frontend_provider=self.provider_label,
            content=self.content,
            user=self.user,
            content_type=self.content_type,
        )


class FrontendProvider(ABC):
    """Live front-end provider bound to one chat surface."""

    label: str = "base"

    @abstractmethod
    async def start(self) -> None:
        """Start receiving user events. Returns once the provider is stopped."""

    @abstractmethod
    async def message(self, capsule: Capsule) -> None:
        """Deliver the responses or the error carried by ``capsule`` to its user."""

    @abstractmethod
    async def stop(self) -> None:
        """Release the provider resources and make ``start`` return."""

    def get_label(self) -> str:
        return self.label


class FrontendDescriptor(ABC):
    """Stateless factory registered under a label."""

    label: str = "base"

    @abstractmethod
    async def initialize(
        self, config: FrontendProviderConfig, user_input: Pipe[ProviderMessage]
    ) -> FrontendProvider:
        """Build a live provider that publishes user events on ``user_input``."""
