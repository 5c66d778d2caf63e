"""Capsule envelope crossing the front-end/back-end boundary."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from samantha.errors import InvalidCapsuleError


class ContentType(StrEnum):
    """Classification of a user input."""

    TEXT = "Text"
    IMAGE = "Image"
    AUDIO = "Audio"


def ensure_message_id(value: object) -> uuid.UUID:
    """Return ``value`` as a non-nil UUID or raise ``InvalidCapsuleError``."""

    if isinstance(value, uuid.UUID):
        parsed = value
    else:
        try:
            parsed = uuid.UUID(str(value))
        except ValueError as exc:
            raise InvalidCapsuleError(f"malformed message id: {value!r}") from exc
    if parsed.int == 0:
        raise InvalidCapsuleError("message id must not be the nil uuid")
    return parsed


@dataclass(eq=False)
class Capsule:
    """One user exchange: the input, then the responses or the error.

    The front-end fills in the identity and content fields before handing the
    capsule to the back-end, which fills in ``responses`` or ``error`` and
    hands it back. Whoever holds the capsule is its only writer.
    """

    original_message: uuid.UUID
    frontend_provider: str
    content: str
    user: str
    content_type: ContentType = ContentType.TEXT
    responses: list[str] = field(default_factory=list)
    error: Exception | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "original_message", ensure_message_id(self.original_message))

    def __setattr__(self, name: str, value: object) -> None:
        if name == "original_message" and name in self.__dict__:
            raise AttributeError("original_message is immutable")
        super().__setattr__(name, value)

    @property
    def failed(self) -> bool:
        return self.error is not None and bool(str(self.error))

    def __repr__(self) -> str:
        return (
            f"Capsule(original_message={self.original_message}, frontend_provider={self.frontend_provider!r}, "
            f"content_type={self.content_type.value}, responses={len(self.responses)}, error={self.error!r})"
        )
