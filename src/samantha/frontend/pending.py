"""Pending messages awaiting their reply."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass

from samantha.errors import PendingMessageNotFoundError


@dataclass(frozen=True)
class PendingMessage:
    """Addressing information needed to answer one user message."""

    uuid: uuid.UUID
    chat_id: int
    user: str


class PendingMessages:
    """Table of pending messages keyed by capsule identifier.

    Each entry is handed out at most once: ``pop`` removes it.
    """

    def __init__(self) -> None:
        self._messages: dict[uuid.UUID, PendingMessage] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        with self._lock:
            return message_id in self._messages

    def add(self, message: PendingMessage) -> None:
        with self._lock:
            if message.uuid in self._messages:
                raise ValueError(f"message {message.uuid} is already pending")
            self._messages[message.uuid] = message

    def pop(self, message_id: uuid.UUID) -> PendingMessage:
        with self._lock:
            if not self._messages:
                raise PendingMessageNotFoundError(f"no pending messages (uuid: {message_id})")
            try:
                return self._messages.pop(message_id)
            except KeyError:
                raise PendingMessageNotFoundError(f"message (uuid: {message_id}) not found") from None

    def discard(self, message_id: uuid.UUID) -> None:
        with self._lock:
            self._messages.pop(message_id, None)

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()
