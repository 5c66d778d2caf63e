"""Application-level exception types for Samantha."""

from __future__ import annotations


class SamanthaError(Exception):
    """Base exception for Samantha."""


class ConfigurationError(SamanthaError):
    """Base exception for configuration and startup validation errors."""


class ProviderNotFoundError(ConfigurationError):
    """Raised when a configured label has no registered provider."""

    def __init__(self, label: str) -> None:
        super().__init__(f"provider called `{label}` not found")
        self.label = label


class ProviderInitError(ConfigurationError):
    """Raised when a provider fails to build its live instance."""

    def __init__(self, label: str, cause: BaseException) -> None:
        super().__init__(f"loading provider {label}: {cause}")
        self.label = label
        self.cause = cause


class InvalidCapsuleError(SamanthaError):
    """Raised when a capsule does not carry a usable identifier."""


class ContentNotImplementedError(SamanthaError):
    """Raised for content types whose handling is not implemented."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"{content_type} message handling is not implemented")
        self.content_type = content_type


class DeliveryError(SamanthaError):
    """Base exception for replies that cannot reach their user."""


class PendingMessageNotFoundError(DeliveryError):
    """Raised when a reply does not match any pending message."""


class UnknownFrontendError(DeliveryError):
    """Raised when a capsule names a front-end that is not activated."""

    def __init__(self, label: str) -> None:
        super().__init__(f"frontend provider {label} not found")
        self.label = label


class ProviderCallError(SamanthaError):
    """Raised when the back-end provider call fails."""


class ChannelClosedError(SamanthaError):
    """Raised when sending on a closed channel."""
