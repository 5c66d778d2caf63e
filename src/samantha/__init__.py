"""Samantha - route chat messages to natural-language back-ends."""

from samantha.capsule import Capsule, ContentType
from samantha.channel import CapsuleChannel, Pipe
from samantha.registry import ProviderRegistry, default_registry

__version__ = "0.1.0"

__all__ = ["Capsule", "CapsuleChannel", "ContentType", "Pipe", "ProviderRegistry", "default_registry"]
