"""Domain exception hierarchy for the chatterm client."""

from __future__ import annotations


class ChatTermError(RuntimeError):
    """Base class for all domain-level chat errors."""


class SelectionError(ChatTermError):
    """Raised when no message is selected or the selection is stale."""


class ConversationLoadError(ChatTermError):
    """Raised when a stored conversation cannot be materialized."""


class StreamingError(ChatTermError):
    """Raised when a completion stream fails mid-flight."""


class ProviderConnectionError(StreamingError):
    """Raised when the completion provider cannot be reached."""


class ModelNotFoundError(StreamingError):
    """Raised when the requested model is unavailable on the provider."""


class ModelNotConfiguredError(ChatTermError):
    """Raised when an operation needs a model and none is configured."""


class ConfigValidationError(ChatTermError):
    """Raised when configuration cannot be validated safely."""
