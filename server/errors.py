"""Domain exceptions, each mapped to the HTTP status it is reported with."""

from __future__ import annotations

# Provider statuses reported as 502 instead of passed through.
PROVIDER_GATEWAY_STATUSES = frozenset({401, 403, 404})


class ChatRelayError(Exception):
    """Base exception for errors reported to API callers as ``{"error": ...}``."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationFailed(ChatRelayError):
    """Raised when a required field is missing or empty."""

    status_code = 400


class AuthenticationRequired(ChatRelayError):
    """Raised when the caller has no valid session."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConversationNotFound(ChatRelayError):
    """Raised when a conversation is absent or owned by someone else."""

    status_code = 404

    def __init__(self, conversation_id: str = ""):
        self.conversation_id = conversation_id
        super().__init__("Conversation not found")


class EmailAlreadyRegistered(ChatRelayError):
    status_code = 409

    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email already exists")


class CompletionError(ChatRelayError):
    """Raised when the completion provider fails.

    Carries the provider's message and, when the provider reported an HTTP
    error status, that status. Provider 401, 403 and 404 become 502 so they
    are not confused with a missing session or conversation.
    """

    def __init__(self, message: str, status_code: int | None = None):
        if status_code is not None and status_code < 400:
            status_code = None
        elif status_code in PROVIDER_GATEWAY_STATUSES:
            status_code = 502
        super().__init__(message or "Failed to generate response", status_code)


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""
