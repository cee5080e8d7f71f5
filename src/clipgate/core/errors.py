"""Error taxonomy for the submission gate.

Components raise these exceptions; the submission pipeline is the only place
that turns them into terminal decisions.
"""

from __future__ import annotations


class GateError(Exception):
    """Base class for every failure the gate knows how to classify."""

    #: Message that is safe to show to the client.
    public_message: str = "Request rejected."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if message:
            self.public_message = message


class InputError(GateError):
    """Malformed or missing fields; not retryable as-is."""

    public_message = "Invalid request."


class InvalidIdentifierError(InputError):
    """Raised when a resource identifier matches neither accepted shape."""

    public_message = "Invalid videoId format."


class DuplicateResourceError(InputError):
    """Raised by persistence when a content fingerprint already exists."""

    public_message = "This video has already been uploaded."


class AuthenticityError(GateError):
    """The challenge answer did not match; the client must solve a new one."""

    public_message = "Incorrect captcha answer."


class QuotaError(GateError):
    """The caller exhausted its allowance for the current window."""

    public_message = "Rate limit exceeded. Please try again later."

    def __init__(self, retry_after: float, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = max(0.0, float(retry_after))


class PolicyError(GateError):
    """Content was rejected by the moderation policy."""

    public_message = "Your submission violates our community guidelines."


class DependencyError(GateError):
    """A collaborator (storage, classifier) failed or could not be reached."""

    public_message = "Service temporarily unavailable. Please try again later."


class ChallengeUnconfiguredError(DependencyError):
    """Raised when a challenge is requested without a server secret."""
