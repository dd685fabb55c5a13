"""Error taxonomy for Synack platform responses.

Every outcome the pollers care about maps onto one of these. Anything the
platform returns that has no dedicated class becomes a PlatformError.
"""

from typing import Optional


class SynackError(Exception):
    """Base class for platform failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthExpired(SynackError):
    """The session token was rejected (401)."""

    def __init__(self, message: str = "unauthorized (401)"):
        super().__init__(message, status_code=401)


class RateLimited(SynackError):
    """The platform is throttling us (429)."""

    def __init__(self, message: str = "too many requests (429)", retry_after: Optional[float] = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class Ineligible(SynackError):
    """The account can no longer claim this mission (403)."""

    def __init__(self, message: str = "failed to claim mission, status code: 403"):
        super().__init__(message, status_code=403)


class AlreadyClaimed(SynackError):
    """The mission was taken by someone else or its window closed (412)."""

    def __init__(self, message: str = "mission cannot be claimed anymore (412)"):
        super().__init__(message, status_code=412)


class PlatformError(SynackError):
    """Unclassified failure: unexpected status, transport error, bad payload."""


class CredentialPromptError(Exception):
    """No replacement token could be read from the terminal."""
