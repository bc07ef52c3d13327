"""
Error taxonomy.

Callers react differently to each family:
ResolutionError is raised once and never retried.
FetchError is transient while polling and only surfaces on timeout.
ConvergenceError is the terminal failure of a poll.
"""

from typing import Optional


class KubexposeError(Exception):
    """Base class for all kubexpose exceptions."""


class ResolutionError(KubexposeError):
    """Raised when no exposure target can be built for a service."""


class MissingPortError(ResolutionError):
    """Raised when exposing a service that does not exist without an explicit port."""


class UnsupportedProtocolError(ResolutionError):
    """Raised when a service exists but declares no TCP port."""


class ServiceLookupError(KubexposeError):
    """Raised when a service lookup fails for a reason other than not found."""


class FetchError(KubexposeError):
    """Raised when live state could not be retrieved."""


class ResourceNotFoundError(FetchError):
    """Raised when the requested resource does not exist (yet)."""


class ConvergenceError(KubexposeError):
    """Base class for terminal poll failures."""


class ConvergenceMismatch(ConvergenceError):
    """Raised when observed state settled on a value that fails the check."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ConvergenceTimeout(ConvergenceError):
    """Raised when polling ran out of time while still waiting."""

    def __init__(self, message: str, last_error: Optional[FetchError] = None):
        super().__init__(message)
        self.last_error = last_error
