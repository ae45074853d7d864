"""
Error taxonomy for Warp Gate.

PreconditionFailure and UpstreamFailure are raised by workflow code; anything
else reaching the API layer is answered as an internal error.
"""

from typing import Any, Optional


class WarpGateError(Exception):
    """Base class for Warp Gate errors."""


class PreconditionFailure(WarpGateError):
    """Missing input, no registry match, ambiguous colour or unavailable target."""


class UpstreamFailure(WarpGateError):
    """A Jira or Bamboo call failed at transport level or returned an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeout(UpstreamFailure):
    """A Jira or Bamboo call exceeded its timeout."""


class ReportedFailure(WarpGateError):
    """Failure already explained on the issue; no error comment is added for it."""


class PropertiesError(WarpGateError):
    """The properties file is missing or does not match the expected shape."""


def require(condition: Any, message: str) -> None:
    """Raise PreconditionFailure with ``message`` unless ``condition`` holds."""
    if not condition:
        raise PreconditionFailure(message)
