"""
Exception hierarchy.

Only TransportError is meant to escape the agent loop. Everything else is
caught where tools run and turned into text the model can read.
"""

from __future__ import annotations


class AimibotError(Exception):
    """Base class for all aimibot errors."""


class ConfigError(AimibotError):
    """A required setting is missing or malformed."""


class TransportError(AimibotError):
    """The completion endpoint was unreachable or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidArgumentsError(AimibotError):
    """Model-supplied arguments are missing a required parameter."""


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------

class ResolutionError(AimibotError):
    """A server or channel identifier could not be resolved to one target."""


class NotFoundError(ResolutionError):
    pass


class AmbiguousTargetError(ResolutionError):
    def __init__(self, message: str, candidates: list[str]) -> None:
        super().__init__(message)
        self.candidates = candidates


class DisambiguationRequiredError(ResolutionError):
    pass
