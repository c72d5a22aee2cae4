"""
Typed errors for resource lookup and discovery.

Each error also subclasses the closest built-in `OSError`/`ValueError` family,
so callers that only know about `FileNotFoundError` or `PermissionError` can
still tell "absent" from "present but broken".
"""

from __future__ import annotations


class ResourceError(Exception):
    """Base class for all resource and discovery errors."""

    def __init__(self, message: str, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location

    def to_dict(self) -> dict[str, str]:
        """Convert to a flat dict for structured logging."""
        return {
            "error_type": type(self).__name__,
            "location": self.location or "",
            "message": str(self),
        }


class ResourceNotFoundError(ResourceError, FileNotFoundError):
    """A concrete, non-wildcard resource could not be located."""


class UnreadableResourceError(ResourceError, PermissionError):
    """A resource exists but cannot be opened or stat'd."""


class MalformedExpressionError(ResourceError, ValueError):
    """A recognized scheme prefix is followed by content that is not a valid location."""


class BackingIOError(ResourceError, OSError):
    """
    Archive or filesystem failure while enumerating a specifically named root.

    `partial_results` holds whatever was discovered before the failure, so a
    caller can still use results from roots scanned earlier in the same call.
    """

    def __init__(
        self,
        message: str,
        location: str | None = None,
        partial_results: list[object] | None = None,
    ) -> None:
        super().__init__(message, location)
        self.partial_results: list[object] = list(partial_results or [])

    def to_dict(self) -> dict[str, str]:
        data = super().to_dict()
        cause = self.__cause__
        if cause is not None:
            data["original_error_type"] = type(cause).__name__
            data["original_error_message"] = str(cause)
        return data
