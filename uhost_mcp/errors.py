"""Error kinds raised by the UHost MCP core and adapters.

Every error carries a machine-readable ``error_type`` so tool handlers can
turn it into a structured payload without inspecting exception classes.
"""

from __future__ import annotations

from typing import Optional


class UHostMCPError(Exception):
    """Base class for all errors raised by this package."""

    error_type = "internal_error"


class InstanceNotFound(UHostMCPError):
    """An instance id yielded zero results."""

    error_type = "not_found"

    def __init__(self, instance_id: str, message: Optional[str] = None) -> None:
        self.instance_id = instance_id
        super().__init__(message or f"instance {instance_id} not found")


class UpstreamFailure(UHostMCPError):
    """A UCloud API call failed (network, auth, status or malformed body)."""

    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        action: Optional[str] = None,
        ret_code: Optional[int] = None,
    ) -> None:
        self.action = action
        self.ret_code = ret_code
        super().__init__(message)


class MatchFailure(UHostMCPError):
    """A concrete path does not conform to its template."""

    error_type = "match_error"


class SegmentCountMismatch(MatchFailure):
    """Pattern and path have a different number of segments."""

    def __init__(self, pattern_count: int, path_count: int) -> None:
        self.pattern_count = pattern_count
        self.path_count = path_count
        super().__init__(
            f"path length mismatch: pattern has {pattern_count} parts, "
            f"path has {path_count} parts"
        )


class SegmentLiteralMismatch(MatchFailure):
    """A literal pattern segment differs from the path segment."""

    def __init__(self, position: int, expected: str, actual: str) -> None:
        self.position = position
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"path segment mismatch at position {position}: "
            f"expected {expected}, got {actual}"
        )


class DuplicatePlaceholder(UHostMCPError):
    """A template declares the same placeholder name more than once."""

    error_type = "invalid_pattern"

    def __init__(self, pattern: str, name: str) -> None:
        self.pattern = pattern
        self.name = name
        super().__init__(f"duplicate placeholder {{{name}}} in pattern {pattern}")


class SerializationFailure(UHostMCPError):
    """A projection could not be encoded to JSON."""

    error_type = "serialization_error"


class PaginationLimitExceeded(UHostMCPError):
    """The upstream never signalled the last page within the page budget."""

    error_type = "pagination_limit_exceeded"

    def __init__(self, max_pages: int, items_collected: int) -> None:
        self.max_pages = max_pages
        self.items_collected = items_collected
        super().__init__(
            f"pagination did not terminate after {max_pages} pages "
            f"({items_collected} items collected)"
        )


class ConfigError(UHostMCPError):
    """Required configuration is missing or invalid."""

    error_type = "configuration_error"
