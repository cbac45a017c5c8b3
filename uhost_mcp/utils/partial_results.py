"""
Partial results handling for bulk operations whose items may degrade.

``instance_list`` enriches every instance with its metrics. A failed metrics
fetch for one instance must not abort the listing, but callers and tests
still need to tell a clean item from a degraded one, so each item is wrapped
in an :class:`EnrichmentResult` tagged ``ok``, ``degraded`` or ``failed``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

import httpx

from ..errors import UHostMCPError

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E")


class ItemStatus(str, Enum):
    """Outcome of processing one item of a bulk operation."""

    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class FailureInfo:
    """
    Information about a failed operation.

    Attributes
    ----------
    identifier : str
        Identifier of the affected item (e.g., instance id)
    error : str
        Error message
    error_type : str
        Type of error (e.g., "upstream_error", "timeout")
    retryable : bool
        Whether the operation might succeed if retried
    """

    identifier: str
    error: str
    error_type: str
    retryable: bool = False

    @classmethod
    def from_exception(cls, identifier: str, exc: BaseException) -> "FailureInfo":
        error_type = classify_error(exc)
        return cls(
            identifier=identifier,
            error=str(exc),
            error_type=error_type,
            retryable=is_retryable(error_type),
        )


@dataclass
class EnrichmentResult(Generic[T]):
    """One item of a bulk result plus how its enrichment went.

    Attributes
    ----------
    identifier : str
        Item identifier.
    status : ItemStatus
        ``ok`` when enrichment succeeded, ``degraded`` when the item is
        emitted without enrichment, ``failed`` when no value could be built.
    value : Optional[T]
        The (possibly degraded) item.
    failure : Optional[FailureInfo]
        Why enrichment did not succeed.
    """

    identifier: str
    status: ItemStatus
    value: Optional[T] = None
    failure: Optional[FailureInfo] = None

    @property
    def is_ok(self) -> bool:
        return self.status is ItemStatus.OK


@dataclass
class PartialResult(Generic[T]):
    """Ordered collection of :class:`EnrichmentResult` items."""

    items: List[EnrichmentResult[T]] = field(default_factory=list)

    @property
    def values(self) -> List[T]:
        """Values of every item that produced one, in input order."""
        return [i.value for i in self.items if i.value is not None]

    @property
    def failures(self) -> List[FailureInfo]:
        return [i.failure for i in self.items if i.failure is not None]

    @property
    def degraded(self) -> List[EnrichmentResult[T]]:
        return [i for i in self.items if i.status is ItemStatus.DEGRADED]

    @property
    def has_failures(self) -> bool:
        """Check if any item was degraded or failed."""
        return any(not i.is_ok for i in self.items)

    @property
    def success_rate(self) -> float:
        """Ratio of clean items to total items (0.0-1.0)."""
        if not self.items:
            return 0.0
        return sum(1 for i in self.items if i.is_ok) / len(self.items)


async def enrich_each(
    items: List[E],
    *,
    identify: Callable[[E], str],
    enrich: Callable[[E], Awaitable[T]],
    degrade: Callable[[E], T],
    operation_type: str = "enrichment",
) -> PartialResult[T]:
    """Enrich ``items`` one at a time, degrading instead of aborting.

    Parameters
    ----------
    items : List[E]
        Input items in the order they should be reported.
    identify : Callable[[E], str]
        Returns the identifier recorded for an item.
    enrich : Callable[[E], Awaitable[T]]
        Builds the enriched value. Any exception is caught per item and
        degrades that item only; the batch is never aborted.
    degrade : Callable[[E], T]
        Builds the fallback value when ``enrich`` fails. If this raises too,
        the item is recorded as ``failed`` with no value.
    operation_type : str
        Human-readable type of operation (for logging)

    Returns
    -------
    PartialResult[T]
        One entry per input item, in input order.
    """
    result: PartialResult[T] = PartialResult()
    for item in items:
        identifier = identify(item)
        try:
            value = await enrich(item)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            failure = FailureInfo.from_exception(identifier, exc)
            logger.warning(
                f"partial_results.{operation_type}.degraded",
                extra={
                    "identifier": identifier,
                    "error_type": failure.error_type,
                    "retryable": failure.retryable,
                    "error": failure.error,
                },
            )
            try:
                fallback = degrade(item)
            except (UHostMCPError, ValueError, TypeError) as fallback_exc:
                logger.error(
                    f"partial_results.{operation_type}.failed",
                    extra={"identifier": identifier, "error": str(fallback_exc)},
                )
                result.items.append(
                    EnrichmentResult(identifier, ItemStatus.FAILED, None, failure)
                )
                continue
            result.items.append(
                EnrichmentResult(identifier, ItemStatus.DEGRADED, fallback, failure)
            )
            continue
        result.items.append(EnrichmentResult(identifier, ItemStatus.OK, value))

    logger.info(
        f"partial_results.{operation_type}.complete",
        extra={
            "total": len(result.items),
            "ok": sum(1 for i in result.items if i.is_ok),
            "degraded": len(result.degraded),
            "success_rate": result.success_rate,
        },
    )
    return result


def classify_error(exc: BaseException) -> str:
    """Classify an exception into a short error type string."""
    if isinstance(exc, UHostMCPError):
        return exc.error_type
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status >= 500:
            return "server_error"
        if status == 429:
            return "rate_limit"
        if status in (401, 403):
            return "auth_error"
        if status == 404:
            return "not_found"
        return "http_error"
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "timeout"
    if isinstance(exc, httpx.ConnectError):
        return "connection_error"
    if isinstance(exc, ValueError):
        return "parse_error"
    if isinstance(exc, KeyError):
        return "missing_field"
    return "unknown_error"


def is_retryable(error_type: str) -> bool:
    """Determine if an error type is retryable."""
    return error_type in {
        "timeout",
        "connection_error",
        "server_error",
        "rate_limit",
        "upstream_error",
    }


def format_failure_summary(result: PartialResult[Any], operation_type: str = "item") -> str:
    """
    Format a human-readable summary of degraded or failed items.

    Parameters
    ----------
    result : PartialResult
        The partial result to summarize
    operation_type : str
        Type of item (for messaging)

    Returns
    -------
    str
        Formatted summary string
    """
    if not result.has_failures:
        return f"All {len(result.items)} {operation_type}(s) succeeded."

    lines = [
        f"Partial results: {len(result.items) - len(result.failures)} clean, "
        f"{len(result.failures)} degraded or failed "
        f"({result.success_rate:.1%} success rate)",
    ]
    by_type: dict[str, List[FailureInfo]] = {}
    for failure in result.failures:
        by_type.setdefault(failure.error_type, []).append(failure)

    for error_type, failures in by_type.items():
        retry_note = " (retryable)" if failures[0].retryable else " (not retryable)"
        lines.append(f"  - {len(failures)} {error_type}{retry_note}")
        identifiers = [f.identifier for f in failures[:3]]
        if len(failures) > 3:
            identifiers.append(f"... and {len(failures) - 3} more")
        lines.append(f"    Affected: {', '.join(identifiers)}")

    return "\n".join(lines)
