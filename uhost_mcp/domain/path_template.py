"""Path template matching for resource URIs.

A template is a slash-delimited pattern whose segments are either literals or
``{name}`` placeholders. Matching is a single left-to-right pass: each
placeholder binds exactly one path segment and literals must match exactly.

Example
-------
>>> match("instances/{instance_id}/status", "instances/uhost-123/status")
{'instance_id': 'uhost-123'}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from ..errors import DuplicatePlaceholder, SegmentCountMismatch, SegmentLiteralMismatch


def _split(path: str) -> list[str]:
    return path.strip("/").split("/")


def is_placeholder(segment: str) -> bool:
    """Return True when ``segment`` is written as ``{name}``."""
    return segment.startswith("{") and segment.endswith("}")


@dataclass(frozen=True)
class PathTemplate:
    """A compiled, validated template.

    Attributes
    ----------
    pattern: str
        The template as registered.
    segments: Tuple[str, ...]
        Template segments after trimming and splitting.
    placeholders: Tuple[str, ...]
        Placeholder names in declaration order.
    """

    pattern: str
    segments: Tuple[str, ...]
    placeholders: Tuple[str, ...]

    def match(self, path: str) -> Dict[str, str]:
        """Match ``path`` against this template; see :func:`match`."""
        return _match_segments(self.segments, _split(path))


def compile_template(pattern: str) -> PathTemplate:
    """Split and validate ``pattern`` once, at registration time.

    Raises
    ------
    DuplicatePlaceholder
        If a placeholder name appears more than once; a later binding would
        otherwise silently overwrite an earlier one.
    """
    segments = tuple(_split(pattern))
    names: list[str] = []
    for segment in segments:
        if not is_placeholder(segment):
            continue
        name = segment[1:-1]
        if name in names:
            raise DuplicatePlaceholder(pattern, name)
        names.append(name)
    return PathTemplate(pattern=pattern, segments=segments, placeholders=tuple(names))


def match(pattern: Union[str, PathTemplate], path: str) -> Dict[str, str]:
    """Extract placeholder values from ``path`` according to ``pattern``.

    Parameters
    ----------
    pattern: Union[str, PathTemplate]
        Raw template string or a template from :func:`compile_template`.
    path: str
        Concrete path (or URI) supplied at request time.

    Returns
    -------
    Dict[str, str]
        Mapping of placeholder name to the literal segment at its position.

    Raises
    ------
    SegmentCountMismatch
        If the segment counts differ.
    SegmentLiteralMismatch
        If a literal template segment differs from the path segment.
    """
    if isinstance(pattern, PathTemplate):
        return pattern.match(path)
    return _match_segments(_split(pattern), _split(path))


def _match_segments(
    pattern_parts: Union[Tuple[str, ...], list[str]], path_parts: list[str]
) -> Dict[str, str]:
    if len(pattern_parts) != len(path_parts):
        raise SegmentCountMismatch(len(pattern_parts), len(path_parts))

    variables: Dict[str, str] = {}
    for position, (expected, actual) in enumerate(zip(pattern_parts, path_parts)):
        if is_placeholder(expected):
            variables[expected[1:-1]] = actual
        elif expected != actual:
            raise SegmentLiteralMismatch(position, expected, actual)
    return variables
