"""Tests for URI template matching."""

from __future__ import annotations

import pytest

from uhost_mcp.domain.path_template import compile_template, is_placeholder, match
from uhost_mcp.errors import (
    DuplicatePlaceholder,
    MatchFailure,
    SegmentCountMismatch,
    SegmentLiteralMismatch,
)


def test_single_placeholder_binds_segment():
    assert match("instances/{instance_id}/status", "instances/uhost-123/status") == {
        "instance_id": "uhost-123"
    }


def test_multiple_placeholders():
    assert match("zones/{zone}/hosts/{host}", "zones/cn-bj2/hosts/uhost-1") == {
        "zone": "cn-bj2",
        "host": "uhost-1",
    }


def test_literal_only_pattern_returns_empty_mapping():
    assert match("instances", "instances") == {}


def test_leading_and_trailing_slashes_are_ignored():
    assert match("/instances/{id}/", "instances/abc") == {"id": "abc"}
    assert match("instances/{id}", "/instances/abc/") == {"id": "abc"}


def test_uhost_uri_matches_status_template():
    variables = match(
        "uhost://instances/{instance_id}/status", "uhost://instances/uhost-xyz/status"
    )
    assert variables == {"instance_id": "uhost-xyz"}


def test_segment_count_mismatch_carries_counts():
    with pytest.raises(SegmentCountMismatch) as exc_info:
        match("instances/{instance_id}/status", "instances/uhost-123")
    assert exc_info.value.pattern_count == 3
    assert exc_info.value.path_count == 2
    assert "pattern has 3 parts, path has 2 parts" in str(exc_info.value)


def test_literal_mismatch_carries_position():
    with pytest.raises(SegmentLiteralMismatch) as exc_info:
        match("instances/{instance_id}/status", "instances/uhost-123/state")
    err = exc_info.value
    assert (err.position, err.expected, err.actual) == (2, "status", "state")
    assert isinstance(err, MatchFailure)
    assert err.error_type == "match_error"


def test_literal_comparison_is_case_sensitive():
    with pytest.raises(SegmentLiteralMismatch):
        match("Instances/{id}", "instances/abc")


def test_placeholder_binds_any_segment_value():
    # Placeholders are not validated; even an empty segment binds
    assert match("a/{x}/c", "a//c") == {"x": ""}


def test_compile_template_records_placeholders_in_order():
    template = compile_template("uhost://instances/{instance_id}/disks/{disk_id}")
    assert template.placeholders == ("instance_id", "disk_id")
    assert template.match("uhost://instances/u1/disks/d1") == {
        "instance_id": "u1",
        "disk_id": "d1",
    }
    assert match(template, "uhost://instances/u2/disks/d2")["disk_id"] == "d2"


def test_compile_template_rejects_duplicate_placeholders():
    with pytest.raises(DuplicatePlaceholder) as exc_info:
        compile_template("a/{id}/b/{id}")
    assert exc_info.value.name == "id"
    assert exc_info.value.error_type == "invalid_pattern"


def test_is_placeholder():
    assert is_placeholder("{id}")
    assert not is_placeholder("id")
    assert not is_placeholder("{id")
