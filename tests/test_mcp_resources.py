"""Tests for the resource registry."""

from __future__ import annotations

import json

import pytest

from uhost_mcp.errors import DuplicatePlaceholder, SegmentCountMismatch
from uhost_mcp.server.resources import ResourceRegistry


async def _echo(uri, variables):
    return {"uri": uri, "variables": variables}


def test_duplicate_placeholder_rejected_at_registration():
    registry = ResourceRegistry()
    with pytest.raises(DuplicatePlaceholder):
        registry.register("x://{a}/{a}", name="bad", description="", handler=_echo)
    assert registry.get("x://{a}/{a}") is None


def test_duplicate_registration_rejected():
    registry = ResourceRegistry()
    registry.register("x://items", name="items", description="", handler=_echo)
    with pytest.raises(ValueError, match="already registered"):
        registry.register("x://items", name="again", description="", handler=_echo)


@pytest.mark.asyncio
async def test_first_matching_template_wins():
    registry = ResourceRegistry()
    registry.register("x://items/{id}", name="item", description="", handler=_echo)
    registry.register("x://items/{other}", name="shadow", description="", handler=_echo)
    result = await registry.read_resource("x://items/42")
    assert json.loads(result["contents"][0]["text"])["variables"] == {"id": "42"}


@pytest.mark.asyncio
async def test_read_registered_reports_specific_mismatch():
    registry = ResourceRegistry()
    registry.register("x://items/{id}", name="item", description="", handler=_echo)
    with pytest.raises(SegmentCountMismatch):
        await registry.read_registered("x://items/{id}", "x://items/1/extra")
    with pytest.raises(KeyError):
        await registry.read_registered("x://missing/{id}", "x://missing/1")
