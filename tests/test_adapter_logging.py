"""Tests that adapter calls and registry state are logged."""

from __future__ import annotations

import logging

import pytest
from conftest import FakeAdapter

from uhost_mcp.adapters import log_adapter_status, register_adapter
from uhost_mcp.adapters.ucloud import UCloudAdapter
from uhost_mcp.config.models import UCloudConfig
from uhost_mcp.errors import UpstreamFailure
from uhost_mcp.utils.correlation import set_request_id


class _ErrorClient:
    async def post(self, _path, data):
        return _ErrorResponse()

    async def aclose(self) -> None:
        return None


class _ErrorResponse:
    status_code = 200

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return {"RetCode": 230, "Message": "Params [Zone] not available"}


def test_no_adapter_warning(caplog):
    caplog.set_level(logging.WARNING, logger="uhost_mcp.adapters")
    log_adapter_status()
    assert "No UCloud adapter configured" in caplog.text


def test_configured_adapter_listed(caplog):
    caplog.set_level(logging.INFO, logger="uhost_mcp.adapters")
    register_adapter("ucloud", FakeAdapter())
    log_adapter_status()
    assert "'ucloud' (FakeAdapter)" in caplog.text


@pytest.mark.asyncio
async def test_api_error_logged_with_request_id(caplog):
    caplog.set_level(logging.DEBUG, logger="uhost_mcp.adapters.ucloud")
    adapter = UCloudAdapter(
        UCloudConfig(region="cn-bj2", project_id="p", public_key="k", private_key="s")
    )
    adapter.inject_http_client_for_testing(_ErrorClient())
    set_request_id("req-7")
    with pytest.raises(UpstreamFailure):
        await adapter.get_metric_overview("cn-bj2-99", 0, 100)
    errors = [r for r in caplog.records if r.getMessage() == "ucloud.api.error"]
    assert len(errors) == 1
    assert errors[0].ret_code == 230
    assert errors[0].req_id == "req-7"
    assert errors[0].action == "GetMetricOverview"
    # Credentials never reach the log
    assert all(not hasattr(r, "private_key") for r in caplog.records)
