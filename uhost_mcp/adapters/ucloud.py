"""UCloud API adapter.

This adapter speaks the UCloud public API over HTTPS using ``httpx``. It
encapsulates transport concerns (base URL, request signing, timeouts) and
exposes typed operations that return validated Pydantic models.

Every call is a form-encoded POST carrying ``Action``, ``Region``,
``ProjectId``, ``PublicKey`` and a ``Signature``: the SHA-1 hex digest of the
sorted ``key + value`` concatenation of all parameters followed by the
private key. List parameters are flattened to ``Name.0``, ``Name.1`` ...

Notes
-----
- Retries are intentionally absent; a failed call raises ``UpstreamFailure``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from ..config.models import UCloudConfig
from ..domain.pagination import Page, collect
from ..errors import InstanceNotFound, UpstreamFailure
from ..schemas.ucloud import (
    RESOURCE_TYPE_UHOST,
    DescribeUHostInstanceResponse,
    GetMetricOverviewResponse,
    MetricRecord,
    UHostInstance,
)
from ..utils.correlation import get_request_id

logger = logging.getLogger(__name__)


def flatten_params(params: Mapping[str, Any]) -> Dict[str, str]:
    """Flatten request parameters to UCloud's string form.

    ``None`` values are dropped, lists become ``Key.N`` entries, booleans are
    lower-cased.
    """
    flat: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                flat[f"{key}.{i}"] = _to_str(item)
        else:
            flat[key] = _to_str(value)
    return flat


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def sign(params: Mapping[str, str], private_key: str) -> str:
    """Compute the UCloud request signature for flattened ``params``."""
    payload = "".join(f"{k}{params[k]}" for k in sorted(params))
    return hashlib.sha1((payload + private_key).encode("utf-8")).hexdigest()


class UCloudAdapter:
    """Adapter for the UCloud API.

    Parameters
    ----------
    config: UCloudConfig
        Region, project, keys, endpoint and pagination settings.

    Attributes
    ----------
    _client: httpx.AsyncClient
        Shared async client configured with base URL and timeout.
    """

    def __init__(self, config: UCloudConfig) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url, timeout=config.timeout_seconds
        )
        logger.info(
            "ucloud.adapter.init",
            extra={
                "base_url": config.base_url,
                "region": config.region,
                "project_id": config.project_id,
                "timeout_seconds": config.timeout_seconds,
            },
        )

    @property
    def page_size(self) -> int:
        return self._config.page_size

    @property
    def max_pages(self) -> int:
        return self._config.max_pages

    def inject_http_client_for_testing(self, client: Any) -> None:
        """Replace underlying HTTP client (testing only).

        This allows unit tests to provide a mock compatible with ``post()``.
        """
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    def _signed_params(self, action: str, payload: Mapping[str, Any]) -> Dict[str, str]:
        params: Dict[str, Any] = {
            "Action": action,
            "Region": self._config.region,
            "ProjectId": self._config.project_id,
            "PublicKey": self._config.public_key,
        }
        params.update(payload)
        flat = flatten_params(params)
        flat["Signature"] = sign(flat, self._config.private_key)
        return flat

    async def invoke(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Call ``action`` with ``payload`` and return the parsed body.

        Raises
        ------
        UpstreamFailure
            On transport errors, non-2xx responses, non-JSON bodies, or a
            non-zero ``RetCode``.
        """
        logger.debug(
            "ucloud.http.post",
            extra={
                "req_id": get_request_id(),
                "action": action,
                "payload_keys": list(payload.keys()),
            },
        )
        try:
            resp = await self._client.post("/", data=self._signed_params(action, payload))
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            text = exc.response.text or ""
            body_preview = text if len(text) <= 500 else text[:500] + "..."
            logger.error(
                "ucloud.http.status_error",
                extra={
                    "req_id": get_request_id(),
                    "action": action,
                    "status": exc.response.status_code,
                    "body_preview": body_preview,
                },
            )
            raise UpstreamFailure(
                f"{action} failed with HTTP {exc.response.status_code}",
                action=action,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "ucloud.http.transport_error",
                extra={"req_id": get_request_id(), "action": action, "error": str(exc)},
            )
            raise UpstreamFailure(f"{action} failed: {exc}", action=action) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamFailure(
                f"{action} returned a non-JSON body", action=action
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamFailure(f"{action} returned unexpected payload", action=action)

        ret_code = data.get("RetCode", 0)
        if ret_code != 0:
            message = data.get("Message") or "unknown error"
            logger.error(
                "ucloud.api.error",
                extra={
                    "req_id": get_request_id(),
                    "action": action,
                    "ret_code": ret_code,
                    "upstream_message": message,
                },
            )
            raise UpstreamFailure(
                f"{action} failed: [{ret_code}] {message}",
                action=action,
                ret_code=ret_code,
            )
        logger.debug(
            "ucloud.http.response",
            extra={
                "req_id": get_request_id(),
                "action": action,
                "status_code": resp.status_code,
            },
        )
        return data

    async def describe_uhost_instance(
        self,
        ids: Optional[List[str]] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[UHostInstance]:
        """Return one page of ``DescribeUHostInstance`` results."""
        data = await self.invoke(
            "DescribeUHostInstance",
            {"UHostIds": ids, "Offset": offset, "Limit": limit},
        )
        try:
            parsed = DescribeUHostInstanceResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamFailure(
                f"malformed DescribeUHostInstance response: {exc}",
                action="DescribeUHostInstance",
            ) from exc
        return Page(items=parsed.UHostSet, total_count=parsed.TotalCount)

    async def describe_instance(self, instance_id: str) -> UHostInstance:
        """Return the instance with ``instance_id``.

        Raises
        ------
        InstanceNotFound
            If UCloud returns no instance for the id.
        """
        page = await self.describe_uhost_instance(ids=[instance_id])
        if not page.items:
            raise InstanceNotFound(instance_id)
        return page.items[0]

    async def list_instances(self) -> List[UHostInstance]:
        """Return all instances, walking every page."""
        return await collect(
            lambda offset, limit: self.describe_uhost_instance(
                offset=offset, limit=limit
            ),
            limit=self.page_size,
            max_pages=self.max_pages,
            label="uhost_instances",
        )

    async def get_metric_overview(
        self, zone: str, offset: int, limit: int
    ) -> Page[MetricRecord]:
        """Return one page of ``GetMetricOverview`` uhost metrics for ``zone``."""
        data = await self.invoke(
            "GetMetricOverview",
            {
                "Zone": zone,
                "ResourceType": RESOURCE_TYPE_UHOST,
                "Limit": limit,
                "Offset": offset,
            },
        )
        try:
            parsed = GetMetricOverviewResponse.model_validate(data)
        except ValidationError as exc:
            raise UpstreamFailure(
                f"malformed GetMetricOverview response: {exc}",
                action="GetMetricOverview",
            ) from exc
        logger.debug(
            "ucloud.metrics.page",
            extra={
                "zone": zone,
                "offset": offset,
                "received": len(parsed.DataSet),
                "total_count": parsed.TotalCount,
                "refresh_time": parsed.RefreshTime,
            },
        )
        return Page(items=parsed.DataSet, total_count=parsed.TotalCount)
