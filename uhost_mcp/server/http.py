"""HTTP server exposing UHost MCP tools and resources via FastAPI.

Endpoints implement a thin HTTP transport over the same ``UHostMCPServer``
handlers used by the MCP transports. Authentication and CORS are
configurable via environment variables:

- ``UHOST_MCP_HTTP_TOKEN``: bearer token required on tool/resource endpoints
- ``UHOST_MCP_CORS_ORIGINS``: comma-separated list of allowed origins
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import psutil
from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .. import SERVER_NAME, __version__
from ..config.models import EnvSettings
from ..errors import (
    ConfigError,
    InstanceNotFound,
    MatchFailure,
    UHostMCPError,
    UpstreamFailure,
)
from ..observability import setup_logging
from ..utils.correlation import set_request_id
from .app import UHostMCPServer
from .models import TOOL_SPECS, TOOLS_BY_NAME
from .prompts import PROMPT_NAME

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):  # pylint: disable=too-few-public-methods
    """Assign a correlation id to every request and log its outcome."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        req_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        set_request_id(req_id)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http.request.failed",
                extra={
                    "req_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": int((time.time() - start_time) * 1000),
                },
                exc_info=True,
            )
            raise
        logger.info(
            "http.request.completed",
            extra={
                "req_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": int((time.time() - start_time) * 1000),
            },
        )
        response.headers["x-correlation-id"] = req_id
        return response


class HealthResponse(BaseModel):
    """Simple health/readiness response model."""

    status: str


class ErrorResponse(BaseModel):
    """Structured JSON error response for HTTP endpoints.

    Fields
    ------
    detail: str
        Human-readable explanation of the error.
    error_type: str
        Machine-readable error classification.
    available_options: list[str] | None
        Optional list of valid options when the error is about an invalid
        input value (e.g., unknown tool name).
    """

    detail: str = Field(..., description="Human-readable error detail")
    error_type: str = Field(..., description="Machine-readable error type")
    available_options: List[str] | None = Field(
        default=None, description="Optional list of valid alternative options"
    )


class CapabilitiesResponse(BaseModel):
    """Server capabilities summary for diagnostics and clients."""

    server: str
    version: str
    http_auth: str
    cors_origins: List[str]
    tools: List[Dict[str, Any]]
    resources: List[Dict[str, Any]]
    resource_templates: List[Dict[str, Any]]
    prompts: List[str]


class ToolResponse(BaseModel):
    """Tool result envelope as returned over HTTP."""

    success: bool
    data: Any = None
    error: Optional[Dict[str, str]] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


class ResourceReadResponse(BaseModel):
    """Response model for resource read."""

    contents: List[Dict[str, Any]] = Field(description="Resource contents")


# Status code for errors raised by resource handlers
_RESOURCE_ERROR_STATUS = {
    InstanceNotFound: status.HTTP_404_NOT_FOUND,
    MatchFailure: status.HTTP_400_BAD_REQUEST,
    UpstreamFailure: status.HTTP_502_BAD_GATEWAY,
    ConfigError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_status(exc: UHostMCPError) -> int:
    for exc_type, code in _RESOURCE_ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _structured_http_error(
    code: int, detail: str, error_type: str, options: Optional[List[str]] = None
) -> HTTPException:
    err = ErrorResponse(detail=detail, error_type=error_type, available_options=options)
    return HTTPException(status_code=code, detail=err.model_dump())


def _apply_cors(app: FastAPI, settings: EnvSettings) -> None:
    """Enable CORS if UHOST_MCP_CORS_ORIGINS is set."""
    allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def _make_auth_dependency(expected: Optional[str]):
    """Return a dependency function that enforces an optional bearer token."""

    def _auth_dependency(authorization: str | None = Header(default=None)) -> None:
        if expected is None:
            return
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        token = authorization.split(" ", 1)[1]
        if token != expected:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)

    return _auth_dependency


def _register_health(app: FastAPI) -> None:
    """Register health and readiness endpoints."""

    @app.get("/health", response_model=HealthResponse, summary="Liveness probe")
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/ready", response_model=HealthResponse, summary="Readiness probe")
    async def ready() -> HealthResponse:
        return HealthResponse(status="ready")


def _register_capabilities(
    app: FastAPI, server: UHostMCPServer, settings: EnvSettings
) -> None:
    """Register server capabilities endpoint."""

    @app.get(
        "/capabilities",
        response_model=CapabilitiesResponse,
        summary="Server capabilities summary",
    )
    async def capabilities() -> CapabilitiesResponse:
        return CapabilitiesResponse(
            server=SERVER_NAME,
            version=__version__,
            http_auth="enabled" if settings.http_token else "disabled",
            cors_origins=[
                o.strip() for o in settings.cors_origins.split(",") if o.strip()
            ],
            tools=[
                {
                    "name": t.name,
                    "description": t.description,
                    "inputSchema": t.input_schema(),
                }
                for t in TOOL_SPECS
            ],
            resources=server.resources.list_resources(),
            resource_templates=server.resources.list_templates(),
            prompts=[PROMPT_NAME],
        )


def _register_tools(app: FastAPI, server: UHostMCPServer, auth_dep: Any) -> None:
    """Register the tool invocation endpoint."""

    @app.post(
        "/tools/{tool_name}",
        response_model=ToolResponse,
        summary="Invoke a tool",
        dependencies=[Depends(auth_dep)],
        responses={404: {"model": ErrorResponse, "description": "Unknown tool"}},
    )
    async def call_tool(
        tool_name: str, arguments: Optional[Dict[str, Any]] = Body(default=None)
    ) -> ToolResponse:
        if tool_name not in TOOLS_BY_NAME:
            raise _structured_http_error(
                status.HTTP_404_NOT_FOUND,
                f"Unknown tool '{tool_name}'",
                "unknown_tool",
                sorted(TOOLS_BY_NAME),
            )
        result = await server.call_tool(tool_name, arguments or {})
        return ToolResponse(
            success=result.success,
            data=result.data,
            error=result.error.model_dump() if result.error else None,
            meta=result.meta,
        )


def _register_resources(app: FastAPI, server: UHostMCPServer, auth_dep: Any) -> None:
    """Register MCP resource endpoints."""

    class ResourceListResponse(BaseModel):
        """Response model for resource list."""

        resources: List[Dict[str, Any]]
        resourceTemplates: List[Dict[str, Any]]

    @app.get(
        "/resources",
        response_model=ResourceListResponse,
        summary="List MCP resources",
        dependencies=[Depends(auth_dep)],
    )
    async def list_mcp_resources() -> ResourceListResponse:
        return ResourceListResponse(
            resources=server.resources.list_resources(),
            resourceTemplates=server.resources.list_templates(),
        )

    @app.get(
        "/resources/read",
        response_model=ResourceReadResponse,
        summary="Read MCP resource",
        description="Read a resource by concrete URI, e.g. uhost://instances",
        dependencies=[Depends(auth_dep)],
        responses={
            400: {"model": ErrorResponse, "description": "URI does not match"},
            404: {"model": ErrorResponse, "description": "Instance not found"},
            502: {"model": ErrorResponse, "description": "UCloud API failure"},
        },
    )
    async def read_mcp_resource(uri: str = Query(...)) -> ResourceReadResponse:
        try:
            result = await server.read_resource(uri)
        except UHostMCPError as exc:
            logger.warning(
                "http.resource.error",
                extra={"uri": uri, "error_type": exc.error_type, "error": str(exc)},
            )
            raise _structured_http_error(
                _error_status(exc), str(exc), exc.error_type
            ) from exc
        return ResourceReadResponse(**result)


def create_app(server: Optional[UHostMCPServer] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    server: Optional[UHostMCPServer]
        Handler instance to expose; a new one using the registered adapter is
        created when omitted.
    """
    settings = EnvSettings()
    # Respect prior logging configuration from CLI; otherwise use env setting
    if not logging.getLogger().hasHandlers():
        setup_logging(settings.log_level)
    server = server or UHostMCPServer()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("http.startup")
        mem_info = psutil.Process().memory_info()
        logger.info(
            "http.startup.memory",
            extra={
                "rss_mb": round(mem_info.rss / 1024 / 1024, 1),
                "vms_mb": round(mem_info.vms / 1024 / 1024, 1),
            },
        )
        await server.start()
        try:
            yield
        finally:
            logger.info("http.shutdown")
            await server.stop()

    app = FastAPI(title=SERVER_NAME, version=__version__, lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Any, exc: Exception):  # noqa: D401
        err = ErrorResponse(detail=str(exc), error_type="validation_error")
        return JSONResponse(status_code=400, content={"detail": err.model_dump()})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Any, exc: Any):  # noqa: D401
        detail = getattr(exc, "detail", "")
        if isinstance(detail, dict) and {"detail", "error_type"} <= detail.keys():
            payload = detail
        else:
            payload = ErrorResponse(
                detail=str(detail) or "HTTP error", error_type="http_error"
            ).model_dump()
        return JSONResponse(status_code=exc.status_code, content={"detail": payload})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Any, exc: Exception):  # noqa: D401
        logger.error("http.unhandled_exception", exc_info=exc)
        err = ErrorResponse(
            detail="Internal error. See server logs for request id.",
            error_type="internal_server_error",
        )
        return JSONResponse(status_code=500, content={"detail": err.model_dump()})

    _ = (
        validation_exception_handler,
        http_exception_handler,
        unhandled_exception_handler,
    )

    app.add_middleware(RequestLoggingMiddleware)
    _apply_cors(app, settings)
    auth_dep = _make_auth_dependency(settings.http_token or None)
    _register_health(app)
    _register_capabilities(app, server, settings)
    _register_tools(app, server, auth_dep)
    _register_resources(app, server, auth_dep)
    app.state.uhost_server = server
    return app
