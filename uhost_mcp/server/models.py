"""Tool result envelope and tool metadata for the UHost MCP server."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..domain.views import to_json
from ..errors import UHostMCPError


class ToolErrorInfo(BaseModel):
    """Structured, human-readable error returned by a tool.

    Fields
    ------
    detail: str
        Human-readable explanation of the error.
    error_type: str
        Machine-readable error classification (``not_found``,
        ``upstream_error`` ...).
    """

    detail: str = Field(..., description="Human-readable error detail")
    error_type: str = Field(..., description="Machine-readable error type")


class ToolResult(BaseModel):
    """Envelope every tool handler returns instead of raising.

    ``text`` is the JSON rendering sent to MCP clients; it is computed when
    the result is built so that encoding failures surface inside the handler.
    """

    success: bool
    data: Any = None
    error: Optional[ToolErrorInfo] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    text: str = Field("", exclude=True)

    @classmethod
    def ok(cls, data: Any, **meta: Any) -> "ToolResult":
        return cls(success=True, data=data, meta=meta, text=to_json(data))

    @classmethod
    def fail(cls, detail: str, error_type: str) -> "ToolResult":
        return cls(
            success=False,
            error=ToolErrorInfo(detail=detail, error_type=error_type),
            text=detail,
        )

    @classmethod
    def from_exception(cls, context: str, exc: BaseException) -> "ToolResult":
        error_type = (
            exc.error_type if isinstance(exc, UHostMCPError) else "internal_error"
        )
        return cls.fail(f"{context}: {exc}", error_type)


class ToolParam(BaseModel):
    """One string argument of a tool."""

    name: str
    description: str
    required: bool = True


class ToolSpec(BaseModel):
    """Name, description and arguments of a tool, shared by all transports."""

    name: str
    description: str
    params: List[ToolParam] = Field(default_factory=list)

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": "string", "description": p.description}
                for p in self.params
            },
            "required": [p.name for p in self.params if p.required],
        }


_DUMMY = ToolParam(
    name="random_string",
    description="Dummy parameter for no-parameter tools; ignored",
    required=False,
)

TOOL_SPECS: List[ToolSpec] = [
    ToolSpec(
        name="describe_instance",
        description="Get information about a UCloud instance",
        params=[ToolParam(name="instance_id", description="ID of the instance to describe")],
    ),
    ToolSpec(
        name="get_instance_metrics",
        description="Get monitoring metrics for a UCloud instance",
        params=[ToolParam(name="instance_id", description="ID of the instance to monitor")],
    ),
    ToolSpec(
        name="instance_status",
        description="Get the current status of all UCloud instances",
        params=[_DUMMY],
    ),
    ToolSpec(
        name="instance_list",
        description="List all UCloud instances with their monitoring metrics",
        params=[_DUMMY],
    ),
]

TOOLS_BY_NAME: Dict[str, ToolSpec] = {t.name: t for t in TOOL_SPECS}
