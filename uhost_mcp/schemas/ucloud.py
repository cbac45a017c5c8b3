"""
UCloud API Schemas

Pydantic models for the records this server reads from the UCloud API. Field
names follow the upstream wire format exactly (``UHostId``, ``DiskSet``,
``ResourceId`` ...) because metric records are passed through to MCP clients
unchanged and existing consumers rely on those names.

Unknown upstream fields are retained (``extra="allow"``) so that records can
be passed through without this module tracking every attribute UCloud adds.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

RESOURCE_TYPE_UHOST = "uhost"


class UpstreamModel(BaseModel):
    """Base for upstream records: keep unknown fields, ignore nothing."""

    model_config = ConfigDict(extra="allow")


class UHostDisk(UpstreamModel):
    """A disk attached to a UHost instance."""

    DiskId: str = ""
    Type: str = ""
    Size: int = 0
    IsBoot: Optional[str] = None


class UHostIP(UpstreamModel):
    """A network address of a UHost instance."""

    IP: str = ""
    Type: str = ""
    IPId: Optional[str] = None
    Bandwidth: Optional[int] = None


class UHostInstance(UpstreamModel):
    """A UHost instance record from ``DescribeUHostInstance``."""

    UHostId: str
    Name: str = ""
    State: str = ""
    Zone: str = ""
    CPU: int = 0
    Memory: int = 0
    DiskSet: List[UHostDisk] = Field(default_factory=list)
    IPSet: List[UHostIP] = Field(default_factory=list)


class MetricRecord(BaseModel):
    """A monitoring sample from ``GetMetricOverview``.

    ``ResourceId`` is the correlation key tying the sample to one instance.
    Serialised field names must stay bit-exact.
    """

    model_config = ConfigDict(extra="ignore")

    ResourceId: str = ""
    CPUUtilization: float = 0.0
    IORead: float = 0.0
    IOWrite: float = 0.0
    DiskReadOps: float = 0.0
    DiskWriteOps: float = 0.0
    NICIn: float = 0.0
    NICOut: float = 0.0
    NetPacketIn: float = 0.0
    NetPacketOut: float = 0.0
    Name: str = ""
    PrivateIp: str = ""
    CreateTime: int = 0


class UCloudResponse(UpstreamModel):
    """Common envelope fields of every UCloud API response."""

    RetCode: int = 0
    Action: str = ""
    Message: Optional[str] = None


class DescribeUHostInstanceResponse(UCloudResponse):
    """Response of ``DescribeUHostInstance``."""

    UHostSet: List[UHostInstance] = Field(default_factory=list)
    TotalCount: Optional[int] = Field(None, ge=0)


class GetMetricOverviewResponse(UCloudResponse):
    """Response of ``GetMetricOverview``."""

    ResourceType: str = ""
    DataSet: List[MetricRecord] = Field(default_factory=list)
    TotalCount: Optional[int] = Field(None, ge=0)
    RefreshTime: Optional[int] = None
