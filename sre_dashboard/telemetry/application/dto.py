"""
Telemetry Application DTOs
==========================

Data Transfer Objects for the services, logs and metrics endpoints.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from sre_dashboard.config import LogLevel, ServiceStatus
from sre_dashboard.telemetry.domain import LogEntry, MetricSample, MetricSeries, Service

SERVICE_NAME_PATTERN = r"^[a-z0-9-]+$"


# ========== Request DTOs ==========

class ServiceCreateDTO(BaseModel):
    """DTO for registering a service."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=SERVICE_NAME_PATTERN,
        description="Unique slug (lowercase alphanumeric with hyphens)"
    )
    display_name: Optional[str] = Field(None, min_length=1, max_length=100, description="Defaults to name")
    description: Optional[str] = Field(None, max_length=500)
    status: ServiceStatus = Field(default=ServiceStatus.HEALTHY)
    uptime: float = Field(default=99.9, ge=0, le=100)
    latency_p50: float = Field(default=0.0, ge=0)
    latency_p99: float = Field(default=0.0, ge=0)
    error_rate: float = Field(default=0.0, ge=0, le=100, description="Error rate in percent")
    cpu_usage: float = Field(default=0.0, ge=0)
    memory_usage: float = Field(default=0.0, ge=0)
    requests_per_second: float = Field(default=0.0, ge=0)
    request_count: int = Field(default=0, ge=0)


class ServiceUpdateDTO(BaseModel):
    """DTO for updating a service; only the fields sent are written."""
    name: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SERVICE_NAME_PATTERN)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[ServiceStatus] = None
    uptime: Optional[float] = Field(None, ge=0, le=100)
    latency_p50: Optional[float] = Field(None, ge=0)
    latency_p99: Optional[float] = Field(None, ge=0)
    error_rate: Optional[float] = Field(None, ge=0, le=100)
    cpu_usage: Optional[float] = Field(None, ge=0)
    memory_usage: Optional[float] = Field(None, ge=0)
    requests_per_second: Optional[float] = Field(None, ge=0)
    request_count: Optional[int] = Field(None, ge=0)
    last_checked_at: Optional[datetime] = None

    @field_validator("name", "display_name", "status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class LogCreateDTO(BaseModel):
    """DTO for appending a log entry."""
    level: LogLevel = Field(default=LogLevel.INFO)
    message: str = Field(..., min_length=1)
    service_id: Optional[UUID] = None
    trace_id: Optional[str] = Field(None, max_length=255)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class MetricCreateDTO(BaseModel):
    """DTO for recording a metric sample."""
    metric_name: str = Field(..., min_length=1, max_length=100)
    value: float
    service_id: Optional[UUID] = None
    unit: Optional[str] = Field(None, max_length=50)
    recorded_at: Optional[datetime] = Field(None, description="Defaults to now")


# ========== Response DTOs ==========

class ServiceResponse(BaseModel):
    """Response model for a service."""
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    status: ServiceStatus
    uptime: float
    latency_p50: float
    latency_p99: float
    error_rate: float
    cpu_usage: float
    memory_usage: float
    requests_per_second: float
    request_count: int
    last_checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, service: Service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            display_name=service.display_name,
            description=service.description,
            status=service.status,
            uptime=service.uptime,
            latency_p50=service.latency_p50,
            latency_p99=service.latency_p99,
            error_rate=service.error_rate,
            cpu_usage=service.cpu_usage,
            memory_usage=service.memory_usage,
            requests_per_second=service.requests_per_second,
            request_count=service.request_count,
            last_checked_at=service.last_checked_at,
            created_at=service.created_at,
            updated_at=service.updated_at,
        )


class LogResponse(BaseModel):
    """Response model for a log entry."""
    id: str
    level: LogLevel
    message: str
    service_id: Optional[str] = None
    trace_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: LogEntry) -> "LogResponse":
        return cls(
            id=entry.id,
            level=entry.level,
            message=entry.message,
            service_id=entry.service_id,
            trace_id=entry.trace_id,
            metadata=entry.metadata,
            created_at=entry.created_at,
        )


class MetricResponse(BaseModel):
    """Response model for a metric sample."""
    id: str
    metric_name: str
    value: float
    service_id: Optional[str] = None
    unit: Optional[str] = None
    recorded_at: datetime

    @classmethod
    def from_domain(cls, sample: MetricSample) -> "MetricResponse":
        return cls(
            id=sample.id,
            metric_name=sample.metric_name,
            value=sample.value,
            service_id=sample.service_id,
            unit=sample.unit,
            recorded_at=sample.recorded_at,
        )


class MetricDataPointResponse(BaseModel):
    timestamp: datetime
    value: float


class MetricSeriesResponse(BaseModel):
    """A metric time series, oldest point first."""
    name: str
    unit: Optional[str] = None
    data: List[MetricDataPointResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, series: MetricSeries) -> "MetricSeriesResponse":
        return cls(
            name=series.name,
            unit=series.unit,
            data=[MetricDataPointResponse(timestamp=p.timestamp, value=p.value) for p in series.data],
        )


class DeleteResponse(BaseModel):
    success: bool = True


class BulkDeleteResponse(BaseModel):
    success: bool = True
    deleted: int = Field(..., description="Number of rows removed")
