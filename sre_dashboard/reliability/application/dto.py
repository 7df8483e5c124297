"""
Reliability Application DTOs
============================

Data Transfer Objects for the SLO, health and release-validation endpoints.

SLO request models forbid unknown fields: ``is_breaching`` and
``is_budget_exhausted`` are always derived and cannot be sent.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sre_dashboard.config import CheckStatus, OverallHealth
from sre_dashboard.reliability.domain import SLO, HealthReport, ValidationCheck, ValidationReport


# ========== SLO DTOs ==========

class SLOCreateDTO(BaseModel):
    """DTO for defining an SLO."""
    name: str = Field(..., min_length=1, max_length=100)
    service_id: Optional[UUID] = None
    target_availability: float = Field(default=99.9, ge=0, le=100)
    current_availability: float = Field(default=100.0, ge=0, le=100)
    latency_target: float = Field(default=200.0, ge=0, description="p99 latency target in ms")
    latency_current: float = Field(default=0.0, ge=0)
    error_budget_total: float = Field(default=0.1, ge=0, le=100)
    error_budget_consumed: float = Field(default=0.0, ge=0)
    period: str = Field(default="30d", min_length=1, max_length=20)

    model_config = ConfigDict(extra="forbid")


class SLOUpdateDTO(BaseModel):
    """DTO for updating an SLO; flags are recomputed from the merged values."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    service_id: Optional[UUID] = None
    target_availability: Optional[float] = Field(None, ge=0, le=100)
    current_availability: Optional[float] = Field(None, ge=0, le=100)
    latency_target: Optional[float] = Field(None, ge=0)
    latency_current: Optional[float] = Field(None, ge=0)
    error_budget_total: Optional[float] = Field(None, ge=0, le=100)
    error_budget_consumed: Optional[float] = Field(None, ge=0)
    period: Optional[str] = Field(None, min_length=1, max_length=20)

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "name", "target_availability", "current_availability", "latency_target",
        "latency_current", "error_budget_total", "error_budget_consumed", "period"
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class SLOResponse(BaseModel):
    """Response model for an SLO."""
    id: str
    name: str
    service_id: Optional[str] = None
    target_availability: float
    current_availability: float
    latency_target: float
    latency_current: float
    error_budget_total: float
    error_budget_consumed: float
    error_budget_remaining: float
    period: str
    is_breaching: bool
    is_budget_exhausted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, slo: SLO) -> "SLOResponse":
        return cls(
            id=slo.id,
            name=slo.name,
            service_id=slo.service_id,
            target_availability=slo.target_availability,
            current_availability=slo.current_availability,
            latency_target=slo.latency_target,
            latency_current=slo.latency_current,
            error_budget_total=slo.error_budget_total,
            error_budget_consumed=slo.error_budget_consumed,
            error_budget_remaining=slo.error_budget_remaining,
            period=slo.period,
            is_breaching=slo.is_breaching,
            is_budget_exhausted=slo.is_budget_exhausted,
            created_at=slo.created_at,
            updated_at=slo.updated_at,
        )


# ========== Health DTOs ==========

class HealthComponents(BaseModel):
    database: bool
    api: bool = True


class HealthResponse(BaseModel):
    """Aggregate health report."""
    status: OverallHealth
    score: int = Field(..., ge=0, le=100)
    timestamp: datetime
    components: HealthComponents
    stats: Dict[str, Dict[str, int]]

    @classmethod
    def from_domain(cls, report: HealthReport) -> "HealthResponse":
        return cls(
            status=report.status,
            score=math.floor(report.score + 0.5),
            timestamp=report.timestamp,
            components=HealthComponents(database=report.database_ok),
            stats=report.snapshot.to_stats(),
        )


class HealthErrorResponse(BaseModel):
    """Body returned with HTTP 500 when the statistics cannot be read."""
    status: OverallHealth = OverallHealth.UNHEALTHY
    score: int = 0
    error: str
    timestamp: datetime


# ========== Release Validation DTOs ==========

class ValidationRunRequest(BaseModel):
    environment: str = Field(default="staging", min_length=1, max_length=50)


class ValidationCheckResponse(BaseModel):
    name: str
    status: CheckStatus
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_domain(cls, check: ValidationCheck) -> "ValidationCheckResponse":
        return cls(name=check.name, status=check.status, message=check.message, details=check.details)


class ValidationSummary(BaseModel):
    total: int
    passed: int
    failed: int
    warnings: int


class ValidationReportResponse(BaseModel):
    """Release-validation report; ``passed`` is false when any check failed."""
    passed: bool
    timestamp: datetime
    environment: str
    checks: List[ValidationCheckResponse]
    summary: ValidationSummary

    @classmethod
    def from_domain(cls, report: ValidationReport) -> "ValidationReportResponse":
        return cls(
            passed=report.passed,
            timestamp=report.timestamp,
            environment=report.environment,
            checks=[ValidationCheckResponse.from_domain(c) for c in report.checks],
            summary=ValidationSummary(**report.summary),
        )


class GeneratedCounts(BaseModel):
    services: int = 0
    metrics: int = 0
    logs: int = 0
    alerts: int = 0
    incidents: int = 0


class ActivityGenerationResponse(BaseModel):
    """Rows written by the test-activity generator."""
    success: bool = True
    generated: GeneratedCounts
