"""
Telemetry Domain Entities
=========================

Pure Python domain entities for monitored services and the raw telemetry
(logs, metric samples) reported against them.

Logs and metric samples are immutable once recorded; a time series is
rebuilt from samples by filtering and sorting on recorded_at.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sre_dashboard.config import LogLevel, ServiceStatus


@dataclass
class Service:
    """
    A monitored service and its point-in-time gauges.

    Gauges are written by external monitoring or manual edit; nothing here
    expires them.
    """

    id: Optional[str]
    name: str
    display_name: str
    status: ServiceStatus = ServiceStatus.HEALTHY
    description: Optional[str] = None

    # Gauges
    uptime: float = 99.9
    latency_p50: float = 0.0
    latency_p99: float = 0.0
    error_rate: float = 0.0
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    requests_per_second: float = 0.0
    request_count: int = 0

    last_checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_down(self) -> bool:
        return self.status == ServiceStatus.DOWN

    @property
    def is_healthy(self) -> bool:
        return self.status == ServiceStatus.HEALTHY

    def error_rate_exceeds(self, limit_percent: float) -> bool:
        """Check whether the error rate gauge is above a percentage limit."""
        return (self.error_rate or 0.0) > limit_percent


@dataclass(frozen=True)
class LogEntry:
    """Immutable log record."""

    id: Optional[str]
    level: LogLevel
    message: str
    service_id: Optional[str] = None
    trace_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MetricSample:
    """Immutable metric observation."""

    id: Optional[str]
    metric_name: str
    value: float
    recorded_at: datetime
    service_id: Optional[str] = None
    unit: Optional[str] = None


@dataclass(frozen=True)
class MetricDataPoint:
    timestamp: datetime
    value: float


@dataclass
class MetricSeries:
    """A named time series rebuilt from metric samples."""

    name: str
    unit: Optional[str] = None
    data: List[MetricDataPoint] = field(default_factory=list)

    @classmethod
    def from_samples(cls, samples: Iterable[MetricSample]) -> List["MetricSeries"]:
        """
        Group samples by metric name, each series sorted by recorded_at.

        Series appear in the order their metric name is first seen after
        sorting, so the oldest metric leads.
        """
        grouped: "OrderedDict[str, MetricSeries]" = OrderedDict()
        for sample in sorted(samples, key=lambda s: s.recorded_at):
            series = grouped.get(sample.metric_name)
            if series is None:
                series = cls(name=sample.metric_name, unit=sample.unit)
                grouped[sample.metric_name] = series
            elif series.unit is None and sample.unit:
                series.unit = sample.unit
            series.data.append(MetricDataPoint(timestamp=sample.recorded_at, value=sample.value))
        return list(grouped.values())
