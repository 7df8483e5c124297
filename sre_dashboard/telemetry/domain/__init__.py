"""
Telemetry Domain Layer
======================

Contains:
- Entities: Service, LogEntry, MetricSample, MetricSeries

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from sre_dashboard.telemetry.domain.entities import (
    Service,
    LogEntry,
    MetricSample,
    MetricDataPoint,
    MetricSeries,
)

__all__ = [
    "Service",
    "LogEntry",
    "MetricSample",
    "MetricDataPoint",
    "MetricSeries",
]
