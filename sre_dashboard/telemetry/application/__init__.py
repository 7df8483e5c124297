"""
Telemetry Application Layer
===========================

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from sre_dashboard.telemetry.application.dto import (
    ServiceCreateDTO,
    ServiceUpdateDTO,
    ServiceResponse,
    LogCreateDTO,
    LogResponse,
    MetricCreateDTO,
    MetricResponse,
    MetricSeriesResponse,
    DeleteResponse,
    BulkDeleteResponse,
)
from sre_dashboard.telemetry.application.services import (
    ServiceCatalogService,
    LogService,
    MetricService,
    IServiceRepository,
    ILogRepository,
    IMetricRepository,
)

__all__ = [
    # DTOs
    "ServiceCreateDTO",
    "ServiceUpdateDTO",
    "ServiceResponse",
    "LogCreateDTO",
    "LogResponse",
    "MetricCreateDTO",
    "MetricResponse",
    "MetricSeriesResponse",
    "DeleteResponse",
    "BulkDeleteResponse",
    # Services
    "ServiceCatalogService",
    "LogService",
    "MetricService",
    # Repository Interfaces
    "IServiceRepository",
    "ILogRepository",
    "IMetricRepository",
]
