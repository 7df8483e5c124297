"""
Telemetry Interfaces Layer
==========================

Interface adapters (controllers) for the telemetry module.

Contains:
- Controllers: FastAPI route handlers for services, logs and metrics
"""

from sre_dashboard.telemetry.interfaces.controllers import (
    services_router,
    logs_router,
    metrics_router,
)

__all__ = ["services_router", "logs_router", "metrics_router"]
