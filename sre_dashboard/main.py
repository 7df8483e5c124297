"""
SRE Dashboard - Main Application
================================

HTTP backend for an SRE monitoring dashboard.

Modules:
- Telemetry: Service catalog, logs and metric samples
- Alerting: Alert and incident lifecycles with an incident timeline
- Reliability: SLOs, aggregate health score and release validation

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, YAML config, Slack webhook
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configuration
from sre_dashboard.config import settings

# Infrastructure
from sre_dashboard.infrastructure.database import close_database, create_tables, init_database

# Models are imported so create_tables() sees every table
from sre_dashboard.telemetry.infrastructure import models as telemetry_models  # noqa: F401
from sre_dashboard.alerting.infrastructure import models as alerting_models  # noqa: F401
from sre_dashboard.reliability.infrastructure import models as reliability_models  # noqa: F401

# External services
from sre_dashboard.alerting.infrastructure import SlackNotifier
from sre_dashboard.reliability.infrastructure import HealthConfigManager

# Module Routers
from sre_dashboard.telemetry.interfaces import logs_router, metrics_router, services_router
from sre_dashboard.alerting.interfaces import alerts_router, incidents_router
from sre_dashboard.reliability.interfaces import health_router, slos_router, validation_router

# Shared
from sre_dashboard.shared.api import install_error_handling
from sre_dashboard.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables
    4. Load health configuration and watch it for changes
    5. Create the Slack notifier

    SHUTDOWN:
    1. Stop config watcher
    2. Close Slack client
    3. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting SRE Dashboard", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # If the database is unreachable the server still starts;
    # database-backed endpoints answer 500 until it is back
    logger.info("Creating database tables")
    try:
        await create_tables()
    except Exception as e:
        logger.warning("Database not available - running in degraded mode", extra={"error": str(e)})

    logger.info("Loading health configuration")
    health_config = HealthConfigManager()
    health_config.load(settings.health_config_path)
    health_config.start_watching()
    app.state.health_config = health_config

    notifier = SlackNotifier()
    app.state.notifier = notifier
    if not notifier.enabled:
        logger.info("Slack webhook not configured - notifications disabled")

    logger.info("SRE Dashboard started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down SRE Dashboard")

    health_config.stop_watching()
    await notifier.close()
    await close_database()

    logger.info("SRE Dashboard shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="SRE Dashboard API",
    description="""
    ## SRE Monitoring Dashboard Backend

    Service catalog, alerts, incidents, SLOs, logs and metrics, plus the
    state derived from them.

    ---

    ### Telemetry
    - `/services` - monitored services and their gauges
    - `/logs` - structured log entries (append, query, bulk clear)
    - `/metrics` - metric samples and `/metrics/series` time series

    ### Alerting
    - `/alerts` - fire, acknowledge, silence, resolve
    - `/incidents` - `OPEN -> ONGOING -> RESOLVED` with an event timeline

    ### Reliability
    - `/slos` - objectives with derived breach and budget flags
    - `/health` - weighted health score (0-100)
    - `/release-validation/run` - six pre-release checks

    ---

    ### Configuration

    Health weights, status thresholds and validation limits are read from
    `health_config.yaml` and reloaded when the file changes.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# === Custom Middleware and Exception Handlers (from shared) ===
install_error_handling(app)

# === CORS Middleware ===
# Added last so it wraps every response, error responses included.
# Wildcard origins cannot be combined with credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Include Module Routers ===
app.include_router(services_router)
app.include_router(logs_router)
app.include_router(metrics_router)
app.include_router(alerts_router)
app.include_router(incidents_router)
app.include_router(slos_router)
app.include_router(health_router)
app.include_router(validation_router)


@app.get("/", tags=["Root"], responses={
    200: {
        "description": "API information",
        "content": {
            "application/json": {
                "example": {
                    "service": "SRE Dashboard",
                    "version": "1.0.0",
                    "architecture": "Clean Architecture / Modular Monolith",
                    "docs": "/docs",
                    "health": "/health"
                }
            }
        }
    }
})
async def root():
    """Root endpoint with API information."""
    return {
        "service": "SRE Dashboard",
        "version": settings.app_version,
        "environment": settings.environment,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "telemetry": ["/services", "/logs", "/metrics"],
            "alerting": ["/alerts", "/incidents"],
            "reliability": ["/slos", "/health", "/release-validation"],
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sre_dashboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
