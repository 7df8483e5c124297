"""
Serverless entry point for the SRE Dashboard API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("HEALTH_CONFIG_PATH", "/tmp/health_config.yaml")

from mangum import Mangum  # noqa: E402

from sre_dashboard.config import settings  # noqa: E402
from sre_dashboard.infrastructure.database import init_database  # noqa: E402
from sre_dashboard.main import app  # noqa: E402
from sre_dashboard.shared.infrastructure.logging import setup_logging  # noqa: E402

# Lifespan is disabled for serverless, so the engine is created once per cold start
setup_logging(settings.log_level, settings.environment)
init_database()

handler = Mangum(app, lifespan="off")
