from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from sre_dashboard.alerting.application import INotifier  # noqa: E402
from sre_dashboard.infrastructure.database import close_database, create_tables, init_database  # noqa: E402
from sre_dashboard.main import app as application  # noqa: E402
from sre_dashboard.reliability.infrastructure import HealthConfigManager  # noqa: E402
from sre_dashboard.shared.api import get_clock  # noqa: E402


class SimulatedClock:
    """Callable clock the tests move forward by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier(INotifier):
    """Collects notifications instead of posting them."""

    def __init__(self) -> None:
        self.alerts: list = []
        self.incidents: list = []

    async def alert_fired(self, alert) -> bool:
        self.alerts.append(alert.title)
        return True

    async def incident_changed(self, incident, action: str) -> bool:
        self.incidents.append((incident.incident_number, action))
        return True


@pytest.fixture
def clock() -> SimulatedClock:
    return SimulatedClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
async def app(clock: SimulatedClock):
    # Fresh in-memory database per test
    init_database("sqlite+aiosqlite:///:memory:")
    await create_tables()

    application.dependency_overrides[get_clock] = lambda: clock
    application.state.health_config = HealthConfigManager()
    application.state.notifier = None
    try:
        yield application
    finally:
        application.dependency_overrides.clear()
        await close_database()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def notifier(app) -> RecordingNotifier:
    recorder = RecordingNotifier()
    app.state.notifier = recorder
    return recorder
