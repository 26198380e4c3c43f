# conftest.py
from typing import Dict, List

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from dashboard.main import app
from dashboard.sources.email_stats import build_email_stats_client
from dashboard.sources.mixpanel import get_event_source
from helpers import FakeEventSource


class FakeEmailStatsClient:
    def __init__(self, stats: Dict):
        self.stats = stats
        self.requested_days: List[int] = []

    async def fetch(self, days: int) -> Dict:
        self.requested_days.append(days)
        return self.stats


@pytest.fixture
def event_source():
    return FakeEventSource()


@pytest_asyncio.fixture
async def async_client(event_source):
    app.dependency_overrides[get_event_source] = lambda: event_source
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override_email_stats():
    def _override(stats: Dict) -> FakeEmailStatsClient:
        client = FakeEmailStatsClient(stats)
        app.dependency_overrides[build_email_stats_client] = lambda: client
        return client

    yield _override
    app.dependency_overrides.pop(build_email_stats_client, None)
