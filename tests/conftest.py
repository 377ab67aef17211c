"""
Shared fixtures for aicentre-gate tests.

Time-dependent behaviour is driven by ``FakeClock`` injected into the
signature engine, so the freshness window can be tested at its exact edges.
"""

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from aicentre_gate.app import create_app
from aicentre_gate.config import GateSettings
from aicentre_gate.signing import SignatureEngine

TEST_SECRET = "test-secret"
NOW_MS = 1_700_000_000_000


class FakeClock:
    """Callable clock returning a settable epoch-millisecond value."""

    def __init__(self, now_ms: int = NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


def make_settings(**overrides) -> GateSettings:
    values = {
        "secret": TEST_SECRET,
        "environment": "development",
        "log_json": False,
    }
    values.update(overrides)
    return GateSettings(**values)


def content_router() -> APIRouter:
    """Stand-in for the portal's gated pages."""
    router = APIRouter()

    @router.get("/")
    async def index():
        return {"page": "home"}

    @router.get("/workshops/{slug}")
    async def workshop(slug: str):
        return {"page": "workshop", "slug": slug}

    return router


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> GateSettings:
    return make_settings()


@pytest.fixture
def engine(clock) -> SignatureEngine:
    return SignatureEngine(TEST_SECRET, clock=clock)


@pytest.fixture
def make_client(engine):
    """Factory building a TestClient around a gated app."""

    def _make(settings: GateSettings = None) -> TestClient:
        app = create_app(
            settings or make_settings(),
            routers=[content_router()],
            engine=engine,
            configure_logging=False,
        )
        return TestClient(app, follow_redirects=False)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
