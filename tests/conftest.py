"""
Pytest configuration and shared fixtures for cost dashboard tests.

This module provides a scriptable fake backend served through
httpx.MockTransport, a fake push channel connection, and sample payloads
used across all test modules.
"""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from cost_dashboard.api.client import DashboardAPIClient
from cost_dashboard.config.settings import DashboardConfig
from cost_dashboard.dashboard.store import ViewModelStore

BASE_URL = "http://testserver"


# Sample data fixtures
@pytest.fixture
def cloud_costs_payload() -> list[dict[str, Any]]:
    return [
        {"month": "2024-01", "cost": 1200.0},
        {"month": "2024-02", "cost": 1350.5},
        {"month": "2024-03", "cost": 980.25},
    ]


@pytest.fixture
def service_usage_payload() -> dict[str, Any]:
    return {"labels": ["EC2", "S3", "RDS"], "data": [45.0, 30.0, 25.0]}


@pytest.fixture
def daily_costs_payload() -> dict[str, Any]:
    return {"labels": ["Mon", "Tue", "Wed"], "data": [40.0, 42.5, 39.0]}


@pytest.fixture
def resources_payload() -> list[dict[str, Any]]:
    return [
        {"name": "web-1", "type": "EC2", "cost": 120.0},
        {"name": "assets", "type": "S3", "cost": 15.5},
    ]


@pytest.fixture
def filtered_costs_payload() -> list[dict[str, Any]]:
    return [{"month": "2024-02", "cost": 1350.5}]


class FakeBackend:
    """Scriptable stand-in for the dashboard REST API."""

    def __init__(self, routes: dict[str, Any]):
        # path -> JSON body, or (status, body)
        self.routes = dict(routes)
        self.failures: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.requests: list[httpx.Request] = []

    def hold(self, path: str) -> asyncio.Event:
        """Delay responses for `path` until the returned event is set."""
        self.gates[path] = asyncio.Event()
        return self.gates[path]

    def fail(self, path: str, status: int = 500):
        self.routes[path] = (status, {"detail": "boom"})

    def disconnect(self, path: str):
        self.failures[path] = httpx.ConnectError("connection refused")

    def requests_for(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def json_body(self, path: str, index: int = -1) -> Any:
        return json.loads(self.requests_for(path)[index].content)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        if path in self.failures:
            raise self.failures[path]

        route = self.routes.get(path, (404, {"detail": "not found"}))
        status, body = route if isinstance(route, tuple) else (200, route)
        return httpx.Response(status, json=body)


@pytest.fixture
def backend(
    cloud_costs_payload,
    service_usage_payload,
    daily_costs_payload,
    resources_payload,
    filtered_costs_payload,
) -> FakeBackend:
    """Fake backend answering every endpoint successfully."""
    return FakeBackend(
        {
            "/cloud-costs": cloud_costs_payload,
            "/service-usage": service_usage_payload,
            "/daily-costs": daily_costs_payload,
            "/resources": resources_payload,
            "/filtered-costs": filtered_costs_payload,
            "/estimate-cost": {"estimatedMonthlyCost": 720.0},
            "/update-cloud-costs": {"status": "ok"},
            "/update-service-usage": {"status": "ok"},
        }
    )


@pytest.fixture
async def api_client(backend):
    """DashboardAPIClient wired to the fake backend."""
    client = DashboardAPIClient(BASE_URL, transport=httpx.MockTransport(backend))
    yield client
    await client.aclose()


@pytest.fixture
def store() -> ViewModelStore:
    """Initialized store, as it is right after mount."""
    view_store = ViewModelStore()
    view_store.init()
    return view_store


@pytest.fixture
def test_config() -> DashboardConfig:
    """Standalone configuration pointing at the fake backend."""
    return DashboardConfig.from_overrides(
        {
            "api.base_url": BASE_URL,
            "api.timeout": 5,
            "push.reconnect.enabled": False,
            "store.sequence_updates": False,
            "edit.sync_on_commit": True,
        }
    )


_CLOSE = object()


class FakeConnection:
    """In-memory websocket connection yielding queued frames."""

    def __init__(self, frames: list[Any] | None = None):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False
        for frame in frames or []:
            self.queue.put_nowait(frame)

    def push(self, message: dict[str, Any]):
        self.queue.put_nowait(json.dumps(message))

    def push_raw(self, frame: Any):
        """Queue a raw frame, or an exception to raise from the iterator."""
        self.queue.put_nowait(frame)

    async def close(self):
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(_CLOSE)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.queue.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnector:
    """Replacement for websockets.connect handing out prepared connections."""

    def __init__(self, *outcomes: FakeConnection | BaseException):
        self.outcomes = list(outcomes)
        self.urls: list[str] = []

    def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if not self.outcomes:
            raise OSError("no more connections")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0):
    """Yield to the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition was not reached")
        await asyncio.sleep(0.001)

