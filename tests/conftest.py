"""Pytest configuration and shared fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.container import Container, reset_container, set_container
from src.api.dependencies import limiter
from src.domain.ports.config import AppConfig, WorkflowConfig
from src.infrastructure.inventory.memory_backend import InMemoryInventoryBackend
from src.main import app

ADMIN = {"X-User-Role": "ADMIN"}


@pytest.fixture
def backend() -> InMemoryInventoryBackend:
    """Fresh seeded inventory per test."""
    return InMemoryInventoryBackend()


@pytest.fixture
def container(backend):
    """Container wired to the in-memory backend, installed as the global one."""
    config = AppConfig(workflow=WorkflowConfig(debounce_ms=0))
    c = Container(config=config, backend=backend)
    set_container(c)
    yield c
    reset_container()


@pytest.fixture
async def client(container):
    """HTTP client against the app; rate limits off so scenario tests do not trip them."""
    limiter.enabled = False
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers=ADMIN,
        ) as c:
            yield c
    finally:
        limiter.enabled = True
