"""FastAPI dependencies - DI container."""

from fastapi import Depends, Header, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.container import Container, get_container
from src.api.store import WorkflowSession, WorkflowSessionStore
from src.domain.entities.capabilities import CapabilityFlags
from src.domain.ports.config import AppConfig
from src.shared.logging import bind_context, clear_context

limiter = Limiter(key_func=get_remote_address)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def default_rate_limit() -> str:
    """Per-client limit for endpoints without a tighter one of their own."""
    return f"{get_container().config.security.rate_limit_requests_per_minute}/minute"


def get_config(container: Container = Depends(get_container)) -> AppConfig:
    """Configuration of the active container."""
    return container.config


def get_session_store(container: Container = Depends(get_container)) -> WorkflowSessionStore:
    return container.sessions


async def get_session(
    session_id: str,
    store: WorkflowSessionStore = Depends(get_session_store),
) -> WorkflowSession:
    """Resolve a session id or fail with 404."""
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Workflow session not found: {session_id}")
    clear_context()
    bind_context(session_id=session.id, workflow=session.kind.value)
    return session


def get_capabilities(
    config: AppConfig = Depends(get_config),
    x_user_role: str | None = Header(None, max_length=50),
    x_read_only: str | None = Header(None, max_length=10),
) -> CapabilityFlags:
    """Capability flags from the hosting context: role header plus demo mode.

    Demo mode is on when configured or when the request asks for it; a
    request cannot switch off a configured read-only deployment.
    """
    read_only = config.security.read_only or (
        x_read_only is not None and x_read_only.strip().lower() in _TRUE_VALUES
    )
    return CapabilityFlags.from_role(x_user_role, read_only=read_only)
