"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.container import get_container
from src.api.dependencies import default_rate_limit, limiter
from src.api.routes.workflow import router as workflow_router
from src.shared.logging import setup_logging

log = structlog.get_logger()


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config, setup logging, build the inventory backend."""
    container = get_container()
    _apply_logging_config(container)
    log.info(
        "startup_begin",
        backend=container.config.backend.kind,
        read_only=container.config.security.read_only,
    )
    _ = container.backend
    log.info("startup_complete")
    yield
    # Shutdown: close open dialogs and shared resources
    log.info("shutdown_begin")
    container.sessions.clear()
    try:
        await container.backend.close()
    except Exception:  # noqa: BLE001
        log.debug("backend_close_error", exc_info=True)
    log.info("shutdown_complete")


# Create app
app = FastAPI(
    title="Inventory Guarded Workflows",
    version="0.1.0",
    description="Guarded delete/edit workflows for inventory items and suppliers",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(workflow_router)


@app.get("/health")
@limiter.limit(default_rate_limit)
async def health(request: Request) -> dict:
    """Health check with backend kind and inventory revision."""
    container = get_container()
    return {
        "status": "ok",
        "service": "inventory-workflows",
        "backend": container.config.backend.kind,
        "read_only": container.config.security.read_only,
        "inventory_revision": container.revision.value,
        "open_sessions": len(container.sessions),
    }
