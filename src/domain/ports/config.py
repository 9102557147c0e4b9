"""Configuration models shared by every layer."""

from pydantic import BaseModel, ConfigDict, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class BackendConfig(BaseModel):
    """Inventory backend selection."""

    kind: str = "memory"  # "memory" | "http"
    base_url: str = "http://localhost:8081"
    timeout: float = 10.0

    model_config = ConfigDict(extra="ignore")


class WorkflowConfig(BaseModel):
    """Lookup tuning shared by every guarded workflow."""

    min_search_chars: int = Field(2, ge=1)
    debounce_ms: int = Field(300, ge=0, le=5_000)
    search_limit: int = Field(10, ge=1, le=500)
    # Scoped item search over-fetches because the backend ignores supplierId
    scoped_fetch_limit: int = Field(500, ge=1)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class SecurityConfig(BaseModel):
    """Security settings."""

    read_only: bool = False  # Demo mode: every commit is blocked
    rate_limit_requests_per_minute: int = 100
    cors_origins: list[str] = ["http://localhost:5173"]


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    backend: BackendConfig = BackendConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout. Rotation when file exceeds max_mb.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3

