"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, ValidationError

from src.domain.ports.config import (
    AppConfig,
    BackendConfig,
    SecurityConfig,
    ServerConfig,
    WorkflowConfig,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _set_int(config: dict, section: str, key: str, env_name: str, model: type[BaseModel]) -> None:
    """Apply an integer env override if it parses and fits the field constraints."""
    value = os.getenv(env_name)
    if not value:
        return
    try:
        number = int(value)
        model.model_validate({key: number})
    except (ValueError, ValidationError):
        logger.warning("Invalid %s env value: %r, ignoring", env_name, value)
        return
    config.setdefault(section, {})[key] = number


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    _set_int(config, "server", "port", "PORT", ServerConfig)
    if kind := os.getenv("BACKEND_KIND"):
        config.setdefault("backend", {})["kind"] = kind.strip().lower()
    if base_url := os.getenv("BACKEND_BASE_URL"):
        config.setdefault("backend", {})["base_url"] = base_url.strip()
    if read_only := os.getenv("READ_ONLY"):
        flag = read_only.strip().lower()
        if flag in _TRUE_VALUES:
            config.setdefault("security", {})["read_only"] = True
        elif flag in _FALSE_VALUES:
            config.setdefault("security", {})["read_only"] = False
        else:
            logger.warning("Invalid READ_ONLY env value: %r, ignoring", read_only)
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    _set_int(config, "security", "rate_limit_requests_per_minute", "RATE_LIMIT_PER_MINUTE", SecurityConfig)
    _set_int(config, "workflow", "debounce_ms", "WORKFLOW_DEBOUNCE_MS", WorkflowConfig)
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent.parent.parent / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        dev_config = _load_toml(dev_path)
        for key, value in dev_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value

    config = _apply_env_overrides(config)

    server = ServerConfig(**(config.get("server") or {}))
    backend = BackendConfig(**(config.get("backend") or {}))
    workflow = WorkflowConfig(**(config.get("workflow") or {}))
    security = SecurityConfig(**(config.get("security") or {}))
    logging_raw = config.get("logging") or {}
    log_level = logging_raw.get("level", "INFO")
    log_file = (logging_raw.get("file") or "").strip()
    log_rotation_max_mb = int(logging_raw.get("log_rotation_max_mb", 5))
    log_rotation_backups = int(logging_raw.get("log_rotation_backups", 3))

    return AppConfig(
        server=server,
        backend=backend,
        workflow=workflow,
        security=security,
        log_level=log_level,
        log_file=log_file,
        log_rotation_max_mb=log_rotation_max_mb,
        log_rotation_backups=log_rotation_backups,
    )
