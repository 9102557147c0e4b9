"""Dependency Injection Container - centralized service management."""

import logging
import threading
from functools import cached_property

from src.api.store import WorkflowSessionStore
from src.application.workflow.definitions import DEFINITIONS, WorkflowKind
from src.application.workflow.use_case import GuardedMutationWorkflow
from src.domain.entities.capabilities import CapabilityFlags
from src.domain.ports.config import AppConfig
from src.domain.ports.inventory import InventoryBackendPort
from src.infrastructure.config import load_config
from src.infrastructure.inventory.adapters import commit_for, lookup_for
from src.infrastructure.notifications.session_notifier import SessionNotifier

logger = logging.getLogger(__name__)


class InventoryRevision:
    """Refresh signal target: bumped once per committed mutation so list views know to refetch."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> None:
        with self._lock:
            self._value += 1
            value = self._value
        logger.info("Inventory changed, revision %d", value)


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached.
    This allows for better testability and cleaner dependency management.

    Usage:
        container = Container()
        session = container.sessions.create(WorkflowKind.DELETE_ITEM)
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        backend: InventoryBackendPort | None = None,
    ):
        """Initialize container with optional config and backend overrides."""
        self._config_override = config
        self._backend_override = backend

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def backend(self) -> InventoryBackendPort:
        """Inventory backend based on config.backend.kind."""
        if self._backend_override is not None:
            return self._backend_override
        if self.config.backend.kind == "http":
            from src.infrastructure.inventory.http_client import InventoryApiClient

            return InventoryApiClient(
                self.config.backend,
                fetch_limit=self.config.workflow.scoped_fetch_limit,
            )

        from src.infrastructure.inventory.memory_backend import InMemoryInventoryBackend

        return InMemoryInventoryBackend()

    @cached_property
    def revision(self) -> InventoryRevision:
        return InventoryRevision()

    @cached_property
    def sessions(self) -> WorkflowSessionStore:
        """Open workflow dialogs keyed by session id."""
        return WorkflowSessionStore(self.build_workflow)

    def build_workflow(self, kind: WorkflowKind, notifier: SessionNotifier) -> GuardedMutationWorkflow:
        """Wire one workflow instance against the configured backend."""
        return GuardedMutationWorkflow(
            DEFINITIONS[kind],
            lookup=lookup_for(kind, self.backend),
            commit=commit_for(kind, self.backend),
            notifier=notifier,
            flags=CapabilityFlags(read_only=self.config.security.read_only),
            on_committed=self.revision.bump,
            config=self.config.workflow,
        )

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        if "sessions" in self.__dict__:
            self.sessions.clear()
        # Clear cached_property values
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a prebuilt container (for testing)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
