"""Notifier Port - transient user-facing messages."""

from typing import Protocol

from src.domain.entities.workflow_state import Severity


class NotifierPort(Protocol):
    """Fire-and-forget notification surface."""

    def notify(self, message: str, severity: Severity) -> None:
        """Show `message` with `severity`. Must not block."""
        ...
