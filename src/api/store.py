"""Workflow sessions store - one open dialog per session id (DI-friendly, no global singleton)."""

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from src.application.workflow.definitions import WorkflowKind
from src.application.workflow.use_case import GuardedMutationWorkflow
from src.infrastructure.notifications.session_notifier import SessionNotifier

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 200

WorkflowFactory = Callable[[WorkflowKind, SessionNotifier], GuardedMutationWorkflow]


@dataclass
class WorkflowSession:
    """A workflow instance plus its notification queue."""

    id: str
    kind: WorkflowKind
    workflow: GuardedMutationWorkflow
    notifier: SessionNotifier
    created_at: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_seen = time.time()


class WorkflowSessionStore:
    """In-memory session registry. Least recently used sessions are evicted past the limit."""

    def __init__(self, factory: WorkflowFactory, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        self._factory = factory
        self._max_sessions = max_sessions
        self._sessions: dict[str, WorkflowSession] = {}
        self._lock = threading.Lock()

    def create(self, kind: WorkflowKind) -> WorkflowSession:
        """Create a session and open its dialog."""
        notifier = SessionNotifier()
        session = WorkflowSession(
            id=uuid.uuid4().hex[:12],
            kind=kind,
            workflow=self._factory(kind, notifier),
            notifier=notifier,
        )
        with self._lock:
            self._sessions[session.id] = session
            evicted = self._evict_locked()
        for old in evicted:
            self._shutdown(old)
        session.workflow.open()
        logger.info("Created %s session %s", kind.value, session.id)
        return session

    def get(self, session_id: str) -> WorkflowSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def remove(self, session_id: str) -> WorkflowSession | None:
        """Close and forget a session."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is not None:
            self._shutdown(session)
            logger.info("Closed session %s", session_id)
        return session

    def list_sessions(self) -> list[WorkflowSession]:
        with self._lock:
            return list(self._sessions.values())

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            self._shutdown(session)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_locked(self) -> list[WorkflowSession]:
        evicted: list[WorkflowSession] = []
        while len(self._sessions) > self._max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.last_seen)
            evicted.append(self._sessions.pop(oldest.id))
            logger.info("Evicted idle session %s", oldest.id)
        return evicted

    @staticmethod
    def _shutdown(session: WorkflowSession) -> None:
        session.workflow.close()
        session.notifier.close()
