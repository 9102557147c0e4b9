"""Workflow API routes - guarded delete/edit dialogs as sessions."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from src.api.dependencies import get_capabilities, get_session, get_session_store, limiter
from src.api.store import WorkflowSession, WorkflowSessionStore
from src.application.workflow.definitions import WorkflowKind
from src.application.workflow.dto import (
    NotificationEvent,
    PayloadRequest,
    ReasonRequest,
    ScopeRequest,
    SearchRequest,
    TargetRequest,
    WorkflowView,
)
from src.domain.entities.capabilities import CapabilityFlags
from src.domain.entities.selection import SelectionError
from src.domain.entities.workflow_events import SessionEventType
from src.domain.services.state_machine import WorkflowTransitionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["workflows"])

NOTIFICATION_POLL_SECONDS = 15.0


@contextmanager
def _workflow_errors() -> Iterator[None]:
    """Map protocol errors (illegal trigger, invalid selection) to 409."""
    try:
        yield
    except (SelectionError, WorkflowTransitionError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


async def _view(session: WorkflowSession, wait: bool) -> WorkflowView:
    if wait:
        await session.workflow.settle()
    return session.workflow.view(session.id)


@router.post("/{kind}", response_model=WorkflowView)
@limiter.limit("30/minute")
async def open_workflow(
    request: Request,
    kind: WorkflowKind,
    wait: bool = False,
    store: WorkflowSessionStore = Depends(get_session_store),
    flags: CapabilityFlags = Depends(get_capabilities),
) -> WorkflowView:
    """Open a new dialog session. Use wait=true to block until the scope list is loaded."""
    session = store.create(kind)
    session.workflow.set_capabilities(flags)
    return await _view(session, wait)


@router.get("/sessions/{session_id}", response_model=WorkflowView)
@limiter.limit("120/minute")
async def get_workflow(
    request: Request,
    wait: bool = False,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    """Current view. Use wait=true to let pending lookups settle first."""
    return await _view(session, wait)


@router.post("/sessions/{session_id}/open", response_model=WorkflowView)
@limiter.limit("30/minute")
async def reopen_workflow(
    request: Request,
    wait: bool = False,
    session: WorkflowSession = Depends(get_session),
    flags: CapabilityFlags = Depends(get_capabilities),
) -> WorkflowView:
    """Re-open the dialog (e.g. after a successful mutation closed it)."""
    session.workflow.set_capabilities(flags)
    session.workflow.open()
    return await _view(session, wait)


@router.put("/sessions/{session_id}/scope", response_model=WorkflowView)
@limiter.limit("120/minute")
async def set_scope(
    request: Request,
    body: ScopeRequest,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    with _workflow_errors():
        session.workflow.set_scope(body.scope_id)
    return session.workflow.view(session.id)


@router.put("/sessions/{session_id}/search", response_model=WorkflowView)
@limiter.limit("120/minute")
async def set_search(
    request: Request,
    body: SearchRequest,
    wait: bool = False,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    """Update the search text; the lookup runs debounced in the background."""
    with _workflow_errors():
        session.workflow.set_search_text(body.text)
    return await _view(session, wait)


@router.put("/sessions/{session_id}/target", response_model=WorkflowView)
@limiter.limit("120/minute")
async def set_target(
    request: Request,
    body: TargetRequest,
    wait: bool = False,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    with _workflow_errors():
        session.workflow.select_target(body.target_id)
    return await _view(session, wait)


@router.put("/sessions/{session_id}/reason", response_model=WorkflowView)
@limiter.limit("120/minute")
async def set_reason(
    request: Request,
    body: ReasonRequest,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    with _workflow_errors():
        session.workflow.set_reason(body.reason)
    return session.workflow.view(session.id)


@router.put("/sessions/{session_id}/payload", response_model=WorkflowView)
@limiter.limit("120/minute")
async def set_payload(
    request: Request,
    body: PayloadRequest,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    with _workflow_errors():
        session.workflow.set_payload(body.payload)
    return session.workflow.view(session.id)


@router.post("/sessions/{session_id}/submit", response_model=WorkflowView)
@limiter.limit("60/minute")
async def submit(
    request: Request,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    """Open the confirmation step, or report what is missing."""
    with _workflow_errors():
        session.workflow.request_submit()
    return session.workflow.view(session.id)


@router.post("/sessions/{session_id}/confirm", response_model=WorkflowView)
@limiter.limit("30/minute")
async def confirm(
    request: Request,
    session: WorkflowSession = Depends(get_session),
    flags: CapabilityFlags = Depends(get_capabilities),
) -> WorkflowView:
    """Confirm the irreversible action. Backend failures come back in the view, not as HTTP errors."""
    session.workflow.set_capabilities(flags)
    with _workflow_errors():
        await session.workflow.confirm(flags)
    return session.workflow.view(session.id)


@router.post("/sessions/{session_id}/decline", response_model=WorkflowView)
@limiter.limit("60/minute")
async def decline(
    request: Request,
    session: WorkflowSession = Depends(get_session),
) -> WorkflowView:
    with _workflow_errors():
        session.workflow.decline()
    return session.workflow.view(session.id)


@router.delete("/sessions/{session_id}")
@limiter.limit("60/minute")
async def close_workflow(
    request: Request,
    session_id: str,
    store: WorkflowSessionStore = Depends(get_session_store),
) -> dict:
    """Close the dialog and drop the session."""
    if store.remove(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Workflow session not found: {session_id}")
    return {"status": "closed", "session_id": session_id}


@router.get("/sessions/{session_id}/notifications", response_model=None)
@limiter.limit("60/minute")
async def notifications(
    request: Request,
    session: WorkflowSession = Depends(get_session),
    stream: bool = False,
) -> list[NotificationEvent] | EventSourceResponse:
    """Pending notifications. Use stream=true for SSE streaming."""
    if stream:
        return _stream_response(request, session)
    return [
        NotificationEvent(
            event_type=SessionEventType.NOTIFICATION.value,
            message=n.message,
            severity=n.severity.value,
        )
        for n in session.notifier.drain()
    ]


def _stream_response(request: Request, session: WorkflowSession) -> EventSourceResponse:
    """Return SSE stream of session notifications until the session closes."""

    async def event_generator():
        try:
            while not await request.is_disconnected():
                item = await session.notifier.next(timeout=NOTIFICATION_POLL_SECONDS)
                if item is None:
                    if session.notifier.closed:
                        break
                    continue
                evt = NotificationEvent(
                    event_type=SessionEventType.NOTIFICATION.value,
                    message=item.message,
                    severity=item.severity.value,
                )
                yield {"event": evt.event_type, "data": evt.model_dump_json()}
        except Exception:
            logger.exception("Notification stream failed for session %s", session.id)
            yield {"event": "error", "data": "Stream failed"}
        closed = NotificationEvent(event_type=SessionEventType.CLOSED.value)
        yield {"event": closed.event_type, "data": closed.model_dump_json()}

    return EventSourceResponse(event_generator())
