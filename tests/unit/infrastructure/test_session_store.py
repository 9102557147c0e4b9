"""Tests for WorkflowSessionStore - session lifecycle and eviction."""

from unittest.mock import MagicMock

import pytest

from src.api.store import WorkflowSessionStore
from src.application.workflow.definitions import WorkflowKind


class TestWorkflowSessionStore:
    """Sessions are created open, touched on access and shut down on removal."""

    @pytest.fixture()
    def factory(self) -> MagicMock:
        return MagicMock(side_effect=lambda kind, notifier: MagicMock(name=f"workflow-{kind.value}"))

    @pytest.fixture()
    def store(self, factory) -> WorkflowSessionStore:
        return WorkflowSessionStore(factory, max_sessions=2)

    def test_create_opens_dialog(self, store: WorkflowSessionStore, factory: MagicMock):
        session = store.create(WorkflowKind.DELETE_ITEM)
        assert session.kind == WorkflowKind.DELETE_ITEM
        assert len(session.id) == 12
        session.workflow.open.assert_called_once()
        factory.assert_called_once_with(WorkflowKind.DELETE_ITEM, session.notifier)
        assert len(store) == 1

    def test_get_touches(self, store: WorkflowSessionStore):
        session = store.create(WorkflowKind.EDIT_SUPPLIER)
        session.last_seen = 0.0
        assert store.get(session.id) is session
        assert session.last_seen > 0.0

    def test_get_unknown(self, store: WorkflowSessionStore):
        assert store.get("missing") is None

    def test_remove_shuts_down(self, store: WorkflowSessionStore):
        session = store.create(WorkflowKind.DELETE_SUPPLIER)
        assert store.remove(session.id) is session
        session.workflow.close.assert_called_once()
        assert session.notifier.closed is True
        assert store.get(session.id) is None
        assert store.remove(session.id) is None

    def test_least_recently_used_evicted(self, store: WorkflowSessionStore):
        first = store.create(WorkflowKind.DELETE_ITEM)
        second = store.create(WorkflowKind.DELETE_ITEM)
        first.last_seen, second.last_seen = 10.0, 20.0
        third = store.create(WorkflowKind.DELETE_ITEM)

        ids = {s.id for s in store.list_sessions()}
        assert ids == {second.id, third.id}
        first.workflow.close.assert_called_once()
        assert first.notifier.closed is True

    def test_clear(self, store: WorkflowSessionStore):
        sessions = [store.create(WorkflowKind.DELETE_ITEM), store.create(WorkflowKind.EDIT_SUPPLIER)]
        store.clear()
        assert len(store) == 0
        for s in sessions:
            s.workflow.close.assert_called_once()
