"""Tests for lookup/commit adapters over an inventory backend."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from src.application.workflow.definitions import WorkflowKind
from src.domain.ports.mutation import CommitResult
from src.infrastructure.inventory.adapters import ItemLookup, SupplierLookup, commit_for, lookup_for
from src.infrastructure.inventory.memory_backend import InMemoryInventoryBackend


@pytest.fixture
def backend() -> AsyncMock:
    mock = AsyncMock()
    mock.delete_item.return_value = CommitResult.success()
    mock.delete_supplier.return_value = CommitResult.success()
    mock.update_supplier.return_value = CommitResult.success()
    return mock


class TestLookupFor:
    """Item flows are scoped by supplier; supplier flows are not."""

    def test_kinds(self):
        backend = InMemoryInventoryBackend()
        assert isinstance(lookup_for(WorkflowKind.DELETE_ITEM, backend), ItemLookup)
        assert isinstance(lookup_for(WorkflowKind.DELETE_SUPPLIER, backend), SupplierLookup)
        assert isinstance(lookup_for(WorkflowKind.EDIT_SUPPLIER, backend), SupplierLookup)

    async def test_item_lookup(self):
        lookup = ItemLookup(InMemoryInventoryBackend())
        assert len(await lookup.list_scopes()) == 3
        found = await lookup.search("sup-2", "spro")
        assert [o.id for o in found] == ["item-5"]
        assert (await lookup.details("item-4")).quantity == 12

    async def test_supplier_lookup_has_no_scopes(self):
        lookup = SupplierLookup(InMemoryInventoryBackend())
        assert await lookup.list_scopes() == []
        found = await lookup.search(None, "init")
        assert [o.id for o in found] == ["sup-3"]


class TestCommitFor:
    """Each commit calls exactly one backend mutation."""

    async def test_delete_item(self, backend):
        await commit_for(WorkflowKind.DELETE_ITEM, backend)("item-2", "LOST")
        backend.delete_item.assert_awaited_once_with("item-2", "LOST")

    async def test_delete_supplier_ignores_reason(self, backend):
        await commit_for(WorkflowKind.DELETE_SUPPLIER, backend)("sup-3", "LOST")
        backend.delete_supplier.assert_awaited_once_with("sup-3")

    async def test_update_supplier_drops_name(self, backend):
        commit = commit_for(WorkflowKind.EDIT_SUPPLIER, backend)
        await commit("sup-1", None, {"name": "Acme Corp", "email": " ops@acme.example "})
        backend.update_supplier.assert_awaited_once_with("sup-1", {"email": "ops@acme.example"})

    async def test_update_supplier_invalid_payload_raises(self, backend):
        commit = commit_for(WorkflowKind.EDIT_SUPPLIER, backend)
        with pytest.raises(ValidationError):
            await commit("sup-1", None, {"email": "broken"})
        backend.update_supplier.assert_not_awaited()
