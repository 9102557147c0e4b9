"""Tests for InMemoryInventoryBackend - seeded data and the service's rejection rules."""

import pytest

from src.infrastructure.inventory.memory_backend import (
    InMemoryInventoryBackend,
    InventoryItem,
    Supplier,
)


@pytest.fixture
def backend() -> InMemoryInventoryBackend:
    return InMemoryInventoryBackend()


class TestLookups:
    """Searches are case-insensitive substring matches sorted by name."""

    async def test_list_suppliers_sorted(self, backend):
        suppliers = await backend.list_suppliers()
        assert [s.label for s in suppliers] == ["Acme Corp", "Globex Ltd", "Initech"]
        assert suppliers[0].attributes["email"] == "jane@acme.example"

    async def test_search_items_scoped(self, backend):
        items = await backend.search_items("sup-1", "WID")
        assert [i.label for i in items] == ["Widget A", "Widget B"]
        assert all(i.scope_id == "sup-1" for i in items)

    async def test_search_items_unscoped_limit(self, backend):
        items = await backend.search_items(None, "widget", limit=2)
        assert len(items) == 2

    async def test_search_suppliers(self, backend):
        found = await backend.search_suppliers(" glob ")
        assert [s.id for s in found] == ["sup-2"]

    async def test_get_missing(self, backend):
        assert await backend.get_item("item-404") is None
        assert await backend.get_supplier("sup-404") is None


class TestDeleteItem:
    """Stock must be zero and the reason must be a known one."""

    async def test_deletes_zero_stock_item(self, backend):
        result = await backend.delete_item("item-2", "damaged")
        assert result.ok is True
        assert await backend.get_item("item-2") is None
        assert backend.history[-1].reason == "DAMAGED"

    async def test_stock_rejected(self, backend):
        result = await backend.delete_item("item-1", "DAMAGED")
        assert result.ok is False
        assert result.failure.status == 409
        assert "still have merchandise" in result.failure.message
        assert await backend.get_item("item-1") is not None

    async def test_unknown_reason(self, backend):
        result = await backend.delete_item("item-2", "BORED")
        assert result.failure.status == 400

    async def test_missing_item(self, backend):
        result = await backend.delete_item("item-404", "LOST")
        assert result.failure.status == 404
        assert result.failure.code == "NOT_FOUND"


class TestSuppliers:
    """Supplier delete and update rules."""

    async def test_delete_with_stock_rejected(self, backend):
        result = await backend.delete_supplier("sup-1")
        assert result.failure.status == 409
        assert "linked items" in result.failure.message

    async def test_delete_removes_zero_stock_items(self):
        backend = InMemoryInventoryBackend(
            suppliers=[Supplier("s", "Solo")],
            items=[InventoryItem("i", "Empty bin", "s", quantity=0)],
        )
        assert (await backend.delete_supplier("s")).ok is True
        assert await backend.get_item("i") is None
        assert await backend.list_suppliers() == []

    async def test_delete_missing(self, backend):
        result = await backend.delete_supplier("sup-404")
        assert result.failure.status == 404

    async def test_update_keeps_unchanged_fields(self, backend):
        result = await backend.update_supplier("sup-3", {"phone": "+1 555 0142"})
        assert result.ok is True
        supplier = await backend.get_supplier("sup-3")
        assert supplier.attributes["phone"] == "+1 555 0142"
        assert supplier.attributes["email"] == "bill@initech.example"
        assert supplier.label == "Initech"

    async def test_update_duplicate_name(self, backend):
        result = await backend.update_supplier("sup-3", {"name": "acme corp"})
        assert result.failure.status == 409
        assert result.failure.message == "Supplier already exists"

    async def test_update_blank_name(self, backend):
        result = await backend.update_supplier("sup-3", {"name": "  "})
        assert result.failure.status == 400
