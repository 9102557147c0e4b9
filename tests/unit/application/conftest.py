"""Shared fakes for workflow application tests."""

import asyncio

import pytest

from src.domain.ports.lookup import LookupOption


class FakeLookup:
    """LookupPort double with call recording and per-query gates to hold responses back."""

    def __init__(self, scopes: list[LookupOption], items: list[LookupOption]) -> None:
        self.scopes = scopes
        self.items = items
        self.search_calls: list[tuple[str | None, str]] = []
        self.detail_calls: list[str] = []
        self.search_gates: dict[str, asyncio.Event] = {}
        self.detail_gates: dict[str, asyncio.Event] = {}
        self.scope_gate: asyncio.Event | None = None
        self.fail_search = False
        self.detail_overrides: dict[str, dict] = {}

    async def list_scopes(self) -> list[LookupOption]:
        if self.scope_gate is not None:
            await self.scope_gate.wait()
        return list(self.scopes)

    async def search(self, scope_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        self.search_calls.append((scope_id, query))
        gate = self.search_gates.get(query)
        if gate is not None:
            await gate.wait()
        if self.fail_search:
            raise RuntimeError("lookup backend down")
        q = query.lower()
        return [
            o
            for o in self.items
            if (scope_id is None or o.scope_id == scope_id) and q in o.label.lower()
        ][:limit]

    async def details(self, target_id: str) -> LookupOption | None:
        self.detail_calls.append(target_id)
        gate = self.detail_gates.get(target_id)
        if gate is not None:
            await gate.wait()
        for o in self.items:
            if o.id == target_id:
                return o.model_copy(update=self.detail_overrides.get(target_id, {}))
        return None


@pytest.fixture
def scopes() -> list[LookupOption]:
    return [
        LookupOption(id="sup-1", label="Acme Corp"),
        LookupOption(id="sup-2", label="Globex Ltd"),
    ]


@pytest.fixture
def items() -> list[LookupOption]:
    return [
        LookupOption(id="item-1", label="Widget A", scope_id="sup-1", quantity=5, price=2.5),
        LookupOption(id="item-2", label="Wide Board", scope_id="sup-1", quantity=0, price=9.0),
        LookupOption(id="item-3", label="Gadget X", scope_id="sup-1", quantity=0, price=12.0),
        LookupOption(id="item-4", label="Widget C", scope_id="sup-2", quantity=12, price=4.75),
    ]


@pytest.fixture
def lookup(scopes, items) -> FakeLookup:
    return FakeLookup(scopes, items)


@pytest.fixture
def make_lookup():
    """FakeLookup constructor for tests that need their own data set."""
    return FakeLookup
