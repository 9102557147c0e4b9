"""In-memory inventory backend - seeded demo data with the service's business rules."""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any

from src.domain.entities.deletion_reason import DELETION_REASONS
from src.domain.ports.lookup import LookupOption
from src.domain.ports.mutation import CommitResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    supplier_id: str
    quantity: int = 0
    price: float = 0.0


@dataclass
class StockHistoryEntry:
    """Audit row written when an item leaves inventory."""

    item_id: str
    change: int
    reason: str


def default_suppliers() -> list[Supplier]:
    return [
        Supplier("sup-1", "Acme Corp", "Jane Doe", "+1 555 0100", "jane@acme.example"),
        Supplier("sup-2", "Globex Ltd", "Hank Scorpio", "+1 555 0199", "hank@globex.example"),
        Supplier("sup-3", "Initech", "Bill Lumbergh", None, "bill@initech.example"),
    ]


def default_items() -> list[InventoryItem]:
    return [
        InventoryItem("item-1", "Widget A", "sup-1", quantity=5, price=2.5),
        InventoryItem("item-2", "Widget B", "sup-1", quantity=0, price=3.0),
        InventoryItem("item-3", "Gadget X", "sup-1", quantity=0, price=12.0),
        InventoryItem("item-4", "Widget C", "sup-2", quantity=12, price=4.75),
        InventoryItem("item-5", "Sprocket", "sup-2", quantity=0, price=0.8),
    ]


def _supplier_option(s: Supplier) -> LookupOption:
    return LookupOption(
        id=s.id,
        label=s.name,
        attributes={"contact_name": s.contact_name, "phone": s.phone, "email": s.email},
    )


def _item_option(i: InventoryItem) -> LookupOption:
    return LookupOption(id=i.id, label=i.name, scope_id=i.supplier_id, quantity=i.quantity, price=i.price)


@dataclass
class _Data:
    suppliers: dict[str, Supplier] = field(default_factory=dict)
    items: dict[str, InventoryItem] = field(default_factory=dict)
    history: list[StockHistoryEntry] = field(default_factory=list)


class InMemoryInventoryBackend:
    """Implements InventoryBackendPort over dicts guarded by a lock.

    Rejections mirror the REST service: status, error code and message.
    """

    def __init__(
        self,
        suppliers: list[Supplier] | None = None,
        items: list[InventoryItem] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._data = _Data(
            suppliers={s.id: s for s in (default_suppliers() if suppliers is None else suppliers)},
            items={i.id: i for i in (default_items() if items is None else items)},
        )

    @property
    def history(self) -> list[StockHistoryEntry]:
        with self._lock:
            return list(self._data.history)

    # -- Lookups --

    async def list_suppliers(self) -> list[LookupOption]:
        with self._lock:
            suppliers = sorted(self._data.suppliers.values(), key=lambda s: s.name.lower())
        return [_supplier_option(s) for s in suppliers]

    async def search_suppliers(self, query: str, limit: int = 10) -> list[LookupOption]:
        q = query.strip().lower()
        with self._lock:
            matches = [s for s in self._data.suppliers.values() if q in s.name.lower()]
        matches.sort(key=lambda s: s.name.lower())
        return [_supplier_option(s) for s in matches[:limit]]

    async def get_supplier(self, supplier_id: str) -> LookupOption | None:
        with self._lock:
            supplier = self._data.suppliers.get(supplier_id)
        return _supplier_option(supplier) if supplier else None

    async def search_items(self, supplier_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        q = query.strip().lower()
        with self._lock:
            matches = [
                i
                for i in self._data.items.values()
                if (supplier_id is None or i.supplier_id == supplier_id) and q in i.name.lower()
            ]
        matches.sort(key=lambda i: i.name.lower())
        return [_item_option(i) for i in matches[:limit]]

    async def get_item(self, item_id: str) -> LookupOption | None:
        with self._lock:
            item = self._data.items.get(item_id)
        return _item_option(item) if item else None

    # -- Mutations --

    async def delete_item(self, item_id: str, reason: str) -> CommitResult:
        if (reason or "").strip().upper() not in DELETION_REASONS:
            return CommitResult.rejected("Invalid reason for deletion", status=400, code="BAD_REQUEST")
        with self._lock:
            item = self._data.items.get(item_id)
            if item is None:
                return CommitResult.rejected("Item not found", status=404, code="NOT_FOUND")
            if item.quantity > 0:
                return CommitResult.rejected(
                    "You still have merchandise in stock", status=409, code="CONFLICT"
                )
            del self._data.items[item_id]
            self._data.history.append(StockHistoryEntry(item_id, -item.quantity, reason.strip().upper()))
        logger.info("Deleted item %s (%s)", item_id, reason)
        return CommitResult.success()

    async def delete_supplier(self, supplier_id: str) -> CommitResult:
        with self._lock:
            linked = [i for i in self._data.items.values() if i.supplier_id == supplier_id]
            if any(i.quantity > 0 for i in linked):
                return CommitResult.rejected(
                    "Cannot delete supplier with linked items", status=409, code="CONFLICT"
                )
            if supplier_id not in self._data.suppliers:
                return CommitResult.rejected(f"Supplier not found: {supplier_id}", status=404, code="NOT_FOUND")
            del self._data.suppliers[supplier_id]
            # Zero-stock items would otherwise point at a missing supplier
            for item in linked:
                del self._data.items[item.id]
        logger.info("Deleted supplier %s", supplier_id)
        return CommitResult.success()

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> CommitResult:
        with self._lock:
            supplier = self._data.suppliers.get(supplier_id)
            if supplier is None:
                return CommitResult.rejected(f"Supplier not found: {supplier_id}", status=404, code="NOT_FOUND")
            name = changes.get("name", supplier.name)
            if name is None or not str(name).strip():
                return CommitResult.rejected("Supplier name must not be blank", status=400, code="BAD_REQUEST")
            name = str(name).strip()
            duplicate = any(
                s.id != supplier_id and s.name.lower() == name.lower() for s in self._data.suppliers.values()
            )
            if duplicate:
                return CommitResult.rejected("Supplier already exists", status=409, code="CONFLICT")
            self._data.suppliers[supplier_id] = replace(
                supplier,
                name=name,
                contact_name=changes.get("contact_name", supplier.contact_name),
                phone=changes.get("phone", supplier.phone),
                email=changes.get("email", supplier.email),
            )
        logger.info("Updated supplier %s", supplier_id)
        return CommitResult.success()

    async def close(self) -> None:
        return None
