"""Selection state - the user's in-progress choices inside one workflow dialog."""

from dataclasses import dataclass, field
from typing import Any


class SelectionError(ValueError):
    """Raised when a selection would break the scope/target invariant."""


@dataclass(frozen=True)
class EntityRef:
    """Parent entity narrowing a dependent search (e.g. a supplier)."""

    id: str
    label: str


@dataclass(frozen=True)
class TargetRef:
    """Entity being mutated, with an optional snapshot for final review."""

    id: str
    label: str
    scope_id: str | None = None
    quantity: int | None = None
    price: float | None = None
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def with_snapshot(
        self,
        quantity: int | None = None,
        price: float | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> "TargetRef":
        """Return a copy carrying fresher snapshot values (None keeps the current value)."""
        return TargetRef(
            id=self.id,
            label=self.label,
            scope_id=self.scope_id,
            quantity=quantity if quantity is not None else self.quantity,
            price=price if price is not None else self.price,
            attributes={**self.attributes, **(attributes or {})},
        )


@dataclass
class SelectionState:
    """Holds scope, target, search text, reason and edit payload.

    Every setter that invalidates a downstream field also resets it, so the
    combination is consistent by construction:

    - set_scope clears target, search text, reason, payload and form message
    - set_target clears search text and form message
    - reset returns every field to its empty value
    """

    scope_required: bool = False
    scope: EntityRef | None = None
    target: TargetRef | None = None
    search_text: str = ""
    reason: str = ""
    payload: dict[str, Any] | None = None
    form_message: str | None = None

    def set_scope(self, scope: EntityRef | None) -> None:
        self.scope = scope
        self.target = None
        self.search_text = ""
        self.reason = ""
        self.payload = None
        self.form_message = None

    def set_target(self, target: TargetRef | None) -> None:
        if target is not None and self.scope_required and self.scope is None:
            raise SelectionError("A scope must be selected before choosing a target")
        if target is not None and self.scope is not None and target.scope_id not in (None, self.scope.id):
            raise SelectionError(
                f"Target {target.id!r} belongs to scope {target.scope_id!r}, not {self.scope.id!r}"
            )
        self.target = target
        self.search_text = ""
        self.form_message = None

    def set_search_text(self, text: str) -> None:
        self.search_text = text or ""

    def set_reason(self, value: str) -> None:
        """Store the reason verbatim; only meaningful once a target is set."""
        self.reason = value or ""

    def set_payload(self, payload: dict[str, Any] | None) -> None:
        self.payload = dict(payload) if payload is not None else None

    def set_form_message(self, message: str | None) -> None:
        self.form_message = message

    def refresh_snapshot(
        self,
        target_id: str,
        quantity: int | None = None,
        price: float | None = None,
        attributes: dict[str, Any] | None = None,
    ) -> bool:
        """Update the review snapshot if `target_id` is still the selected target."""
        if self.target is None or self.target.id != target_id:
            return False
        self.target = self.target.with_snapshot(quantity=quantity, price=price, attributes=attributes)
        return True

    def reset(self) -> None:
        """Return every field to its initial empty value."""
        self.scope = None
        self.target = None
        self.search_text = ""
        self.reason = ""
        self.payload = None
        self.form_message = None

    @property
    def has_target(self) -> bool:
        return self.target is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.scope is None
            and self.target is None
            and not self.search_text
            and not self.reason
            and self.payload is None
            and self.form_message is None
        )
