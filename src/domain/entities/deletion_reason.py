"""Deletion reasons recorded when an item leaves inventory."""

from enum import Enum


class DeletionReason(str, Enum):
    """Categorical reasons accepted when removing an item from inventory."""

    SCRAPPED = "SCRAPPED"
    DESTROYED = "DESTROYED"
    DAMAGED = "DAMAGED"
    EXPIRED = "EXPIRED"
    LOST = "LOST"
    RETURNED_TO_SUPPLIER = "RETURNED_TO_SUPPLIER"


DELETION_REASONS: frozenset[str] = frozenset(r.value for r in DeletionReason)
