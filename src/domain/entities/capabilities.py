"""Capability flags supplied by the hosting context."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CapabilityFlags:
    """Submission guards. Read only; never owned by the workflow."""

    read_only: bool = False  # Demo mode: the flow can be explored, the commit is denied
    is_authorized: bool = True

    @classmethod
    def from_role(cls, role: str | None, read_only: bool = False) -> "CapabilityFlags":
        """Build flags from a role name. Only ADMIN may run destructive workflows."""
        return cls(read_only=read_only, is_authorized=(role or "").strip().upper() == "ADMIN")
