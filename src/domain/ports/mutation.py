"""Mutation Port - the single side-effecting commit of a workflow."""

from typing import Any, Protocol

from pydantic import BaseModel


class RawFailure(BaseModel):
    """Failure signal as reported by the backend, before classification."""

    message: str = ""
    status: int | None = None  # HTTP status when known
    code: str | None = None  # Structured error identifier when the backend sends one

    def __str__(self) -> str:
        return self.message


class CommitResult(BaseModel):
    """Outcome of a commit: success, or an application-level rejection."""

    ok: bool
    failure: RawFailure | None = None

    @classmethod
    def success(cls) -> "CommitResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, message: str = "", status: int | None = None, code: str | None = None) -> "CommitResult":
        return cls(ok=False, failure=RawFailure(message=message, status=status, code=code))


class MutationPort(Protocol):
    """Commit callable. Idempotent-unsafe: invoked once per confirmed submission.

    Transport errors are raised, application-level rejections are returned.
    """

    async def __call__(
        self,
        target_id: str,
        reason: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> CommitResult:
        ...
