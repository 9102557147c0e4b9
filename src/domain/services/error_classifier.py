"""Error classifier - maps raw mutation failures to a stable outcome taxonomy.

Rules are evaluated in a fixed priority order so that actionable categories
win over generic ones:

1. business rule (stock/quantity still non-zero)
2. authorization (administrator privilege required)
3. not found (target vanished concurrently)
4. conflict: dependent records, duplicates, concurrent updates, then any other 409
5. generic fallback

A bare conflict (HTTP 409 or code "conflict" with no more specific text) means
different things per flow: on delete it is a referential violation, on edit a
concurrent change. DELETE_RULES and DEFAULT_RULES differ only in that rule.

Free-text matching is case-insensitive substring search. Structured signals
(`RawFailure` with HTTP status or error code) are matched by status and code
as well, in the same order. Keyword lists are a compatibility layer for
backends that only send text; they are not exhaustive.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from src.domain.entities.workflow_state import ClassifiedError, ErrorCategory, Severity
from src.domain.ports.mutation import RawFailure

GENERIC_KEY = "request.failed"

DEFAULT_MESSAGES: dict[str, str] = {
    "business.quantity_not_zero": "You must reduce the quantity to zero before deletion.",
    "auth.admin_required": "Administrator privilege required.",
    "target.not_found": "The item no longer exists. It may have been deleted by another user.",
    "conflict.dependent_records": "Cannot delete: dependent records exist.",
    "conflict.duplicate": "A record with the same name already exists.",
    "conflict.concurrent": "The record was changed in the meantime. Please reload and try again.",
    "validation.no_target": "Please select an item.",
    "validation.no_reason": "Please select a reason.",
    "validation.invalid_payload": "Please correct the highlighted fields.",
    "validation.demo_mode": "You are in demo mode and cannot perform this operation.",
    GENERIC_KEY: "The operation failed. Please try again.",
}


def _compile(keywords: Sequence[str]) -> re.Pattern | None:
    """Compile keywords into one case-insensitive alternation. Numbers match whole words only."""
    if not keywords:
        return None
    parts = [rf"\b{kw}\b" if kw.isdigit() else re.escape(kw) for kw in keywords]
    return re.compile("|".join(parts), re.IGNORECASE)


@dataclass(frozen=True)
class ClassifierRule:
    """One category: keywords, HTTP statuses and error codes that select it."""

    category: ErrorCategory
    message_key: str
    severity: Severity
    keywords: tuple[str, ...] = ()
    statuses: frozenset[int] = frozenset()
    codes: frozenset[str] = frozenset()
    pattern: re.Pattern | None = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", _compile(self.keywords))

    def matches(self, text: str, status: int | None, code: str | None) -> bool:
        if self.pattern is not None and text and self.pattern.search(text):
            return True
        if status is not None and status in self.statuses:
            return True
        return code is not None and code.lower() in self.codes


_SPECIFIC_RULES: tuple[ClassifierRule, ...] = (
    ClassifierRule(
        category=ErrorCategory.BUSINESS_RULE,
        message_key="business.quantity_not_zero",
        severity=Severity.ERROR,
        keywords=(
            "still have",
            "merchandise",
            "in stock",
            "quantity must be zero",
            "quantity is not zero",
            "non-zero quantity",
            "nonzero quantity",
        ),
        codes=frozenset({"quantity_not_zero", "stock_not_empty"}),
    ),
    ClassifierRule(
        category=ErrorCategory.AUTHORIZATION,
        message_key="auth.admin_required",
        severity=Severity.WARNING,
        keywords=(
            "admin",
            "access denied",
            "forbidden",
            "not authorized",
            "unauthorized",
            "insufficient privilege",
            "permission denied",
            "403",
        ),
        statuses=frozenset({401, 403}),
        codes=frozenset({"forbidden", "unauthorized", "access_denied"}),
    ),
    ClassifierRule(
        category=ErrorCategory.NOT_FOUND,
        message_key="target.not_found",
        severity=Severity.WARNING,
        keywords=("not found", "no longer exists", "does not exist", "404"),
        statuses=frozenset({404, 410}),
        codes=frozenset({"not_found", "gone"}),
    ),
    ClassifierRule(
        category=ErrorCategory.CONFLICT,
        message_key="conflict.dependent_records",
        severity=Severity.ERROR,
        keywords=(
            "linked items",
            "cannot delete supplier",
            "dependent",
            "foreign key",
            "constraint",
            "data conflict",
            "integrity",
            "verknüpften",  # German backend wording ("linked")
        ),
        codes=frozenset({"has_dependents", "linked_items"}),
    ),
    ClassifierRule(
        category=ErrorCategory.CONFLICT,
        message_key="conflict.duplicate",
        severity=Severity.ERROR,
        keywords=("already exists", "duplicate"),
        codes=frozenset({"duplicate"}),
    ),
    ClassifierRule(
        category=ErrorCategory.CONFLICT,
        message_key="conflict.concurrent",
        severity=Severity.ERROR,
        keywords=("concurrent update", "modified by another", "optimistic lock"),
        codes=frozenset({"concurrent_update", "stale_version"}),
    ),
)


def _bare_conflict(message_key: str) -> ClassifierRule:
    return ClassifierRule(
        category=ErrorCategory.CONFLICT,
        message_key=message_key,
        severity=Severity.ERROR,
        keywords=("conflict", "409"),
        statuses=frozenset({409}),
        codes=frozenset({"conflict"}),
    )


DELETE_RULES: tuple[ClassifierRule, ...] = (*_SPECIFIC_RULES, _bare_conflict("conflict.dependent_records"))
DEFAULT_RULES: tuple[ClassifierRule, ...] = (*_SPECIFIC_RULES, _bare_conflict("conflict.concurrent"))


@lru_cache(maxsize=256)
def _match_rule(
    rules: tuple[ClassifierRule, ...],
    text: str,
    status: int | None,
    code: str | None,
) -> ClassifierRule | None:
    """Return the first rule (in priority order) matching the signal."""
    for rule in rules:
        if rule.matches(text, status, code):
            return rule
    return None


class ErrorClassifier:
    """Pure classifier over a fixed rule order and a per-entity message catalog."""

    def __init__(
        self,
        messages: Mapping[str, str] | None = None,
        rules: Sequence[ClassifierRule] = DEFAULT_RULES,
    ) -> None:
        self._messages = {**DEFAULT_MESSAGES, **(messages or {})}
        self._rules = tuple(rules)

    def message_for(self, message_key: str) -> str:
        """Resolve a message key through the catalog (falls back to the generic text)."""
        return self._messages.get(message_key, self._messages[GENERIC_KEY])

    def classify(self, raw: str | RawFailure | None) -> ClassifiedError:
        """Classify a raw failure. Empty or unmatched signals become the generic outcome."""
        if isinstance(raw, RawFailure):
            text, status, code = raw.message or "", raw.status, raw.code
        else:
            text, status, code = raw or "", None, None

        if not text.strip() and status is None and not code:
            return self.generic()

        rule = _match_rule(self._rules, text, status, code)
        if rule is None:
            return self.generic()
        return ClassifiedError(
            category=rule.category,
            message_key=rule.message_key,
            severity=rule.severity,
            message=self.message_for(rule.message_key),
        )

    def generic(self) -> ClassifiedError:
        """Generic/transport outcome: retry is the only remedy."""
        return ClassifiedError(
            category=ErrorCategory.GENERIC,
            message_key=GENERIC_KEY,
            severity=Severity.ERROR,
            message=self.message_for(GENERIC_KEY),
        )

    def for_category(self, category: ErrorCategory) -> ClassifiedError:
        """Outcome for a category decided locally (e.g. a failed authorization guard)."""
        for rule in self._rules:
            if rule.category == category:
                return ClassifiedError(
                    category=rule.category,
                    message_key=rule.message_key,
                    severity=rule.severity,
                    message=self.message_for(rule.message_key),
                )
        return self.generic()
