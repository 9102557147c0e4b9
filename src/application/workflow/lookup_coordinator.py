"""Dependent lookup coordinator - decides which lookups run and reconciles results.

Three lookups feed a workflow dialog:

- parent list (scopes), enabled while the dialog is open
- child search, enabled once the scope is set (when required) and the search
  text has at least `min_search_chars` characters; debounced
- details, enabled while a target is selected

In-flight requests are never aborted. Each request carries a generation
number per lookup kind plus its parameters; a response is applied only if it
is the latest issued one AND its parameters still match the selection.
Everything else is dropped silently.
"""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any

from src.domain.entities.selection import SelectionState
from src.domain.ports.lookup import LookupOption, LookupPort

logger = logging.getLogger(__name__)

DEFAULT_MIN_SEARCH_CHARS = 2
DEFAULT_DEBOUNCE_SECONDS = 0.3
DEFAULT_SEARCH_LIMIT = 10


@dataclass
class LookupSnapshot:
    """Lookup results as the dialog should render them."""

    scopes: list[LookupOption] = field(default_factory=list)
    scopes_loading: bool = False
    options: list[LookupOption] = field(default_factory=list)
    search_enabled: bool = False
    search_loading: bool = False
    no_matches: bool = False
    details: LookupOption | None = None


class DependentLookupCoordinator:
    """Runs the scope, search and detail lookups for one dialog instance."""

    def __init__(
        self,
        lookup: LookupPort,
        selection: SelectionState,
        *,
        scope_required: bool,
        min_search_chars: int = DEFAULT_MIN_SEARCH_CHARS,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        if min_search_chars < 1:
            raise ValueError("min_search_chars must be >= 1")
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        self._lookup = lookup
        self._selection = selection
        self._scope_required = scope_required
        self._min_search_chars = min_search_chars
        self._debounce_seconds = debounce_seconds
        self._search_limit = search_limit

        self._scopes: list[LookupOption] = []
        self._options: list[LookupOption] = []
        self._details: LookupOption | None = None
        self._scopes_loading = False
        self._search_loading = False
        self._no_matches = False

        self._scope_generation = 0
        self._search_generation = 0
        self._details_generation = 0
        self._debounce_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    # -- Guards --

    def search_enabled(self) -> bool:
        if self._scope_required and self._selection.scope is None:
            return False
        return len(self._selection.search_text.strip()) >= self._min_search_chars

    def details_enabled(self) -> bool:
        return self._selection.target is not None

    # -- Triggers --

    def dialog_opened(self) -> None:
        """Parent list is independent of every other field."""
        if self._scope_required:
            self._scope_generation += 1
            self._scopes_loading = True
            self._spawn(self._load_scopes(self._scope_generation))

    def scope_changed(self) -> None:
        """Old scope's search and details no longer apply."""
        self._cancel_debounce()
        self._search_generation += 1
        self._details_generation += 1
        self._options = []
        self._details = None
        self._search_loading = False
        self._no_matches = False

    def search_text_changed(self) -> None:
        """Re-issue the child search (debounced) or clear it when disabled."""
        self._cancel_debounce()
        if not self.search_enabled():
            # Invalidate anything in flight; below the threshold nothing is shown
            self._search_generation += 1
            self._options = []
            self._search_loading = False
            self._no_matches = False
            return

        scope_id = self._selection.scope.id if self._selection.scope else None
        query = self._selection.search_text.strip()
        self._search_loading = True
        if self._debounce_seconds > 0:
            self._debounce_task = self._spawn(self._debounce_then_search(scope_id, query))
        else:
            self._spawn(self._search(scope_id, query))

    def target_changed(self) -> None:
        """Choosing or clearing a target empties the search box; results follow it."""
        self.search_text_changed()
        self._details_generation += 1
        self._details = None
        if self.details_enabled():
            target_id = self._selection.target.id
            self._spawn(self._load_details(target_id, self._details_generation))

    def reset(self) -> None:
        """Dialog closed: forget results; late responses will not match any generation."""
        self._cancel_debounce()
        self._scope_generation += 1
        self._search_generation += 1
        self._details_generation += 1
        self._scopes = []
        self._options = []
        self._details = None
        self._scopes_loading = False
        self._search_loading = False
        self._no_matches = False

    async def settle(self) -> None:
        """Wait until every debounce timer and lookup in flight has finished."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # -- Views --

    def visible_options(self) -> list[LookupOption]:
        """Latest results plus the selected target if a refresh dropped it.

        The retained entry is a single synthetic option built from the current
        selection; nothing else is cached.
        """
        options = list(self._options)
        target = self._selection.target
        if target is not None and all(o.id != target.id for o in options):
            options.append(
                LookupOption(
                    id=target.id,
                    label=target.label,
                    scope_id=target.scope_id,
                    quantity=target.quantity,
                    price=target.price,
                    attributes=dict(target.attributes),
                )
            )
        return options

    def snapshot(self) -> LookupSnapshot:
        return LookupSnapshot(
            scopes=list(self._scopes),
            scopes_loading=self._scopes_loading,
            options=self.visible_options(),
            search_enabled=self.search_enabled(),
            search_loading=self._search_loading,
            no_matches=self._no_matches,
            details=self._details,
        )

    def find_option(self, option_id: str) -> LookupOption | None:
        """Resolve an id against the visible options."""
        for option in self.visible_options():
            if option.id == option_id:
                return option
        return None

    def find_scope(self, scope_id: str) -> LookupOption | None:
        for scope in self._scopes:
            if scope.id == scope_id:
                return scope
        return None

    # -- Internals --

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _cancel_debounce(self) -> None:
        # Only the timer is cancelled; an issued request always runs to completion
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounce_then_search(self, scope_id: str | None, query: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._spawn(self._search(scope_id, query))

    async def _load_scopes(self, generation: int) -> None:
        try:
            scopes = await self._lookup.list_scopes()
        except Exception:  # noqa: BLE001
            logger.warning("Scope lookup failed", exc_info=True)
            scopes = []
        if generation != self._scope_generation:
            logger.debug("Discarding stale scope lookup (generation %d)", generation)
            return
        self._scopes = list(scopes)
        self._scopes_loading = False

    async def _search(self, scope_id: str | None, query: str) -> None:
        self._search_generation += 1
        generation = self._search_generation
        try:
            results: list[LookupOption] | None = await self._lookup.search(
                scope_id, query, self._search_limit
            )
        except Exception:  # noqa: BLE001
            logger.warning("Search lookup failed (scope=%s, query=%r)", scope_id, query, exc_info=True)
            results = None

        if generation != self._search_generation or not self._search_matches(scope_id, query):
            logger.debug("Discarding stale search response for %r (generation %d)", query, generation)
            if not self.search_enabled():
                self._search_loading = False
            return

        self._search_loading = False
        if results is None:
            self._options = []
            self._no_matches = True
            return
        self._options = list(results)[: self._search_limit]
        self._no_matches = not self._options

    async def _load_details(self, target_id: str, generation: int) -> None:
        try:
            details = await self._lookup.details(target_id)
        except Exception:  # noqa: BLE001
            logger.warning("Detail lookup failed for %s", target_id, exc_info=True)
            details = None

        if generation != self._details_generation:
            logger.debug("Discarding stale detail response for %s", target_id)
            return
        target = self._selection.target
        if target is None or target.id != target_id:
            return
        self._details = details
        if details is not None:
            self._selection.refresh_snapshot(
                target_id,
                quantity=details.quantity,
                price=details.price,
                attributes=details.attributes,
            )

    def _search_matches(self, scope_id: str | None, query: str) -> bool:
        current_scope = self._selection.scope.id if self._selection.scope else None
        return current_scope == scope_id and self._selection.search_text.strip() == query
