"""
capview.dashboard - Poll controller for one viewing session.

Holds the latest DashboardView and the SessionState, and turns payload
fetches into views:

- Explicit reloads show a loading state; push-triggered reloads are silent.
- Every fetch is numbered. A response older than the last applied one is
  dropped, so the newest fetch wins regardless of arrival order.
- A transport failure replaces the view with an error state. There is no
  automatic retry; callers retry by refreshing again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from capview.graph.ingest import IngestResult, ingest
from capview.pipeline import DashboardView, derive_from_result, refresh_view
from capview.search import DEFAULT_STRATEGY, get_distance
from capview.session import SessionState
from capview.source import TransportError

logger = logging.getLogger(__name__)

PayloadLoader = Callable[[], Mapping[str, Any]]


@dataclass
class Dashboard:
    """Latest derived view of a polled hypergraph.

    Attributes:
        loader: Callable returning a raw payload; raises TransportError.
        state: Cross-poll session state.
        strategy: Search near-miss strategy.
        labels: Recency bucket labels.
    """

    loader: PayloadLoader
    state: SessionState = field(default_factory=SessionState)
    strategy: str = DEFAULT_STRATEGY
    labels: dict[str, str] = field(default_factory=dict)
    query: str = ""
    view: DashboardView | None = None
    error: str | None = None
    loading: bool = False
    _issued: int = field(default=0, repr=False)
    _applied: int = field(default=0, repr=False)
    _result: IngestResult | None = field(default=None, repr=False)

    @classmethod
    def from_config(cls, loader: PayloadLoader, config: dict[str, Any]) -> Dashboard:
        search_cfg = config.get("search", {})
        timeline_cfg = config.get("timeline", {})
        strategy = search_cfg.get("strategy", DEFAULT_STRATEGY)
        get_distance(strategy)
        return cls(
            loader=loader,
            state=SessionState.from_config(config),
            strategy=strategy,
            labels=dict(timeline_cfg.get("labels", {})),
        )

    # ─────────────────────────────────────────────────────────────────
    # Fetch lifecycle
    # ─────────────────────────────────────────────────────────────────

    def begin_fetch(self, silent: bool = False) -> int:
        """Start a fetch and return its generation number."""
        self._issued += 1
        if not silent:
            self.loading = True
        return self._issued

    def is_stale(self, generation: int) -> bool:
        """True if a newer fetch has already been applied."""
        return generation <= self._applied

    def apply(
        self,
        generation: int,
        payload: Mapping[str, Any],
        now: datetime | None = None,
    ) -> DashboardView | None:
        """Derive and publish the view for a completed fetch.

        Returns None, leaving the current view untouched, when the fetch
        was superseded.
        """
        if self.is_stale(generation):
            logger.debug("discarding stale payload from fetch %d", generation)
            return None
        if now is None:
            now = datetime.now(timezone.utc)
        self._result = ingest(payload)
        view = derive_from_result(
            self._result,
            self.state,
            query=self.query,
            now=now,
            strategy=self.strategy,
            labels=self.labels,
        )
        self._applied = generation
        self.view = view
        self.error = None
        if generation == self._issued:
            self.loading = False
        return view

    def fail(self, generation: int, error: Exception) -> None:
        """Record a failed fetch; superseded failures are ignored."""
        if self.is_stale(generation):
            return
        logger.warning("payload fetch failed: %s", error)
        self._applied = generation
        self.view = None
        self._result = None
        self.error = str(error) or error.__class__.__name__
        if generation == self._issued:
            self.loading = False

    def refresh(self, silent: bool = False, now: datetime | None = None) -> DashboardView | None:
        """Fetch and apply a payload synchronously.

        Args:
            silent: Push-triggered reload; does not enter the loading state.
            now: Reference time for recency buckets.

        Returns:
            The new view, or None on transport failure.
        """
        generation = self.begin_fetch(silent=silent)
        try:
            try:
                payload = self.loader()
            except TransportError as e:
                self.fail(generation, e)
                return None
            return self.apply(generation, payload, now=now)
        finally:
            if generation == self._issued:
                self.loading = False

    # ─────────────────────────────────────────────────────────────────
    # Search
    # ─────────────────────────────────────────────────────────────────

    def search(self, query: str, now: datetime | None = None) -> DashboardView | None:
        """Re-filter the current snapshot without touching session state."""
        self.query = query
        if self._result is None or self.view is None:
            return None
        if now is None:
            now = self.view.generated_at
        filtered = refresh_view(
            self._result,
            query=query,
            now=now,
            strategy=self.strategy,
            labels=self.labels,
        )
        filtered.layers = self.view.layers
        filtered.colors = self.view.colors
        filtered.new_ids = self.view.new_ids
        filtered.highlight_ms = self.view.highlight_ms
        self.view = filtered
        return filtered

    def status(self) -> dict[str, Any]:
        return {
            "loading": self.loading,
            "error": self.error,
            "polls": self.state.polls,
            "has_view": self.view is not None,
            "generated_at": (
                self.view.generated_at.isoformat()
                if self.view is not None and self.view.generated_at
                else None
            ),
        }
