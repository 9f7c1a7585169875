"""
capview.pipeline - Derive a dashboard view from one payload snapshot.

GraphIngestor -> HierarchyResolver -> search -> recency buckets, with
layer reconstruction and new-id detection computed alongside. The only
side effects are on the SessionState passed in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from capview.graph.hierarchy import build_children_index, top_level
from capview.graph.ingest import IngestResult, IngestStats, ingest
from capview.graph.layers import LayerMap, build_tool_layers
from capview.graph.nodes import Capability
from capview.search import DEFAULT_STRATEGY, filter_by_search
from capview.session import SessionState
from capview.timeline import TimeBucket, bucket_by_recency

logger = logging.getLogger(__name__)


@dataclass
class DashboardView:
    """Everything the rendering layer needs for one poll.

    Attributes:
        capabilities: All nonzero-usage capabilities, most recent first.
        top_level: Capabilities without a parent.
        children: Parent id -> child capabilities.
        parent_map: Child id -> parent id, cycles already broken.
        matched: Top-level capabilities passing the search query.
        buckets: ``matched`` grouped by recency.
        layers: Capability id -> layer map of its latest run.
        colors: Server -> display color.
        new_ids: Capability ids first seen on this poll.
    """

    capabilities: list[Capability] = field(default_factory=list)
    top_level: list[Capability] = field(default_factory=list)
    children: dict[str, list[Capability]] = field(default_factory=dict)
    parent_map: dict[str, str] = field(default_factory=dict)
    matched: list[Capability] = field(default_factory=list)
    buckets: list[TimeBucket] = field(default_factory=list)
    layers: dict[str, LayerMap] = field(default_factory=dict)
    colors: dict[str, str] = field(default_factory=dict)
    servers: list[str] = field(default_factory=list)
    new_ids: frozenset[str] = frozenset()
    highlight_ms: int = 0
    query: str = ""
    stats: IngestStats = field(default_factory=IngestStats)
    generated_at: datetime | None = None

    def get_capability(self, capability_id: str) -> Capability | None:
        for cap in self.capabilities:
            if cap.id == capability_id:
                return cap
        return None


def derive_view(
    payload: Mapping[str, Any],
    state: SessionState,
    query: str = "",
    now: datetime | None = None,
    strategy: str = DEFAULT_STRATEGY,
    labels: Mapping[str, str] | None = None,
) -> DashboardView:
    """Run the full derivation over one payload.

    Args:
        payload: Raw hypergraph payload (``nodes``/``edges``).
        state: Session state; its differ and palette are updated.
        query: Free-text search applied to top-level capabilities.
        now: Reference time for recency buckets.
        strategy: Near-miss strategy for search.
        labels: Optional recency bucket labels.

    Returns:
        A DashboardView for this snapshot.
    """
    return derive_from_result(
        ingest(payload), state, query=query, now=now, strategy=strategy, labels=labels
    )


def derive_from_result(
    result: IngestResult,
    state: SessionState,
    query: str = "",
    now: datetime | None = None,
    strategy: str = DEFAULT_STRATEGY,
    labels: Mapping[str, str] | None = None,
) -> DashboardView:
    """Same as derive_view, for a payload that is already ingested."""
    if now is None:
        now = datetime.now(timezone.utc)

    view = refresh_view(result, query=query, now=now, strategy=strategy, labels=labels)

    view.layers = {
        cap.id: build_tool_layers(cap.tools, cap.traces) for cap in result.capabilities
    }

    state.palette.assign_all(result.servers)
    placeholder_servers = {
        descriptor.server
        for layer_map in view.layers.values()
        for descriptors in layer_map.values()
        for descriptor in descriptors
        if not descriptor.known
    }
    state.palette.assign_all(placeholder_servers)
    view.colors = {
        server: state.palette.color_for(server)
        for server in sorted(result.servers | placeholder_servers)
    }

    view.new_ids = state.differ.observe(cap.id for cap in result.capabilities)
    view.highlight_ms = state.highlight_ms if view.new_ids else 0
    state.polls += 1

    if view.new_ids:
        logger.info("%d new capabilities observed", len(view.new_ids))
    return view


def refresh_view(
    result: IngestResult,
    query: str = "",
    now: datetime | None = None,
    strategy: str = DEFAULT_STRATEGY,
    labels: Mapping[str, str] | None = None,
) -> DashboardView:
    """Hierarchy, search and buckets over an already ingested snapshot.

    Used on its own when only the search query changes between polls.
    """
    tops = top_level(result.capabilities)
    matched = filter_by_search(tops, query, strategy)
    return DashboardView(
        capabilities=list(result.capabilities),
        top_level=tops,
        children=build_children_index(result.capabilities),
        parent_map=dict(result.parent_map),
        matched=matched,
        buckets=bucket_by_recency(matched, now, labels),
        servers=sorted(result.servers),
        query=query,
        stats=result.stats,
        generated_at=now,
    )
