"""
Capability hierarchy resolution and traversal utilities.

Centralized functions for capability hierarchy operations:
- Parent resolution from containment edges
- Cycle detection and breaking
- Children index and top-level selection
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from capview.graph.nodes import Capability
from capview.graph.relations import RawEdge

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


@dataclass
class CycleInfo:
    """Pure data structure for cycle detection results."""

    cycle_members: set[str] = field(default_factory=set)
    cycle_paths: list[list[str]] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycle_members)


# -----------------------------------------------------------------------------
# Parent Resolution
# -----------------------------------------------------------------------------


def resolve_parents(capability_ids: set[str], edges: Iterable[RawEdge]) -> dict[str, str]:
    """Build child_id -> parent_id mapping from containment edges.

    Only edges joining two capabilities of ``capability_ids`` count. When a
    child is claimed by several edges the last one wins.

    Args:
        capability_ids: Ids of capabilities with nonzero usage.
        edges: Raw payload edges.

    Returns:
        Dict mapping each child capability id to its parent id.
    """
    parents: dict[str, str] = {}
    for edge in edges:
        if not edge.is_containment:
            continue
        if edge.source not in capability_ids or edge.target not in capability_ids:
            continue
        if edge.source == edge.target:
            continue
        previous = parents.get(edge.target)
        if previous is not None and previous != edge.source:
            logger.debug(
                "capability %s claimed by %s and %s; keeping %s",
                edge.target,
                previous,
                edge.source,
                edge.source,
            )
        parents[edge.target] = edge.source
    return parents


# -----------------------------------------------------------------------------
# Cycle Detection
# -----------------------------------------------------------------------------


def detect_cycles(parent_map: dict[str, str]) -> CycleInfo:
    """Detect cycles in a child -> parent map. PURE - no mutation.

    Each node has at most one parent, so every chain either ends at a root
    or loops back onto itself.

    Args:
        parent_map: Dict mapping child id to parent id.

    Returns:
        CycleInfo with cycle_members and cycle_paths
    """
    cycle_members: set[str] = set()
    cycle_paths: list[list[str]] = []
    settled: set[str] = set()

    for start in parent_map:
        if start in settled:
            continue
        path: list[str] = []
        position: dict[str, int] = {}
        current: str | None = start
        while current is not None and current not in settled:
            if current in position:
                loop = path[position[current] :]
                cycle_paths.append(loop + [current])
                cycle_members.update(loop)
                break
            position[current] = len(path)
            path.append(current)
            current = parent_map.get(current)
        settled.update(path)

    return CycleInfo(cycle_members=cycle_members, cycle_paths=cycle_paths)


def break_cycles(parent_map: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``parent_map`` with every cycle member made top-level.

    Nodes hanging off a cycle keep their parent, so the result is a forest.
    """
    info = detect_cycles(parent_map)
    if not info.has_cycles:
        return dict(parent_map)
    for loop in info.cycle_paths:
        logger.warning("containment cycle dropped: %s", " -> ".join(loop))
    return {
        child: parent for child, parent in parent_map.items() if child not in info.cycle_members
    }


def ancestry(
    capability_id: str,
    parent_map: dict[str, str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[str]:
    """Walk the parent chain of a capability, nearest parent first.

    Stops at a root, at ``max_depth`` steps, or before revisiting a node.
    """
    chain: list[str] = []
    seen = {capability_id}
    current = parent_map.get(capability_id)
    while current is not None and len(chain) < max_depth:
        if current in seen:
            break
        chain.append(current)
        seen.add(current)
        current = parent_map.get(current)
    return chain


# -----------------------------------------------------------------------------
# Hierarchy Building
# -----------------------------------------------------------------------------


def build_children_index(
    capabilities: Sequence[Capability],
) -> dict[str, list[Capability]]:
    """Build parent_id -> [child capabilities] mapping, in capability order."""
    index: dict[str, list[Capability]] = {}
    for cap in capabilities:
        if cap.parent_id:
            index.setdefault(cap.parent_id, []).append(cap)
    return index


def top_level(capabilities: Sequence[Capability]) -> list[Capability]:
    """Capabilities without a parent."""
    return [cap for cap in capabilities if not cap.parent_id]
