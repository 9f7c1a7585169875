"""GraphIngestor - Parse a raw hypergraph payload into typed records.

The payload is a flat, denormalized node/edge snapshot produced by the
learning system. Nodes are first converted into a tagged union
(RawToolNode | RawCapabilityNode) at the boundary, then into the typed
Tool and Capability records of ``capview.graph.nodes``.

Missing optional fields are defaulted; nodes without an id or a known type
are dropped. Nothing here raises on bad data.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Union

from capview.graph.hierarchy import break_cycles, resolve_parents
from capview.graph.nodes import (
    BUILTIN_SERVER,
    UNKNOWN_SERVER,
    Capability,
    LoopInfo,
    NodeKind,
    TaskResult,
    Tool,
    Trace,
)
from capview.graph.relations import EdgeKind, RawEdge

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class RawToolNode:
    """Tool-typed payload node."""

    id: str
    label: str
    server: str | None
    module: str | None
    parents: tuple[str, ...]


@dataclass(frozen=True)
class RawCapabilityNode:
    """Capability-typed payload node."""

    id: str
    data: Mapping[str, Any]


RawNode = Union[RawToolNode, RawCapabilityNode]


@dataclass
class IngestStats:
    """Data-quality counters for one snapshot."""

    total_nodes: int = 0
    dropped_nodes: int = 0
    dropped_edges: int = 0
    orphan_tools: int = 0
    hyperedge_tools: int = 0
    unused_capabilities: int = 0
    cycles_broken: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_nodes": self.total_nodes,
            "dropped_nodes": self.dropped_nodes,
            "dropped_edges": self.dropped_edges,
            "orphan_tools": self.orphan_tools,
            "hyperedge_tools": self.hyperedge_tools,
            "unused_capabilities": self.unused_capabilities,
            "cycles_broken": self.cycles_broken,
        }


@dataclass
class IngestResult:
    """Typed view of one payload snapshot."""

    tools: dict[str, Tool] = field(default_factory=dict)
    capabilities: list[Capability] = field(default_factory=list)
    servers: set[str] = field(default_factory=set)
    edges: list[RawEdge] = field(default_factory=list)
    parent_map: dict[str, str] = field(default_factory=dict)
    stats: IngestStats = field(default_factory=IngestStats)

    def get_capability(self, capability_id: str) -> Capability | None:
        for cap in self.capabilities:
            if cap.id == capability_id:
                return cap
        return None


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _node_data(raw: Any) -> Mapping[str, Any] | None:
    """Accept both {"data": {...}} and bare {...} node shapes."""
    if not isinstance(raw, Mapping):
        return None
    data = raw.get("data", raw)
    return data if isinstance(data, Mapping) else None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _as_layer_index(value: Any) -> int | None:
    """Layer indices must be non-negative integers; anything else is absent."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        index = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return index if index >= 0 else None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    Naive values are taken as UTC. Unparseable values yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parent_refs(data: Mapping[str, Any]) -> tuple[str, ...]:
    """Parent capability ids, from either ``parents`` or singular ``parent``."""
    parents = data.get("parents")
    if parents is None:
        parent = data.get("parent")
        parents = [parent] if parent else []
    elif isinstance(parents, str):
        parents = [parents]
    refs = []
    for ref in parents:
        text = _as_str(ref)
        if text and text not in refs:
            refs.append(text)
    return tuple(refs)


def resolve_server(server: str | None, module: str | None) -> str:
    """Display server for a tool.

    The built-in marker is replaced by the tool's module when present.
    Missing servers map to the "unknown" sentinel.
    """
    if not server:
        return UNKNOWN_SERVER
    if server == BUILTIN_SERVER and module:
        return module
    return server


# ---------------------------------------------------------------------------
# Boundary: raw payload -> tagged union
# ---------------------------------------------------------------------------


def parse_node(raw: Any) -> RawNode | None:
    """Convert one payload node into a RawToolNode or RawCapabilityNode.

    Returns None for nodes missing an id or carrying an unknown type.
    """
    data = _node_data(raw)
    if data is None:
        return None
    node_id = _as_str(data.get("id"))
    if node_id is None:
        return None
    try:
        kind = NodeKind(data.get("type"))
    except ValueError:
        return None

    if kind is NodeKind.TOOL:
        return RawToolNode(
            id=node_id,
            label=_as_str(data.get("label")) or node_id,
            server=_as_str(data.get("server")),
            module=_as_str(data.get("module")),
            parents=_parent_refs(data),
        )
    return RawCapabilityNode(id=node_id, data=data)


def parse_edge(raw: Any) -> RawEdge | None:
    """Convert one payload edge; None if source or target is missing."""
    data = _node_data(raw)
    if data is None:
        return None
    source = _as_str(data.get("source"))
    target = _as_str(data.get("target"))
    if source is None or target is None:
        return None
    raw_kind = _as_str(data.get("edge_type")) or _as_str(data.get("edgeType")) or ""
    return RawEdge(
        source=source,
        target=target,
        kind=EdgeKind.parse(raw_kind),
        raw_kind=raw_kind,
        observed_count=_as_int(data.get("observed_count"), 1),
    )


def parse_task_result(raw: Mapping[str, Any]) -> TaskResult:
    """Build a TaskResult; loop metadata is kept as-is."""
    loop = None
    if any(key in raw for key in ("loop_id", "loop_type", "loop_condition", "body_tools")):
        body = raw.get("body_tools") or ()
        loop = LoopInfo(
            loop_id=_as_str(raw.get("loop_id")),
            loop_type=_as_str(raw.get("loop_type")),
            loop_condition=_as_str(raw.get("loop_condition")),
            body_tools=tuple(str(tool) for tool in body) if isinstance(body, list) else (),
        )
    return TaskResult(
        task_id=_as_str(raw.get("task_id")) or "",
        tool_ref=_as_str(raw.get("tool")) or "",
        args=raw.get("args"),
        result=raw.get("result"),
        success=bool(raw.get("success", False)),
        duration_ms=_as_float(raw.get("duration_ms")),
        layer_index=_as_layer_index(raw.get("layer_index")),
        loop=loop,
    )


def parse_trace(raw: Mapping[str, Any]) -> Trace:
    """Build a Trace from its payload shape."""
    results = raw.get("task_results") or []
    return Trace(
        id=_as_str(raw.get("id")) or "",
        executed_at=parse_timestamp(raw.get("executed_at")),
        success=bool(raw.get("success", False)),
        duration_ms=_as_float(raw.get("duration_ms")),
        priority=_as_float(raw.get("priority")),
        error_message=_as_str(raw.get("error_message")),
        capability_id=_as_str(raw.get("capability_id")),
        task_results=tuple(
            parse_task_result(item) for item in results if isinstance(item, Mapping)
        ),
    )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


def _build_tools(nodes: Iterable[RawToolNode], stats: IngestStats) -> tuple[dict[str, Tool], set[str]]:
    tools: dict[str, Tool] = {}
    servers: set[str] = set()
    for node in nodes:
        if not node.parents:
            stats.orphan_tools += 1
            continue
        server = resolve_server(node.server, node.module)
        tool = Tool(
            id=node.id,
            name=node.label,
            server=server,
            parent_capability_ids=node.parents,
        )
        if tool.is_hyperedge:
            stats.hyperedge_tools += 1
        tools[node.id] = tool
        servers.add(server)
    return tools, servers


def _build_capability(
    node: RawCapabilityNode,
    tools: tuple[Tool, ...],
    parent_id: str | None,
) -> Capability:
    data = node.data
    raw_traces = data.get("traces") or []
    traces = tuple(parse_trace(t) for t in raw_traces if isinstance(t, Mapping))

    last_used_at = parse_timestamp(data.get("last_used"))
    if last_used_at is None and traces:
        last_used_at = traces[0].executed_at

    community = data.get("community_id")
    return Capability(
        id=node.id,
        name=_as_str(data.get("label")) or node.id,
        usage_count=_as_int(data.get("usage_count")),
        success_rate=_as_float(data.get("success_rate")),
        description=_as_str(data.get("description")) or _as_str(data.get("intent")),
        last_used_at=last_used_at,
        parent_id=parent_id,
        hierarchy_level=max(_as_int(data.get("hierarchy_level")), 0),
        community_id=_as_int(community) if community is not None else None,
        pagerank=_as_float(data.get("pagerank")),
        fqdn=_as_str(data.get("fqdn")),
        code_snippet=_as_str(data.get("code_snippet")),
        tools=tools,
        traces=traces,
    )


def _recency_key(cap: Capability) -> datetime:
    return cap.last_used_at or EPOCH


def ingest(payload: Mapping[str, Any]) -> IngestResult:
    """Parse a raw hypergraph payload into typed records.

    Args:
        payload: Mapping with ``nodes`` and ``edges`` lists.

    Returns:
        IngestResult with tools keyed by id, capabilities sorted by
        recency (most recent first), the discovered servers, and stats.
    """
    stats = IngestStats()
    raw_nodes = payload.get("nodes") or []
    raw_edges = payload.get("edges") or []

    tool_nodes: list[RawToolNode] = []
    capability_nodes: list[RawCapabilityNode] = []
    for raw in raw_nodes:
        stats.total_nodes += 1
        node = parse_node(raw)
        if node is None:
            stats.dropped_nodes += 1
            logger.debug("dropping malformed node: %r", raw)
        elif isinstance(node, RawToolNode):
            tool_nodes.append(node)
        else:
            capability_nodes.append(node)

    edges: list[RawEdge] = []
    for raw in raw_edges:
        edge = parse_edge(raw)
        if edge is None:
            stats.dropped_edges += 1
            logger.debug("dropping malformed edge: %r", raw)
        else:
            edges.append(edge)

    # Pass 1: tools
    tools, servers = _build_tools(tool_nodes, stats)

    used_nodes = []
    for node in capability_nodes:
        if _as_int(node.data.get("usage_count")) > 0:
            used_nodes.append(node)
        else:
            stats.unused_capabilities += 1
    capability_ids = {node.id for node in used_nodes}

    resolved = resolve_parents(capability_ids, edges)
    parent_map = break_cycles(resolved)
    stats.cycles_broken = len(resolved) - len(parent_map)

    members: dict[str, list[Tool]] = {}
    for tool in tools.values():
        for parent in tool.parent_capability_ids:
            members.setdefault(parent, []).append(tool)

    # Pass 2: capabilities
    capabilities = [
        _build_capability(node, tuple(members.get(node.id, ())), parent_map.get(node.id))
        for node in used_nodes
    ]
    capabilities.sort(key=_recency_key, reverse=True)

    return IngestResult(
        tools=tools,
        capabilities=capabilities,
        servers=servers,
        edges=edges,
        parent_map=parent_map,
        stats=stats,
    )
