"""Typed records for the capability hypergraph.

This module provides the core data structures of a derived snapshot:
- NodeKind: Enum of raw node types
- Tool: A tool attached to one or more capabilities
- TaskResult / LoopInfo: One task of an execution trace
- Trace: One recorded execution of a capability
- Capability: A learned, reusable composite action
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

UNKNOWN_SERVER = "unknown"
BUILTIN_SERVER = "std"


class NodeKind(Enum):
    """Types of nodes in the hypergraph payload."""

    TOOL = "tool"
    CAPABILITY = "capability"


@dataclass(frozen=True)
class Tool:
    """A tool with a resolved server identity.

    Attributes:
        id: Unique tool identifier.
        name: Display label.
        server: Server the tool belongs to, never empty.
        parent_capability_ids: Capabilities this tool belongs to, in payload order.
    """

    id: str
    name: str
    server: str = UNKNOWN_SERVER
    parent_capability_ids: tuple[str, ...] = ()

    @property
    def is_hyperedge(self) -> bool:
        """True if the tool is shared by more than one capability."""
        return len(self.parent_capability_ids) > 1


@dataclass(frozen=True)
class LoopInfo:
    """Loop metadata attached to a task. Carried through uninterpreted."""

    loop_id: str | None = None
    loop_type: str | None = None
    loop_condition: str | None = None
    body_tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class TaskResult:
    """Outcome of one task within a trace."""

    task_id: str
    tool_ref: str
    args: Any = None
    result: Any = None
    success: bool = False
    duration_ms: float = 0.0
    layer_index: int | None = None
    loop: LoopInfo | None = None

    @property
    def layer(self) -> int:
        """Layer index, defaulting to 0 when absent."""
        return self.layer_index if self.layer_index is not None else 0


@dataclass(frozen=True)
class Trace:
    """One execution record of a capability."""

    id: str
    executed_at: datetime | None = None
    success: bool = False
    duration_ms: float = 0.0
    priority: float = 0.0
    error_message: str | None = None
    capability_id: str | None = None
    task_results: tuple[TaskResult, ...] = ()


@dataclass(frozen=True)
class Capability:
    """A capability with nonzero usage.

    Traces are kept newest-first, as delivered upstream. ``parent_id`` is
    only set when the parent is itself a capability in the same snapshot.
    """

    id: str
    name: str
    usage_count: int
    success_rate: float = 0.0
    description: str | None = None
    last_used_at: datetime | None = None
    parent_id: str | None = None
    hierarchy_level: int = 0
    community_id: int | None = None
    pagerank: float = 0.0
    fqdn: str | None = None
    code_snippet: str | None = None
    tools: tuple[Tool, ...] = ()
    traces: tuple[Trace, ...] = field(default=(), repr=False)

    @property
    def is_meta(self) -> bool:
        """True for meta-capabilities (composed of other capabilities)."""
        return self.hierarchy_level > 0

    @property
    def latest_trace(self) -> Trace | None:
        """Most recent trace, if any."""
        return self.traces[0] if self.traces else None
