"""Relations - Edge kinds of the hypergraph payload.

This module defines the raw edges between payload nodes:
- EdgeKind: Enum of relationship types
- RawEdge: A typed edge between two node ids
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EdgeKind(Enum):
    """Types of edges in the hypergraph.

    Only CONTAINS carries hierarchy semantics; the others are informational
    relations produced by the learning system:
    - CONTAINS: Parent capability contains child capability
    - SEQUENCE: Observed execution order between nodes
    - DEPENDENCY: Data dependency between nodes
    - HIERARCHY: Tool-to-capability membership
    """

    CONTAINS = "contains"
    SEQUENCE = "sequence"
    DEPENDENCY = "dependency"
    HIERARCHY = "hierarchy"

    @classmethod
    def parse(cls, value: str | None) -> EdgeKind | None:
        """Map a raw edge type string to an EdgeKind, or None if unknown."""
        if not value:
            return None
        try:
            return cls(str(value).lower())
        except ValueError:
            return None

    def is_containment(self) -> bool:
        """Check if this edge kind denotes capability containment."""
        return self is EdgeKind.CONTAINS


@dataclass(frozen=True)
class RawEdge:
    """An edge between two node ids.

    ``kind`` is None when the payload used an edge type this engine does
    not know; ``raw_kind`` keeps the original string.
    """

    source: str
    target: str
    kind: EdgeKind | None
    raw_kind: str = ""
    observed_count: int = 1

    @property
    def is_containment(self) -> bool:
        return self.kind is not None and self.kind.is_containment()
