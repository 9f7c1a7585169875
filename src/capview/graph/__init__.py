"""
capview.graph - Typed hypergraph records and their derivation.

Exports:
- NodeKind, Tool, Capability, Trace, TaskResult, LoopInfo
- EdgeKind, RawEdge
- ingest, IngestResult, IngestStats
- build_tool_layers, ToolDescriptor
"""

from capview.graph.ingest import IngestResult, IngestStats, ingest
from capview.graph.layers import ToolDescriptor, build_tool_layers
from capview.graph.nodes import Capability, LoopInfo, NodeKind, TaskResult, Tool, Trace
from capview.graph.relations import EdgeKind, RawEdge

__all__ = [
    "Capability",
    "EdgeKind",
    "IngestResult",
    "IngestStats",
    "LoopInfo",
    "NodeKind",
    "RawEdge",
    "TaskResult",
    "Tool",
    "ToolDescriptor",
    "Trace",
    "build_tool_layers",
    "ingest",
]
