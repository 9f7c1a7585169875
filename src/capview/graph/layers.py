"""TraceLayerBuilder - Reconstruct the parallel layers of the latest run.

Two tasks sharing a layer index ran concurrently. Only the most recent
trace is used; older traces are never merged into the layer map.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from capview.graph.nodes import UNKNOWN_SERVER, Tool, Trace

TOOL_SEPARATOR = ":"


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as shown in a flow layer.

    ``known`` is False for placeholders synthesized from an unresolved
    task reference.
    """

    id: str
    name: str
    server: str
    known: bool = True

    @classmethod
    def from_tool(cls, tool: Tool) -> ToolDescriptor:
        return cls(id=tool.id, name=tool.name, server=tool.server)

    @classmethod
    def placeholder(cls, tool_ref: str) -> ToolDescriptor:
        """Synthesize a descriptor from a raw ``server:name`` reference."""
        server, sep, name = tool_ref.partition(TOOL_SEPARATOR)
        if not sep:
            return cls(id=tool_ref, name=tool_ref, server=UNKNOWN_SERVER, known=False)
        return cls(id=tool_ref, name=name, server=server or UNKNOWN_SERVER, known=False)


LayerMap = dict[int, list[ToolDescriptor]]


def _resolve(tool_ref: str, by_name: dict[str, ToolDescriptor]) -> ToolDescriptor:
    """Exact name, then short name after the last separator, then placeholder."""
    found = by_name.get(tool_ref)
    if found is None and TOOL_SEPARATOR in tool_ref:
        found = by_name.get(tool_ref.rsplit(TOOL_SEPARATOR, 1)[-1])
    return found if found is not None else ToolDescriptor.placeholder(tool_ref)


def _single_layer(tools: Sequence[Tool]) -> LayerMap:
    if not tools:
        return {}
    seen: set[str] = set()
    layer: list[ToolDescriptor] = []
    for tool in tools:
        if tool.id not in seen:
            seen.add(tool.id)
            layer.append(ToolDescriptor.from_tool(tool))
    return {0: layer}


def build_tool_layers(tools: Sequence[Tool], traces: Sequence[Trace]) -> LayerMap:
    """Group the tools of a capability's latest run by layer index.

    Args:
        tools: Known tool members of the capability.
        traces: Capability traces, newest first.

    Returns:
        Mapping of layer index to tool descriptors, de-duplicated per
        layer, keys in first-seen order. Falls back to a single layer 0
        holding every known tool when there is nothing to reconstruct.
    """
    if not traces or not traces[0].task_results:
        return _single_layer(tools)

    by_name: dict[str, ToolDescriptor] = {}
    for tool in tools:
        by_name[tool.name] = ToolDescriptor.from_tool(tool)

    layers: LayerMap = {}
    seen_per_layer: dict[int, set[str]] = {}
    for task in traces[0].task_results:
        index = task.layer
        layer = layers.setdefault(index, [])
        seen = seen_per_layer.setdefault(index, set())
        if task.tool_ref in seen:
            continue
        seen.add(task.tool_ref)
        layer.append(_resolve(task.tool_ref, by_name))
    return layers


def sorted_layers(layers: LayerMap) -> Iterator[tuple[int, list[ToolDescriptor]]]:
    """Iterate layers in ascending index order."""
    for index in sorted(layers):
        yield index, layers[index]
