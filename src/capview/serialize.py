"""View Serialization - Export derived views to JSON-compatible dicts.

This module provides functions to serialize a DashboardView and its
capabilities, traces and layer maps for the REST API and the CLI.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from capview.graph.hierarchy import ancestry

if TYPE_CHECKING:
    from capview.graph.layers import LayerMap
    from capview.graph.nodes import Capability, TaskResult, Tool, Trace
    from capview.pipeline import DashboardView
    from capview.timeline import TimeBucket


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_tool(tool: Tool, colors: dict[str, str]) -> dict[str, Any]:
    return {
        "id": tool.id,
        "name": tool.name,
        "server": tool.server,
        "color": colors.get(tool.server),
    }


def serialize_task(task: TaskResult) -> dict[str, Any]:
    result: dict[str, Any] = {
        "task_id": task.task_id,
        "tool": task.tool_ref,
        "args": task.args,
        "result": task.result,
        "success": task.success,
        "duration_ms": task.duration_ms,
        "layer_index": task.layer,
    }
    if task.loop is not None:
        result["loop"] = {
            "loop_id": task.loop.loop_id,
            "loop_type": task.loop.loop_type,
            "loop_condition": task.loop.loop_condition,
            "body_tools": list(task.loop.body_tools),
        }
    return result


def serialize_trace(trace: Trace, include_tasks: bool = True) -> dict[str, Any]:
    """Serialize a trace; without tasks it is the sparkline summary."""
    result: dict[str, Any] = {
        "success": trace.success,
        "duration_ms": trace.duration_ms,
    }
    if include_tasks:
        result.update(
            {
                "id": trace.id,
                "executed_at": _timestamp(trace.executed_at),
                "priority": trace.priority,
                "error_message": trace.error_message,
                "task_results": [serialize_task(t) for t in trace.task_results],
            }
        )
    return result


def serialize_layers(layers: LayerMap, colors: dict[str, str]) -> list[dict[str, Any]]:
    """Serialize a layer map as a list ordered by layer index."""
    return [
        {
            "index": index,
            "tools": [
                {
                    "id": d.id,
                    "name": d.name,
                    "server": d.server,
                    "known": d.known,
                    "color": colors.get(d.server),
                }
                for d in layers[index]
            ],
        }
        for index in sorted(layers)
    ]


def serialize_capability(
    cap: Capability,
    view: DashboardView,
    include_traces: bool = False,
    include_children: bool = True,
) -> dict[str, Any]:
    """Serialize a capability with its tools, layers and children.

    Args:
        cap: The capability to serialize.
        view: The view it belongs to (colors, layers, children).
        include_traces: Include full traces instead of sparkline summaries.
        include_children: Nest child capabilities.

    Returns:
        Dict suitable for JSON serialization.
    """
    result: dict[str, Any] = {
        "id": cap.id,
        "name": cap.name,
        "description": cap.description,
        "success_rate": cap.success_rate,
        "usage_count": cap.usage_count,
        "last_used": _timestamp(cap.last_used_at),
        "parent_id": cap.parent_id,
        "ancestors": ancestry(cap.id, view.parent_map),
        "hierarchy_level": cap.hierarchy_level,
        "is_meta": cap.is_meta,
        "community_id": cap.community_id,
        "pagerank": cap.pagerank,
        "fqdn": cap.fqdn,
        "is_new": cap.id in view.new_ids,
        "tools": [serialize_tool(t, view.colors) for t in cap.tools],
        "layers": serialize_layers(view.layers.get(cap.id, {}), view.colors),
        "traces": [serialize_trace(t, include_tasks=include_traces) for t in cap.traces],
    }
    if cap.code_snippet:
        result["code_snippet"] = cap.code_snippet
    if include_children:
        result["children"] = [
            serialize_capability(child, view, include_traces, include_children=True)
            for child in view.children.get(cap.id, [])
        ]
    return result


def serialize_bucket(bucket: TimeBucket, view: DashboardView) -> dict[str, Any]:
    return {
        "key": bucket.key,
        "label": bucket.label,
        "capabilities": [serialize_capability(cap, view) for cap in bucket.capabilities],
    }


def serialize_view(view: DashboardView) -> dict[str, Any]:
    """Serialize a whole DashboardView."""
    return {
        "generated_at": _timestamp(view.generated_at),
        "query": view.query,
        "buckets": [serialize_bucket(b, view) for b in view.buckets],
        "new_ids": sorted(view.new_ids),
        "highlight_ms": view.highlight_ms,
        "servers": list(view.servers),
        "colors": dict(view.colors),
        "stats": {
            **view.stats.to_dict(),
            "capabilities": len(view.capabilities),
            "top_level": len(view.top_level),
            "matched": len(view.matched),
        },
    }
