"""Payload builders shared by the test suite.

Each helper returns the raw ``{"data": {...}}`` shape the learning system
emits, so tests exercise the same boundary parsing as production.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def iso(when: datetime) -> str:
    return when.isoformat().replace("+00:00", "Z")


def ago(**kwargs: float) -> str:
    """ISO timestamp of NOW minus a timedelta."""
    return iso(NOW - timedelta(**kwargs))


def make_tool(
    tool_id: str,
    label: str | None = None,
    server: str | None = "filesystem",
    parents: list[str] | None = None,
    parent: str | None = None,
    module: str | None = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {"id": tool_id, "type": "tool", "label": label or tool_id}
    if server is not None:
        data["server"] = server
    if parents is not None:
        data["parents"] = parents
    if parent is not None:
        data["parent"] = parent
    if module is not None:
        data["module"] = module
    return {"data": data}


def make_capability(
    cap_id: str,
    label: str | None = None,
    usage_count: int | None = 1,
    **fields: Any,
) -> dict[str, Any]:
    data: dict[str, Any] = {"id": cap_id, "type": "capability", "label": label or cap_id}
    if usage_count is not None:
        data["usage_count"] = usage_count
    data.update(fields)
    return {"data": data}


def make_task(
    tool: str,
    layer_index: int | None = None,
    task_id: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    task: dict[str, Any] = {
        "task_id": task_id or f"t-{tool}",
        "tool": tool,
        "args": {},
        "result": None,
        "success": True,
        "duration_ms": 12,
    }
    if layer_index is not None:
        task["layer_index"] = layer_index
    task.update(fields)
    return task


def make_trace(
    trace_id: str,
    executed_at: str | None = None,
    tasks: list[dict[str, Any]] | None = None,
    success: bool = True,
    duration_ms: int = 40,
) -> dict[str, Any]:
    return {
        "id": trace_id,
        "executed_at": executed_at or iso(NOW),
        "success": success,
        "duration_ms": duration_ms,
        "priority": 0.5,
        "task_results": tasks or [],
    }


def make_edge(source: str, target: str, edge_type: str = "contains", camel: bool = False):
    key = "edgeType" if camel else "edge_type"
    return {"data": {"source": source, "target": target, key: edge_type}}


def make_payload(nodes: list[dict], edges: list[dict] | None = None) -> dict[str, Any]:
    return {"nodes": nodes, "edges": edges or []}


def sample_payload() -> dict[str, Any]:
    """A small graph: one meta-capability containing one child, plus a loner.

    - cap-etl (meta, used 2h ago) contains cap-read (used 10 days ago)
    - cap-report never used explicitly; last trace 3 days ago
    - cap-draft has zero usage and must disappear
    """
    return make_payload(
        nodes=[
            make_tool("read_file", server="filesystem", parents=["cap-read", "cap-etl"]),
            make_tool("query", server="std", module="database", parent="cap-etl"),
            make_tool("render_pdf", server="docs", parents=["cap-report"]),
            make_tool("lonely_tool", server="filesystem", parents=[]),
            make_capability(
                "cap-etl",
                "Extract Transform Load",
                usage_count=5,
                success_rate=0.8,
                last_used=ago(hours=2),
                hierarchy_level=1,
                description="Load records into the warehouse",
                fqdn="acme.pipelines.etl",
                traces=[
                    make_trace(
                        "tr-2",
                        executed_at=ago(hours=2),
                        tasks=[
                            make_task("filesystem:read_file", layer_index=0, task_id="a"),
                            make_task("std:query", layer_index=0, task_id="b"),
                            make_task("filesystem:read_file", layer_index=0, task_id="c"),
                            make_task("slack:post_message", layer_index=1, task_id="d"),
                        ],
                    ),
                    make_trace(
                        "tr-1",
                        executed_at=ago(days=1),
                        tasks=[make_task("docs:render_pdf", layer_index=3)],
                    ),
                ],
            ),
            make_capability(
                "cap-read",
                "Read Config",
                usage_count=2,
                success_rate=1.0,
                last_used=ago(days=10),
            ),
            make_capability(
                "cap-report",
                "Weekly Report",
                usage_count=1,
                intent="Summarise the week as a PDF",
                traces=[make_trace("tr-r", executed_at=ago(days=3))],
            ),
            make_capability("cap-draft", "Speculative", usage_count=0),
        ],
        edges=[
            make_edge("cap-etl", "cap-read"),
            make_edge("cap-etl", "cap-draft"),
            make_edge("cap-read", "read_file", edge_type="hierarchy"),
        ],
    )
