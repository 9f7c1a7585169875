"""
capview.commands.view_cmd - Print the capability timeline.

- `capview view`                  Timeline grouped by recency
- `capview view --query "db"`     Fuzzy-filtered timeline
- `capview view --format json`    Serialized view for tooling
"""

from __future__ import annotations

import argparse
import json
import sys

from capview.commands.common import build_dashboard
from capview.graph.nodes import Capability
from capview.pipeline import DashboardView
from capview.serialize import serialize_view


def run(args: argparse.Namespace) -> int:
    """Run the view command."""
    dashboard, _ = build_dashboard(args)
    dashboard.query = getattr(args, "query", "") or ""

    view = dashboard.refresh()
    if view is None:
        print(f"Error: {dashboard.error}", file=sys.stderr)
        return 1

    if getattr(args, "format", "text") == "json":
        print(json.dumps(serialize_view(view), indent=2))
        return 0

    print(format_view(view, show_stats=getattr(args, "stats", False)))
    return 0


def _format_capability(cap: Capability, view: DashboardView, indent: int, lines: list[str]) -> None:
    prefix = "  " * indent
    rate = f"{cap.success_rate * 100:.0f}%"
    tools = ", ".join(f"{t.server}:{t.name}" for t in cap.tools) or "-"
    lines.append(f"{prefix}- {cap.name} [{cap.id}] uses={cap.usage_count} ok={rate}")
    lines.append(f"{prefix}    tools: {tools}")
    for child in view.children.get(cap.id, []):
        _format_capability(child, view, indent + 1, lines)


def format_view(view: DashboardView, show_stats: bool = False) -> str:
    """Render a view as indented plain text."""
    lines: list[str] = []
    if view.query:
        lines.append(f'Search: "{view.query}" ({len(view.matched)} of {len(view.top_level)})')
        lines.append("")

    if not view.buckets:
        lines.append("No capabilities found")

    for bucket in view.buckets:
        lines.append(f"{bucket.label} ({len(bucket.capabilities)})")
        lines.append("=" * 60)
        for cap in bucket.capabilities:
            _format_capability(cap, view, 0, lines)
        lines.append("")

    if show_stats:
        lines.append("Snapshot")
        lines.append("-" * 60)
        for key, value in view.stats.to_dict().items():
            lines.append(f"  {key}: {value}")
        lines.append(f"  servers: {', '.join(view.servers) or '-'}")

    return "\n".join(lines).rstrip() + "\n"
