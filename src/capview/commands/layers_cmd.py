"""
capview.commands.layers_cmd - Show the parallel layers of a capability's latest run.
"""

from __future__ import annotations

import argparse
import json
import sys

from capview.commands.common import build_dashboard
from capview.graph.layers import sorted_layers
from capview.serialize import serialize_layers


def run(args: argparse.Namespace) -> int:
    """Run the layers command."""
    dashboard, _ = build_dashboard(args)
    view = dashboard.refresh()
    if view is None:
        print(f"Error: {dashboard.error}", file=sys.stderr)
        return 1

    cap = view.get_capability(args.capability_id)
    if cap is None:
        print(f"Error: capability {args.capability_id} not found", file=sys.stderr)
        return 1

    layers = view.layers.get(cap.id, {})
    if getattr(args, "format", "text") == "json":
        print(json.dumps(serialize_layers(layers, view.colors), indent=2))
        return 0

    print(f"{cap.name} [{cap.id}]")
    if not layers:
        print("  (no tools)")
        return 0
    for index, descriptors in sorted_layers(layers):
        names = ", ".join(
            f"{d.server}:{d.name}" + ("" if d.known else " (?)") for d in descriptors
        )
        print(f"  layer {index}: {names}")
    return 0
