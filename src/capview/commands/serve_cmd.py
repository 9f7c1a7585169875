"""
capview.commands.serve_cmd - Run the REST API server.
"""

from __future__ import annotations

import argparse
import sys

from capview.commands.common import build_dashboard


def run(args: argparse.Namespace) -> int:
    """Run the serve command."""
    from capview.server import create_app

    dashboard, config = build_dashboard(args)
    host = getattr(args, "host", None) or config["server"]["host"]
    port = getattr(args, "port", None) or int(config["server"]["port"])

    if dashboard.refresh() is None:
        print(f"Warning: initial load failed: {dashboard.error}", file=sys.stderr)

    app = create_app(dashboard)
    if not getattr(args, "quiet", False):
        print(f"capview serving on http://{host}:{port}/api/view", file=sys.stderr)
    app.run(host=host, port=port, threaded=True)
    return 0
