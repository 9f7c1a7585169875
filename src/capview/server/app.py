"""capview.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper. All derivation lives in ``capview.pipeline``
and ``capview.dashboard``; routes only serialize the current view.

The dev server is threaded, so every access to the Dashboard goes through
one lock.
"""

from __future__ import annotations

import threading

from flask import Flask, jsonify, request
from flask_cors import CORS

from capview.dashboard import Dashboard
from capview.serialize import serialize_capability, serialize_layers, serialize_view


def _is_truthy(value: str | None) -> bool:
    return (value or "").lower() in ("1", "true", "yes", "on")


def create_app(dashboard: Dashboard) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        dashboard: Poll controller; refreshed on the first request if it has
            no view yet.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    lock = threading.Lock()

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    def _error_response():
        return (
            jsonify({"error": dashboard.error, "retry": "/api/refresh"}),
            502,
        )

    def _ensure_view() -> bool:
        if dashboard.view is None and dashboard.error is None:
            dashboard.refresh()
        return dashboard.view is not None

    # ─────────────────────────────────────────────────────────────────
    # View routes
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/view")
    def get_view():
        """Current view, filtered by ``?q=``."""
        query = request.args.get("q", "")
        with lock:
            if not _ensure_view():
                return _error_response()
            if query != dashboard.query:
                dashboard.search(query)
            return jsonify(serialize_view(dashboard.view))

    @app.route("/api/capabilities/<capability_id>")
    def get_capability(capability_id: str):
        include_traces = _is_truthy(request.args.get("traces"))
        with lock:
            if not _ensure_view():
                return _error_response()
            view = dashboard.view
            cap = view.get_capability(capability_id)
            if cap is None:
                return jsonify({"error": f"Capability {capability_id} not found"}), 404
            return jsonify(serialize_capability(cap, view, include_traces=include_traces))

    @app.route("/api/capabilities/<capability_id>/layers")
    def get_layers(capability_id: str):
        with lock:
            if not _ensure_view():
                return _error_response()
            view = dashboard.view
            if view.get_capability(capability_id) is None:
                return jsonify({"error": f"Capability {capability_id} not found"}), 404
            return jsonify(
                {
                    "id": capability_id,
                    "layers": serialize_layers(view.layers.get(capability_id, {}), view.colors),
                }
            )

    # ─────────────────────────────────────────────────────────────────
    # Control routes
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/refresh", methods=["POST"])
    def refresh():
        """Re-pull the payload. ``?silent=1`` for push-triggered reloads."""
        silent = _is_truthy(request.args.get("silent"))
        with lock:
            view = dashboard.refresh(silent=silent)
            if view is None:
                return _error_response()
            return jsonify(
                {
                    "success": True,
                    "silent": silent,
                    "new_ids": sorted(view.new_ids),
                    "highlight_ms": view.highlight_ms,
                }
            )

    @app.route("/api/status")
    def status():
        with lock:
            return jsonify(dashboard.status())

    return app
