"""capview.server - REST API over the derived dashboard view."""

from capview.server.app import create_app

__all__ = ["create_app"]
