"""
capview.commands.common - Shared setup for CLI commands.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from capview.config import get_config
from capview.dashboard import Dashboard
from capview.source import PayloadSource


def load_settings(args: argparse.Namespace) -> dict[str, Any]:
    """Effective config with ``--payload``/``--url`` applied over the file."""
    config = get_config(getattr(args, "config", None))
    payload = getattr(args, "payload", None)
    url = getattr(args, "url", None)
    if payload:
        config["source"]["path"] = str(payload)
    if url:
        config["source"]["url"] = url
        if not payload:
            config["source"]["path"] = ""
    return config


def build_dashboard(args: argparse.Namespace) -> tuple[Dashboard, dict[str, Any]]:
    """Dashboard wired to the configured payload source."""
    config = load_settings(args)
    source = PayloadSource.from_config(config)
    return Dashboard.from_config(source.load, config), config


def payload_path(value: str) -> Path:
    return Path(value).expanduser()
