"""
capview.commands.config_cmd - Inspect the effective configuration.

- `capview config path`   Location of the config file in use
- `capview config show`   Effective settings as TOML
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import tomlkit

from capview.config import find_config_file, get_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    if action == "path":
        return _show_path(args)
    if action == "show":
        return _show_config(args)
    print("Usage: capview config <path|show>", file=sys.stderr)
    return 1


def _show_path(args: argparse.Namespace) -> int:
    path = getattr(args, "config", None) or find_config_file(Path.cwd())
    if path is None:
        print("No .capview.toml found (using defaults)")
        return 1
    print(path)
    return 0


def _show_config(args: argparse.Namespace) -> int:
    config = get_config(getattr(args, "config", None))
    print(tomlkit.dumps(config), end="")
    return 0
