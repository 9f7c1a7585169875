"""
capview.config - Configuration loading and defaults

Configuration lives in ``.capview.toml``, found by walking up from the
working directory. Values are deep-merged over DEFAULT_CONFIG, then
``CAPVIEW_<SECTION>_<KEY>`` environment variables are applied on top.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Mapping

import tomlkit
from tomlkit.exceptions import ParseError

from capview.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "apply_env_overrides",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
]


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML content, keeping comments and layout for round-trips."""
    return tomlkit.parse(content)


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML content into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def find_config_file(start: Path) -> Path | None:
    """Find ``.capview.toml`` in ``start`` or any parent directory."""
    current = start.resolve()
    if current.is_file():
        current = current.parent
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value in ``override``
    replaces the base value.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a config file and merge it over the defaults.

    Raises:
        ValueError: If the file is not valid TOML.
    """
    content = config_path.read_text(encoding="utf-8")
    try:
        user = parse_toml(content)
    except ParseError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e
    return merge_configs(DEFAULT_CONFIG, user)


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment value into a typed Python value.

    JSON arrays/objects, booleans, ints and floats are recognised; anything
    else (including malformed JSON) stays a string.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        return float(stripped)
    except ValueError:
        return value


def apply_env_overrides(
    config: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Apply ``CAPVIEW_<SECTION>_<KEY>`` overrides to ``config`` in place.

    The section is the first underscore-separated part after the prefix;
    the remainder, lowercased, is the key (so ``CAPVIEW_SESSION_HIGHLIGHT_MS``
    sets ``session.highlight_ms``).
    """
    env = os.environ if environ is None else environ
    for name in sorted(env):
        if not name.startswith(ENV_PREFIX):
            continue
        section, sep, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not sep or not section or not key:
            continue
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(env[name])
    return config


def get_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Resolve the effective configuration.

    Args:
        config_path: Explicit config file; skips discovery.
        start_dir: Where discovery starts (defaults to the working directory).
        environ: Environment mapping for overrides (defaults to os.environ).

    Returns:
        Merged configuration dict.
    """
    if config_path is None:
        config_path = find_config_file(start_dir or Path.cwd())
    if config_path is not None:
        config = load_config(config_path)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)
    return apply_env_overrides(config, environ)
