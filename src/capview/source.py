"""
capview.source - Fetch the raw hypergraph payload.

The payload comes either from an HTTP endpoint of the learning system or
from a JSON file on disk. Any failure to obtain a well-formed payload is a
transport failure and raises TransportError; nothing is partially applied.
"""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_TIMEOUT_SECONDS = 10
HYPERGRAPH_ENDPOINT = "/api/graph/hypergraph"


class TransportError(Exception):
    """The payload could not be fetched or decoded."""


def _check_payload(data: Any, origin: str) -> dict[str, Any]:
    if not isinstance(data, dict) or not isinstance(data.get("nodes", []), list):
        raise TransportError(f"{origin}: payload is not a node/edge object")
    return data


def load_payload_file(path: Path) -> dict[str, Any]:
    """Read a payload from a JSON file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TransportError(f"Cannot read {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TransportError(f"{path}: invalid JSON: {e}") from e
    return _check_payload(data, str(path))


def hypergraph_url(base_url: str, include_traces: bool = True) -> str:
    """Build the hypergraph endpoint URL from a base URL.

    A URL that already points at a path other than the bare host is used
    as-is.
    """
    base = base_url.rstrip("/")
    if urllib.parse.urlparse(base).path not in ("", "/"):
        return base
    url = base + HYPERGRAPH_ENDPOINT
    if include_traces:
        url += "?include_traces=true"
    return url


def fetch_payload(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> dict[str, Any]:
    """Fetch a payload over HTTP.

    Raises:
        TransportError: On malformed URLs, connection errors, non-2xx
            status, truncated responses, or invalid JSON.
    """
    try:
        req = urllib.request.Request(
            url,
            headers={"Accept": "application/json", "Cache-Control": "no-store"},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        raise TransportError(f"HTTP {e.code}") from e
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise TransportError(f"Cannot reach {url}: {e}") from e
    except ValueError as e:
        raise TransportError(f"Invalid URL {url!r}: {e}") from e
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"{url}: invalid JSON: {e}") from e
    return _check_payload(data, url)


@dataclass
class PayloadSource:
    """Where payloads are pulled from: a URL or a file path."""

    url: str | None = None
    path: Path | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> PayloadSource:
        section = config.get("source", {})
        path = section.get("path") or None
        return cls(
            url=section.get("url") or None,
            path=Path(path) if path else None,
            timeout=float(section.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
        )

    def describe(self) -> str:
        if self.path is not None:
            return str(self.path)
        return self.url or "<unconfigured>"

    def load(self) -> dict[str, Any]:
        """Pull one payload. A file path takes precedence over a URL."""
        if self.path is not None:
            return load_payload_file(self.path)
        if self.url:
            return fetch_payload(hypergraph_url(self.url), self.timeout)
        raise TransportError("No payload source configured (set source.url or source.path)")
