"""
capview.config.defaults - Default configuration values.
"""

from capview.search import DEFAULT_STRATEGY
from capview.session import DEFAULT_HIGHLIGHT_MS, SERVER_COLORS, UNKNOWN_COLOR
from capview.source import DEFAULT_TIMEOUT_SECONDS
from capview.timeline import DEFAULT_LABELS

CONFIG_FILENAME = ".capview.toml"
ENV_PREFIX = "CAPVIEW_"

DEFAULT_CONFIG = {
    "source": {
        "url": "",
        "path": "",
        "timeout": DEFAULT_TIMEOUT_SECONDS,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5007,
    },
    "session": {
        "highlight_ms": DEFAULT_HIGHLIGHT_MS,
    },
    "search": {
        "strategy": DEFAULT_STRATEGY,
    },
    "timeline": {
        "labels": dict(DEFAULT_LABELS),
    },
    "palette": {
        "colors": list(SERVER_COLORS),
        "unknown": UNKNOWN_COLOR,
    },
}
