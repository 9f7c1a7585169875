"""
capview.session - State carried across polls of the same graph.

Everything derived from a payload is rebuilt per poll. The only state that
outlives a poll lives here:
- SnapshotDiffer: capability ids seen on the previous poll
- ServerPalette: server -> display color assignments
- SessionState: both of the above, owned by one viewing session
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from capview.graph.nodes import UNKNOWN_SERVER

SERVER_COLORS: tuple[str, ...] = (
    "#FFB86F",  # accent orange
    "#FF6B6B",  # coral red
    "#4ECDC4",  # teal
    "#FFE66D",  # bright yellow
    "#95E1D3",  # mint green
    "#F38181",  # salmon pink
    "#AA96DA",  # lavender
    "#FCBAD3",  # light pink
    "#A8D8EA",  # sky blue
    "#FF9F43",  # bright orange
    "#6C5CE7",  # purple
    "#00CEC9",  # cyan
)
UNKNOWN_COLOR = "#8a8078"
DEFAULT_HIGHLIGHT_MS = 600


@dataclass
class ServerPalette:
    """Assigns colors to servers in first-seen order, cycling the palette.

    The unknown-server sentinel always gets ``unknown_color`` and does not
    consume a palette slot.
    """

    colors: Sequence[str] = SERVER_COLORS
    unknown_color: str = UNKNOWN_COLOR
    _assigned: dict[str, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError("ServerPalette requires at least one color")

    def color_for(self, server: str) -> str:
        """Color of ``server``, assigning the next palette slot if new."""
        if not server or server == UNKNOWN_SERVER:
            return self.unknown_color
        color = self._assigned.get(server)
        if color is None:
            color = self.colors[len(self._assigned) % len(self.colors)]
            self._assigned[server] = color
        return color

    def assign_all(self, servers: Iterable[str]) -> None:
        """Assign colors for ``servers`` in sorted order."""
        for server in sorted(servers):
            self.color_for(server)

    def assignments(self) -> dict[str, str]:
        return dict(self._assigned)


@dataclass
class SnapshotDiffer:
    """Flags capability ids that appear between successive polls.

    The first observation is a baseline: it records the ids and reports
    nothing new.
    """

    _previous: frozenset[str] | None = field(default=None, repr=False)

    @property
    def has_baseline(self) -> bool:
        return self._previous is not None

    @property
    def previous(self) -> frozenset[str]:
        return self._previous or frozenset()

    def observe(self, ids: Iterable[str]) -> frozenset[str]:
        """Record this poll's ids and return those absent from the previous poll."""
        current = frozenset(ids)
        if self._previous is None:
            fresh: frozenset[str] = frozenset()
        else:
            fresh = current - self._previous
        self._previous = current
        return fresh

    def reset(self) -> None:
        """Forget the baseline; the next observation is treated as a first load."""
        self._previous = None


@dataclass
class SessionState:
    """Cross-poll state of one viewing session."""

    palette: ServerPalette = field(default_factory=ServerPalette)
    differ: SnapshotDiffer = field(default_factory=SnapshotDiffer)
    highlight_ms: int = DEFAULT_HIGHLIGHT_MS
    polls: int = 0

    @classmethod
    def from_config(cls, config: dict) -> SessionState:
        """Build a session from the ``[palette]`` and ``[session]`` config sections."""
        palette_cfg = config.get("palette", {})
        session_cfg = config.get("session", {})
        palette = ServerPalette(
            colors=tuple(palette_cfg.get("colors") or SERVER_COLORS),
            unknown_color=palette_cfg.get("unknown", UNKNOWN_COLOR),
        )
        return cls(
            palette=palette,
            highlight_ms=int(session_cfg.get("highlight_ms", DEFAULT_HIGHLIGHT_MS)),
        )
