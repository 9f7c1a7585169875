"""
capview - Capability hypergraph dashboard views

capview turns raw snapshots of a learned capability hypergraph (tools,
capabilities, meta-capabilities and their execution traces) into the
views an observability dashboard shows: a capability hierarchy, the
parallel layers of each capability's latest run, a typo-tolerant search,
recency buckets, and the set of capabilities new since the last poll.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("capview")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from capview.graph import Capability, Tool, Trace, build_tool_layers, ingest
from capview.pipeline import DashboardView, derive_view
from capview.search import filter_by_search, matches
from capview.session import SessionState, SnapshotDiffer
from capview.timeline import bucket_by_recency

__all__ = [
    "__version__",
    "Capability",
    "DashboardView",
    "SessionState",
    "SnapshotDiffer",
    "Tool",
    "Trace",
    "bucket_by_recency",
    "build_tool_layers",
    "derive_view",
    "filter_by_search",
    "ingest",
    "matches",
]
