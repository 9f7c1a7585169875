"""Tests for ingest.py - raw payload to typed Tool/Capability records."""

import json
from datetime import datetime, timezone

import pytest

from capview.graph.ingest import (
    RawCapabilityNode,
    RawToolNode,
    ingest,
    parse_edge,
    parse_node,
    parse_task_result,
    parse_timestamp,
    resolve_server,
)
from capview.graph.relations import EdgeKind
from tests.helpers import (
    ago,
    make_capability,
    make_edge,
    make_payload,
    make_task,
    make_tool,
    make_trace,
)


class TestParseNode:
    """Tests for the tagged-union boundary."""

    def test_tool_node(self):
        node = parse_node(make_tool("read_file", server="filesystem", parents=["cap-1"]))

        assert isinstance(node, RawToolNode)
        assert node.parents == ("cap-1",)
        assert node.label == "read_file"

    def test_capability_node(self):
        node = parse_node(make_capability("cap-1", usage_count=3))

        assert isinstance(node, RawCapabilityNode)
        assert node.id == "cap-1"

    def test_bare_node_shape_accepted(self):
        """Nodes without the {"data": ...} wrapper parse the same way."""
        node = parse_node({"id": "cap-1", "type": "capability"})
        assert isinstance(node, RawCapabilityNode)

    @pytest.mark.parametrize(
        "raw",
        [
            {"data": {"type": "tool", "label": "no id"}},
            {"data": {"id": "x"}},
            {"data": {"id": "x", "type": "meta"}},
            {"data": "not a mapping"},
            None,
        ],
    )
    def test_malformed_nodes_dropped(self, raw):
        assert parse_node(raw) is None

    def test_singular_parent_accepted(self):
        node = parse_node(make_tool("t", parent="cap-1"))
        assert node.parents == ("cap-1",)

    def test_parents_array_wins_over_parent(self):
        node = parse_node(make_tool("t", parents=["cap-2"], parent="cap-1"))
        assert node.parents == ("cap-2",)

    def test_duplicate_parents_collapsed(self):
        node = parse_node(make_tool("t", parents=["cap-1", "cap-1", "cap-2"]))
        assert node.parents == ("cap-1", "cap-2")


class TestResolveServer:
    """Tests for server identity resolution."""

    def test_builtin_replaced_by_module(self):
        assert resolve_server("std", "database") == "database"

    def test_builtin_without_module_kept(self):
        assert resolve_server("std", None) == "std"

    def test_regular_server_kept(self):
        assert resolve_server("filesystem", "ignored") == "filesystem"

    @pytest.mark.parametrize("server", [None, ""])
    def test_missing_server_is_unknown(self, server):
        assert resolve_server(server, None) == "unknown"


class TestParseEdge:
    def test_snake_case_kind(self):
        edge = parse_edge(make_edge("a", "b"))
        assert edge.kind is EdgeKind.CONTAINS

    def test_camel_case_kind(self):
        edge = parse_edge(make_edge("a", "b", camel=True))
        assert edge.kind is EdgeKind.CONTAINS

    def test_unknown_kind_kept_raw(self):
        edge = parse_edge(make_edge("a", "b", edge_type="co_occurrence"))
        assert edge.kind is None
        assert edge.raw_kind == "co_occurrence"

    def test_missing_endpoint_dropped(self):
        assert parse_edge({"data": {"source": "a", "edge_type": "contains"}}) is None


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("2026-03-14T10:00:00Z") == datetime(
            2026, 3, 14, 10, tzinfo=timezone.utc
        )

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-03-14T10:00:00").tzinfo is not None

    def test_epoch_milliseconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", True])
    def test_unparseable_is_none(self, value):
        assert parse_timestamp(value) is None


class TestParseTaskResult:
    def test_missing_layer_defaults_to_zero(self):
        task = parse_task_result(make_task("fs:read"))
        assert task.layer_index is None
        assert task.layer == 0

    @pytest.mark.parametrize("value", [-1, 1.5, "two", True])
    def test_invalid_layer_treated_as_absent(self, value):
        task = parse_task_result(make_task("fs:read", layer_index=value))
        assert task.layer == 0

    def test_loop_metadata_carried(self):
        task = parse_task_result(
            make_task(
                "fs:read",
                loop_id="l1",
                loop_type="forOf",
                loop_condition="item of items",
                body_tools=["fs:read", "fs:write"],
            )
        )

        assert task.loop is not None
        assert task.loop.loop_type == "forOf"
        assert task.loop.body_tools == ("fs:read", "fs:write")

    def test_no_loop_metadata(self):
        assert parse_task_result(make_task("fs:read")).loop is None


class TestIngest:
    """Tests for the two-pass ingestion."""

    def test_zero_usage_capabilities_excluded(self, ingested):
        ids = [cap.id for cap in ingested.capabilities]
        assert "cap-draft" not in ids
        assert all(cap.usage_count > 0 for cap in ingested.capabilities)
        assert ingested.stats.unused_capabilities == 1

    def test_missing_usage_count_excluded(self):
        result = ingest(make_payload([make_capability("cap-1", usage_count=None)]))
        assert result.capabilities == []

    def test_orphan_tools_excluded(self, ingested):
        assert "lonely_tool" not in ingested.tools
        assert ingested.stats.orphan_tools == 1

    def test_hyperedge_tools_counted(self, ingested):
        assert ingested.tools["read_file"].is_hyperedge
        assert ingested.stats.hyperedge_tools == 1

    def test_servers_discovered(self, ingested):
        assert ingested.servers == {"filesystem", "database", "docs"}

    def test_builtin_server_uses_module(self, ingested):
        assert ingested.tools["query"].server == "database"

    def test_tool_membership(self, ingested):
        etl = ingested.get_capability("cap-etl")
        read = ingested.get_capability("cap-read")

        assert [t.id for t in etl.tools] == ["read_file", "query"]
        assert [t.id for t in read.tools] == ["read_file"]

    def test_parent_resolved(self, ingested):
        assert ingested.get_capability("cap-read").parent_id == "cap-etl"
        assert ingested.get_capability("cap-etl").parent_id is None

    def test_last_used_falls_back_to_latest_trace(self, ingested):
        report = ingested.get_capability("cap-report")
        assert report.last_used_at == parse_timestamp(ago(days=3))

    def test_description_falls_back_to_intent(self, ingested):
        assert ingested.get_capability("cap-report").description == "Summarise the week as a PDF"

    def test_sorted_most_recent_first(self, ingested):
        assert [c.id for c in ingested.capabilities] == ["cap-etl", "cap-report", "cap-read"]

    def test_traces_kept_newest_first(self, ingested):
        etl = ingested.get_capability("cap-etl")
        assert [t.id for t in etl.traces] == ["tr-2", "tr-1"]
        assert etl.latest_trace.id == "tr-2"

    def test_defaults_for_missing_fields(self):
        result = ingest(make_payload([make_capability("cap-1", usage_count=2)]))
        cap = result.capabilities[0]

        assert cap.success_rate == 0.0
        assert cap.pagerank == 0.0
        assert cap.hierarchy_level == 0
        assert cap.last_used_at is None
        assert cap.tools == ()

    def test_non_numeric_fields_default(self):
        result = ingest(
            make_payload([make_capability("cap-1", usage_count=2, success_rate="high")])
        )
        assert result.capabilities[0].success_rate == 0.0

    def test_malformed_nodes_do_not_abort(self):
        result = ingest(
            make_payload(
                [
                    {"data": {"type": "capability", "usage_count": 4}},
                    {"data": {"id": "mystery"}},
                    make_capability("cap-1", usage_count=1),
                ]
            )
        )

        assert [c.id for c in result.capabilities] == ["cap-1"]
        assert result.stats.dropped_nodes == 2
        assert result.stats.total_nodes == 3

    def test_empty_payload(self):
        result = ingest({})
        assert result.tools == {}
        assert result.capabilities == []

    def test_containment_cycle_broken(self):
        result = ingest(
            make_payload(
                [
                    make_capability("a", usage_count=1),
                    make_capability("b", usage_count=1),
                    make_capability("c", usage_count=1),
                ],
                [make_edge("a", "b"), make_edge("b", "a"), make_edge("a", "c")],
            )
        )

        parents = {c.id: c.parent_id for c in result.capabilities}
        assert parents == {"a": None, "b": None, "c": "a"}
        assert result.stats.cycles_broken == 2

    def test_ingest_is_deterministic(self, payload):
        assert ingest(payload) == ingest(payload)

    def test_trace_without_task_results(self):
        result = ingest(
            make_payload(
                [make_capability("cap-1", traces=[make_trace("t1", tasks=None)])]
            )
        )
        assert result.capabilities[0].traces[0].task_results == ()


class TestNonFiniteNumbers:
    """JSON ``Infinity``/``NaN`` values fall back to field defaults."""

    def test_infinite_usage_count_is_unused(self):
        payload = json.loads(
            '{"nodes": [{"data": {"id": "c", "type": "capability", "usage_count": Infinity}}],'
            ' "edges": []}'
        )
        result = ingest(payload)

        assert result.capabilities == []
        assert result.stats.unused_capabilities == 1

    def test_numeric_fields_defaulted(self):
        payload = json.loads(
            """
            {"nodes": [{"data": {"id": "c", "type": "capability", "usage_count": 3,
                                 "hierarchy_level": Infinity, "community_id": -Infinity,
                                 "success_rate": NaN, "pagerank": Infinity}}],
             "edges": [{"data": {"source": "a", "target": "c", "edge_type": "contains",
                                 "observed_count": Infinity}}]}
            """
        )
        result = ingest(payload)
        cap = result.capabilities[0]

        assert cap.hierarchy_level == 0
        assert cap.community_id == 0
        assert cap.success_rate == 0.0
        assert cap.pagerank == 0.0
        assert result.edges[0].observed_count == 1

    def test_infinite_task_fields(self):
        task = parse_task_result(
            make_task("read_file", layer_index=float("inf"), duration_ms=float("nan"))
        )

        assert task.layer == 0
        assert task.duration_ms == 0.0
