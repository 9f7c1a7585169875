"""Tests for capview.config - TOML loading, discovery and env overrides."""

from __future__ import annotations

import pytest

from capview.config import (
    DEFAULT_CONFIG,
    apply_env_overrides,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    parse_toml,
)
from capview.config import _try_parse_env_value


class TestParseToml:
    def test_tables_and_arrays(self):
        config = parse_toml(
            """
[source]
url = "http://localhost:3003"

[palette]
colors = ["#111111", "#222222"]
"""
        )

        assert config == {
            "source": {"url": "http://localhost:3003"},
            "palette": {"colors": ["#111111", "#222222"]},
        }
        assert type(config["source"]) is dict


class TestMergeConfigs:
    def test_nested_tables_merge(self):
        merged = merge_configs(
            {"server": {"host": "127.0.0.1", "port": 5007}},
            {"server": {"port": 8080}},
        )
        assert merged == {"server": {"host": "127.0.0.1", "port": 8080}}

    def test_lists_replace(self):
        merged = merge_configs({"palette": {"colors": ["#1"]}}, {"palette": {"colors": ["#2"]}})
        assert merged["palette"]["colors"] == ["#2"]

    def test_base_not_mutated(self):
        base = {"session": {"highlight_ms": 600}}
        merge_configs(base, {"session": {"highlight_ms": 1}})
        assert base == {"session": {"highlight_ms": 600}}


class TestFindConfigFile:
    def test_found_in_parent(self, tmp_path):
        config = tmp_path / ".capview.toml"
        config.write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == config.resolve()

    def test_not_found(self, tmp_path):
        nested = tmp_path / "empty"
        nested.mkdir()
        found = find_config_file(nested)

        assert found is None or not found.is_relative_to(tmp_path)


class TestLoadConfig:
    def test_merges_over_defaults(self, tmp_path):
        path = tmp_path / ".capview.toml"
        path.write_text('[search]\nstrategy = "positional"\n')

        config = load_config(path)

        assert config["search"]["strategy"] == "positional"
        assert config["server"] == DEFAULT_CONFIG["server"]

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / ".capview.toml"
        path.write_text("[source\nurl = ")

        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config(path)


class TestTryParseEnvValue:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ('["#111", "#222"]', ["#111", "#222"]),
            ('{"today": "Now"}', {"today": "Now"}),
            ("true", True),
            ("FALSE", False),
            ("900", 900),
            ("2.5", 2.5),
            ("http://localhost:3003", "http://localhost:3003"),
            ("[not json", "[not json"),
        ],
    )
    def test_typed_values(self, raw, expected):
        assert _try_parse_env_value(raw) == expected


class TestEnvOverrides:
    def test_section_and_key(self):
        config = apply_env_overrides(
            {"session": {"highlight_ms": 600}},
            {"CAPVIEW_SESSION_HIGHLIGHT_MS": "900", "HOME": "/root"},
        )
        assert config == {"session": {"highlight_ms": 900}}

    def test_new_section_created(self):
        config = apply_env_overrides({}, {"CAPVIEW_SOURCE_URL": "http://h:1"})
        assert config == {"source": {"url": "http://h:1"}}

    def test_prefix_without_key_ignored(self):
        assert apply_env_overrides({}, {"CAPVIEW_SOURCE": "x", "CAPVIEW_": "y"}) == {}


class TestGetConfig:
    def test_defaults_without_file(self, tmp_path):
        config = get_config(config_path=None, start_dir=tmp_path, environ={})

        if find_config_file(tmp_path) is None:
            assert config == DEFAULT_CONFIG

    def test_explicit_file_and_env(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("[server]\nport = 9000\n")

        config = get_config(
            config_path=path,
            environ={"CAPVIEW_SERVER_HOST": "0.0.0.0"},
        )

        assert config["server"] == {"host": "0.0.0.0", "port": 9000}

    def test_defaults_not_mutated(self, tmp_path):
        get_config(
            config_path=None,
            start_dir=tmp_path,
            environ={"CAPVIEW_SESSION_HIGHLIGHT_MS": "1"},
        )
        assert DEFAULT_CONFIG["session"]["highlight_ms"] == 600
