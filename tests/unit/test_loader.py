"""Unit tests for the YAML config loader and env var resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudevents_core.config import BackoffStrategy, load_sdk_config
from cloudevents_core.config.loader import (
    load_defaults,
    load_yaml,
    merge_configs,
    resolve_env_vars,
)


class TestResolveEnvVars:
    def test_plain_string_unchanged(self):
        assert resolve_env_vars("hello") == "hello"

    def test_substitutes_env_var(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CE_SINK", "http://sink.local")
        assert resolve_env_vars("${CE_SINK}") == "http://sink.local"

    def test_default_when_var_missing(self):
        assert resolve_env_vars("${MISSING_VAR:-fallback}") == "fallback"

    def test_env_var_overrides_default(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MY_TRIES", "9")
        assert resolve_env_vars("${MY_TRIES:-5}") == "9"

    def test_empty_default(self):
        assert resolve_env_vars("${MISSING_VAR:-}") == ""

    def test_missing_var_no_default_raises(self):
        with pytest.raises(ValueError, match="UNDEFINED_VAR"):
            resolve_env_vars("${UNDEFINED_VAR}")

    def test_multiple_vars_in_one_string(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOST", "localhost")
        monkeypatch.setenv("PORT", "8080")
        assert resolve_env_vars("http://${HOST}:${PORT}") == "http://localhost:8080"

    def test_recursive_dict_and_list(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CE_TYPE", "com.example.created")
        data = {
            "types": ["${CE_TYPE}", "com.example.deleted"],
            "nested": {"type": "${CE_TYPE:-default}"},
        }
        result = resolve_env_vars(data)
        assert result["types"] == ["com.example.created", "com.example.deleted"]
        assert result["nested"]["type"] == "com.example.created"

    def test_non_string_values_unchanged(self):
        data = {"tries": 5, "enabled": True, "period": 0.5, "nothing": None}
        assert resolve_env_vars(data) == data

    def test_default_with_colons(self):
        result = resolve_env_vars("${MISSING:-http://localhost:8081}")
        assert result == "http://localhost:8081"


class TestMergeConfigs:
    def test_deep_merge(self):
        base = {"binding": {"a": 1, "b": 2}, "retry": {"max_tries": 5}}
        merged = merge_configs(base, {"binding": {"b": 3}})
        assert merged == {"binding": {"a": 1, "b": 3}, "retry": {"max_tries": 5}}

    def test_non_dict_override_replaces(self):
        assert merge_configs({"a": {"b": 1}}, {"a": "flat"}) == {"a": "flat"}

    def test_does_not_mutate_base(self):
        base = {"a": {"b": 1}}
        merge_configs(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadYaml:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml_reports_line(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("binding:\n  a: [1, 2\n")
        with pytest.raises(ValueError, match="line"):
            load_yaml(path)

    def test_non_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(TypeError, match="list"):
            load_yaml(path)

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_env_resolved(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CE_TRIES", "7")
        path = tmp_path / "sdk.yaml"
        path.write_text("retry:\n  max_tries: ${CE_TRIES}\n")
        assert load_yaml(path) == {"retry": {"max_tries": "7"}}


class TestLoadSDKConfig:
    def test_defaults(self):
        config = load_sdk_config()
        assert config.binding.preferred_event_encoding == "binary"
        assert config.binding.structured_format == "application/cloudevents+json"
        assert config.retry.strategy is BackoffStrategy.EXPONENTIAL

    def test_defaults_ignore_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CE_PREFERRED_ENCODING", "structured")
        monkeypatch.setenv("CE_SPEC_VERSION", "0.3")
        assert load_sdk_config().binding.preferred_event_encoding == "binary"

    def test_defaults_file_is_plain_mapping(self):
        assert set(load_defaults()) == {"binding", "retry"}

    def test_overrides_merged(self, tmp_path: Path):
        path = tmp_path / "sdk.yaml"
        path.write_text(
            "binding:\n"
            "  skip_direct_binary_encoding: true\n"
            "retry:\n"
            "  strategy: linear\n"
            "  max_tries: 2\n"
        )
        config = load_sdk_config(path)
        assert config.binding.skip_direct_binary_encoding is True
        assert config.binding.skip_direct_structured_encoding is False
        assert config.retry.strategy is BackoffStrategy.LINEAR
        assert config.retry.max_tries == 2
        assert config.retry.period_seconds == 0.1

    def test_unknown_section_rejected(self, tmp_path: Path):
        path = tmp_path / "sdk.yaml"
        path.write_text("pipeline:\n  name: x\n")
        with pytest.raises(ValueError, match="Invalid SDK config"):
            load_sdk_config(path)
