"""
Tests for configuration loading.
"""

import json
import logging
import os

import pytest

from repofleet.config import (
    apply_env_overrides,
    configure_logging,
    get_config_path,
    get_default_config,
    get_number,
    load_config,
    load_descriptors,
    merge_configs,
)
from repofleet.exit_codes import ConfigError


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME and cwd at empty directories and clear REPOFLEET_* variables."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("REPOFLEET_"):
            monkeypatch.delenv(key)
    return work


class TestConfigPath:
    """Tests for get_config_path()."""

    def test_no_file(self):
        assert get_config_path() is None

    def test_local_file_wins_over_home(self, tmp_path, isolated_env):
        home_config = tmp_path / "home" / ".repofleet" / "config.yaml"
        home_config.parent.mkdir()
        home_config.write_text("{}\n")
        local = isolated_env / "repofleet.yaml"
        local.write_text("{}\n")

        assert get_config_path() == local

    def test_env_variable_wins(self, tmp_path, isolated_env, monkeypatch):
        (isolated_env / "repofleet.yaml").write_text("{}\n")
        explicit = tmp_path / "custom.toml"
        explicit.write_text("")
        monkeypatch.setenv("REPOFLEET_CONFIG", str(explicit))

        assert get_config_path() == explicit

    def test_missing_env_file_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REPOFLEET_CONFIG", str(tmp_path / "missing.yaml"))

        assert get_config_path() is None


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self):
        config = load_config()

        assert config["repositories"] == []
        assert config["fetch"]["paths"] == ["README.md", "src/"]
        assert config["fetch"]["target_dir"] == "cloned_repos"
        assert config["changelog"]["output_file"] == "CHANGELOG.md"
        assert config["changelog"]["command"] == "git-cliff"

    def test_yaml_is_merged_over_defaults(self, isolated_env):
        (isolated_env / "repofleet.yaml").write_text(
            "repositories:\n"
            "  - host:org/a.git\n"
            "fetch:\n"
            "  parallel: 4\n"
        )

        config = load_config()

        assert config["repositories"] == ["host:org/a.git"]
        assert config["fetch"]["parallel"] == 4
        assert config["fetch"]["paths"] == ["README.md", "src/"]

    def test_toml(self, isolated_env):
        (isolated_env / "repofleet.toml").write_text(
            'repositories = ["host:org/a.git"]\n'
            "[changelog]\n"
            'output_file = "HISTORY.md"\n'
        )

        config = load_config()

        assert config["changelog"]["output_file"] == "HISTORY.md"
        assert config["changelog"]["command"] == "git-cliff"

    def test_json(self, isolated_env):
        (isolated_env / "repofleet.json").write_text(json.dumps({"fetch": {"sparse": False}}))

        assert load_config()["fetch"]["sparse"] is False

    def test_empty_yaml(self, isolated_env):
        (isolated_env / "repofleet.yaml").write_text("")

        assert load_config() == get_default_config()

    def test_invalid_file(self, isolated_env):
        (isolated_env / "repofleet.yaml").write_text("fetch: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config()

    def test_non_mapping_file(self, isolated_env):
        (isolated_env / "repofleet.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            load_config()

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_FETCH_PARALLEL", "4")
        monkeypatch.setenv("REPOFLEET_FETCH_SPARSE", "off")
        monkeypatch.setenv("REPOFLEET_CHANGELOG_OUTPUT_FILE", "NEWS.md")

        config = load_config()

        assert config["fetch"]["parallel"] == 4
        assert config["fetch"]["sparse"] is False
        assert config["changelog"]["output_file"] == "NEWS.md"


class TestEnvOverrides:
    """Tests for apply_env_overrides()."""

    def test_lists_are_not_replaced(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_FETCH_PATHS", "docs/")

        config = apply_env_overrides(get_default_config())

        assert config["fetch"]["paths"] == ["README.md", "src/"]

    def test_unknown_keys_are_ignored(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_NOPE_VALUE", "1")

        assert apply_env_overrides(get_default_config()) == get_default_config()

    def test_decimal_value_becomes_float(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_FETCH_TIMEOUT_SECONDS", "1.5")

        config = apply_env_overrides(get_default_config())

        assert config["fetch"]["timeout_seconds"] == 1.5

    def test_non_numeric_value_for_number_is_rejected(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_FETCH_PARALLEL", "abc")

        with pytest.raises(ConfigError) as exc_info:
            apply_env_overrides(get_default_config())

        assert "REPOFLEET_FETCH_PARALLEL" in str(exc_info.value)

    def test_non_boolean_value_for_switch_is_rejected(self, monkeypatch):
        monkeypatch.setenv("REPOFLEET_FETCH_SPARSE", "maybe")

        with pytest.raises(ConfigError):
            apply_env_overrides(get_default_config())


class TestMergeConfigs:
    """Tests for merge_configs()."""

    def test_nested_merge(self):
        merged = merge_configs({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})

        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}


class TestLoadDescriptors:
    """Tests for load_descriptors()."""

    def test_strings_and_mappings(self):
        descriptors = load_descriptors({"repositories": [
            "git@github.com:katakumby/ticker-archit.git",
            {"url": "git@github.com:katakumby/hl-iso20022.git", "name": "iso20022"},
        ]})

        assert [d.derived_name for d in descriptors] == ["ticker-archit", "iso20022"]

    def test_missing_section(self):
        assert load_descriptors({}) == []

    def test_not_a_list(self):
        with pytest.raises(ConfigError):
            load_descriptors({"repositories": "host:org/a.git"})

    def test_bad_entry_names_its_position(self):
        with pytest.raises(ConfigError) as exc_info:
            load_descriptors({"repositories": ["host:org/a.git", ""]})

        assert "repositories[1]" in str(exc_info.value)


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_debug_flag(self):
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging(get_default_config(), debug=True)
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)

    def test_configured_level(self):
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging({"logging": {"level": "warning"}})
            assert root.level == logging.WARNING
        finally:
            root.setLevel(previous)


class TestGetNumber:
    """Tests for get_number()."""

    def test_default_when_missing(self):
        assert get_number({}, "fetch", "timeout_seconds", 600) == 600

    def test_string_is_converted(self):
        assert get_number({"fetch": {"parallel": "4"}}, "fetch", "parallel", 1, int) == 4

    def test_bad_value(self):
        with pytest.raises(ConfigError) as exc_info:
            get_number({"fetch": {"retries": "twice"}}, "fetch", "retries", 0, int)

        assert "fetch.retries" in str(exc_info.value)

    def test_boolean_is_rejected(self):
        with pytest.raises(ConfigError):
            get_number({"fetch": {"parallel": True}}, "fetch", "parallel", 1, int)
