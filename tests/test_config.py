"""
Tests for configuration loading.
"""

import logging

import pytest
import yaml

from selectgraph.config import (
    SelectGraphConfig,
    configure_logging,
    get_config,
    load_config,
    set_config,
)
from selectgraph.core.errors import ConfigurationError, SelectGraphError


class TestSelectGraphConfig:
    """Tests for building configuration from dicts, files and the environment."""

    def test_defaults(self):
        config = SelectGraphConfig()
        assert config.input_field_formatter == "camel_case"
        assert config.output_field_formatter == "camel_case"
        assert config.default_page_limit == 20
        assert config.log_level == "WARNING"

    def test_from_dict_ignores_unknown_keys(self):
        config = SelectGraphConfig.from_dict({"default_page_limit": "50", "extra": True})
        assert config.default_page_limit == 50
        assert config.output_field_formatter == "camel_case"

    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "selectgraph.yaml"
        SelectGraphConfig(output_field_formatter="snake_case", log_level="debug").save(path)
        assert yaml.safe_load(path.read_text())["output_field_formatter"] == "snake_case"

        config = load_config(path)
        assert config.output_field_formatter == "snake_case"
        assert config.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "selectgraph.yaml"
        path.write_text("")
        assert load_config(path) == SelectGraphConfig()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SELECTGRAPH_OUTPUT_FIELD_FORMATTER", "pascal_case")
        monkeypatch.setenv("SELECTGRAPH_DEFAULT_PAGE_LIMIT", "15")
        config = SelectGraphConfig.from_env(SelectGraphConfig(input_field_formatter="snake_case"))
        assert config.output_field_formatter == "pascal_case"
        assert config.default_page_limit == 15
        assert config.input_field_formatter == "snake_case"

    def test_formatter(self):
        formatter = SelectGraphConfig(output_field_formatter="snake_case").formatter()
        assert formatter.format_field("first_name") == "first_name"

    def test_invalid_formatter_rejected(self):
        with pytest.raises(ValueError):
            SelectGraphConfig(input_field_formatter="kebab").formatter()

    @pytest.mark.parametrize("value", ["0", "-5", "abc"])
    def test_invalid_environment_page_limit(self, monkeypatch, value):
        monkeypatch.setenv("SELECTGRAPH_DEFAULT_PAGE_LIMIT", value)
        with pytest.raises(ConfigurationError, match="default_page_limit") as exc_info:
            SelectGraphConfig.from_env()
        assert isinstance(exc_info.value, SelectGraphError)

    def test_invalid_file_value(self, tmp_path):
        path = tmp_path / "selectgraph.yaml"
        path.write_text("default_page_limit: 0\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_file_must_be_mapping(self, tmp_path):
        path = tmp_path / "selectgraph.yaml"
        path.write_text("- camel_case\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "selectgraph.yaml"
        path.write_text("default_page_limit: 30\noutput_field_formatter: snake_case\n")
        monkeypatch.setenv("SELECTGRAPH_DEFAULT_PAGE_LIMIT", "40")
        config = load_config(path)
        assert config.default_page_limit == 40
        assert config.output_field_formatter == "snake_case"


class TestProcessDefault:
    """Tests for the process-wide default configuration."""

    def test_get_config_reads_environment_once(self, monkeypatch):
        monkeypatch.setenv("SELECTGRAPH_DEFAULT_PAGE_LIMIT", "7")
        assert get_config().default_page_limit == 7
        monkeypatch.setenv("SELECTGRAPH_DEFAULT_PAGE_LIMIT", "8")
        assert get_config().default_page_limit == 7

    def test_get_config_rejects_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("SELECTGRAPH_OUTPUT_FIELD_FORMATTER", "kebab")
        with pytest.raises(ConfigurationError, match="output_field_formatter"):
            get_config()

    def test_set_config(self):
        config = SelectGraphConfig(default_page_limit=99)
        set_config(config)
        assert get_config() is config

    def test_configure_logging(self):
        configure_logging("debug")
        assert logging.getLogger("selectgraph").level == logging.DEBUG
