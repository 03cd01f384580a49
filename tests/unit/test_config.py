"""
Unit tests for configuration loading.
"""

import pytest
from unittest.mock import patch

from export.config import ENV_OVERRIDES, ExportConfig, load_config
from export.core.exceptions import ExportConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ES_EXPORT_* variables from the developer's shell out of the tests."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def valid_config(**overrides):
    values = dict(index="logs", query="query.json", output="out.jsonl")
    values.update(overrides)
    return ExportConfig(**values)


class TestExportConfig:
    """Tests for ExportConfig."""

    def test_defaults(self):
        config = ExportConfig()

        assert config.host == "http://localhost:9200"
        assert config.user is None
        assert config.slices == 1
        assert config.scroll_ttl == "1m"
        assert config.page_size is None
        assert config.clear_scroll is True
        assert config.max_retries == 0

    def test_with_overrides_ignores_none(self):
        config = ExportConfig(index="logs").with_overrides(index=None, slices=4, user=None)

        assert config.index == "logs"
        assert config.slices == 4

    def test_with_overrides_returns_copy(self):
        config = ExportConfig()

        config.with_overrides(slices=8)

        assert config.slices == 1

    def test_validate_accepts_complete_config(self):
        valid_config().validate()

    @pytest.mark.parametrize("overrides", [
        {"index": None},
        {"query": None},
        {"output": None},
        {"host": ""},
        {"slices": 0},
        {"page_size": 0},
        {"scroll_ttl": ""},
        {"max_retries": -1},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ExportConfigError):
            valid_config(**overrides).validate()

    def test_runner_config(self):
        runner_config = valid_config(slices=3, page_size=100, clear_scroll=False).runner_config()

        assert runner_config.index == "logs"
        assert runner_config.slices == 3
        assert runner_config.page_size == 100
        assert runner_config.clear_scroll is False


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        assert load_config() == ExportConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "export.yaml"
        path.write_text(
            "host: https://search.internal:9200\n"
            "index: logs-*\n"
            "slices: 8\n"
            "verify_ssl: false\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.host == "https://search.internal:9200"
        assert config.index == "logs-*"
        assert config.slices == 8
        assert config.verify_ssl is False

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == ExportConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExportConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("index: [unclosed\n", encoding="utf-8")

        with pytest.raises(ExportConfigError):
            load_config(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ExportConfigError, match="mapping"):
            load_config(path)

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("index: logs\nslicez: 4\n", encoding="utf-8")

        with pytest.raises(ExportConfigError, match="slicez"):
            load_config(path)

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "export.yaml"
        path.write_text("index: from-file\nslices: 2\n", encoding="utf-8")

        with patch.dict("os.environ", {"ES_EXPORT_INDEX": "from-env", "ES_EXPORT_SLICES": "6"}):
            config = load_config(path)

        assert config.index == "from-env"
        assert config.slices == 6

    def test_invalid_env_value(self):
        with patch.dict("os.environ", {"ES_EXPORT_SLICES": "many"}):
            with pytest.raises(ExportConfigError, match="ES_EXPORT_SLICES"):
                load_config()

    @pytest.mark.parametrize("line, key", [
        ('slices: "4"\n', "slices"),
        ("page_size: 1.5\n", "page_size"),
        ("verify_ssl: 0\n", "verify_ssl"),
        ("timeout: true\n", "timeout"),
        ("index: [a, b]\n", "index"),
        ("slices: null\n", "slices"),
    ])
    def test_wrong_value_type(self, tmp_path, line, key):
        path = tmp_path / "export.yaml"
        path.write_text(line, encoding="utf-8")

        with pytest.raises(ExportConfigError, match=f"Invalid value for {key}"):
            load_config(path)

    def test_numeric_strings_and_nulls_accepted(self, tmp_path):
        path = tmp_path / "export.yaml"
        path.write_text("user: 1001\npassword: 1234\npage_size: null\n", encoding="utf-8")

        config = load_config(path)

        assert config.user == "1001"
        assert config.password == "1234"
        assert config.page_size is None
