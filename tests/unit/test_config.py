"""
Tests for configuration loading and validation.
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from readcore.config import (
    STRATEGY_ORDER,
    CacheConfig,
    Config,
    ExtractionSettings,
    MonitoringConfig,
    find_config_file,
)


@pytest.mark.unit
class TestConfig:
    def test_defaults(self):
        config = Config()

        assert config.cache.capacity == 10
        assert config.cache.ttl_seconds == 24 * 60 * 60
        assert config.cache.backend == "memory"
        assert config.extraction.heuristic_threshold == 20.0
        assert config.extraction.site_selectors[0] == "article div[data-selectable-paragraph]"
        assert config.extraction.content_selectors[0] == ".article-content"
        assert config.extraction.confidence.article_min_confidence == 0.6
        assert len(STRATEGY_ORDER) == 6

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("READCORE_CACHE__CAPACITY", "25")
        monkeypatch.setenv("READCORE_MONITORING__LOG_LEVEL", "DEBUG")

        config = Config()

        assert config.cache.capacity == 25
        assert config.monitoring.log_level == "DEBUG"

    def test_from_yaml(self, tmp_path: Path):
        path = tmp_path / "readcore.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "cache": {"capacity": 3, "backend": "sqlite", "db_path": str(tmp_path / "a.db")},
                    "extraction": {"heuristic_threshold": 30, "disabled_strategies": ["aggressive_domain"]},
                }
            )
        )

        config = Config.from_yaml(path)

        assert config.cache.capacity == 3
        assert config.cache.backend == "sqlite"
        assert config.cache.db_path == tmp_path / "a.db"
        assert config.extraction.heuristic_threshold == 30
        assert config.extraction.disabled_strategies == ["aggressive_domain"]

    def test_empty_yaml_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert Config.from_yaml(path).cache.capacity == 10

    def test_missing_yaml(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")


@pytest.mark.unit
class TestFindConfigFile:
    def test_prefers_yaml_extension(self, tmp_path: Path):
        (tmp_path / "readcore.yml").write_text("")
        (tmp_path / "readcore.yaml").write_text("")
        assert find_config_file(tmp_path) == tmp_path / "readcore.yaml"

    def test_yml_extension(self, tmp_path: Path):
        (tmp_path / "readcore.yml").write_text("")
        assert find_config_file(tmp_path) == tmp_path / "readcore.yml"

    def test_directories_are_ignored(self, tmp_path: Path):
        (tmp_path / "readcore.yaml").mkdir()
        assert find_config_file(tmp_path) is None

    def test_defaults_to_working_directory(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert find_config_file() is None
        (tmp_path / "readcore.yaml").write_text("")
        assert find_config_file() == tmp_path / "readcore.yaml"


@pytest.mark.unit
class TestConfigValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [{"capacity": 0}, {"ttl_seconds": 0}, {"summarizer_timeout_seconds": -1}, {"backend": "redis"}],
    )
    def test_invalid_cache_config(self, kwargs):
        with pytest.raises(ValidationError):
            CacheConfig(**kwargs)

    def test_unknown_disabled_strategy(self):
        with pytest.raises(ValidationError, match="Unknown strategies"):
            ExtractionSettings(disabled_strategies=["guesswork"])

    def test_analyzer_bounds(self):
        with pytest.raises(ValidationError):
            Config.model_validate({"analyzer": {"min_content_length": 500, "max_content_length": 100}})

    def test_log_file_parent_is_created(self, tmp_path: Path):
        config = MonitoringConfig(log_file=tmp_path / "logs" / "readcore.log")
        assert (tmp_path / "logs").is_dir()
        assert config.log_file == str(tmp_path / "logs" / "readcore.log")
