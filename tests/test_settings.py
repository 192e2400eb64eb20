"""Tests for YAML settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from phaseweight.config.settings import Settings
from phaseweight.tracking.models import InvalidSettingError


class TestSettings:
    """Tests for Settings.load and Settings.save."""

    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        settings = Settings.load(tmp_path / "config.yaml")
        assert settings.tracking.default_trend_view_weeks == 4
        assert settings.tracking.enforce_sunday is True
        assert settings.defaults.output_format == "table"
        assert settings.storage.path.name == "phaseweight.db"

    def test_empty_file_gives_defaults(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")
        assert Settings.load(config_path).tracking.default_trend_view_weeks == 4

    def test_partial_file(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("tracking:\n  enforce_sunday: false\n")
        settings = Settings.load(config_path)
        assert settings.tracking.enforce_sunday is False
        assert settings.tracking.default_trend_view_weeks == 4

    def test_save_and_load(self, tmp_path) -> None:
        config_path = tmp_path / "nested" / "config.yaml"
        settings = Settings()
        settings.storage.path = tmp_path / "tracker.db"
        settings.tracking.default_trend_view_weeks = 8
        settings.defaults.output_format = "json"
        settings.save(config_path)

        loaded = Settings.load(config_path)
        assert loaded.storage.path == tmp_path / "tracker.db"
        assert loaded.tracking.default_trend_view_weeks == 8
        assert loaded.defaults.output_format == "json"

    def test_storage_path_expands_user(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("storage:\n  path: ~/tracker.db\n")
        assert Settings.load(config_path).storage.path == Path.home() / "tracker.db"

    def test_invalid_trend_view(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("tracking:\n  default_trend_view_weeks: 5\n")
        with pytest.raises(InvalidSettingError):
            Settings.load(config_path)

    def test_invalid_output_format(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("defaults:\n  output_format: markdown\n")
        with pytest.raises(InvalidSettingError):
            Settings.load(config_path)

    def test_unknown_keys_ignored(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text("tracking:\n  smoothing: 0.1\nextras:\n  a: 1\n")
        assert Settings.load(config_path).tracking.default_trend_view_weeks == 4

    def test_quoted_boolean_rejected(self, tmp_path) -> None:
        config_path = tmp_path / "config.yaml"
        config_path.write_text('tracking:\n  enforce_sunday: "false"\n')
        with pytest.raises(InvalidSettingError):
            Settings.load(config_path)
