"""Test Settings loading, TOML files and env overrides."""

import pytest

from event_turtle.core.config import Settings, load_settings
from event_turtle.core.enums import LogFormat
from event_turtle.core.errors import ConfigError


class TestSettingsDefaults:
    def test_default_settings(self):
        settings = Settings()
        assert settings.observability.log_level == "INFO"
        assert settings.observability.log_format is LogFormat.CONSOLE
        assert settings.observability.metrics_port == 0
        assert settings.store.unsubscribe_on_error is False

    def test_processors_on_by_default(self):
        settings = Settings()
        assert settings.processors.physical
        assert settings.processors.graphics
        assert settings.processors.ink_used
        assert settings.processors.dedupe_ink

    def test_drawing_defaults(self):
        settings = Settings()
        assert settings.drawing.side_length == 100.0
        assert settings.drawing.polygon_sides == 4


class TestLoadSettings:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.drawing.polygon_sides == 4

    def test_toml_file(self, tmp_path):
        path = tmp_path / "turtle.toml"
        path.write_text(
            "[processors]\ndedupe_ink = false\n\n"
            "[drawing]\npolygon_sides = 6\n"
        )
        settings = load_settings(path)
        assert settings.processors.dedupe_ink is False
        assert settings.drawing.polygon_sides == 6
        assert settings.processors.graphics is True

    def test_overrides_merge_sections(self, tmp_path):
        path = tmp_path / "turtle.toml"
        path.write_text("[drawing]\npolygon_sides = 6\nside_length = 50.0\n")
        settings = load_settings(path, overrides={"drawing": {"polygon_sides": 8}})
        assert settings.drawing.polygon_sides == 8
        assert settings.drawing.side_length == 50.0

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[drawing\nside_length = ")
        with pytest.raises(ConfigError, match="Malformed config"):
            load_settings(path)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            load_settings(overrides={"drawing": {"polygon_sides": 2}})

    def test_bad_log_format(self):
        with pytest.raises(ConfigError):
            load_settings(overrides={"observability": {"log_format": "xml"}})

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TURTLE_STORE__UNSUBSCRIBE_ON_ERROR", "true")
        settings = load_settings()
        assert settings.store.unsubscribe_on_error is True

    def test_shipped_config_loads(self):
        from pathlib import Path

        path = Path(__file__).resolve().parents[2] / "configs" / "default.toml"
        settings = load_settings(path)
        assert settings.processors.dedupe_ink is True
