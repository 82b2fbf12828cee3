"""
Tests for settings loading and validation.
"""

import pytest
from pydantic import ValidationError

from payscope.exceptions import DataValidationError
from payscope.settings import BC_INSTITUTIONS, CanvasConfig, Settings, load_settings


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.canvas.width == 900
        assert settings.canvas.height == 500
        assert settings.entities == BC_INSTITUTIONS
        assert settings.reference_name == "Abel-Co, Karen"
        assert settings.top_k == 10
        assert settings.transition_ms == 1000

    def test_plot_area(self) -> None:
        canvas = CanvasConfig()
        assert (canvas.plot_left, canvas.plot_right) == (70, 870)
        assert (canvas.plot_top, canvas.plot_bottom) == (40, 420)

    def test_duplicate_entities_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(entities=["A", "A"])

    def test_empty_entities_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(entities=[])

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(colour="red")

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("PAYSCOPE_TOP_K", "3")
        monkeypatch.setenv("PAYSCOPE_CANVAS__WIDTH", "640")
        settings = Settings()
        assert settings.top_k == 3
        assert settings.canvas.width == 640


class TestLoadSettings:
    """Tests for load_settings."""

    def test_none_uses_defaults(self) -> None:
        assert load_settings(None) == Settings()

    def test_yaml_file(self, tmp_path) -> None:
        path = tmp_path / "story.yaml"
        path.write_text(
            "top_k: 5\nreference_name: 'Doe, John'\ncanvas:\n  width: 800\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.top_k == 5
        assert settings.reference_name == "Doe, John"
        assert settings.canvas.width == 800
        assert settings.canvas.height == 500

    def test_environment_beats_file(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "story.yaml"
        path.write_text("top_k: 5\n", encoding="utf-8")
        monkeypatch.setenv("PAYSCOPE_TOP_K", "7")

        assert load_settings(path).top_k == 7

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "story.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path).top_k == 10

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_non_mapping(self, tmp_path) -> None:
        path = tmp_path / "story.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(DataValidationError) as exc_info:
            load_settings(path)
        assert exc_info.value.field == "<root>"
