"""Tests for engine settings."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from campaign_pulse.exceptions import SchemaLoadError
from campaign_pulse.settings import EngineSettings, load_settings


class TestEngineSettings:
    """Tests for EngineSettings and load_settings()."""

    def test_bundled_file_matches_defaults(self) -> None:
        """The shipped YAML should not drift from the dataclass defaults."""
        assert load_settings() == EngineSettings()

    def test_defaults(self) -> None:
        settings = EngineSettings()
        assert settings.daily_std_multiplier == 2.0
        assert settings.daily_min_deviation_pct == 10.0
        assert settings.weekly_change_pct == 15.0
        assert settings.weekly_std_multiplier == 1.2
        assert settings.goal_headroom == 1.10
        assert settings.period_lengths == (7, 14, 30)

    def test_partial_override_file(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("daily_std_multiplier: 1.5\nperiod_lengths: [7, 14]\n")
        settings = load_settings(path)
        assert settings.daily_std_multiplier == 1.5
        assert settings.period_lengths == (7, 14)
        assert settings.weekly_change_pct == 15.0

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_settings(path) == EngineSettings()

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("z_threshold: 3\n")
        with pytest.raises(SchemaLoadError, match="z_threshold"):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaLoadError):
            load_settings(tmp_path / "nope.yaml")

    def test_with_overrides_is_a_copy(self) -> None:
        base = EngineSettings()
        tuned = base.with_overrides(goal_headroom=1.25)
        assert tuned.goal_headroom == 1.25
        assert base.goal_headroom == 1.10
        with pytest.raises(FrozenInstanceError):
            base.goal_headroom = 2.0  # type: ignore[misc]
