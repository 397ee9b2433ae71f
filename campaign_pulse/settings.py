"""Engine settings: every tunable threshold in one place."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import SchemaLoadError

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "config" / "engine_settings.yaml"


@dataclass(frozen=True)
class EngineSettings:
    """Configurable constants for anomaly, window and pacing calculations.

    Percent values are expressed on a 0-100 scale (15.0 = 15%).
    """

    # Daily anomalies: |v - mean| > multiplier * std AND |v - mean| / mean > floor
    daily_std_multiplier: float = 2.0
    daily_min_deviation_pct: float = 10.0

    # Weekly anomalies
    weekly_change_pct: float = 15.0  # week-over-week and vs-average floor
    weekly_std_multiplier: float = 1.2
    weekly_min_days: int = 3  # days of data for a week to be eligible
    weekly_min_weeks: int = 2  # weeks of data for a campaign to be analysed
    weekly_min_weeks_for_average: int = 3

    # Metrics examined by the anomaly detector
    anomaly_metrics: tuple[str, ...] = ("impressions", "clicks", "revenue")

    # Rolling windows
    period_lengths: tuple[int, ...] = (7, 14, 30)

    # Pacing: goal synthesised from delivery when no contract exists
    goal_headroom: float = 1.10

    # Pacing bands on current_pacing * 100, tightest first
    on_target_low: float = 95.0
    on_target_high: float = 105.0
    minor_low: float = 85.0
    minor_high: float = 115.0
    moderate_low: float = 70.0
    moderate_high: float = 130.0

    # Spend estimate (impressions / 1000 * cpm) when no real spend is present
    assumed_cpm: float | None = None

    def with_overrides(self, **overrides: Any) -> "EngineSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load settings from YAML, falling back to defaults for missing keys.

    Raises:
        SchemaLoadError: If the file cannot be read or names unknown settings.
    """
    path = path or DEFAULT_SETTINGS_PATH
    try:
        with open(path) as f:
            payload = yaml.safe_load(f) or {}
    except Exception as e:
        raise SchemaLoadError(f"Failed to load settings from {path}: {e}") from e

    known = {f.name for f in fields(EngineSettings)}
    unknown = set(payload) - known
    if unknown:
        raise SchemaLoadError(f"Unknown settings in {path}: {sorted(unknown)}")

    # YAML lists arrive as lists; the dataclass stores tuples
    for key in ("anomaly_metrics", "period_lengths"):
        if key in payload and payload[key] is not None:
            payload[key] = tuple(payload[key])

    return EngineSettings(**payload)
