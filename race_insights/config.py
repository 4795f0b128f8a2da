"""
Analytics Configuration

Named thresholds used across the analytics layer.

Every constant below is part of the behavioural contract of the library
(lap validity, outlier rejection, tyre life, fuel sample counts) and is
collected into a frozen AnalyticsConfig so callers and tests can tune one
value without patching call sites.

Usage:
    from race_insights.config import DEFAULT_CONFIG, AnalyticsConfig

    strict = AnalyticsConfig(outlier_multiplier=1.1)
    clean = clean_race_laps(driver, config=strict)
"""

import os
from dataclasses import dataclass, fields, replace


# Lap validity
LAP_VALID_FLAGS = 15  # All four validity bits set

# Pace outliers
OUTLIER_MULTIPLIER = 1.2  # Laps slower than 1.2x median are discarded
MIN_LAPS_FOR_OUTLIER_FILTER = 3  # Median is meaningless below this

# Tyres
PUNCTURE_WEAR_THRESHOLD = 75.0  # Worst-wheel wear % (puncture risk)
MIN_STINT_LAPS_FOR_COMPOUND = 3  # Shorter stints are exploratory
PACE_DROP_WINDOW = 5  # Laps averaged at each end of a stint

# Fuel
MIN_FUEL_DELTAS = 3  # Below this the burn rate is not reported
MIN_FUEL_DELTAS_FOR_RECOMMENDATION = 5

# ERS
ERS_NOISE_FLOOR_PCT = 5.0  # Laps deploying less are capture artifacts
ERS_DEFAULT_MAX_CAPACITY_J = 4_000_000  # 4 MJ store

# Top speed
TOP_SPEED_GLITCH_MULTIPLIER = 1.15  # vs driver's per-lap median speed


ENV_PREFIX = "RACE_INSIGHTS_"


@dataclass(frozen=True)
class AnalyticsConfig:
    """Tunable thresholds for the analytics layer"""
    lap_valid_flags: int = LAP_VALID_FLAGS
    outlier_multiplier: float = OUTLIER_MULTIPLIER
    min_laps_for_outlier_filter: int = MIN_LAPS_FOR_OUTLIER_FILTER
    puncture_wear_threshold: float = PUNCTURE_WEAR_THRESHOLD
    min_stint_laps_for_compound: int = MIN_STINT_LAPS_FOR_COMPOUND
    pace_drop_window: int = PACE_DROP_WINDOW
    min_fuel_deltas: int = MIN_FUEL_DELTAS
    min_fuel_deltas_for_recommendation: int = MIN_FUEL_DELTAS_FOR_RECOMMENDATION
    ers_noise_floor_pct: float = ERS_NOISE_FLOOR_PCT
    ers_default_max_capacity_j: float = ERS_DEFAULT_MAX_CAPACITY_J
    top_speed_glitch_multiplier: float = TOP_SPEED_GLITCH_MULTIPLIER

    @classmethod
    def from_env(cls, environ=None) -> "AnalyticsConfig":
        """
        Build a config from RACE_INSIGHTS_* environment variables

        Unset variables keep their defaults, e.g.
        RACE_INSIGHTS_OUTLIER_MULTIPLIER=1.25.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            AnalyticsConfig with overrides applied
        """
        environ = os.environ if environ is None else environ
        overrides = {}

        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            caster = field.type
            try:
                overrides[field.name] = caster(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{field.name.upper()}: {raw!r}")

        return replace(cls(), **overrides)


DEFAULT_CONFIG = AnalyticsConfig()
