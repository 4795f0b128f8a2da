"""
Lap Analytics Module

Classifies laps and derives the clean subset used for pace statistics.

Features:
- Lap validity (all four validity flags set, time recorded)
- Clean race laps (no lap 1, pit in/out, SC/VSC or pace outliers)
- Median-based outlier filtering for narrow lap ranges
- Ideal/theoretical best lap calculation
- Consistency (lap time standard deviation)

Usage:
    from race_insights.analysis import lap_analytics

    clean = lap_analytics.clean_race_laps(driver)
    ideal = lap_analytics.calculate_ideal_lap(driver)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, LapRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdealLapAnalysis:
    """Results of ideal lap calculation"""
    ideal_lap_time_ms: int
    best_actual_lap_ms: int
    improvement_potential_ms: int
    sector1_best_ms: int
    sector2_best_ms: int
    sector3_best_ms: int
    laps_analyzed: int


def is_valid(lap: LapRecord, config: AnalyticsConfig = DEFAULT_CONFIG) -> bool:
    """A lap counts only when every validity flag is set and a time was recorded"""
    return lap.valid_flags == config.lap_valid_flags and lap.lap_time_ms > 0


def valid_laps(laps: Sequence[LapRecord], config: AnalyticsConfig = DEFAULT_CONFIG) -> List[LapRecord]:
    return [lap for lap in laps if is_valid(lap, config)]


def _median_filter(laps: List[LapRecord], multiplier: float) -> List[LapRecord]:
    median = float(np.median([lap.lap_time_ms for lap in laps]))
    limit = median * multiplier
    return [lap for lap in laps if lap.lap_time_ms <= limit]


def pit_affected_laps(driver: Driver) -> Set[int]:
    """
    Laps disturbed by a pit stop, derived from stint boundaries

    The last lap of every stint except the final one is a pit-in lap and the
    first lap of every following stint is a pit-out lap. Tyre changes that
    were never recorded as a stint boundary cannot be detected here.
    """
    stints = driver.stints
    pit_in = {stint.end_lap for stint in stints[:-1]}
    pit_out = {stint.start_lap for stint in stints[1:]}
    return pit_in | pit_out


def pit_laps(driver: Driver) -> List[int]:
    """Laps on which a new stint started (one per pit stop)"""
    return [stint.start_lap for stint in driver.stints[1:]]


def clean_race_laps(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> List[LapRecord]:
    """
    Valid laps representative of green-flag race pace

    Stage 1 drops lap 1, pit in/out laps and any lap whose per-lap sample
    reports a safety car or virtual safety car. Stage 2 drops laps slower
    than outlier_multiplier x the median of what is left, catching spins and
    off-track excursions that carry no telemetry flag. Stage 2 is skipped
    when fewer than min_laps_for_outlier_filter laps survive stage 1.

    Args:
        driver: Driver to analyze
        config: Thresholds

    Returns:
        Clean laps in lap order (possibly empty)
    """
    pit_affected = pit_affected_laps(driver)
    neutralised = {
        info.lap_number for info in driver.per_lap_info if not info.is_green_flag
    }

    candidates = [
        lap for lap in valid_laps(driver.laps, config)
        if lap.lap_number != 1
        and lap.lap_number not in pit_affected
        and lap.lap_number not in neutralised
    ]

    if len(candidates) < config.min_laps_for_outlier_filter:
        logger.debug(
            "Driver %s: %d candidate laps, skipping outlier filter",
            driver.name, len(candidates)
        )
        return candidates

    return _median_filter(candidates, config.outlier_multiplier)


def filter_outlier_laps(laps: Sequence[LapRecord], config: AnalyticsConfig = DEFAULT_CONFIG) -> List[LapRecord]:
    """
    Valid laps no slower than outlier_multiplier x their own median

    Used for narrow lap ranges (one stint) where the pit and safety-car
    context of the full driver record is not available.
    """
    valid = valid_laps(laps, config)
    if not valid:
        return []
    return _median_filter(valid, config.outlier_multiplier)


def mean_lap_time(laps: Sequence[LapRecord]) -> float:
    """Mean lap time in ms, 0 for no laps"""
    if not laps:
        return 0.0
    return float(np.mean([lap.lap_time_ms for lap in laps]))


def clean_race_pace(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """Mean clean-lap time in ms, 0 when the driver has no clean laps"""
    return mean_lap_time(clean_race_laps(driver, config))


def best_lap_time(laps: Sequence[LapRecord], config: AnalyticsConfig = DEFAULT_CONFIG) -> int:
    """Fastest valid lap in ms, 0 when there is none"""
    valid = valid_laps(laps, config)
    if not valid:
        return 0
    return min(lap.lap_time_ms for lap in valid)


def best_sector_times(laps: Sequence[LapRecord], config: AnalyticsConfig = DEFAULT_CONFIG) -> Tuple[int, int, int]:
    """Best recorded time of each sector over valid laps (0 where none recorded)"""
    valid = valid_laps(laps, config)
    bests = []

    for sector in range(3):
        times = [lap.sector_times[sector] for lap in valid if lap.sector_times[sector] > 0]
        bests.append(min(times) if times else 0)

    return tuple(bests)


def lap_time_std_dev(laps: Sequence[LapRecord], config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """Population standard deviation of valid lap times (0 below 2 laps)"""
    valid = valid_laps(laps, config)
    if len(valid) < 2:
        return 0.0
    return float(np.std([lap.lap_time_ms for lap in valid]))


def calculate_ideal_lap(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[IdealLapAnalysis]:
    """
    Calculate ideal/theoretical best lap time

    Combines best sector times to create the perfect lap.

    Args:
        driver: Driver to analyze
        config: Thresholds

    Returns:
        IdealLapAnalysis, or None without valid laps carrying all three sectors
    """
    valid = valid_laps(driver.laps, config)
    sector1_best, sector2_best, sector3_best = best_sector_times(valid, config)

    if not valid or not (sector1_best and sector2_best and sector3_best):
        return None

    ideal_lap = sector1_best + sector2_best + sector3_best
    best_actual = best_lap_time(valid, config)

    return IdealLapAnalysis(
        ideal_lap_time_ms=ideal_lap,
        best_actual_lap_ms=best_actual,
        improvement_potential_ms=best_actual - ideal_lap,
        sector1_best_ms=sector1_best,
        sector2_best_ms=sector2_best,
        sector3_best_ms=sector3_best,
        laps_analyzed=len(valid)
    )


def laps_to_frame(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """
    Lap table for one driver

    Returns:
        DataFrame with one row per lap: times, validity, clean flag,
        safety car status and the stint compound
    """
    clean = {lap.lap_number for lap in clean_race_laps(driver, config)}
    pit_affected = pit_affected_laps(driver)

    rows = []
    for lap in driver.laps:
        info = driver.telemetry_for_lap(lap.lap_number)
        compound = next(
            (stint.compound for stint in driver.stints if stint.contains(lap.lap_number)),
            None
        )
        rows.append({
            'lap_number': lap.lap_number,
            'lap_time_ms': lap.lap_time_ms,
            'sector1_time_ms': lap.sector1_time_ms,
            'sector2_time_ms': lap.sector2_time_ms,
            'sector3_time_ms': lap.sector3_time_ms,
            'valid': is_valid(lap, config),
            'clean': lap.lap_number in clean,
            'pit_affected': lap.lap_number in pit_affected,
            'safety_car_status': info.safety_car_status.value if info else None,
            'compound': compound,
        })

    return pd.DataFrame(rows, columns=[
        'lap_number', 'lap_time_ms', 'sector1_time_ms', 'sector2_time_ms',
        'sector3_time_ms', 'valid', 'clean', 'pit_affected',
        'safety_car_status', 'compound',
    ])
