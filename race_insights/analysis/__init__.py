"""
F1 Session Analysis Module

Per-driver analytics over one session, plus track-level aggregation.

Analytics Modules:
- lap_analytics: Lap validity, clean race laps, outlier filtering, ideal lap
- stint_analytics: Stint wear rate, pace in range, pace drop, compound benchmark
- tyre_analytics: Tyre life estimate, compound life across races
- fuel_analytics: Green-flag burn rate, fuel load recommendation
- track_analytics: Personal bests, run deduplication, track summaries

Usage:
    from race_insights.analysis import clean_race_laps, stint_wear_rate, estimate_max_life

    clean = clean_race_laps(driver)
    life = estimate_max_life(stint_wear_rate(driver.stints[0]))
"""

from .fuel_analytics import (
    FuelConsumptionAnalysis,
    TrackFuelSummary,
    aggregate_fuel_data,
    burn_rate,
    calculate_fuel_consumption,
    green_flag_fuel_deltas,
)
from .lap_analytics import (
    IdealLapAnalysis,
    best_lap_time,
    best_sector_times,
    calculate_ideal_lap,
    clean_race_laps,
    clean_race_pace,
    filter_outlier_laps,
    is_valid,
    lap_time_std_dev,
    laps_to_frame,
    pit_affected_laps,
    pit_laps,
    valid_laps,
)
from .stint_analytics import (
    CompoundBenchmark,
    StintComparison,
    average_wear_rate,
    avg_pace_in_range,
    best_driver_on_compound,
    compare_stints,
    completed_stints,
    pace_drop,
    stint_wear_rate,
)
from .track_analytics import (
    SessionRun,
    TrackAnalytics,
    compute_track_personal_bests,
    deduplicate_qualifying_runs,
)
from .tyre_analytics import (
    CompoundLifeStats,
    aggregate_compound_life,
    estimate_max_life,
    project_pit_lap,
)

__all__ = [
    'FuelConsumptionAnalysis',
    'TrackFuelSummary',
    'aggregate_fuel_data',
    'burn_rate',
    'calculate_fuel_consumption',
    'green_flag_fuel_deltas',
    'IdealLapAnalysis',
    'best_lap_time',
    'best_sector_times',
    'calculate_ideal_lap',
    'clean_race_laps',
    'clean_race_pace',
    'filter_outlier_laps',
    'is_valid',
    'lap_time_std_dev',
    'laps_to_frame',
    'pit_affected_laps',
    'pit_laps',
    'valid_laps',
    'CompoundBenchmark',
    'StintComparison',
    'average_wear_rate',
    'avg_pace_in_range',
    'best_driver_on_compound',
    'compare_stints',
    'completed_stints',
    'pace_drop',
    'stint_wear_rate',
    'SessionRun',
    'TrackAnalytics',
    'compute_track_personal_bests',
    'deduplicate_qualifying_runs',
    'CompoundLifeStats',
    'aggregate_compound_life',
    'estimate_max_life',
    'project_pit_lap',
]
