"""
Race Statistics Module

Cross-driver statistics built on the per-driver analysis layer.

Statistics Modules:
- Rankings: field ranking per metric, focal rank and gap to leader
- Comparisons: head-to-head cumulative deltas and pace significance
- Reconciliation: canonical top speed from conflicting sources

Usage:
    from race_insights.statistics import RankingMetric, rank_drivers, cumulative_deltas

    ranking = rank_drivers(session, RankingMetric.TOP_SPEED)
    deltas = cumulative_deltas(player.laps, rival.laps, [18], [20])
"""

from .comparisons import (
    LapDelta,
    PaceComparison,
    compare_clean_pace,
    cumulative_deltas,
    driver_cumulative_deltas,
    first_pit_stop_difference,
)
from .rankings import (
    Ranking,
    RankingEntry,
    RankingMetric,
    RankPosition,
    avg_ers_deploy_pct,
    driver_top_speed,
    metric_value,
    rank_drivers,
    session_summary_frame,
    top_speed_reading,
)
from .reconciliation import ReadingQuality, SensorReading, TopSpeedReconciler

__all__ = [
    'LapDelta',
    'PaceComparison',
    'compare_clean_pace',
    'cumulative_deltas',
    'driver_cumulative_deltas',
    'first_pit_stop_difference',
    'Ranking',
    'RankingEntry',
    'RankingMetric',
    'RankPosition',
    'avg_ers_deploy_pct',
    'driver_top_speed',
    'metric_value',
    'rank_drivers',
    'session_summary_frame',
    'top_speed_reading',
    'ReadingQuality',
    'SensorReading',
    'TopSpeedReconciler',
]
