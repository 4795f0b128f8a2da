"""
Field Rankings Module

Ranks every driver in a session on one metric and locates the focal
driver's position and gap to the leader.

Metrics:
- Race pace (clean laps), tyre wear, top speed, ERS deployment
- Average sector times (race) and best lap / best sectors (qualifying)
- Consistency (lap time standard deviation)

Usage:
    from race_insights.statistics import RankingMetric, rank_drivers

    ranking = rank_drivers(session, RankingMetric.PACE)
    position = ranking.position_of(player)
    if position is not None:
        print(position.rank, position.total, position.gap_to_leader)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..analysis.lap_analytics import (
    best_lap_time,
    best_sector_times,
    clean_race_pace,
    lap_time_std_dev,
    valid_laps,
)
from ..analysis.stint_analytics import average_wear_rate
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, Session
from .reconciliation import SensorReading, TopSpeedReconciler

logger = logging.getLogger(__name__)


class RankingMetric(Enum):
    PACE = ("pace", False)
    TYRE_WEAR = ("tyre_wear", False)
    TOP_SPEED = ("top_speed", True)
    ERS_DEPLOYMENT = ("ers_deployment", True)  # More deployed = less energy wasted
    SECTOR_1 = ("sector_1", False)
    SECTOR_2 = ("sector_2", False)
    SECTOR_3 = ("sector_3", False)
    BEST_LAP = ("best_lap", False)
    BEST_SECTOR_1 = ("best_sector_1", False)
    BEST_SECTOR_2 = ("best_sector_2", False)
    BEST_SECTOR_3 = ("best_sector_3", False)
    CONSISTENCY = ("consistency", False)

    def __init__(self, key: str, higher_is_better: bool):
        self.key = key
        self.higher_is_better = higher_is_better


@dataclass(frozen=True)
class RankingEntry:
    driver: Driver
    value: float


@dataclass(frozen=True)
class RankPosition:
    """Focal driver's place in a ranking"""
    rank: int  # 1-based, 1 = best
    total: int
    value: float
    gap_to_leader: float  # Always >= 0, in the metric's units


@dataclass(frozen=True)
class Ranking:
    """Drivers with enough data for a metric, best first"""
    metric: RankingMetric
    entries: Tuple[RankingEntry, ...]

    @property
    def leader(self) -> Optional[RankingEntry]:
        return self.entries[0] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)

    def position_of(self, driver: Driver) -> Optional[RankPosition]:
        for rank, entry in enumerate(self.entries, start=1):
            if entry.driver.index == driver.index:
                return RankPosition(
                    rank=rank,
                    total=len(self.entries),
                    value=entry.value,
                    gap_to_leader=abs(entry.value - self.entries[0].value)
                )
        return None


def top_speed_reading(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> SensorReading:
    """Reconciled top speed with its quality flag"""
    reconciler = TopSpeedReconciler(config.top_speed_glitch_multiplier)
    return reconciler.reconcile(
        driver.top_speed_kmph,
        [info.top_speed_kmph for info in driver.per_lap_info]
    )


def driver_top_speed(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """Top speed in km/h after glitch rejection, 0 when unreported"""
    return top_speed_reading(driver, config).value


def avg_ers_deploy_pct(driver: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """
    Average ERS deployment per lap as % of store capacity

    The first and last recorded laps and any lap under ers_noise_floor_pct
    are capture-timing artifacts and are excluded. Returns 0 without data.
    """
    samples = sorted(driver.per_lap_info, key=lambda info: info.lap_number)[1:-1]
    percentages = []

    for info in samples:
        deployed = info.car_status.ers_deployed_j
        if deployed is None:
            continue
        capacity = info.car_status.ers_max_capacity_j or config.ers_default_max_capacity_j
        pct = deployed / capacity * 100
        if pct >= config.ers_noise_floor_pct:
            percentages.append(pct)

    if not percentages:
        return 0.0
    return float(np.mean(percentages))


def _average_sector(sector: int) -> Callable[[Driver, AnalyticsConfig], float]:
    def metric(driver: Driver, config: AnalyticsConfig) -> float:
        valid = valid_laps(driver.laps, config)
        if not valid:
            return 0.0
        return float(np.mean([lap.sector_times[sector] for lap in valid]))
    return metric


def _best_sector(sector: int) -> Callable[[Driver, AnalyticsConfig], float]:
    def metric(driver: Driver, config: AnalyticsConfig) -> float:
        return best_sector_times(driver.laps, config)[sector]
    return metric


def _consistency(driver: Driver, config: AnalyticsConfig) -> Optional[float]:
    if len(valid_laps(driver.laps, config)) < 2:
        return None
    return lap_time_std_dev(driver.laps, config)


# Each extractor returns None or a non-positive value for "not enough data",
# except consistency where 0 is a real (perfect) score.
METRIC_EXTRACTORS: Dict[RankingMetric, Callable[[Driver, AnalyticsConfig], Optional[float]]] = {
    RankingMetric.PACE: clean_race_pace,
    RankingMetric.TYRE_WEAR: lambda driver, config: average_wear_rate(driver),
    RankingMetric.TOP_SPEED: driver_top_speed,
    RankingMetric.ERS_DEPLOYMENT: avg_ers_deploy_pct,
    RankingMetric.SECTOR_1: _average_sector(0),
    RankingMetric.SECTOR_2: _average_sector(1),
    RankingMetric.SECTOR_3: _average_sector(2),
    RankingMetric.BEST_LAP: lambda driver, config: best_lap_time(driver.laps, config),
    RankingMetric.BEST_SECTOR_1: _best_sector(0),
    RankingMetric.BEST_SECTOR_2: _best_sector(1),
    RankingMetric.BEST_SECTOR_3: _best_sector(2),
    RankingMetric.CONSISTENCY: _consistency,
}


def metric_value(driver: Driver, metric: RankingMetric, config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[float]:
    """Driver's value for a metric, None when there is not enough data"""
    value = METRIC_EXTRACTORS[metric](driver, config)
    if value is None:
        return None
    if metric is not RankingMetric.CONSISTENCY and value <= 0:
        return None
    return float(value)


def rank_drivers(session: Session, metric: RankingMetric, config: AnalyticsConfig = DEFAULT_CONFIG) -> Ranking:
    """
    Rank every driver with enough data for a metric

    Args:
        session: Session to rank
        metric: Metric and its better direction
        config: Thresholds

    Returns:
        Ranking, best first; ties keep session order
    """
    entries = []
    for driver in session.drivers:
        value = metric_value(driver, metric, config)
        if value is not None:
            entries.append(RankingEntry(driver=driver, value=value))

    entries.sort(key=lambda entry: -entry.value if metric.higher_is_better else entry.value)

    logger.debug("Ranked %d/%d drivers on %s", len(entries), len(session.drivers), metric.key)
    return Ranking(metric=metric, entries=tuple(entries))


def session_summary_frame(session: Session, config: AnalyticsConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """
    Per-driver summary table for a session

    Returns:
        DataFrame sorted by finishing position (unclassified drivers last)
        with best lap, clean race pace, top speed and ERS deployment
    """
    rows: List[dict] = []

    for driver in session.drivers:
        speed = top_speed_reading(driver, config)
        classification = driver.final_classification
        rows.append({
            'driver_index': driver.index,
            'driver_name': driver.name,
            'team': driver.team,
            'position': classification.position if classification else None,
            'best_lap_ms': best_lap_time(driver.laps, config),
            'race_pace_ms': clean_race_pace(driver, config),
            'top_speed_kmph': speed.value,
            'top_speed_quality': speed.quality.value,
            'ers_deploy_pct': avg_ers_deploy_pct(driver, config),
        })

    df = pd.DataFrame(rows, columns=[
        'driver_index', 'driver_name', 'team', 'position', 'best_lap_ms',
        'race_pace_ms', 'top_speed_kmph', 'top_speed_quality', 'ers_deploy_pct',
    ])
    if not df.empty:
        df = df.sort_values('position', na_position='last', kind='stable').reset_index(drop=True)

    return df
