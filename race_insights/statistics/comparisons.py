"""
Head-to-Head Comparisons Module

Compares two drivers of the same session lap by lap.

Features:
- Cumulative time delta with per-sector breakdown and pit markers
- First pit stop timing difference
- Statistical significance of the clean race pace gap

Usage:
    from race_insights.statistics import comparisons

    deltas = comparisons.driver_cumulative_deltas(player, rival)
    gap = comparisons.compare_clean_pace(player, rival)
"""

import logging
from dataclasses import dataclass
from typing import Collection, List, Optional, Sequence

import numpy as np
from scipy import stats

from ..analysis.lap_analytics import clean_race_laps, pit_laps
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, LapRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LapDelta:
    """One lap of a head-to-head comparison, times in seconds"""
    lap: int
    delta: float  # Cumulative, positive = player behind
    lap_delta: float
    s1_delta: float
    s2_delta: float
    s3_delta: float
    player_pit: bool
    rival_pit: bool


@dataclass(frozen=True)
class PaceComparison:
    """Clean race pace of two drivers with a Welch t-test"""
    player_pace_ms: float
    rival_pace_ms: float
    pace_delta_ms: float  # Negative = player faster
    t_statistic: float
    p_value: float
    is_significant: bool
    player_laps: int
    rival_laps: int


def cumulative_deltas(player_laps: Sequence[LapRecord], rival_laps: Sequence[LapRecord],
                      player_pit_laps: Collection[int], rival_pit_laps: Collection[int]) -> List[LapDelta]:
    """
    Calculate cumulative time deltas between player and rival, lap by lap

    Walks both sequences up to the shorter length. A lap where either time
    is unset is skipped but still advances the lap number.

    Args:
        player_laps: Player laps in order
        rival_laps: Rival laps in order
        player_pit_laps: Laps on which the player pitted
        rival_pit_laps: Laps on which the rival pitted

    Returns:
        LapDelta per comparable lap
    """
    result = []
    cumulative_ms = 0

    for position, (player_lap, rival_lap) in enumerate(zip(player_laps, rival_laps), start=1):
        if player_lap.lap_time_ms <= 0 or rival_lap.lap_time_ms <= 0:
            continue

        lap_delta_ms = player_lap.lap_time_ms - rival_lap.lap_time_ms
        cumulative_ms += lap_delta_ms

        result.append(LapDelta(
            lap=position,
            delta=cumulative_ms / 1000,
            lap_delta=lap_delta_ms / 1000,
            s1_delta=(player_lap.sector1_time_ms - rival_lap.sector1_time_ms) / 1000,
            s2_delta=(player_lap.sector2_time_ms - rival_lap.sector2_time_ms) / 1000,
            s3_delta=(player_lap.sector3_time_ms - rival_lap.sector3_time_ms) / 1000,
            player_pit=position in player_pit_laps,
            rival_pit=position in rival_pit_laps
        ))

    return result


def driver_cumulative_deltas(player: Driver, rival: Driver) -> List[LapDelta]:
    """cumulative_deltas for two drivers, pit laps taken from their stints"""
    return cumulative_deltas(player.laps, rival.laps, set(pit_laps(player)), set(pit_laps(rival)))


def first_pit_stop_difference(player: Driver, rival: Driver) -> Optional[int]:
    """Player's first pit lap minus the rival's (positive = later), None if either never pitted"""
    player_pits = pit_laps(player)
    rival_pits = pit_laps(rival)
    if not player_pits or not rival_pits:
        return None
    return player_pits[0] - rival_pits[0]


def compare_clean_pace(player: Driver, rival: Driver, alpha: float = 0.05,
                       config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[PaceComparison]:
    """
    Test whether the clean race pace gap between two drivers is significant

    Args:
        player: First driver
        rival: Second driver
        alpha: Significance level
        config: Thresholds

    Returns:
        PaceComparison, or None with fewer than 2 clean laps for either driver
    """
    times_a = [lap.lap_time_ms for lap in clean_race_laps(player, config)]
    times_b = [lap.lap_time_ms for lap in clean_race_laps(rival, config)]

    if len(times_a) < 2 or len(times_b) < 2:
        logger.debug("Not enough clean laps to compare %s and %s", player.name, rival.name)
        return None

    mean_a = float(np.mean(times_a))
    mean_b = float(np.mean(times_b))

    if np.ptp(times_a) == 0 and np.ptp(times_b) == 0:
        # Constant samples have no spread for scipy to test against
        if mean_a == mean_b:
            t_stat, p_value = 0.0, 1.0
        else:
            t_stat, p_value = float(np.copysign(np.inf, mean_a - mean_b)), 0.0
    else:
        # Welch's t-test (unequal variances)
        t_stat, p_value = stats.ttest_ind(times_a, times_b, equal_var=False)

    return PaceComparison(
        player_pace_ms=mean_a,
        rival_pace_ms=mean_b,
        pace_delta_ms=mean_a - mean_b,
        t_statistic=float(t_stat),
        p_value=float(p_value),
        is_significant=bool(p_value < alpha),
        player_laps=len(times_a),
        rival_laps=len(times_b)
    )
