"""
Tyre Analytics Module

Projects tyre life from stint wear rates and aggregates compound behaviour
across every race at a track.

Features:
- Estimated max life at the puncture-risk wear threshold
- Pit lap projection for a stint
- Per-compound life statistics across race sessions

Usage:
    from race_insights.analysis import tyre_analytics

    life = tyre_analytics.estimate_max_life(2.5)  # 30 laps
    stats = tyre_analytics.aggregate_compound_life(race_sessions)
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Session, TyreStint
from .lap_analytics import valid_laps
from .stint_analytics import completed_stints, stint_wear_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompoundLifeStats:
    """Compound behaviour across all races at one track"""
    compound: str
    stint_count: int
    avg_wear_rate: float  # worst-wheel %/lap
    estimated_life_laps: int
    avg_stint_length: float
    max_stint_length: int
    best_lap_ms: int  # 0 if no valid lap on this compound


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_max_life(wear_rate_per_lap: float, config: AnalyticsConfig = DEFAULT_CONFIG) -> int:
    """
    Laps until the worst wheel reaches the puncture-risk threshold

    Linear extrapolation: wear is treated as locally linear within a stint.

    Args:
        wear_rate_per_lap: Worst-wheel wear in %/lap
        config: Thresholds

    Returns:
        Estimated life in laps, 0 for a non-positive rate
    """
    if wear_rate_per_lap <= 0:
        return 0
    return _round_half_up(config.puncture_wear_threshold / wear_rate_per_lap)


def project_pit_lap(stint: TyreStint, config: AnalyticsConfig = DEFAULT_CONFIG) -> int:
    """Race lap on which the stint's tyres reach the threshold (0 without wear data)"""
    life = estimate_max_life(stint_wear_rate(stint), config)
    if life == 0:
        return 0
    return stint.start_lap + life - 1


def _stint_rows(sessions: Iterable[Session], player_only: bool, config: AnalyticsConfig) -> List[dict]:
    rows = []

    for session in sessions:
        if not session.is_race:
            continue

        drivers = [session.player] if player_only else list(session.drivers)

        for driver in drivers:
            if driver is None:
                continue

            laps = valid_laps(driver.laps, config)

            for stint in completed_stints(driver):
                if stint.stint_length < config.min_stint_laps_for_compound:
                    continue

                stint_laps = [lap.lap_time_ms for lap in laps if stint.contains(lap.lap_number)]
                rows.append({
                    'compound': stint.compound,
                    'wear_rate': stint_wear_rate(stint),
                    'stint_length': stint.stint_length,
                    'best_lap_ms': min(stint_laps) if stint_laps else 0,
                })

    return rows


def aggregate_compound_life(sessions: Iterable[Session], player_only: bool = True,
                            config: AnalyticsConfig = DEFAULT_CONFIG) -> List[CompoundLifeStats]:
    """
    Aggregate completed stints by compound across race sessions

    Stints shorter than min_stint_laps_for_compound are ignored. The mean
    wear rate uses only stints with wear data.

    Args:
        sessions: Sessions at one track (non-race sessions are skipped)
        player_only: Only aggregate the player's stints
        config: Thresholds

    Returns:
        One CompoundLifeStats per compound, longest estimated life first
    """
    df = pd.DataFrame(
        _stint_rows(sessions, player_only, config),
        columns=['compound', 'wear_rate', 'stint_length', 'best_lap_ms']
    )

    if df.empty:
        logger.debug("No completed stints to aggregate")
        return []

    results = []
    for compound, group in df.groupby('compound', sort=True):
        rates = group.loc[group['wear_rate'] > 0, 'wear_rate']
        avg_rate = float(rates.mean()) if not rates.empty else 0.0
        best_laps = group.loc[group['best_lap_ms'] > 0, 'best_lap_ms']

        results.append(CompoundLifeStats(
            compound=compound,
            stint_count=len(group),
            avg_wear_rate=avg_rate,
            estimated_life_laps=estimate_max_life(avg_rate, config),
            avg_stint_length=float(group['stint_length'].mean()),
            max_stint_length=int(group['stint_length'].max()),
            best_lap_ms=int(best_laps.min()) if not best_laps.empty else 0
        ))

    results.sort(key=lambda stats: -stats.estimated_life_laps)
    return results
