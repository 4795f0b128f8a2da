"""
Stint Analytics Module

Per-stint tyre wear and pace aggregation.

Features:
- Worst-wheel wear rate per stint
- Average pace and pace drop within a lap range
- Completed-stint filtering (retirement artifacts removed)
- Best comparable stint on the same compound across the field

Usage:
    from race_insights.analysis import stint_analytics

    rate = stint_analytics.stint_wear_rate(stint)
    drop = stint_analytics.pace_drop(driver.laps, stint.start_lap, stint.end_lap)
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, LapRecord, TyreStint
from .lap_analytics import filter_outlier_laps, mean_lap_time


@dataclass(frozen=True)
class CompoundBenchmark:
    """The lowest-wear stint on a compound within a lap window"""
    driver: Driver
    stint: TyreStint
    wear_rate: float


@dataclass(frozen=True)
class StintComparison:
    """Player stint vs the best comparable stint on the same compound"""
    stint_number: int  # 1-based
    compound: str
    laps: int
    avg_pace_ms: float
    wear_rate: float
    pace_drop_ms: float
    benchmark: Optional[CompoundBenchmark]
    benchmark_pace_ms: float
    benchmark_pace_drop_ms: float

    @property
    def wear_rate_delta(self) -> Optional[float]:
        if self.benchmark is None or self.wear_rate <= 0:
            return None
        return self.wear_rate - self.benchmark.wear_rate

    @property
    def pace_delta_ms(self) -> Optional[float]:
        if self.benchmark is None or self.avg_pace_ms <= 0 or self.benchmark_pace_ms <= 0:
            return None
        return self.avg_pace_ms - self.benchmark_pace_ms


def stint_wear_rate(stint: TyreStint) -> float:
    """
    Worst-wheel wear per lap (%/lap)

    Last recorded worst-wheel wear divided by stint length; 0 with fewer
    than two wear samples.
    """
    if len(stint.wear_history) < 2 or stint.stint_length <= 0:
        return 0.0
    return stint.wear_history[-1].worst_wheel / stint.stint_length


def _laps_in_range(laps: Sequence[LapRecord], start: int, end: int) -> List[LapRecord]:
    return list(laps[max(start - 1, 0):max(end, 0)])


def avg_pace_in_range(laps: Sequence[LapRecord], start: int, end: int,
                      config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """Mean lap time (ms) of the outlier-filtered laps start..end, 0 if none qualify"""
    return mean_lap_time(filter_outlier_laps(_laps_in_range(laps, start, end), config))


def pace_drop(laps: Sequence[LapRecord], start: int, end: int, n: Optional[int] = None,
              config: AnalyticsConfig = DEFAULT_CONFIG) -> float:
    """
    Pace degradation across a lap range

    Mean of the last n qualifying laps minus mean of the first n. Positive
    means the pace got worse; 0 when fewer than 2n laps qualify.
    """
    n = config.pace_drop_window if n is None else n
    subset = filter_outlier_laps(_laps_in_range(laps, start, end), config)

    if n <= 0 or len(subset) < n * 2:
        return 0.0

    return mean_lap_time(subset[-n:]) - mean_lap_time(subset[:n])


def completed_stints(driver: Driver) -> List[TyreStint]:
    """
    Stints usable for stint-level aggregation

    A retirement leaves a trailing one-lap stint behind; it is dropped.
    """
    stints = list(driver.stints)
    if stints and stints[-1].stint_length <= 1:
        stints = stints[:-1]
    return stints


def average_wear_rate(driver: Driver) -> float:
    """Mean worst-wheel wear rate over completed stints with wear data (0 if none)"""
    rates = [rate for rate in map(stint_wear_rate, completed_stints(driver)) if rate > 0]
    if not rates:
        return 0.0
    return float(np.mean(rates))


def best_driver_on_compound(drivers: Iterable[Driver], compound: str,
                            lap_start: int, lap_end: int) -> Optional[CompoundBenchmark]:
    """
    Find the lowest positive wear rate on a compound within a lap window

    Args:
        drivers: Candidate drivers
        compound: Visual compound label
        lap_start: First lap of the window
        lap_end: Last lap of the window

    Returns:
        CompoundBenchmark, or None when no overlapping stint has wear data
    """
    best = None

    for driver in drivers:
        for stint in driver.stints:
            if stint.compound != compound or not stint.overlaps(lap_start, lap_end):
                continue
            rate = stint_wear_rate(stint)
            if rate > 0 and (best is None or rate < best.wear_rate):
                best = CompoundBenchmark(driver=driver, stint=stint, wear_rate=rate)

    return best


def compare_stints(player: Driver, drivers: Iterable[Driver],
                   config: AnalyticsConfig = DEFAULT_CONFIG) -> List[StintComparison]:
    """
    Compare each player stint against the best stint on the same compound

    Args:
        player: Focal driver
        drivers: Field (the player is excluded automatically)
        config: Thresholds

    Returns:
        One StintComparison per player stint
    """
    others = [d for d in drivers if d.index != player.index]
    comparisons = []

    for number, stint in enumerate(player.stints, start=1):
        benchmark = best_driver_on_compound(others, stint.compound, stint.start_lap, stint.end_lap)

        if benchmark is not None:
            bench_laps = benchmark.driver.laps
            bench_pace = avg_pace_in_range(bench_laps, benchmark.stint.start_lap, benchmark.stint.end_lap, config)
            bench_drop = pace_drop(bench_laps, benchmark.stint.start_lap, benchmark.stint.end_lap, config=config)
        else:
            bench_pace = 0.0
            bench_drop = 0.0

        comparisons.append(StintComparison(
            stint_number=number,
            compound=stint.compound,
            laps=stint.stint_length,
            avg_pace_ms=avg_pace_in_range(player.laps, stint.start_lap, stint.end_lap, config),
            wear_rate=stint_wear_rate(stint),
            pace_drop_ms=pace_drop(player.laps, stint.start_lap, stint.end_lap, config=config),
            benchmark=benchmark,
            benchmark_pace_ms=bench_pace,
            benchmark_pace_drop_ms=bench_drop
        ))

    return comparisons
