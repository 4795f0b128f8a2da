"""
Fuel Analytics Module

Infers a green-flag fuel burn rate from noisy per-lap tank readings and
plans the fuel load for a race.

Features:
- Green-flag fuel deltas (refuels, SC and VSC laps excluded)
- Median burn rate (robust to pit-lap contamination)
- Starting load in laps, end-of-race surplus or deficit
- Recommended fuel load for a finished or in-progress race
- Track-level fuel summary across races

Usage:
    from race_insights.analysis import fuel_analytics

    consumption = fuel_analytics.calculate_fuel_consumption(driver, total_laps=58)
    if consumption is not None:
        print(consumption.burn_rate_kg_per_lap)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FuelConsumptionAnalysis:
    """Results of fuel consumption analysis for one driver"""
    burn_rate_kg_per_lap: float  # Median green-flag delta
    delta_count: int
    starting_fuel_kg: float
    starting_fuel_laps: float
    race_complete: bool
    last_lap_number: int
    end_fuel_kg: float  # Actual at the flag, or projected to the flag
    surplus_laps: float  # Negative = deficit
    reported_remaining_laps: Optional[float]  # Game's estimate at the last sample
    recommended_fuel_kg: float
    recommended_fuel_laps: float
    recommendation_available: bool


@dataclass(frozen=True)
class TrackFuelSummary:
    """Fuel behaviour averaged over the races at one track"""
    avg_burn_rate_kg_per_lap: float
    avg_starting_fuel_kg: float
    avg_fuel_remaining_laps: float
    suggested_fuel_kg: float
    suggested_fuel_laps: float
    race_count: int


def _fuel_frame(driver: Driver) -> pd.DataFrame:
    df = pd.DataFrame([{
        'lap_number': info.lap_number,
        'fuel_kg': info.car_status.fuel_in_tank_kg,
        'green': info.is_green_flag,
    } for info in driver.per_lap_info], columns=['lap_number', 'fuel_kg', 'green'])

    # Missing readings become NaN and fail every comparison below
    df['fuel_kg'] = pd.to_numeric(df['fuel_kg'], errors='coerce')
    return df.sort_values('lap_number').reset_index(drop=True)


def green_flag_fuel_deltas(driver: Driver) -> List[float]:
    """
    Fuel burned on each green-flag lap (kg)

    Only consecutive lap pairs where both laps are green-flag and both have
    a positive tank reading are used; non-positive deltas (refuels, sensor
    noise) are discarded.
    """
    df = _fuel_frame(driver)
    if len(df) < 2:
        return []

    previous = df.shift(1)
    usable = (
        (df['lap_number'] == previous['lap_number'] + 1)
        & df['green'] & previous['green'].eq(True)
        & (df['fuel_kg'] > 0) & (previous['fuel_kg'] > 0)
    )

    deltas = (previous['fuel_kg'] - df['fuel_kg'])[usable]
    return [float(delta) for delta in deltas if delta > 0]


def burn_rate(deltas: List[float], config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[float]:
    """Median of the fuel deltas, None below min_fuel_deltas samples"""
    if len(deltas) < config.min_fuel_deltas:
        return None
    return float(np.median(deltas))


def calculate_fuel_consumption(driver: Driver, total_laps: int,
                               config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[FuelConsumptionAnalysis]:
    """
    Calculate burn rate and fuel plan for one driver

    A finished race uses the tank reading at the final recorded lap. A race
    still in progress is projected from the last green-flag reading to
    total_laps at the green-flag burn rate, never at an SC/VSC rate.

    Args:
        driver: Driver to analyze
        total_laps: Scheduled race distance
        config: Thresholds

    Returns:
        FuelConsumptionAnalysis, or None when there are not enough
        green-flag deltas
    """
    deltas = green_flag_fuel_deltas(driver)
    rate = burn_rate(deltas, config)

    if rate is None or rate <= 0:
        logger.debug("Driver %s: %d green-flag fuel deltas, no burn rate", driver.name, len(deltas))
        return None

    samples = sorted(driver.per_lap_info, key=lambda info: info.lap_number)
    fuelled = [info for info in samples if info.car_status.fuel_in_tank_kg is not None]
    starting_fuel = next(
        info.car_status.fuel_in_tank_kg for info in fuelled if info.car_status.fuel_in_tank_kg > 0
    )

    last_sample = fuelled[-1]
    race_complete = (
        driver.final_classification is not None
        or total_laps <= 0
        or last_sample.lap_number >= total_laps
    )

    if race_complete:
        anchor = last_sample
        end_fuel = last_sample.car_status.fuel_in_tank_kg
    else:
        anchor = next(
            info for info in reversed(fuelled)
            if info.is_green_flag and info.car_status.fuel_in_tank_kg > 0
        )
        laps_to_go = total_laps - anchor.lap_number
        end_fuel = anchor.car_status.fuel_in_tank_kg - rate * laps_to_go

    recommended_kg = starting_fuel - end_fuel

    return FuelConsumptionAnalysis(
        burn_rate_kg_per_lap=rate,
        delta_count=len(deltas),
        starting_fuel_kg=starting_fuel,
        starting_fuel_laps=starting_fuel / rate,
        race_complete=race_complete,
        last_lap_number=anchor.lap_number,
        end_fuel_kg=end_fuel,
        surplus_laps=end_fuel / rate,
        reported_remaining_laps=last_sample.car_status.fuel_remaining_laps,
        recommended_fuel_kg=recommended_kg,
        recommended_fuel_laps=recommended_kg / rate,
        recommendation_available=len(deltas) >= config.min_fuel_deltas_for_recommendation
    )


def aggregate_fuel_data(sessions: Iterable[Session],
                        config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[TrackFuelSummary]:
    """
    Average the player's fuel figures over every race at a track

    Args:
        sessions: Sessions at one track (non-race sessions are skipped)
        config: Thresholds

    Returns:
        TrackFuelSummary, or None when no race produced a burn rate
    """
    analyses = []

    for session in sessions:
        if not session.is_race or session.player is None:
            continue
        analysis = calculate_fuel_consumption(session.player, session.total_laps, config)
        if analysis is not None:
            analyses.append(analysis)

    if not analyses:
        return None

    return TrackFuelSummary(
        avg_burn_rate_kg_per_lap=float(np.mean([a.burn_rate_kg_per_lap for a in analyses])),
        avg_starting_fuel_kg=float(np.mean([a.starting_fuel_kg for a in analyses])),
        avg_fuel_remaining_laps=float(np.mean([a.surplus_laps for a in analyses])),
        suggested_fuel_kg=float(np.mean([a.recommended_fuel_kg for a in analyses])),
        suggested_fuel_laps=float(np.mean([a.recommended_fuel_laps for a in analyses])),
        race_count=len(analyses)
    )
