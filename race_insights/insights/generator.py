"""
Strategy Insights Engine

Turns rankings, deltas, fuel and personal-best comparisons into short,
ordered findings for the session view.

Insight Modes:
- Field ranking: pace, tyre wear, top speed, ERS, weakest/strongest sector
- Head-to-head: signed deltas vs a named rival, first pit stop timing
- Fuel: starting load, burn rate, recommended load
- History: current session vs all-time personal bests on the track
- Qualifying: best lap rank, sector ranks, theoretical best, consistency

Every rule omits its insight when its data requirement is not met; no rule
raises for thin data.

Usage:
    from race_insights.insights import generate_session_insights

    insights = generate_session_insights(session, player, rival=rival, pbs=pbs)

    for insight in insights:
        print(f"{insight.label}: {insight.value} ({insight.detail})")
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..analysis.fuel_analytics import calculate_fuel_consumption
from ..analysis.lap_analytics import (
    best_lap_time,
    best_sector_times,
    calculate_ideal_lap,
    clean_race_pace,
    valid_laps,
)
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Driver, Session, TrackPersonalBests
from ..statistics.comparisons import first_pit_stop_difference
from ..statistics.rankings import RankingMetric, metric_value, rank_drivers
from .formatting import ms_to_lap_time, ordinal, plural, signed_seconds

logger = logging.getLogger(__name__)


class InsightType(Enum):
    PACE = "pace"
    TYRE = "tyre"
    SECTOR = "sector"
    PIT = "pit"
    SPEED = "speed"
    ERS = "ers"
    FUEL = "fuel"
    HISTORY = "history"


@dataclass(frozen=True)
class Insight:
    """One finding; rank is 1-based and lower is better for display emphasis"""
    type: InsightType
    label: str
    value: str
    detail: str
    rank: Optional[int] = None
    rank_total: Optional[int] = None


SECTORS = (
    ('S1', RankingMetric.SECTOR_1, RankingMetric.BEST_SECTOR_1),
    ('S2', RankingMetric.SECTOR_2, RankingMetric.BEST_SECTOR_2),
    ('S3', RankingMetric.SECTOR_3, RankingMetric.BEST_SECTOR_3),
)

# Gaps below these are reported as plain "of N"
PACE_GAP_FLOOR_MS = 10
SECTOR_GAP_FLOOR_MS = 1
WEAR_GAP_FLOOR = 0.05
SPEED_GAP_FLOOR_KMPH = 1
ERS_GAP_FLOOR_PCT = 0.5
THEORETICAL_GAP_FLOOR_MS = 10


@dataclass(frozen=True)
class _SectorRank:
    label: str
    rank: int
    total: int
    gap_ms: float
    leader_name: str
    lead_over_p2_ms: float
    p2_name: str


# Field ranking mode

def _rank_insight(session: Session, player: Driver, metric: RankingMetric, insight_type: InsightType,
                  label: str, describe_gap, config: AnalyticsConfig) -> Optional[Insight]:
    ranking = rank_drivers(session, metric, config)
    position = ranking.position_of(player)

    if position is None or position.total < 2:
        return None

    gap_text = describe_gap(position)
    detail = f"of {position.total}" if gap_text is None else f"of {position.total}, {gap_text}"

    return Insight(
        type=insight_type,
        label=label,
        value=ordinal(position.rank),
        detail=detail,
        rank=position.rank,
        rank_total=position.total
    )


def _pace_gap(position) -> Optional[str]:
    if position.gap_to_leader < PACE_GAP_FLOOR_MS:
        return None
    return f"{signed_seconds(position.gap_to_leader)} vs P1"


def _wear_gap(position) -> Optional[str]:
    if position.gap_to_leader < WEAR_GAP_FLOOR:
        return None
    return f"+{position.gap_to_leader:.1f}%/lap vs best"


def _speed_gap(position) -> Optional[str]:
    if position.gap_to_leader < SPEED_GAP_FLOOR_KMPH:
        return f"{position.value:.0f} km/h"
    return f"{position.value:.0f} km/h, {position.gap_to_leader:.0f} km/h off best"


def _ers_gap(position) -> Optional[str]:
    if position.gap_to_leader < ERS_GAP_FLOOR_PCT:
        return f"{position.value:.1f}% per lap"
    return f"{position.value:.1f}% per lap, {position.gap_to_leader:.1f}% below best"


def _sector_ranks(session: Session, player: Driver, use_best: bool, config: AnalyticsConfig) -> List[_SectorRank]:
    ranks = []

    for label, average_metric, best_metric in SECTORS:
        ranking = rank_drivers(session, best_metric if use_best else average_metric, config)
        position = ranking.position_of(player)
        if position is None or position.total < 2:
            continue

        leader, runner_up = ranking.entries[0], ranking.entries[1]
        ranks.append(_SectorRank(
            label=label,
            rank=position.rank,
            total=position.total,
            gap_ms=position.gap_to_leader,
            leader_name=leader.driver.name,
            lead_over_p2_ms=runner_up.value - leader.value,
            p2_name=runner_up.driver.name
        ))

    return ranks


def _sector_insights(session: Session, player: Driver, use_best: bool, config: AnalyticsConfig) -> List[Insight]:
    """Weakest and strongest sector, emitted only when they differ"""
    if not valid_laps(player.laps, config):
        return []

    ranks = _sector_ranks(session, player, use_best, config)
    if not ranks:
        return []

    insights = []
    worst = max(ranks, key=lambda r: r.rank)
    best = min(ranks, key=lambda r: r.rank)

    if worst.rank > 1:
        detail = f"of {worst.total}"
        if worst.gap_ms >= SECTOR_GAP_FLOOR_MS:
            detail += f", {signed_seconds(worst.gap_ms)} vs {worst.leader_name}"
        insights.append(Insight(
            type=InsightType.SECTOR,
            label=f"Weakest: {worst.label}",
            value=ordinal(worst.rank),
            detail=detail,
            rank=worst.rank,
            rank_total=worst.total
        ))

    if best.rank < worst.rank:
        detail = f"of {best.total}"
        if best.rank == 1:
            if best.lead_over_p2_ms >= SECTOR_GAP_FLOOR_MS:
                detail += f", {best.lead_over_p2_ms / 1000:.3f}s ahead of {best.p2_name}"
        elif best.gap_ms >= SECTOR_GAP_FLOOR_MS:
            detail += f", {signed_seconds(best.gap_ms)} vs {best.leader_name}"
        insights.append(Insight(
            type=InsightType.SECTOR,
            label=f"Strongest: {best.label}",
            value=ordinal(best.rank),
            detail=detail,
            rank=best.rank,
            rank_total=best.total
        ))

    return insights


def _field_ranking_insights(session: Session, player: Driver, config: AnalyticsConfig) -> List[Insight]:
    rules = (
        (RankingMetric.PACE, InsightType.PACE, "Race Pace", _pace_gap),
        (RankingMetric.TYRE_WEAR, InsightType.TYRE, "Tyre Management", _wear_gap),
        (RankingMetric.TOP_SPEED, InsightType.SPEED, "Top Speed", _speed_gap),
        (RankingMetric.ERS_DEPLOYMENT, InsightType.ERS, "ERS Deployment", _ers_gap),
    )

    insights = []
    for metric, insight_type, label, describe_gap in rules:
        insight = _rank_insight(session, player, metric, insight_type, label, describe_gap, config)
        if insight is not None:
            insights.append(insight)

    insights.extend(_sector_insights(session, player, False, config))
    return insights


# Head-to-head mode

def _pair(player: Driver, rival: Driver, metric: RankingMetric, config: AnalyticsConfig):
    player_value = metric_value(player, metric, config)
    rival_value = metric_value(rival, metric, config)
    if player_value is None or rival_value is None:
        return None
    return player_value - rival_value


def _head_to_head_insights(player: Driver, rival: Driver, config: AnalyticsConfig) -> List[Insight]:
    insights = []
    name = rival.name

    pace_delta = _pair(player, rival, RankingMetric.PACE, config)
    if pace_delta is not None:
        if abs(pace_delta) < 1:
            detail = f"level on pace with {name}"
        elif pace_delta < 0:
            detail = f"{abs(pace_delta) / 1000:.3f}s/lap faster than {name}"
        else:
            detail = f"{pace_delta / 1000:.3f}s/lap slower than {name}"
        insights.append(Insight(InsightType.PACE, "Race Pace", signed_seconds(pace_delta), detail))

    wear_delta = _pair(player, rival, RankingMetric.TYRE_WEAR, config)
    if wear_delta is not None:
        if abs(wear_delta) < 0.005:
            detail = f"same wear rate as {name}"
        elif wear_delta < 0:
            detail = f"less wear per lap than {name}"
        else:
            detail = f"more wear per lap than {name}"
        insights.append(Insight(InsightType.TYRE, "Tyre Wear", f"{wear_delta:+.2f}%/lap", detail))

    sector_parts = []
    for label, metric, _ in SECTORS:
        delta = _pair(player, rival, metric, config)
        if delta is not None:
            sector_parts.append(f"{label} {signed_seconds(delta)}")
    if sector_parts:
        insights.append(Insight(
            InsightType.SECTOR, "Sector Times", " / ".join(sector_parts),
            f"average per lap vs {name}"
        ))

    speed_delta = _pair(player, rival, RankingMetric.TOP_SPEED, config)
    if speed_delta is not None:
        if abs(speed_delta) < 0.5:
            detail = f"same top speed as {name}"
        elif speed_delta > 0:
            detail = f"faster in a straight line than {name}"
        else:
            detail = f"slower in a straight line than {name}"
        insights.append(Insight(InsightType.SPEED, "Top Speed", f"{speed_delta:+.0f} km/h", detail))

    ers_delta = _pair(player, rival, RankingMetric.ERS_DEPLOYMENT, config)
    if ers_delta is not None:
        if abs(ers_delta) < 0.05:
            detail = f"same ERS usage as {name}"
        elif ers_delta > 0:
            detail = f"more ERS deployed per lap than {name}"
        else:
            detail = f"less ERS deployed per lap than {name}"
        insights.append(Insight(InsightType.ERS, "ERS Deployment", f"{ers_delta:+.1f}%", detail))

    pit_difference = first_pit_stop_difference(player, rival)
    if pit_difference is not None:
        first_pit = player.stints[1].start_lap
        if pit_difference == 0:
            detail = f"same lap as {name}"
        else:
            timing = "later" if pit_difference > 0 else "earlier"
            detail = f"{plural(abs(pit_difference), 'lap')} {timing} than {name}"
        insights.append(Insight(InsightType.PIT, "First Pit Stop", f"Lap {first_pit}", detail))

    return insights


def generate_insights(session: Session, player: Driver, rival: Optional[Driver] = None,
                      config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """
    Generate race insights for the player

    Args:
        session: Race session
        player: Focal driver
        rival: Selected rival (None = rank against the whole field)
        config: Thresholds

    Returns:
        Ordered list of insights
    """
    if rival is not None and rival.index != player.index:
        return _head_to_head_insights(player, rival, config)
    return _field_ranking_insights(session, player, config)


# Fuel

def generate_fuel_insights(driver: Driver, total_laps: int, config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """
    Starting load and burn rate, plus a recommended load when enough
    green-flag laps were measured
    """
    analysis = calculate_fuel_consumption(driver, total_laps, config)
    if analysis is None:
        return []

    insights = [
        Insight(
            InsightType.FUEL, "Starting Fuel",
            f"{analysis.starting_fuel_laps:.1f} laps",
            f"{analysis.starting_fuel_kg:.1f} kg on board"
        ),
        Insight(
            InsightType.FUEL, "Burn Rate",
            f"{analysis.burn_rate_kg_per_lap:.2f} kg/lap",
            f"median of {plural(analysis.delta_count, 'green-flag lap')}"
        ),
    ]

    if not analysis.recommendation_available:
        return insights

    spare = analysis.surplus_laps
    margin = f"{abs(spare):.1f} laps {'spare' if spare >= 0 else 'short'}"
    if analysis.race_complete:
        detail = f"{analysis.recommended_fuel_kg:.1f} kg, finished {margin}"
    else:
        detail = f"{analysis.recommended_fuel_kg:.1f} kg, projected {margin} at lap {total_laps}"

    insights.append(Insight(
        InsightType.FUEL, "Recommended Fuel",
        f"{analysis.recommended_fuel_laps:.1f} laps",
        detail
    ))
    return insights


# History

def _pb_insight(label: str, current_ms: float, pb_ms: float, unit: str, best_value: str,
                off_detail: str) -> Insight:
    delta = current_ms - pb_ms
    if delta <= 0:
        detail = f"-{abs(delta) / 1000:.3f}{unit} improvement" if delta < 0 else "matched your best"
        return Insight(InsightType.HISTORY, label, best_value, detail)
    return Insight(InsightType.HISTORY, label, f"+{delta / 1000:.3f}{unit}", off_detail)


def generate_race_history_insights(driver: Driver, pbs: TrackPersonalBests,
                                   config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """Best race lap and clean race pace vs all-time bests on the track"""
    if not valid_laps(driver.laps, config):
        return []

    insights = []

    best_lap = best_lap_time(driver.laps, config)
    if best_lap > 0 and pbs.best_race_lap_ms > 0:
        insights.append(_pb_insight(
            "vs Best Race Lap", best_lap, pbs.best_race_lap_ms, "s", "New PB!",
            f"off your PB of {ms_to_lap_time(pbs.best_race_lap_ms)}"
        ))

    pace = clean_race_pace(driver, config)
    if pace > 0 and pbs.best_race_pace_ms > 0:
        insights.append(_pb_insight(
            "Race Pace vs Best", pace, pbs.best_race_pace_ms, "s/lap", "New best!",
            "off your best average pace"
        ))

    return insights


def generate_quali_history_insights(driver: Driver, pbs: TrackPersonalBests,
                                    config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """Best lap vs PB, and the sector furthest from its all-time best"""
    if not valid_laps(driver.laps, config):
        return []

    insights = []

    best_lap = best_lap_time(driver.laps, config)
    if best_lap > 0 and pbs.best_quali_lap_ms > 0:
        insights.append(_pb_insight(
            "vs Personal Best", best_lap, pbs.best_quali_lap_ms, "s", "New PB!",
            f"off your PB of {ms_to_lap_time(pbs.best_quali_lap_ms)}"
        ))

    current = best_sector_times(driver.laps, config)
    personal = (pbs.best_s1_ms, pbs.best_s2_ms, pbs.best_s3_ms)

    if all(pb > 0 for pb in personal) and all(c > 0 for c in current):
        deltas = [
            (f"S{number}", c - pb)
            for number, (c, pb) in enumerate(zip(current, personal), start=1)
        ]
        slower = [(sector, delta) for sector, delta in deltas if delta > 0]

        if slower:
            sector, delta = max(slower, key=lambda item: item[1])
            insights.append(Insight(
                InsightType.HISTORY, "vs PB Sectors", sector,
                f"+{delta / 1000:.3f}s vs your all-time best"
            ))
        else:
            gained = -sum(delta for _, delta in deltas)
            if gained > 0:
                insights.append(Insight(
                    InsightType.HISTORY, "vs PB Sectors", "All-time bests!",
                    f"{gained / 1000:.3f}s gained across sectors"
                ))

    return insights


# Qualifying

def generate_quali_insights(session: Session, player: Driver, config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """Best lap rank, sector ranks, theoretical best and consistency"""
    insights = []

    lap_rank = _rank_insight(
        session, player, RankingMetric.BEST_LAP, InsightType.PACE, "Qualifying",
        lambda p: None if p.gap_to_leader < SECTOR_GAP_FLOOR_MS else f"{signed_seconds(p.gap_to_leader)} vs P1",
        config
    )
    if lap_rank is not None:
        insights.append(lap_rank)

    insights.extend(_sector_insights(session, player, True, config))

    ideal = calculate_ideal_lap(player, config)
    if ideal is not None and ideal.improvement_potential_ms >= THEORETICAL_GAP_FLOOR_MS:
        insights.append(Insight(
            InsightType.PACE, "Theoretical Best",
            ms_to_lap_time(ideal.ideal_lap_time_ms),
            f"{ideal.improvement_potential_ms / 1000:.3f}s left on the table"
        ))

    consistency = metric_value(player, RankingMetric.CONSISTENCY, config)
    if consistency is not None and consistency > 0:
        insight = _rank_insight(
            session, player, RankingMetric.CONSISTENCY, InsightType.PACE, "Consistency",
            lambda p: f"±{p.value / 1000:.3f}s",
            config
        )
        if insight is not None:
            insights.append(insight)

    return insights


def generate_session_insights(session: Session, player: Driver, rival: Optional[Driver] = None,
                              pbs: Optional[TrackPersonalBests] = None,
                              config: AnalyticsConfig = DEFAULT_CONFIG) -> List[Insight]:
    """
    All insights for one session view

    Args:
        session: Session being viewed
        player: Focal driver
        rival: Selected rival for head-to-head mode (race only)
        pbs: Personal bests from the other sessions at this track
        config: Thresholds

    Returns:
        Race: ranking or head-to-head, fuel, then history insights.
        Qualifying: qualifying then history insights.
    """
    if session.is_race:
        insights = generate_insights(session, player, rival, config)
        insights.extend(generate_fuel_insights(player, session.total_laps, config))
        if pbs is not None:
            insights.extend(generate_race_history_insights(player, pbs, config))
    else:
        insights = generate_quali_insights(session, player, config)
        if pbs is not None:
            insights.extend(generate_quali_history_insights(player, pbs, config))

    logger.debug("Generated %d insights for %s", len(insights), player.name)
    return insights
