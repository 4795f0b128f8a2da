"""
Track Analytics Module

Aggregates the player's sessions at one track.

Features:
- All-time personal bests (qualifying lap and sectors, race lap, race pace)
- Merging of repeated qualifying saves from the same run
- Compound life and fuel summaries across races

Usage:
    from race_insights.analysis import TrackAnalytics

    track = TrackAnalytics(sessions_at_track)
    pbs = track.personal_bests(exclude_slug=current.slug)
    compounds = track.compound_life()
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from ..models import Session, TrackPersonalBests
from .fuel_analytics import TrackFuelSummary, aggregate_fuel_data
from .lap_analytics import best_lap_time, best_sector_times, clean_race_pace
from .tyre_analytics import CompoundLifeStats, aggregate_compound_life

logger = logging.getLogger(__name__)


PB_FIELDS = (
    'best_quali_lap_ms', 'best_s1_ms', 'best_s2_ms', 'best_s3_ms',
    'best_race_lap_ms', 'best_race_pace_ms',
)


@dataclass(frozen=True)
class SessionRun:
    """A session kept after merging repeated saves of one qualifying run"""
    session: Session
    attempt_count: int = 1


def _session_bests(session: Session, config: AnalyticsConfig) -> Dict[str, float]:
    player = session.player
    if player is None:
        return {}

    if session.is_race:
        return {
            'best_race_lap_ms': best_lap_time(player.laps, config),
            'best_race_pace_ms': clean_race_pace(player, config),
        }

    s1, s2, s3 = best_sector_times(player.laps, config)
    return {
        'best_quali_lap_ms': best_lap_time(player.laps, config),
        'best_s1_ms': s1,
        'best_s2_ms': s2,
        'best_s3_ms': s3,
    }


def compute_track_personal_bests(sessions: Iterable[Session], exclude_slug: Optional[str] = None,
                                 max_workers: Optional[int] = None,
                                 config: AnalyticsConfig = DEFAULT_CONFIG) -> Optional[TrackPersonalBests]:
    """
    Compute all-time personal bests from the other sessions at a track

    Each session is scanned independently (optionally on a thread pool);
    the reduction takes minima so processing order never changes the result.

    Args:
        sessions: Sessions at one track
        exclude_slug: Slug of the current session, left out of the scan
        max_workers: Thread pool size (None/1 = scan inline)
        config: Thresholds

    Returns:
        TrackPersonalBests, or None when there is no other session
    """
    history = [s for s in sessions if exclude_slug is None or s.slug != exclude_slug]
    if not history:
        return None

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_session = list(pool.map(lambda s: _session_bests(s, config), history))
    else:
        per_session = [_session_bests(s, config) for s in history]

    bests = dict.fromkeys(PB_FIELDS, 0)
    for session_bests in per_session:
        for field, value in session_bests.items():
            if value > 0 and (bests[field] == 0 or value < bests[field]):
                bests[field] = value

    logger.debug("Personal bests from %d sessions: %s", len(history), bests)
    return TrackPersonalBests(session_count=len(history), **bests)


def _player_lap_times(session: Session) -> List[int]:
    player = session.player
    if player is None:
        return []
    return [lap.lap_time_ms for lap in player.laps if lap.lap_time_ms > 0]


def _is_same_run(earlier: Session, later: Session) -> bool:
    # A mid-session save re-exports every lap so far plus the new one
    if earlier.is_race or later.is_race:
        return False

    laps_a = _player_lap_times(earlier)
    laps_b = _player_lap_times(later)
    prefix_b = laps_b[:-1]

    if not laps_a or not prefix_b or len(prefix_b) > len(laps_a):
        return False
    return prefix_b == laps_a[:len(prefix_b)]


def deduplicate_qualifying_runs(sessions: Sequence[Session],
                                config: AnalyticsConfig = DEFAULT_CONFIG) -> List[SessionRun]:
    """
    Merge consecutive qualifying saves that share identical early laps

    Args:
        sessions: Sessions at one track in chronological order
        config: Thresholds

    Returns:
        One SessionRun per distinct run, keeping the attempt with the best
        valid lap (the latest attempt when none has a valid lap)
    """
    if not sessions:
        return []

    groups = [[sessions[0]]]
    for session in sessions[1:]:
        if _is_same_run(groups[-1][-1], session):
            groups[-1].append(session)
        else:
            groups.append([session])

    runs = []
    for group in groups:
        timed = [s for s in group if s.player and best_lap_time(s.player.laps, config) > 0]
        if timed:
            kept = min(timed, key=lambda s: best_lap_time(s.player.laps, config))
        else:
            kept = group[-1]
        runs.append(SessionRun(session=kept, attempt_count=len(group)))

    return runs


class TrackAnalytics:
    """
    Track-level analytics over the player's sessions at one track

    Every call recomputes from the sessions given at construction.
    """

    def __init__(self, sessions: Iterable[Session], config: AnalyticsConfig = DEFAULT_CONFIG):
        """
        Initialize track analytics

        Args:
            sessions: Sessions at one track
            config: Thresholds
        """
        self.sessions = tuple(sorted(sessions, key=lambda s: s.date))
        self.config = config

    @property
    def race_sessions(self) -> List[Session]:
        return [s for s in self.sessions if s.is_race]

    def personal_bests(self, exclude_slug: Optional[str] = None,
                       max_workers: Optional[int] = None) -> Optional[TrackPersonalBests]:
        return compute_track_personal_bests(self.sessions, exclude_slug, max_workers, self.config)

    def runs(self) -> List[SessionRun]:
        return deduplicate_qualifying_runs(self.sessions, self.config)

    def compound_life(self, player_only: bool = True) -> List[CompoundLifeStats]:
        return aggregate_compound_life(self.race_sessions, player_only, self.config)

    def fuel_summary(self) -> Optional[TrackFuelSummary]:
        return aggregate_fuel_data(self.race_sessions, self.config)
