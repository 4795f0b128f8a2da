"""
Session Importer for F1 Telemetry Exports

Converts the game-export JSON session document into the immutable data
model used by the analytics layer. This is the only place where optional
fields are defaulted and where raw keys are read:
- session-info / classification-data
- session-history.lap-history-data (lap and sector times)
- per-lap-info (safety car, fuel, ERS, top speed)
- tyre-set-history (stints and wear history)
- final-classification and records

Usage:
    importer = SessionImporter()
    session = importer.parse_session(payload)
    player = session.player
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import TelemetryFormatError
from ..models import (
    CarStatusSnapshot,
    Driver,
    FinalClassification,
    LapRecord,
    PerLapTelemetry,
    RecordHolder,
    SafetyCarStatus,
    Session,
    SessionRecords,
    TyreStint,
    TyreWearSample,
)

logger = logging.getLogger(__name__)


SAFETY_CAR_CODES = {
    'NO_SAFETY_CAR': SafetyCarStatus.NONE,
    'SAFETY_CAR': SafetyCarStatus.FULL,
    'FULL_SAFETY_CAR': SafetyCarStatus.FULL,
    'VIRTUAL_SAFETY_CAR': SafetyCarStatus.VIRTUAL,
    'FORMATION_LAP': SafetyCarStatus.FULL,  # Field runs behind the car
    0: SafetyCarStatus.NONE,
    1: SafetyCarStatus.FULL,
    2: SafetyCarStatus.VIRTUAL,
    3: SafetyCarStatus.FULL,
}


def parse_safety_car_status(raw: Any) -> SafetyCarStatus:
    """Map a safety-car string or packet code to SafetyCarStatus (missing = none)"""
    if raw is None or raw == '':
        return SafetyCarStatus.NONE
    key = raw.upper() if isinstance(raw, str) else raw
    try:
        return SAFETY_CAR_CODES[key]
    except (KeyError, TypeError):
        raise TelemetryFormatError(f"Unknown safety car status: {raw!r}")


def _number(raw: Any, field: str, default: float = 0) -> float:
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TelemetryFormatError(f"Expected a number for '{field}', got {raw!r}")
    if not math.isfinite(raw):
        raise TelemetryFormatError(f"Expected a finite number for '{field}', got {raw!r}")
    return raw


def _mapping(raw: Any, context: str) -> Dict:
    """Nested JSON object, or {} when absent"""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TelemetryFormatError(f"Expected an object for {context}, got {type(raw).__name__}")
    return raw


def _sequence(raw: Any, context: str) -> List:
    """Nested JSON array, or [] when absent"""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TelemetryFormatError(f"Expected a list for {context}, got {type(raw).__name__}")
    return raw


def _optional_number(raw: Any, field: str) -> Optional[float]:
    if raw is None:
        return None
    return _number(raw, field)


def _require(data: Dict, key: str, context: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise TelemetryFormatError(f"Missing '{key}' in {context}")
    return data[key]


class SessionImporter:
    """
    Parse game-export session documents

    Usage:
        importer = SessionImporter()
        sessions = importer.parse_sessions(payloads)
    """

    def __init__(self):
        self.skipped_payloads = 0

    def parse_session(self, payload: Dict, slug: str = "", date: str = "") -> Session:
        """
        Parse one session document

        Args:
            payload: Decoded JSON document
            slug: Identifier of the export (e.g. its file stem)
            date: ISO-8601 timestamp of the export

        Returns:
            Session

        Raises:
            TelemetryFormatError: If required structure is missing or malformed
        """
        info = _mapping(_require(payload, 'session-info', 'session document'), 'session-info')
        session_type = _require(info, 'session-type', 'session-info')
        track = info.get('track-id', '')

        drivers = tuple(
            self._parse_driver(entry)
            for entry in _sequence(payload.get('classification-data'), 'classification-data')
        )

        return Session(
            session_type=str(session_type),
            track=str(track),
            drivers=drivers,
            total_laps=int(_number(info.get('total-laps'), 'total-laps')),
            records=self._parse_records(payload.get('records')),
            slug=slug,
            date=date,
        )

    def parse_sessions(self, payloads: Iterable[Dict]) -> List[Session]:
        """
        Parse a batch of session documents, skipping malformed ones

        Args:
            payloads: Decoded JSON documents

        Returns:
            List of sessions that parsed successfully
        """
        sessions = []
        self.skipped_payloads = 0

        for position, payload in enumerate(payloads):
            try:
                sessions.append(self.parse_session(payload))
            except TelemetryFormatError as e:
                self.skipped_payloads += 1
                logger.warning("Skipping session payload %d: %s", position, e)

        return sessions

    def _parse_driver(self, entry: Any) -> Driver:
        data = _mapping(entry, 'classification-data entry')
        index = int(_number(_require(data, 'index', 'driver'), 'index'))
        history = _mapping(data.get('session-history'), 'session-history')

        laps = tuple(
            self._parse_lap(lap_number, entry)
            for lap_number, entry in enumerate(_sequence(history.get('lap-history-data'), 'lap-history-data'), start=1)
        )
        per_lap_info = tuple(
            self._parse_per_lap_info(entry) for entry in _sequence(data.get('per-lap-info'), 'per-lap-info')
        )
        stints = tuple(
            self._parse_stint(entry) for entry in _sequence(data.get('tyre-set-history'), 'tyre-set-history')
        )

        return Driver(
            index=index,
            name=str(data.get('driver-name') or f"Driver {index}"),
            team=str(data.get('team') or ''),
            is_player=bool(data.get('is-player', False)),
            laps=laps,
            per_lap_info=per_lap_info,
            stints=stints,
            top_speed_kmph=_number(data.get('top-speed-kmph'), 'top-speed-kmph'),
            final_classification=self._parse_classification(data.get('final-classification')),
        )

    def _parse_lap(self, lap_number: int, entry: Dict) -> LapRecord:
        return LapRecord(
            lap_number=lap_number,
            lap_time_ms=int(_number(_require(entry, 'lap-time-in-ms', f'lap {lap_number}'), 'lap-time-in-ms')),
            sector1_time_ms=int(_number(entry.get('sector-1-time-in-ms'), 'sector-1-time-in-ms')),
            sector2_time_ms=int(_number(entry.get('sector-2-time-in-ms'), 'sector-2-time-in-ms')),
            sector3_time_ms=int(_number(entry.get('sector-3-time-in-ms'), 'sector-3-time-in-ms')),
            valid_flags=int(_number(entry.get('lap-valid-bit-flags'), 'lap-valid-bit-flags')),
        )

    def _parse_per_lap_info(self, entry: Dict) -> PerLapTelemetry:
        lap_number = int(_number(_require(entry, 'lap-number', 'per-lap-info'), 'lap-number'))
        status = _mapping(entry.get('car-status-data'), 'car-status-data')
        top_speed = _optional_number(entry.get('top-speed-kmph'), 'top-speed-kmph')

        return PerLapTelemetry(
            lap_number=lap_number,
            safety_car_status=parse_safety_car_status(entry.get('max-safety-car-status')),
            car_status=CarStatusSnapshot(
                fuel_in_tank_kg=_optional_number(status.get('fuel-in-tank'), 'fuel-in-tank'),
                fuel_remaining_laps=_optional_number(status.get('fuel-remaining-laps'), 'fuel-remaining-laps'),
                ers_deployed_j=_optional_number(status.get('ers-deployed-this-lap'), 'ers-deployed-this-lap'),
                ers_max_capacity_j=_optional_number(status.get('ers-max-capacity'), 'ers-max-capacity'),
            ),
            top_speed_kmph=top_speed,
        )

    def _parse_stint(self, entry: Dict) -> TyreStint:
        start_lap = int(_number(_require(entry, 'start-lap', 'tyre stint'), 'start-lap'))
        tyre_set = _mapping(entry.get('tyre-set-data'), 'tyre-set-data')
        wear_history = tuple(
            TyreWearSample(
                lap_number=int(_number(sample.get('lap-number'), 'lap-number')),
                front_left=_number(sample.get('front-left-wear'), 'front-left-wear'),
                front_right=_number(sample.get('front-right-wear'), 'front-right-wear'),
                rear_left=_number(sample.get('rear-left-wear'), 'rear-left-wear'),
                rear_right=_number(sample.get('rear-right-wear'), 'rear-right-wear'),
            )
            for sample in (
                _mapping(raw, 'tyre-wear-history sample')
                for raw in _sequence(entry.get('tyre-wear-history'), 'tyre-wear-history')
            )
        )
        stint_length = entry.get('stint-length')

        return TyreStint(
            start_lap=start_lap,
            end_lap=int(_number(_require(entry, 'end-lap', 'tyre stint'), 'end-lap')),
            compound=str(tyre_set.get('visual-tyre-compound') or 'Unknown'),
            wear_history=wear_history,
            stint_length=None if stint_length is None else int(_number(stint_length, 'stint-length')),
        )

    def _parse_classification(self, raw: Any) -> Optional[FinalClassification]:
        data = _mapping(raw, 'final-classification')
        if not data:
            return None

        return FinalClassification(
            position=int(_number(_require(data, 'position', 'final-classification'), 'position')),
            grid_position=int(_number(data.get('grid-position'), 'grid-position')),
            num_laps=int(_number(data.get('num-laps'), 'num-laps')),
            num_pit_stops=int(_number(data.get('num-pit-stops'), 'num-pit-stops')),
            penalties_time_s=_number(data.get('penalties-time'), 'penalties-time'),
            num_penalties=int(_number(data.get('num-penalties'), 'num-penalties')),
            result_status=str(data.get('result-status') or ''),
            best_lap_time_ms=int(_number(data.get('best-lap-time-in-ms'), 'best-lap-time-in-ms')),
        )

    def _parse_records(self, data: Optional[Dict]) -> SessionRecords:
        fastest = _mapping(_mapping(data, 'records').get('fastest'), 'records.fastest')

        def holder(key: str) -> Optional[RecordHolder]:
            entry = _mapping(fastest.get(key), f'records.fastest.{key}')
            if not entry or entry.get('driver-index') is None:
                return None
            time_ms = entry.get('time')
            return RecordHolder(
                driver_index=int(_number(entry['driver-index'], 'driver-index')),
                driver_name=str(entry.get('driver-name') or ''),
                lap_number=int(_number(entry.get('lap-number'), 'lap-number')),
                time_ms=None if time_ms is None else int(_number(time_ms, 'time')),
            )

        return SessionRecords(
            fastest_lap=holder('lap'),
            fastest_s1=holder('s1'),
            fastest_s2=holder('s2'),
            fastest_s3=holder('s3'),
        )


# Driver lookups

def find_player(session: Session) -> Optional[Driver]:
    """Find the player driver in a session"""
    return session.player


def find_race_winner(session: Session) -> Optional[Driver]:
    """Find the P1 finisher"""
    for driver in session.drivers:
        if driver.final_classification and driver.final_classification.position == 1:
            return driver
    return None


def find_closest_rival(session: Session, player_position: int) -> Optional[Driver]:
    """Find the driver one place ahead, falling back to one place behind"""
    by_position = {
        d.final_classification.position: d
        for d in session.drivers if d.final_classification
    }
    return by_position.get(player_position - 1) or by_position.get(player_position + 1)


def find_fastest_lap_driver(session: Session) -> Optional[Driver]:
    """Find the driver holding the session's fastest lap record"""
    holder = session.records.fastest_lap
    if holder is None:
        return None
    return session.driver_by_index(holder.driver_index)


def find_same_strategy_drivers(drivers: Iterable[Driver], player: Driver) -> List[Driver]:
    """Drivers (other than the player) who ran the same compound sequence"""
    sequence = [stint.compound for stint in player.stints]
    return [
        d for d in drivers
        if d.index != player.index and [stint.compound for stint in d.stints] == sequence
    ]
