"""
Session Data Model

Immutable value types for one telemetry session:
1. LapRecord - lap and sector times with validity flags
2. PerLapTelemetry - safety-car status and car status sampled once per lap
3. TyreStint - lap range on one compound with its wear history
4. Driver - one car's laps, per-lap samples and stints
5. Session - session metadata and the driver collection
6. TrackPersonalBests - all-time bests on a track (externally supplied)

Records are built once by the importer and never mutated afterwards.
Optional telemetry is explicit (Optional / 0) so aggregates do not need to
probe for missing keys.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import LAP_VALID_FLAGS


class SafetyCarStatus(Enum):
    NONE = "NO_SAFETY_CAR"
    FULL = "FULL_SAFETY_CAR"
    VIRTUAL = "VIRTUAL_SAFETY_CAR"

    @property
    def is_green(self) -> bool:
        return self is SafetyCarStatus.NONE


@dataclass(frozen=True)
class LapRecord:
    """One completed (or in-progress) lap, times in milliseconds"""
    lap_number: int  # 1-based
    lap_time_ms: int  # 0 = not set
    sector1_time_ms: int = 0
    sector2_time_ms: int = 0
    sector3_time_ms: int = 0
    valid_flags: int = LAP_VALID_FLAGS

    @property
    def sector_times(self) -> Tuple[int, int, int]:
        return (self.sector1_time_ms, self.sector2_time_ms, self.sector3_time_ms)


@dataclass(frozen=True)
class CarStatusSnapshot:
    """Car status at the end of a lap; any field may be missing"""
    fuel_in_tank_kg: Optional[float] = None
    fuel_remaining_laps: Optional[float] = None  # As reported by the game
    ers_deployed_j: Optional[float] = None  # Deployed this lap
    ers_max_capacity_j: Optional[float] = None


@dataclass(frozen=True)
class PerLapTelemetry:
    """One sample per completed lap per driver"""
    lap_number: int
    safety_car_status: SafetyCarStatus = SafetyCarStatus.NONE
    car_status: CarStatusSnapshot = CarStatusSnapshot()
    top_speed_kmph: Optional[float] = None

    @property
    def is_green_flag(self) -> bool:
        return self.safety_car_status.is_green


@dataclass(frozen=True)
class TyreWearSample:
    """Wear percentages (0-100) for the four tyres"""
    lap_number: int
    front_left: float
    front_right: float
    rear_left: float
    rear_right: float

    @property
    def worst_wheel(self) -> float:
        return max(self.front_left, self.front_right, self.rear_left, self.rear_right)


@dataclass(frozen=True)
class TyreStint:
    """Contiguous lap range [start_lap, end_lap] on one tyre set"""
    start_lap: int
    end_lap: int
    compound: str  # Visual compound label (Soft/Medium/Hard/...)
    wear_history: Tuple[TyreWearSample, ...] = ()
    stint_length: Optional[int] = None

    def __post_init__(self):
        if self.stint_length is None:
            object.__setattr__(self, 'stint_length', max(0, self.end_lap - self.start_lap + 1))

    def contains(self, lap_number: int) -> bool:
        return self.start_lap <= lap_number <= self.end_lap

    def overlaps(self, lap_start: int, lap_end: int) -> bool:
        return not (self.end_lap < lap_start or self.start_lap > lap_end)


@dataclass(frozen=True)
class FinalClassification:
    """End-of-session result, present once the session is classified"""
    position: int
    grid_position: int = 0
    num_laps: int = 0
    num_pit_stops: int = 0
    penalties_time_s: float = 0.0
    num_penalties: int = 0
    result_status: str = ""
    best_lap_time_ms: int = 0


@dataclass(frozen=True)
class Driver:
    """One car in a session"""
    index: int
    name: str
    team: str = ""
    is_player: bool = False
    laps: Tuple[LapRecord, ...] = ()
    per_lap_info: Tuple[PerLapTelemetry, ...] = ()
    stints: Tuple[TyreStint, ...] = ()
    top_speed_kmph: float = 0.0  # Session-level summary field
    final_classification: Optional[FinalClassification] = None

    def telemetry_for_lap(self, lap_number: int) -> Optional[PerLapTelemetry]:
        for info in self.per_lap_info:
            if info.lap_number == lap_number:
                return info
        return None


@dataclass(frozen=True)
class RecordHolder:
    """Fastest lap or sector holder"""
    driver_index: int
    driver_name: str
    lap_number: int
    time_ms: Optional[int] = None


@dataclass(frozen=True)
class SessionRecords:
    fastest_lap: Optional[RecordHolder] = None
    fastest_s1: Optional[RecordHolder] = None
    fastest_s2: Optional[RecordHolder] = None
    fastest_s3: Optional[RecordHolder] = None


@dataclass(frozen=True)
class Session:
    """One recorded session; read-only input to every analytics function"""
    session_type: str  # "Race" or a qualifying variant
    track: str
    drivers: Tuple[Driver, ...] = ()
    total_laps: int = 0
    records: SessionRecords = SessionRecords()
    slug: str = ""
    date: str = ""  # ISO-8601 timestamp of the export

    @property
    def is_race(self) -> bool:
        return self.session_type == "Race"

    @property
    def player(self) -> Optional[Driver]:
        for driver in self.drivers:
            if driver.is_player:
                return driver
        return None

    def driver_by_index(self, index: int) -> Optional[Driver]:
        for driver in self.drivers:
            if driver.index == index:
                return driver
        return None


@dataclass(frozen=True)
class TrackPersonalBests:
    """All-time bests on one track, scanned from the other sessions there"""
    best_quali_lap_ms: float = 0
    best_s1_ms: float = 0
    best_s2_ms: float = 0
    best_s3_ms: float = 0
    best_race_lap_ms: float = 0
    best_race_pace_ms: float = 0
    session_count: int = 0
