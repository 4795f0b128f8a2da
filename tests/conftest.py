"""
Shared builders and fixtures for the analytics tests
"""

import pytest

from race_insights.models import (
    CarStatusSnapshot,
    Driver,
    FinalClassification,
    LapRecord,
    PerLapTelemetry,
    SafetyCarStatus,
    Session,
    TyreStint,
    TyreWearSample,
)


def make_laps(times, flags=15, sectors=None):
    """Laps numbered from 1; sectors default to a 30/40/30 split of the lap time"""
    laps = []
    for number, ms in enumerate(times, start=1):
        if sectors is not None:
            s1, s2, s3 = sectors[number - 1]
        else:
            s1, s2 = int(ms * 0.3), int(ms * 0.4)
            s3 = ms - s1 - s2
        laps.append(LapRecord(
            lap_number=number,
            lap_time_ms=ms,
            sector1_time_ms=s1,
            sector2_time_ms=s2,
            sector3_time_ms=s3,
            valid_flags=flags,
        ))
    return tuple(laps)


def make_info(lap_number, sc=SafetyCarStatus.NONE, fuel=None, fuel_laps=None,
              ers=None, ers_capacity=None, top_speed=None):
    return PerLapTelemetry(
        lap_number=lap_number,
        safety_car_status=sc,
        car_status=CarStatusSnapshot(
            fuel_in_tank_kg=fuel,
            fuel_remaining_laps=fuel_laps,
            ers_deployed_j=ers,
            ers_max_capacity_j=ers_capacity,
        ),
        top_speed_kmph=top_speed,
    )


def make_stint(start, end, compound="Medium", final_wear=None):
    """Stint with two wear samples ending at final_wear (worst wheel) when given"""
    history = ()
    if final_wear is not None:
        history = (
            TyreWearSample(start, 0.0, 0.0, 0.0, 0.0),
            TyreWearSample(end, final_wear * 0.8, final_wear * 0.9, final_wear * 0.7, final_wear),
        )
    return TyreStint(start_lap=start, end_lap=end, compound=compound, wear_history=history)


def make_driver(index, name, lap_times=(), is_player=False, stints=(), per_lap_info=None,
                top_speed=0.0, position=None, flags=15):
    laps = make_laps(lap_times, flags=flags)
    if per_lap_info is None:
        per_lap_info = tuple(make_info(lap.lap_number) for lap in laps)
    return Driver(
        index=index,
        name=name,
        team="Team",
        is_player=is_player,
        laps=laps,
        per_lap_info=tuple(per_lap_info),
        stints=tuple(stints),
        top_speed_kmph=top_speed,
        final_classification=FinalClassification(position=position) if position else None,
    )


def make_session(drivers, session_type="Race", total_laps=0, slug="", date="", track="Monza"):
    return Session(
        session_type=session_type,
        track=track,
        drivers=tuple(drivers),
        total_laps=total_laps,
        slug=slug,
        date=date,
    )


def fuel_samples(readings, sc_laps=()):
    """Per-lap samples from tank readings, lap numbers from 1"""
    return tuple(
        make_info(
            lap,
            sc=SafetyCarStatus.FULL if lap in sc_laps else SafetyCarStatus.NONE,
            fuel=fuel,
        )
        for lap, fuel in enumerate(readings, start=1)
    )


@pytest.fixture
def pit_and_safety_car_driver():
    """Pit-in on lap 3, pit-out under safety car on lap 4"""
    info = [make_info(n) for n in range(1, 6)]
    info[3] = make_info(4, sc=SafetyCarStatus.FULL)
    return make_driver(
        0, "Player", [90000, 91000, 200000, 45000, 90500], is_player=True,
        stints=[make_stint(1, 3, "Soft"), make_stint(4, 5, "Medium")],
        per_lap_info=info,
    )


@pytest.fixture
def five_driver_session():
    """Five drivers, green flag, no stops, distinct pace"""
    base = {
        0: ("Player", 91000),
        1: ("Smith", 90000),
        2: ("Jones", 92000),
        3: ("Brown", 90500),
        4: ("Clark", 93000),
    }
    drivers = []
    for index, (name, pace) in base.items():
        drivers.append(make_driver(
            index, name, [pace + 5000] + [pace] * 6, is_player=(index == 0),
        ))
    return make_session(drivers, total_laps=7)


@pytest.fixture
def session_payload():
    """Minimal game export with a player and one rival"""
    def lap(ms, s1, s2, s3, flags=15):
        return {
            'lap-time-in-ms': ms,
            'sector-1-time-in-ms': s1,
            'sector-2-time-in-ms': s2,
            'sector-3-time-in-ms': s3,
            'lap-valid-bit-flags': flags,
        }

    return {
        'session-info': {
            'session-type': 'Race',
            'track-id': 'Silverstone',
            'total-laps': 3,
        },
        'classification-data': [
            {
                'index': 0,
                'driver-name': 'Player',
                'team': 'Williams',
                'is-player': True,
                'top-speed-kmph': 318.4,
                'session-history': {
                    'lap-history-data': [
                        lap(95000, 30000, 35000, 30000),
                        lap(90000, 28000, 33000, 29000),
                        lap(91000, 28500, 33500, 29000, flags=7),
                    ],
                },
                'per-lap-info': [
                    {
                        'lap-number': 1,
                        'max-safety-car-status': 'NO_SAFETY_CAR',
                        'car-status-data': {'fuel-in-tank': 10.0, 'fuel-remaining-laps': 5.0},
                        'top-speed-kmph': 310.0,
                    },
                    {
                        'lap-number': 2,
                        'max-safety-car-status': 'VIRTUAL_SAFETY_CAR',
                        'car-status-data': {'fuel-in-tank': 8.0},
                    },
                ],
                'tyre-set-history': [
                    {
                        'start-lap': 1,
                        'end-lap': 3,
                        'stint-length': 3,
                        'tyre-set-data': {'visual-tyre-compound': 'Soft'},
                        'tyre-wear-history': [
                            {'lap-number': 1, 'front-left-wear': 1.0, 'front-right-wear': 1.5,
                             'rear-left-wear': 2.0, 'rear-right-wear': 2.5},
                            {'lap-number': 3, 'front-left-wear': 4.0, 'front-right-wear': 4.5,
                             'rear-left-wear': 6.0, 'rear-right-wear': 7.5},
                        ],
                    },
                ],
                'final-classification': {'position': 2, 'grid-position': 4, 'num-pit-stops': 0},
            },
            {
                'index': 1,
                'driver-name': 'Smith',
                'session-history': {'lap-history-data': [lap(94000, 29000, 35000, 30000)]},
                'final-classification': {'position': 1},
            },
        ],
        'records': {
            'fastest': {
                'lap': {'driver-index': 0, 'driver-name': 'Player', 'lap-number': 2, 'time': 90000},
            },
        },
    }
