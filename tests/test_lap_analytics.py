"""
Tests for lap classification and clean-lap filtering
"""

import pytest

from conftest import make_driver, make_info, make_laps, make_stint
from race_insights.analysis.lap_analytics import (
    best_lap_time,
    best_sector_times,
    calculate_ideal_lap,
    clean_race_laps,
    clean_race_pace,
    filter_outlier_laps,
    is_valid,
    lap_time_std_dev,
    laps_to_frame,
    pit_affected_laps,
    pit_laps,
    valid_laps,
)
from race_insights.config import AnalyticsConfig
from race_insights.models import Driver, LapRecord, SafetyCarStatus


class TestValidity:
    """Test lap validity flags"""

    def test_all_flags_set_is_valid(self):
        assert is_valid(LapRecord(lap_number=1, lap_time_ms=90000, valid_flags=15))

    def test_partial_flags_are_invalid(self):
        for flags in (0, 7, 11, 14):
            assert not is_valid(LapRecord(lap_number=1, lap_time_ms=90000, valid_flags=flags))

    def test_unset_time_is_invalid(self):
        assert not is_valid(LapRecord(lap_number=1, lap_time_ms=0, valid_flags=15))

    def test_valid_laps_keeps_order(self):
        laps = make_laps([90000, 0, 91000])
        assert [lap.lap_number for lap in valid_laps(laps)] == [1, 3]


class TestCleanRaceLaps:
    """Test the clean race lap filter"""

    def test_pit_and_safety_car_laps_excluded(self, pit_and_safety_car_driver):
        clean = clean_race_laps(pit_and_safety_car_driver)
        assert [lap.lap_number for lap in clean] == [2, 5]

    def test_lap_one_never_included(self):
        driver = make_driver(0, "A", [90000] * 6)
        assert 1 not in [lap.lap_number for lap in clean_race_laps(driver)]

    def test_clean_is_subset_of_valid(self):
        driver = make_driver(
            0, "A", [95000, 90000, 90500, 150000, 91000, 90200],
            stints=[make_stint(1, 3), make_stint(4, 6)],
        )
        valid = {lap.lap_number for lap in valid_laps(driver.laps)}
        clean = {lap.lap_number for lap in clean_race_laps(driver)}
        assert clean <= valid

    def test_green_flag_no_stops_only_drops_lap_one_and_outliers(self):
        times = [98000, 90000, 90500, 91000, 120000, 90800]
        driver = make_driver(0, "A", times)
        clean = clean_race_laps(driver)
        # Lap 5 is more than 1.2x the median of laps 2-6
        assert [lap.lap_number for lap in clean] == [2, 3, 4, 6]

    def test_invalid_laps_excluded(self):
        driver = make_driver(0, "A", [90000] * 5, flags=7)
        assert clean_race_laps(driver) == []

    def test_virtual_safety_car_excluded(self):
        info = [make_info(n) for n in range(1, 7)]
        info[2] = make_info(3, sc=SafetyCarStatus.VIRTUAL)
        driver = make_driver(0, "A", [90000] * 6, per_lap_info=info)
        assert 3 not in [lap.lap_number for lap in clean_race_laps(driver)]

    def test_no_per_lap_info_relies_on_other_rules(self):
        driver = make_driver(0, "A", [90000] * 5, per_lap_info=())
        assert [lap.lap_number for lap in clean_race_laps(driver)] == [2, 3, 4, 5]

    def test_custom_multiplier(self):
        driver = make_driver(0, "A", [90000, 90000, 90000, 100000, 90000])
        strict = AnalyticsConfig(outlier_multiplier=1.05)
        assert 4 in [lap.lap_number for lap in clean_race_laps(driver)]
        assert 4 not in [lap.lap_number for lap in clean_race_laps(driver, strict)]

    def test_clean_race_pace(self):
        driver = make_driver(0, "A", [99000, 90000, 91000, 92000])
        assert clean_race_pace(driver) == pytest.approx(91000)

    def test_clean_race_pace_zero_without_laps(self):
        assert clean_race_pace(make_driver(0, "A", [90000])) == 0


class TestPitLaps:
    """Test pit lap derivation from stint boundaries"""

    def test_boundaries(self):
        driver = make_driver(
            0, "A", [90000] * 10,
            stints=[make_stint(1, 3), make_stint(4, 7), make_stint(8, 10)],
        )
        assert pit_affected_laps(driver) == {3, 4, 7, 8}
        assert pit_laps(driver) == [4, 8]

    def test_single_stint_has_no_pit_laps(self):
        driver = make_driver(0, "A", [90000] * 5, stints=[make_stint(1, 5)])
        assert pit_affected_laps(driver) == set()
        assert pit_laps(driver) == []


class TestOutlierFilter:
    """Test median-based outlier filtering"""

    def test_slow_lap_removed(self):
        laps = make_laps([90000, 91000, 130000, 90500])
        assert [lap.lap_number for lap in filter_outlier_laps(laps)] == [1, 2, 4]

    def test_lap_inside_limit_kept(self):
        laps = make_laps([100000, 100000, 119000])
        assert len(filter_outlier_laps(laps)) == 3

    def test_empty(self):
        assert filter_outlier_laps([]) == []


class TestQualifyingMetrics:
    """Test best lap, sectors, ideal lap and consistency"""

    def test_best_lap_time_ignores_invalid(self):
        laps = make_laps([90000, 89000]) + (LapRecord(3, 85000, valid_flags=3),)
        assert best_lap_time(laps) == 89000

    def test_best_lap_time_zero_without_valid(self):
        assert best_lap_time([]) == 0

    def test_best_sector_times(self):
        laps = make_laps(
            [90000, 90000],
            sectors=[(28000, 33000, 29000), (27500, 33500, 29000)],
        )
        assert best_sector_times(laps) == (27500, 33000, 29000)

    def test_ideal_lap(self):
        laps = make_laps(
            [90000, 90200],
            sectors=[(28000, 33000, 29000), (27500, 33700, 29000)],
        )
        driver = Driver(index=0, name="A", laps=laps)
        ideal = calculate_ideal_lap(driver)
        assert ideal.ideal_lap_time_ms == 89500
        assert ideal.best_actual_lap_ms == 90000
        assert ideal.improvement_potential_ms == 500
        assert ideal.laps_analyzed == 2

    def test_ideal_lap_none_without_sectors(self):
        laps = make_laps([90000], sectors=[(0, 0, 0)])
        driver = Driver(index=0, name="A", laps=laps)
        assert calculate_ideal_lap(driver) is None

    def test_std_dev(self):
        laps = make_laps([90000, 92000])
        assert lap_time_std_dev(laps) == pytest.approx(1000)

    def test_std_dev_single_lap(self):
        assert lap_time_std_dev(make_laps([90000])) == 0


class TestLapFrame:
    """Test the lap table"""

    def test_columns_and_flags(self, pit_and_safety_car_driver):
        df = laps_to_frame(pit_and_safety_car_driver)
        assert len(df) == 5
        assert df.loc[df['lap_number'] == 2, 'clean'].item()
        assert df.loc[df['lap_number'] == 3, 'pit_affected'].item()
        assert df.loc[df['lap_number'] == 4, 'safety_car_status'].item() == "FULL_SAFETY_CAR"
        assert df.loc[df['lap_number'] == 5, 'compound'].item() == "Medium"
