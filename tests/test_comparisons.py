"""
Tests for head-to-head deltas and pace significance
"""

import warnings

import pytest

from conftest import make_driver, make_laps, make_stint
from race_insights.statistics.comparisons import (
    compare_clean_pace,
    cumulative_deltas,
    driver_cumulative_deltas,
    first_pit_stop_difference,
)


class TestCumulativeDeltas:
    """Test lap-by-lap cumulative deltas"""

    def test_running_sum(self):
        player = make_laps([90500, 90000, 91000])
        rival = make_laps([90000, 90200, 90300])
        deltas = cumulative_deltas(player, rival, set(), set())

        assert [d.lap_delta for d in deltas] == pytest.approx([0.5, -0.2, 0.7])
        assert [d.delta for d in deltas] == pytest.approx([0.5, 0.3, 1.0])

    def test_delta_equals_sum_of_lap_deltas(self):
        player = make_laps([90123, 91456, 89789, 90999, 92001])
        rival = make_laps([90500, 90500, 90500, 90500, 90500])
        deltas = cumulative_deltas(player, rival, set(), set())

        running = 0.0
        for d in deltas:
            running += d.lap_delta
            assert d.delta == pytest.approx(running)

    def test_length_bounded_by_shorter_sequence(self):
        deltas = cumulative_deltas(make_laps([90000] * 5), make_laps([90000] * 3), set(), set())
        assert len(deltas) <= 3

    def test_unset_laps_skipped_without_breaking_alignment(self):
        player = make_laps([90000, 0, 91000, 90000])
        rival = make_laps([90000, 90000, 90000, 0])
        deltas = cumulative_deltas(player, rival, set(), set())

        assert [d.lap for d in deltas] == [1, 3]
        assert deltas[-1].delta == pytest.approx(1.0)

    def test_sector_deltas(self):
        player = make_laps([90000], sectors=[(28000, 33000, 29000)])
        rival = make_laps([90000], sectors=[(28500, 32000, 29500)])
        [delta] = cumulative_deltas(player, rival, set(), set())

        assert delta.s1_delta == pytest.approx(-0.5)
        assert delta.s2_delta == pytest.approx(1.0)
        assert delta.s3_delta == pytest.approx(-0.5)

    def test_pit_flags(self):
        deltas = cumulative_deltas(make_laps([90000] * 4), make_laps([90000] * 4), {2}, {3})
        assert [d.player_pit for d in deltas] == [False, True, False, False]
        assert [d.rival_pit for d in deltas] == [False, False, True, False]

    def test_empty(self):
        assert cumulative_deltas([], make_laps([90000]), set(), set()) == []

    def test_driver_pit_laps_from_stints(self):
        player = make_driver(0, "Player", [90000] * 6, stints=[make_stint(1, 3), make_stint(4, 6)])
        rival = make_driver(1, "Smith", [90000] * 6, stints=[make_stint(1, 4), make_stint(5, 6)])
        deltas = driver_cumulative_deltas(player, rival)

        assert [d.lap for d in deltas if d.player_pit] == [4]
        assert [d.lap for d in deltas if d.rival_pit] == [5]


class TestFirstPitStop:
    """Test first pit stop timing difference"""

    def test_later_stop_is_positive(self):
        player = make_driver(0, "Player", stints=[make_stint(1, 20), make_stint(21, 40)])
        rival = make_driver(1, "Smith", stints=[make_stint(1, 17), make_stint(18, 40)])
        assert first_pit_stop_difference(player, rival) == 3

    def test_no_stop(self):
        player = make_driver(0, "Player", stints=[make_stint(1, 40)])
        rival = make_driver(1, "Smith", stints=[make_stint(1, 17), make_stint(18, 40)])
        assert first_pit_stop_difference(player, rival) is None


class TestComparePace:
    """Test pace significance between two drivers"""

    def test_clear_gap_is_significant(self):
        player = make_driver(0, "Player", [95000, 90000, 90100, 89900, 90050, 89950])
        rival = make_driver(1, "Smith", [95000, 91000, 91100, 90900, 91050, 90950])
        result = compare_clean_pace(player, rival)

        assert result.pace_delta_ms == pytest.approx(-1000)
        assert result.is_significant
        assert result.player_laps == 5

    def test_identical_constant_pace(self):
        player = make_driver(0, "Player", [95000] + [90000] * 4)
        rival = make_driver(1, "Smith", [95000] + [90000] * 4)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = compare_clean_pace(player, rival)

        assert result.t_statistic == 0.0
        assert result.p_value == 1.0
        assert not result.is_significant

    def test_different_constant_pace(self):
        player = make_driver(0, "Player", [95000] + [91000] * 4)
        rival = make_driver(1, "Smith", [95000] + [90000] * 4)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = compare_clean_pace(player, rival)

        assert result.pace_delta_ms == pytest.approx(1000)
        assert result.t_statistic > 0
        assert result.p_value == 0.0
        assert result.is_significant

    def test_not_enough_laps(self):
        player = make_driver(0, "Player", [95000, 90000])
        rival = make_driver(1, "Smith", [95000, 90000, 90000])
        assert compare_clean_pace(player, rival) is None
