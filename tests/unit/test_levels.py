"""Reputation level thresholds and progress."""

from __future__ import annotations

import pytest

from fgd.reputation.levels import REPUTATION_LEVELS, compute_level, level_for_points, level_name


class TestLevelForPoints:
    """Test threshold lookup."""

    @pytest.mark.parametrize(
        ("points", "expected"),
        [
            (0, 0),
            (99, 0),
            (100, 1),
            (499, 1),
            (500, 2),
            (1000, 3),
            (4999, 3),
            (5000, 4),
            (10000, 5),
            (250000, 5),
        ],
    )
    def test_thresholds(self, points: int, expected: int):
        assert level_for_points(points) == expected

    def test_negative_total_stays_at_newcomer(self):
        assert level_for_points(-40) == 0

    def test_thresholds_are_increasing(self):
        minimums = [entry["min_points"] for entry in REPUTATION_LEVELS]
        assert minimums == sorted(minimums)
        assert minimums[0] == 0


class TestLevelName:
    """Test level names."""

    def test_names(self):
        assert level_name(0) == "Newcomer"
        assert level_name(1) == "Contributor"
        assert level_name(5) == "Legend"

    def test_out_of_range_is_clamped(self):
        assert level_name(-1) == "Newcomer"
        assert level_name(42) == "Legend"


class TestComputeLevel:
    """Test progress reporting."""

    def test_mid_level_progress(self):
        info = compute_level(250)
        assert info["level"] == 1
        assert info["name"] == "Contributor"
        assert info["next_level_points"] == 500
        assert info["points_to_next_level"] == 250
        assert info["progress"] == 37

    def test_exactly_on_threshold(self):
        info = compute_level(500)
        assert info["level"] == 2
        assert info["progress"] == 0
        assert info["points_to_next_level"] == 500

    def test_top_level(self):
        info = compute_level(12000)
        assert info["level"] == 5
        assert info["next_level"] is None
        assert info["next_level_points"] is None
        assert info["points_to_next_level"] == 0
        assert info["progress"] == 100

    def test_negative_points(self):
        info = compute_level(-5)
        assert info["level"] == 0
        assert info["points_to_next_level"] == 100
        assert info["progress"] == 0
