"""Reputation levels derived from a user's point total."""

from __future__ import annotations

REPUTATION_LEVELS: list[dict] = [
    {"level": 0, "name": "Newcomer", "min_points": 0},
    {"level": 1, "name": "Contributor", "min_points": 100},
    {"level": 2, "name": "Regular", "min_points": 500},
    {"level": 3, "name": "Expert", "min_points": 1000},
    {"level": 4, "name": "Authority", "min_points": 5000},
    {"level": 5, "name": "Legend", "min_points": 10000},
]

MAX_LEVEL = REPUTATION_LEVELS[-1]["level"]


def level_for_points(points: int) -> int:
    """Highest level whose threshold ``points`` meets. Negative totals stay at level 0."""
    level = 0
    for entry in REPUTATION_LEVELS:
        if points >= entry["min_points"]:
            level = entry["level"]
    return level


def level_name(level: int) -> str:
    return REPUTATION_LEVELS[max(0, min(level, MAX_LEVEL))]["name"]


def compute_level(points: int) -> dict:
    """Level info plus progress towards the next threshold.

    At the top level ``next_level`` is None and progress is reported as 100.
    """
    level = level_for_points(points)
    current = REPUTATION_LEVELS[level]
    if level == MAX_LEVEL:
        return {
            "level": level,
            "name": current["name"],
            "min_points": current["min_points"],
            "next_level": None,
            "next_level_points": None,
            "points_to_next_level": 0,
            "progress": 100,
        }

    upcoming = REPUTATION_LEVELS[level + 1]
    span = upcoming["min_points"] - current["min_points"]
    into_level = max(0, points - current["min_points"])
    return {
        "level": level,
        "name": current["name"],
        "min_points": current["min_points"],
        "next_level": upcoming["level"],
        "next_level_points": upcoming["min_points"],
        "points_to_next_level": upcoming["min_points"] - max(points, current["min_points"]),
        "progress": min(100, into_level * 100 // span),
    }
