"""Level and task XP formulas.

Both are pure and must agree with what the web client renders.
"""

from __future__ import annotations

import math

MIN_TASK_XP = 1
MAX_TASK_XP = 300

DIFFICULTY_MULTIPLIERS: dict[str, float] = {
    "easy": 0.8,
    "medium": 1.2,
    "hard": 1.8,
}
DEFAULT_MULTIPLIER = DIFFICULTY_MULTIPLIERS["medium"]


def compute_level(total_xp: int) -> int:
    """Level is floor(0.1 * sqrt(total_xp)); negative totals count as zero."""
    return math.floor(0.1 * math.sqrt(max(total_xp, 0)))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3), unlike round()."""
    return math.floor(value + 0.5)


def calc_task_xp(duration_minutes: float, difficulty: str | None) -> int:
    """XP for a hand-authored task: minutes times the difficulty multiplier, clamped to 1-300.

    Unknown or missing difficulties use the medium multiplier.
    """
    multiplier = DIFFICULTY_MULTIPLIERS.get(difficulty or "", DEFAULT_MULTIPLIER)
    return max(MIN_TASK_XP, min(MAX_TASK_XP, round_half_up(duration_minutes * multiplier)))
