"""Scoring rules for correct answers.

A correct answer earns between ``min_points_fraction`` and all of the
question's base points depending on how much time was left, plus a flat
streak bonus for the correct answers that came before it. The two parts are
independent and simply added.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict

from .models.question import Question


@dataclass
class ScoringConfig:
    """Tunable scoring constants."""

    min_points_fraction: float = 0.5
    streak_bonus_step: int = 100
    streak_bonus_cap: int = 5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        """Create config from dictionary (e.g., loaded from YAML)."""
        return cls(
            min_points_fraction=float(data.get("min_points_fraction", 0.5)),
            streak_bonus_step=int(data.get("streak_bonus_step", 100)),
            streak_bonus_cap=int(data.get("streak_bonus_cap", 5)),
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    """How the points for one correct answer were made up."""

    base_points: int
    time_fraction: float
    awarded_points: int
    streak_bonus: int

    @property
    def total(self) -> int:
        return self.awarded_points + self.streak_bonus


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def time_bonus_fraction(remaining: float, time_limit: int) -> float:
    """Share of the time limit still left, in [0, 1]."""
    if time_limit <= 0:
        return 0.0
    return min(1.0, max(0.0, float(remaining)) / float(time_limit))


def streak_bonus(streak_before: int, config: ScoringConfig) -> int:
    """Bonus for the streak held before this answer, capped."""
    return min(max(0, streak_before), config.streak_bonus_cap) * config.streak_bonus_step


def score_correct_answer(
    question: Question,
    remaining: float,
    streak_before: int,
    config: ScoringConfig | None = None,
) -> ScoreBreakdown:
    """Score a correct answer to ``question``.

    Args:
        question: Question that was answered
        remaining: Seconds left on the question timer at submission
        streak_before: Player's streak before this answer
        config: Scoring constants, defaults when omitted

    Returns:
        ScoreBreakdown with the awarded points and the streak bonus
    """
    config = config or ScoringConfig()
    fraction = time_bonus_fraction(remaining, question.time_limit)
    floor = config.min_points_fraction
    awarded = round_half_up(question.points_base * (floor + (1.0 - floor) * fraction))
    return ScoreBreakdown(
        base_points=question.points_base,
        time_fraction=fraction,
        awarded_points=awarded,
        streak_bonus=streak_bonus(streak_before, config),
    )
