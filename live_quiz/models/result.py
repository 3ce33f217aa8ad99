"""Player result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PlayerResult(BaseModel):
    """Running tally of one player's performance across a round.

    Mutated exactly once per question by the engine, either through
    ``record_correct`` or ``record_incorrect``.
    """

    total_score: int = Field(default=0, alias="totalScore")
    correct_count: int = Field(default=0, alias="correctCount")
    incorrect_count: int = Field(default=0, alias="incorrectCount")
    streak: int = 0
    best_streak: int = Field(default=0, alias="bestStreak")
    answer_times: list[float] = Field(default_factory=list, alias="answerTimes")
    average_time: float = Field(default=0.0, alias="averageTime")

    model_config = {"populate_by_name": True}

    @property
    def answered_count(self) -> int:
        return self.correct_count + self.incorrect_count

    def record_correct(self, points: int, latency: float) -> None:
        """Add a correct answer worth ``points``."""
        self.total_score += max(0, int(points))
        self.correct_count += 1
        self.streak += 1
        self.best_streak = max(self.best_streak, self.streak)
        self._append_latency(latency)

    def record_incorrect(self, latency: float) -> None:
        """Add an incorrect or missing answer; breaks the streak."""
        self.incorrect_count += 1
        self.streak = 0
        self._append_latency(latency)

    def _append_latency(self, latency: float) -> None:
        self.answer_times.append(max(0.0, float(latency)))
        self.average_time = sum(self.answer_times) / len(self.answer_times)

    def snapshot(self) -> PlayerResult:
        """Detached copy safe to hand to another thread."""
        return self.model_copy(deep=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class RoundSummary(BaseModel):
    """Final figures shown on the results screen."""

    total_score: int
    correct_count: int
    question_count: int
    accuracy: float
    stars: int
    best_streak: int
    average_time: float

    @classmethod
    def summarize(cls, result: PlayerResult, question_count: int) -> RoundSummary:
        """Summarize ``result`` over a pack of ``question_count`` questions.

        Accuracy is a percentage of the pack's questions; three stars above
        80%, two from 50%, one otherwise.
        """
        accuracy = (
            result.correct_count / question_count * 100 if question_count > 0 else 0.0
        )
        if accuracy > 80:
            stars = 3
        elif accuracy >= 50:
            stars = 2
        else:
            stars = 1
        return cls(
            total_score=result.total_score,
            correct_count=result.correct_count,
            question_count=question_count,
            accuracy=accuracy,
            stars=stars,
            best_streak=result.best_streak,
            average_time=result.average_time,
        )
