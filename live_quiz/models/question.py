"""Question model."""

from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from .option import AnswerOption

DEFAULT_TIME_LIMIT = 20
DEFAULT_POINTS_BASE = 1000


class Question(BaseModel):
    """A timed multiple-choice question."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str = Field(alias="questionText")
    answers: list[AnswerOption] = Field(default_factory=list)
    time_limit: int = Field(default=DEFAULT_TIME_LIMIT, alias="timeLimit")
    points_base: int = Field(default=DEFAULT_POINTS_BASE, alias="pointsBase")
    icon: Optional[str] = Field(default=None, alias="imageSystemName")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("time_limit")
    @classmethod
    def validate_time_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("time_limit must be a positive number of seconds")
        return v

    @field_validator("points_base")
    @classmethod
    def validate_points_base(cls, v: int) -> int:
        if v < 0:
            raise ValueError("points_base must not be negative")
        return v

    @model_validator(mode="after")
    def validate_answers(self) -> Question:
        correct = [a for a in self.answers if a.is_correct]
        if len(correct) != 1:
            raise ValueError(
                f"question {self.text!r} must have exactly one correct answer, "
                f"found {len(correct)}"
            )
        ids = [a.id for a in self.answers]
        if len(set(ids)) != len(ids):
            raise ValueError(f"question {self.text!r} has duplicate answer ids")
        return self

    def find_answer(self, answer_id: Any) -> Optional[AnswerOption]:
        """Find answer by ID."""
        for answer in self.answers:
            if answer.id == answer_id:
                return answer
        return None

    def correct_answer(self) -> AnswerOption:
        """Get the correct answer."""
        return next(a for a in self.answers if a.is_correct)

    def to_ui_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "questionText": self.text,
            "timeLimit": self.time_limit,
            "pointsBase": self.points_base,
            "icon": self.icon,
            "answers": [a.to_ui_dict(i) for i, a in enumerate(self.answers)],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Create from dict with flexible field names."""
        fields: dict[str, Any] = {
            "text": data.get("questionText", data.get("question_text", data.get("text", ""))),
            "answers": [AnswerOption.from_dict(a) for a in data.get("answers", [])],
            "time_limit": int(
                data.get("timeLimit", data.get("time_limit", DEFAULT_TIME_LIMIT))
            ),
            "points_base": int(
                data.get("pointsBase", data.get("points_base", DEFAULT_POINTS_BASE))
            ),
            "icon": data.get("imageSystemName", data.get("icon")),
        }
        if data.get("id") is not None:
            fields["id"] = str(data["id"])
        return cls(**fields)
