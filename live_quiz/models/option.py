"""Answer option models."""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class AnswerStyle(int, Enum):
    """Classic four-shape answer layout, assigned by grid position."""

    TRIANGLE = 0
    DIAMOND = 1
    CIRCLE = 2
    SQUARE = 3

    @property
    def color(self) -> str:
        return _STYLE_COLORS[self]

    @property
    def icon_name(self) -> str:
        return f"{self.name.lower()}.fill"

    @classmethod
    def for_index(cls, index: int) -> AnswerStyle:
        """Style for the answer at ``index``; wraps after four answers."""
        return cls(index % len(cls))


_STYLE_COLORS: dict[AnswerStyle, str] = {
    AnswerStyle.TRIANGLE: "#E32E2E",  # red
    AnswerStyle.DIAMOND: "#266BD6",  # blue
    AnswerStyle.CIRCLE: "#D98C00",  # orange
    AnswerStyle.SQUARE: "#26AD40",  # green
}


def _new_id() -> str:
    return uuid4().hex


class AnswerOption(BaseModel):
    """A single answer option of a question."""

    id: str = Field(default_factory=_new_id)
    text: str
    is_correct: bool = Field(default=False, alias="isCorrect")

    model_config = {"populate_by_name": True, "frozen": True}

    def to_ui_dict(self, index: int) -> dict[str, Any]:
        """Convert to dict for a host UI, with the style of grid slot ``index``."""
        style = AnswerStyle.for_index(index)
        return {
            "id": self.id,
            "text": self.text,
            "isCorrect": self.is_correct,
            "style": style.name.lower(),
            "color": style.color,
            "icon": style.icon_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnswerOption:
        """Create from dict with flexible field names."""
        fields: dict[str, Any] = {
            "text": str(data.get("text", data.get("label", ""))),
            "is_correct": bool(
                data.get("isCorrect", data.get("is_correct", data.get("correct", False)))
            ),
        }
        if data.get("id") is not None:
            fields["id"] = str(data["id"])
        return cls(**fields)
