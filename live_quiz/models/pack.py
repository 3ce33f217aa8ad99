"""Quiz pack model."""

from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .question import Question


class QuizPack(BaseModel):
    """An ordered, immutable collection of questions with shared metadata."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    slug: str = ""
    title: str
    description: str = ""
    category: str = ""
    icon: Optional[str] = None
    color: Optional[str] = None
    questions: list[Question]

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("questions")
    @classmethod
    def validate_questions(cls, v: list[Question]) -> list[Question]:
        if not v:
            raise ValueError("a quiz pack needs at least one question")
        return v

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def question_at(self, index: int) -> Optional[Question]:
        """Question at ``index``, or None when out of range."""
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    def is_last_index(self, index: int) -> bool:
        return index >= len(self.questions) - 1

    def metadata(self) -> dict[str, Any]:
        """Pack metadata without the questions."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "icon": self.icon,
            "color": self.color,
            "questionCount": self.question_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizPack:
        """Create from dict (e.g., loaded from YAML)."""
        fields: dict[str, Any] = {
            "slug": data.get("slug", ""),
            "title": data.get("title", ""),
            "description": data.get("description", ""),
            "category": data.get("category", ""),
            "icon": data.get("icon"),
            "color": data.get("color"),
            "questions": [Question.from_dict(q) for q in data.get("questions", [])],
        }
        if data.get("id") is not None:
            fields["id"] = str(data["id"])
        return cls(**fields)
