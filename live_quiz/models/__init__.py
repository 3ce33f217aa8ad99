"""Pydantic models for the live quiz engine."""

from .option import AnswerOption, AnswerStyle
from .question import DEFAULT_POINTS_BASE, DEFAULT_TIME_LIMIT, Question
from .pack import QuizPack
from .phase import QUESTION_PHASES, TRANSITIONS, GamePhase, can_transition
from .result import PlayerResult, RoundSummary

__all__ = [
    "AnswerOption",
    "AnswerStyle",
    "DEFAULT_POINTS_BASE",
    "DEFAULT_TIME_LIMIT",
    "Question",
    "QuizPack",
    "QUESTION_PHASES",
    "TRANSITIONS",
    "GamePhase",
    "can_transition",
    "PlayerResult",
    "RoundSummary",
]
