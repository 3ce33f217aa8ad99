"""Live quiz round engine: timed questions, speed scoring and streaks."""

from .engine import (
    EmptyPack,
    EngineConfig,
    EngineError,
    EngineStateError,
    InvalidTransition,
    NoActiveQuestion,
    RoundEngine,
    TransitionResult,
)
from .leaderboard import Leaderboard, LeaderboardRow, build_leaderboard
from .models import (
    AnswerOption,
    AnswerStyle,
    GamePhase,
    PlayerResult,
    Question,
    QuizPack,
    RoundSummary,
)
from .scoring import ScoreBreakdown, ScoringConfig, score_correct_answer
from .ticker import ThreadingTicker, Ticker, TickerHandle

__all__ = [
    "EmptyPack",
    "EngineConfig",
    "EngineError",
    "EngineStateError",
    "InvalidTransition",
    "NoActiveQuestion",
    "RoundEngine",
    "TransitionResult",
    "Leaderboard",
    "LeaderboardRow",
    "build_leaderboard",
    "AnswerOption",
    "AnswerStyle",
    "GamePhase",
    "PlayerResult",
    "Question",
    "QuizPack",
    "RoundSummary",
    "ScoreBreakdown",
    "ScoringConfig",
    "score_correct_answer",
    "ThreadingTicker",
    "Ticker",
    "TickerHandle",
]
