"""Round phase models."""

from __future__ import annotations

from enum import Enum


class GamePhase(str, Enum):
    """Possible round phases."""

    LOBBY = "lobby"
    COUNTDOWN = "countdown"
    QUESTION = "question"
    ANSWER_REVEAL = "answerReveal"
    LEADERBOARD = "leaderboard"
    RESULTS = "results"


# Phase -> phases it may move to. ``reset`` (back to LOBBY) and ``start_game``
# (to COUNTDOWN) are allowed from anywhere and are not listed.
TRANSITIONS: dict[GamePhase, frozenset[GamePhase]] = {
    GamePhase.LOBBY: frozenset({GamePhase.COUNTDOWN}),
    GamePhase.COUNTDOWN: frozenset({GamePhase.QUESTION}),
    GamePhase.QUESTION: frozenset({GamePhase.ANSWER_REVEAL}),
    GamePhase.ANSWER_REVEAL: frozenset(
        {GamePhase.COUNTDOWN, GamePhase.LEADERBOARD, GamePhase.RESULTS}
    ),
    GamePhase.LEADERBOARD: frozenset({GamePhase.COUNTDOWN, GamePhase.RESULTS}),
    GamePhase.RESULTS: frozenset(),
}

# Phases in which a question is on screen and the index must be valid.
QUESTION_PHASES: frozenset[GamePhase] = frozenset(
    {GamePhase.COUNTDOWN, GamePhase.QUESTION, GamePhase.ANSWER_REVEAL}
)


def can_transition(current: GamePhase, target: GamePhase) -> bool:
    """Check whether ``current -> target`` follows the transition table."""
    return target in TRANSITIONS.get(current, frozenset())
