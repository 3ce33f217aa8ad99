"""Read-only standings across independently scored players.

Each player runs their own ``RoundEngine``; the leaderboard only reads the
players' results and never writes back into an engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .engine import RoundEngine
from .models.result import PlayerResult


@dataclass(frozen=True)
class LeaderboardRow:
    """Immutable snapshot returned to consumers."""

    rank: int
    player: str
    total_score: int
    correct_count: int
    best_streak: int
    average_time: float


def build_leaderboard(
    results: Mapping[str, PlayerResult],
    limit: Optional[int] = None,
) -> list[LeaderboardRow]:
    """Rank players by score, then correct answers, then average time.

    Players with identical score, correct count and average time share a rank.
    """
    ordered = sorted(
        results.items(),
        key=lambda item: (
            -item[1].total_score,
            -item[1].correct_count,
            item[1].average_time,
            item[0],
        ),
    )

    rows: list[LeaderboardRow] = []
    previous_key = None
    rank = 0
    for position, (player, result) in enumerate(ordered, start=1):
        key = (result.total_score, result.correct_count, result.average_time)
        if key != previous_key:
            rank = position
            previous_key = key
        rows.append(
            LeaderboardRow(
                rank=rank,
                player=player,
                total_score=result.total_score,
                correct_count=result.correct_count,
                best_streak=result.best_streak,
                average_time=result.average_time,
            )
        )

    if limit is not None:
        return rows[:limit]
    return rows


class Leaderboard:
    """Tracks one engine per player and projects their standings."""

    def __init__(self) -> None:
        self._engines: dict[str, RoundEngine] = {}

    def add_player(self, player: str, engine: RoundEngine) -> None:
        if player in self._engines:
            raise ValueError(f"player {player!r} is already on the leaderboard")
        self._engines[player] = engine

    def remove_player(self, player: str) -> Optional[RoundEngine]:
        return self._engines.pop(player, None)

    def players(self) -> list[str]:
        return list(self._engines)

    def engine_for(self, player: str) -> Optional[RoundEngine]:
        return self._engines.get(player)

    def standings(self, limit: Optional[int] = None) -> list[LeaderboardRow]:
        """Current standings, computed from result snapshots."""
        snapshots = {
            player: engine.result_snapshot() for player, engine in self._engines.items()
        }
        return build_leaderboard(snapshots, limit)

    def clear(self) -> None:
        self._engines.clear()
