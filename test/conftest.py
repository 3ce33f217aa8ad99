"""Shared fixtures: a manual ticker, a fake clock and small quiz packs."""

from __future__ import annotations

from typing import Callable

import pytest

from live_quiz.engine import EngineConfig, RoundEngine
from live_quiz.models import AnswerOption, Question, QuizPack


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualHandle:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> bool:
        was_active = self._active
        self._active = False
        return was_active


class ManualTicker:
    """Ticker whose ticks fire only when the test calls ``tick``."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.handles: list[ManualHandle] = []

    def start(self, interval: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(interval, callback)
        self.handles.append(handle)
        return handle

    @property
    def active_handles(self) -> list[ManualHandle]:
        return [h for h in self.handles if h.active]

    def tick(self, count: int = 1) -> None:
        """Advance the clock one interval and fire every active handle."""
        for _ in range(count):
            active = self.active_handles
            interval = active[0].interval if active else 1.0
            self.clock.advance(interval)
            for handle in active:
                if handle.active:
                    handle.callback()


def make_question(
    text: str = "Q",
    correct_index: int = 0,
    time_limit: int = 20,
    points_base: int = 1000,
    answer_count: int = 4,
) -> Question:
    answers = [
        AnswerOption(id=f"{text}-a{i}", text=f"answer {i}", is_correct=(i == correct_index))
        for i in range(answer_count)
    ]
    return Question(
        id=text,
        text=text,
        answers=answers,
        time_limit=time_limit,
        points_base=points_base,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ticker(clock: FakeClock) -> ManualTicker:
    return ManualTicker(clock)


@pytest.fixture()
def engine(ticker: ManualTicker, clock: FakeClock):
    with RoundEngine(ticker=ticker, clock=clock) as eng:
        yield eng


@pytest.fixture()
def strict_engine(ticker: ManualTicker, clock: FakeClock):
    with RoundEngine(ticker=ticker, clock=clock, config=EngineConfig(strict=True)) as eng:
        yield eng


@pytest.fixture()
def two_question_pack() -> QuizPack:
    """Q1: limit 20s, correct answer index 1. Q2: limit 10s, correct index 0."""
    return QuizPack(
        id="pack-2",
        title="Two Questions",
        questions=[
            make_question("Q1", correct_index=1, time_limit=20),
            make_question("Q2", correct_index=0, time_limit=10),
        ],
    )


@pytest.fixture()
def long_pack() -> QuizPack:
    return QuizPack(
        id="pack-10",
        title="Ten Questions",
        questions=[make_question(f"Q{i}", correct_index=i % 4) for i in range(1, 11)],
    )


@pytest.fixture()
def make_pack() -> Callable[..., QuizPack]:
    def _make(*questions: Question, title: str = "Custom") -> QuizPack:
        return QuizPack(title=title, questions=list(questions))

    return _make


@pytest.fixture()
def question_factory() -> Callable[..., Question]:
    return make_question
