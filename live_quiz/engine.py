"""Round engine: the timed quiz state machine.

Drives one player through a quiz pack:

    lobby -> countdown -> question -> answerReveal -> (leaderboard) -> countdown ... -> results

Every question is preceded by a 3-2-1 countdown. The question timer ticks
once per second; answering or running out of time scores the question and
reveals the answer. The host moves on with ``next_question`` and may show the
leaderboard in between.

All state lives behind one re-entrant lock. Ticker callbacks take the same
lock before touching state, and each ticker start gets a generation number so
a callback from a cancelled ticker is dropped instead of mutating state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .events import (
    build_answer_scored_event,
    build_countdown_tick_event,
    build_phase_changed_event,
    build_question_tick_event,
    build_question_timeout_event,
    build_round_reset_event,
)
from .models.pack import QuizPack
from .models.phase import GamePhase, can_transition
from .models.question import DEFAULT_TIME_LIMIT, Question
from .models.result import PlayerResult, RoundSummary
from .scoring import ScoreBreakdown, ScoringConfig, score_correct_answer
from .ticker import Ticker, TickerHandle, ThreadingTicker

_logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]
Clock = Callable[[], float]


class EngineError(str, Enum):
    """Reasons an engine operation was rejected."""

    INVALID_TRANSITION = "InvalidTransition"
    NO_ACTIVE_QUESTION = "NoActiveQuestion"
    EMPTY_PACK = "EmptyPack"


class EngineStateError(RuntimeError):
    """Raised instead of returning a rejected result when the engine is strict."""

    kind: EngineError = EngineError.INVALID_TRANSITION


class InvalidTransition(EngineStateError):
    kind = EngineError.INVALID_TRANSITION


class NoActiveQuestion(EngineStateError):
    kind = EngineError.NO_ACTIVE_QUESTION


class EmptyPack(EngineStateError):
    kind = EngineError.EMPTY_PACK


_ERROR_CLASSES: Dict[EngineError, type] = {
    EngineError.INVALID_TRANSITION: InvalidTransition,
    EngineError.NO_ACTIVE_QUESTION: NoActiveQuestion,
    EngineError.EMPTY_PACK: EmptyPack,
}


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of an engine operation."""

    accepted: bool
    phase: GamePhase
    error: Optional[EngineError] = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.accepted


@dataclass
class EngineConfig:
    """Timing and misuse-handling configuration for a round engine."""

    tick_interval: float = 1.0
    countdown_start: int = 3
    strict: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create config from dictionary (e.g., loaded from YAML)."""
        return cls(
            tick_interval=float(data.get("tick_interval", 1.0)),
            countdown_start=int(data.get("countdown_start", 3)),
            strict=bool(data.get("strict", False)),
        )


class RoundEngine:
    """State machine for one player's round through a quiz pack.

    Operations return a ``TransitionResult``; an operation called in the
    wrong phase changes nothing and reports why. With ``EngineConfig.strict``
    the same conditions raise ``EngineStateError`` subclasses instead.
    """

    def __init__(
        self,
        ticker: Optional[Ticker] = None,
        clock: Clock = time.monotonic,
        scoring: Optional[ScoringConfig] = None,
        config: Optional[EngineConfig] = None,
        logger: Optional[Any] = None,
    ) -> None:
        """Initialize the engine in the lobby.

        Args:
            ticker: Periodic timer factory; a ``ThreadingTicker`` by default
            clock: Monotonic seconds source used for answer latencies
            scoring: Scoring constants
            config: Timing configuration
            logger: Logger to use instead of the module logger
        """
        self._logger = logger or _logger
        self._ticker: Ticker = ticker or ThreadingTicker(logger=self._logger)
        self._clock = clock
        self._scoring = scoring or ScoringConfig()
        self._config = config or EngineConfig()

        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._timer: Optional[TickerHandle] = None
        self._timer_generation = 0
        self._closed = False

        self._phase = GamePhase.LOBBY
        self._pack: Optional[QuizPack] = None
        self._index = 0
        self._time_remaining = DEFAULT_TIME_LIMIT
        self._countdown_value = self._config.countdown_start
        self._selected_answer_id: Any = None
        self._question_started_at: Optional[float] = None
        self._result = PlayerResult()
        self._last_score: Optional[ScoreBreakdown] = None
        self._last_answer_correct: Optional[bool] = None

    # -- Observable state --------------------------------------------------

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def pack(self) -> Optional[QuizPack]:
        return self._pack

    @property
    def current_question_index(self) -> int:
        return self._index

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def countdown_value(self) -> int:
        return self._countdown_value

    @property
    def selected_answer_id(self) -> Any:
        return self._selected_answer_id

    @property
    def result(self) -> PlayerResult:
        return self._result

    def result_snapshot(self) -> PlayerResult:
        """Detached copy of the result, taken while no tick is mutating it."""
        with self._lock:
            return self._result.snapshot()

    @property
    def last_score(self) -> Optional[ScoreBreakdown]:
        """Breakdown of the last correct answer; None after a miss."""
        return self._last_score

    @property
    def last_answer_correct(self) -> Optional[bool]:
        return self._last_answer_correct

    @property
    def timer_active(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.active

    @property
    def current_question(self) -> Optional[Question]:
        with self._lock:
            if self._pack is None:
                return None
            return self._pack.question_at(self._index)

    @property
    def is_last_question(self) -> bool:
        with self._lock:
            if self._pack is None:
                return True
            return self._pack.is_last_index(self._index)

    @property
    def progress_fraction(self) -> float:
        with self._lock:
            if self._pack is None or not self._pack.questions:
                return 0.0
            return (self._index + 1) / self._pack.question_count

    @property
    def time_fraction(self) -> float:
        with self._lock:
            question = self.current_question
            if question is None or question.time_limit <= 0:
                return 0.0
            return self._time_remaining / question.time_limit

    def summary(self) -> Optional[RoundSummary]:
        """Results-screen summary for the loaded pack."""
        with self._lock:
            if self._pack is None:
                return None
            return RoundSummary.summarize(self._result, self._pack.question_count)

    def to_payload(self) -> Dict[str, Any]:
        """Snapshot of the observable state for a host UI."""
        with self._lock:
            question = self.current_question
            return {
                "phase": self._phase.value,
                "packId": self._pack.id if self._pack else None,
                "questionIndex": self._index,
                "question": question.to_ui_dict() if question else None,
                "isLastQuestion": self.is_last_question,
                "progressFraction": self.progress_fraction,
                "timeRemaining": self._time_remaining,
                "timeFraction": self.time_fraction,
                "countdownValue": self._countdown_value,
                "selectedAnswerId": self._selected_answer_id,
                "lastAnswerCorrect": self._last_answer_correct,
                "result": self._result.to_payload(),
            }

    # -- Change notification -----------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for engine events.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self._logger.error(f"Error in engine listener for {event.get('type')}: {e}")

    # -- Host operations ---------------------------------------------------

    def start_game(self, pack: QuizPack) -> TransitionResult:
        """Load ``pack``, clear the result and start the first countdown."""
        with self._lock:
            if pack is None or not pack.questions:
                return self._reject(EngineError.EMPTY_PACK, "start_game needs a non-empty pack")
            self._cancel_timer()
            self._pack = pack
            self._index = 0
            self._result = PlayerResult()
            self._selected_answer_id = None
            self._question_started_at = None
            self._last_score = None
            self._last_answer_correct = None
            self._logger.info(
                f"Starting round '{pack.title}' with {pack.question_count} questions"
            )
            return self._begin_countdown()

    def start_countdown(self) -> TransitionResult:
        """(Re)start the countdown for the current question."""
        with self._lock:
            if self.current_question is None:
                return self._reject(EngineError.NO_ACTIVE_QUESTION, "no question to count down to")
            if self._phase not in (GamePhase.LOBBY, GamePhase.COUNTDOWN):
                return self._reject(
                    EngineError.INVALID_TRANSITION,
                    f"cannot start countdown from {self._phase.value}",
                )
            return self._begin_countdown()

    def start_question(self) -> TransitionResult:
        """Open the current question immediately, ending the countdown."""
        with self._lock:
            if self.current_question is None:
                return self._reject(EngineError.NO_ACTIVE_QUESTION, "no current question")
            if not can_transition(self._phase, GamePhase.QUESTION):
                return self._reject(
                    EngineError.INVALID_TRANSITION,
                    f"cannot start question from {self._phase.value}",
                )
            return self._enter_question()

    def submit_answer(self, answer_id: Any) -> TransitionResult:
        """Score the player's answer to the open question.

        An id that matches no answer of the current question counts as a
        wrong answer.
        """
        with self._lock:
            if (
                not can_transition(self._phase, GamePhase.ANSWER_REVEAL)
                or self._selected_answer_id is not None
            ):
                return self._reject(
                    EngineError.INVALID_TRANSITION,
                    f"cannot submit an answer during {self._phase.value}",
                )
            question = self.current_question
            if question is None:
                return self._reject(EngineError.NO_ACTIVE_QUESTION, "no current question")

            self._cancel_timer()
            self._selected_answer_id = answer_id

            if self._question_started_at is not None:
                latency = max(0.0, self._clock() - self._question_started_at)
            else:
                latency = float(question.time_limit)

            answer = question.find_answer(answer_id)
            if answer is not None and answer.is_correct:
                breakdown = score_correct_answer(
                    question,
                    self._time_remaining,
                    self._result.streak,
                    self._scoring,
                )
                self._result.record_correct(breakdown.total, latency)
                self._last_score = breakdown
                self._last_answer_correct = True
                points = breakdown.total
            else:
                self._result.record_incorrect(latency)
                self._last_score = None
                self._last_answer_correct = False
                points = 0

            self._logger.info(
                f"Answer to question {self._index + 1} "
                f"{'correct' if self._last_answer_correct else 'incorrect'}: +{points} "
                f"(score={self._result.total_score}, streak={self._result.streak})"
            )
            self._notify(
                build_answer_scored_event(
                    question.id,
                    answer_id,
                    bool(self._last_answer_correct),
                    points,
                    latency,
                    self._result.to_payload(),
                )
            )
            # A listener may have reset or restarted the round.
            if self._phase != GamePhase.QUESTION:
                return self._current()
            return self._set_phase(GamePhase.ANSWER_REVEAL)

    def next_question(self) -> TransitionResult:
        """Advance to the next question's countdown, or to results after the last."""
        with self._lock:
            target = GamePhase.RESULTS if self.is_last_question else GamePhase.COUNTDOWN
            if self._phase == GamePhase.LOBBY or not can_transition(self._phase, target):
                return self._reject(
                    EngineError.INVALID_TRANSITION,
                    f"cannot advance from {self._phase.value}",
                )
            if target == GamePhase.RESULTS:
                self._cancel_timer()
                return self._set_phase(GamePhase.RESULTS)
            self._index += 1
            self._selected_answer_id = None
            return self._begin_countdown()

    def show_leaderboard(self) -> TransitionResult:
        """Show standings between questions."""
        with self._lock:
            if not can_transition(self._phase, GamePhase.LEADERBOARD):
                return self._reject(
                    EngineError.INVALID_TRANSITION,
                    f"cannot show leaderboard from {self._phase.value}",
                )
            return self._set_phase(GamePhase.LEADERBOARD)

    def reset(self) -> TransitionResult:
        """Stop any timer and return to an empty lobby."""
        with self._lock:
            self._cancel_timer()
            self._pack = None
            self._index = 0
            self._time_remaining = DEFAULT_TIME_LIMIT
            self._countdown_value = self._config.countdown_start
            self._selected_answer_id = None
            self._question_started_at = None
            self._result = PlayerResult()
            self._last_score = None
            self._last_answer_correct = None
            self._notify(build_round_reset_event())
            return self._set_phase(GamePhase.LOBBY)

    def close(self) -> None:
        """Cancel the running timer for good; later ticks are ignored."""
        with self._lock:
            self._closed = True
            self._cancel_timer()

    def __enter__(self) -> RoundEngine:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- Internal transitions ----------------------------------------------

    def _begin_countdown(self) -> TransitionResult:
        self._cancel_timer()
        self._countdown_value = self._config.countdown_start
        self._set_phase(GamePhase.COUNTDOWN)
        if self._phase == GamePhase.COUNTDOWN:
            self._notify(build_countdown_tick_event(self._countdown_value))
        # Listeners run before the ticker starts and may have moved the round on
        # or already started a ticker of their own.
        if self._phase == GamePhase.COUNTDOWN and self._timer is None:
            self._start_timer(self._on_countdown_tick)
        return self._current()

    def _on_countdown_tick(self) -> None:
        if self._phase != GamePhase.COUNTDOWN:
            return
        if self._countdown_value > 1:
            self._countdown_value -= 1
            self._notify(build_countdown_tick_event(self._countdown_value))
        else:
            self._cancel_timer()
            self._enter_question()

    def _enter_question(self) -> TransitionResult:
        question = self.current_question
        if question is None:
            return self._reject(EngineError.NO_ACTIVE_QUESTION, "no current question")
        self._cancel_timer()
        self._time_remaining = question.time_limit
        self._selected_answer_id = None
        self._last_score = None
        self._last_answer_correct = None
        self._question_started_at = self._clock()
        self._set_phase(GamePhase.QUESTION)
        if self._phase == GamePhase.QUESTION and self._timer is None:
            self._start_timer(self._on_question_tick)
        return self._current()

    def _on_question_tick(self) -> None:
        if self._phase != GamePhase.QUESTION:
            return
        self._time_remaining = max(0, self._time_remaining - 1)
        self._notify(build_question_tick_event(self._time_remaining, self.time_fraction))
        if self._phase == GamePhase.QUESTION and self._time_remaining <= 0:
            self._cancel_timer()
            self._handle_timeout()

    def _handle_timeout(self) -> None:
        question = self.current_question
        latency = float(question.time_limit if question else DEFAULT_TIME_LIMIT)
        self._result.record_incorrect(latency)
        self._last_score = None
        self._last_answer_correct = False
        self._logger.info(f"Question {self._index + 1} timed out")
        self._notify(
            build_question_timeout_event(
                question.id if question else "",
                latency,
                self._result.to_payload(),
            )
        )
        if self._phase == GamePhase.QUESTION:
            self._set_phase(GamePhase.ANSWER_REVEAL)

    def _current(self) -> TransitionResult:
        return TransitionResult(accepted=True, phase=self._phase)

    def _set_phase(self, phase: GamePhase) -> TransitionResult:
        previous = self._phase
        self._phase = phase
        if previous != phase:
            question = self.current_question
            self._logger.info(f"Phase {previous.value} -> {phase.value}")
            self._notify(
                build_phase_changed_event(
                    previous.value,
                    phase.value,
                    self._index,
                    question.id if question else None,
                )
            )
        return self._current()

    def _reject(self, error: EngineError, detail: str) -> TransitionResult:
        self._logger.debug(f"Rejected operation ({error.value}): {detail}")
        if self._config.strict:
            raise _ERROR_CLASSES[error](detail)
        return TransitionResult(accepted=False, phase=self._phase, error=error, detail=detail)

    # -- Timer management --------------------------------------------------

    def _start_timer(self, handler: Callable[[], None]) -> None:
        self._cancel_timer()
        if self._closed:
            return
        self._timer_generation += 1
        generation = self._timer_generation

        def _tick() -> None:
            with self._lock:
                if generation != self._timer_generation or self._closed:
                    self._logger.debug(f"Dropping stale tick (generation {generation})")
                    return
                handler()

        self._timer = self._ticker.start(self._config.tick_interval, _tick)

    def _cancel_timer(self) -> None:
        self._timer_generation += 1
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()
