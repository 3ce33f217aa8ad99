"""Unit tests for the round state machine."""

import pytest

from live_quiz.engine import (
    EmptyPack,
    EngineError,
    InvalidTransition,
    NoActiveQuestion,
    RoundEngine,
)
from live_quiz.models import QUESTION_PHASES, GamePhase, PlayerResult, QuizPack, can_transition


def open_question(ticker):
    """Run the 3-2-1 countdown through to the question phase."""
    ticker.tick(3)


def correct_id(engine):
    return engine.current_question.correct_answer().id


def wrong_id(engine):
    question = engine.current_question
    return next(a.id for a in question.answers if not a.is_correct)


class TestStartGame:
    """Test starting a round."""

    def test_initial_state(self, engine):
        assert engine.phase == GamePhase.LOBBY
        assert engine.pack is None
        assert engine.current_question is None
        assert engine.is_last_question is True
        assert engine.progress_fraction == 0.0
        assert engine.time_fraction == 0.0

    def test_start_enters_countdown(self, engine, ticker, two_question_pack):
        outcome = engine.start_game(two_question_pack)
        assert outcome.accepted is True
        assert engine.phase == GamePhase.COUNTDOWN
        assert engine.countdown_value == 3
        assert engine.current_question_index == 0
        assert len(ticker.active_handles) == 1

    def test_empty_pack_rejected(self, engine, two_question_pack):
        empty = QuizPack.model_construct(id="e", title="Empty", questions=[])
        outcome = engine.start_game(empty)
        assert outcome.accepted is False
        assert outcome.error == EngineError.EMPTY_PACK
        assert engine.phase == GamePhase.LOBBY

    def test_restart_clears_previous_result(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        assert engine.result.total_score > 0

        engine.start_game(two_question_pack)
        assert engine.result == PlayerResult()
        assert engine.selected_answer_id is None
        assert len(ticker.active_handles) == 1


class TestCountdown:
    """Test the 3-2-1 countdown."""

    def test_counts_down_then_opens_question(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        ticker.tick()
        assert engine.countdown_value == 2
        ticker.tick()
        assert engine.countdown_value == 1
        assert engine.phase == GamePhase.COUNTDOWN
        ticker.tick()
        assert engine.phase == GamePhase.QUESTION
        assert engine.time_remaining == 20
        assert engine.time_fraction == 1.0

    def test_restart_countdown_keeps_single_timer(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        ticker.tick()
        assert engine.start_countdown().accepted is True
        assert engine.countdown_value == 3
        assert len(ticker.active_handles) == 1

    def test_start_countdown_without_pack(self, engine):
        outcome = engine.start_countdown()
        assert outcome.error == EngineError.NO_ACTIVE_QUESTION

    def test_start_countdown_during_question_rejected(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        outcome = engine.start_countdown()
        assert outcome.error == EngineError.INVALID_TRANSITION
        assert engine.phase == GamePhase.QUESTION

    def test_start_question_skips_countdown(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        assert engine.start_question().accepted is True
        assert engine.phase == GamePhase.QUESTION
        assert len(ticker.active_handles) == 1

    def test_start_question_outside_countdown(self, engine, two_question_pack):
        assert engine.start_question().error == EngineError.NO_ACTIVE_QUESTION
        engine.start_game(two_question_pack)
        engine.start_question()
        assert engine.start_question().error == EngineError.INVALID_TRANSITION


class TestSubmitAnswer:
    """Test answer submission and scoring."""

    def test_instant_correct_answer_scores_full_points(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        assert engine.result.total_score == 1000
        assert engine.result.correct_count == 1
        assert engine.result.streak == 1
        assert engine.result.best_streak == 1
        assert engine.phase == GamePhase.ANSWER_REVEAL
        assert engine.last_answer_correct is True

    def test_last_second_correct_answer_scores_half(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        ticker.tick(19)
        assert engine.time_remaining == 1
        engine.submit_answer(correct_id(engine))
        # 1s left of 20: 1000 * (0.5 + 0.5 * 0.05)
        assert engine.result.total_score == 525

    def test_incorrect_answer(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        ticker.tick(4)
        engine.submit_answer(wrong_id(engine))
        result = engine.result
        assert result.total_score == 0
        assert result.incorrect_count == 1
        assert result.streak == 0
        assert result.answer_times == [4.0]
        assert engine.last_answer_correct is False
        assert engine.last_score is None

    def test_unknown_answer_counts_as_incorrect(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer("no-such-answer")
        assert engine.result.incorrect_count == 1
        assert engine.result.answered_count == len(engine.result.answer_times)
        assert engine.selected_answer_id == "no-such-answer"

    def test_second_submission_is_rejected(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        before = engine.result.model_copy(deep=True)

        outcome = engine.submit_answer(correct_id(engine))
        assert outcome.accepted is False
        assert outcome.error == EngineError.INVALID_TRANSITION
        assert engine.result == before

    def test_submit_outside_question_phase(self, engine, two_question_pack):
        assert engine.submit_answer("x").error == EngineError.INVALID_TRANSITION
        engine.start_game(two_question_pack)
        assert engine.submit_answer("x").error == EngineError.INVALID_TRANSITION
        assert engine.result.answered_count == 0

    def test_submit_stops_question_timer(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        assert ticker.active_handles == []
        assert engine.timer_active is False

    def test_streak_bonus_grows_and_caps(self, engine, ticker, long_pack):
        engine.start_game(long_pack)
        scores = []
        for _ in range(8):
            open_question(ticker)
            before = engine.result.total_score
            engine.submit_answer(correct_id(engine))
            scores.append(engine.result.total_score - before)
            engine.next_question()
        # Instant answers: 1000 plus 100 per prior streak level, capped at 5.
        assert scores == [1000, 1100, 1200, 1300, 1400, 1500, 1500, 1500]
        assert engine.result.streak == 8
        assert engine.result.best_streak == 8

    def test_streak_of_seven_bonus_is_capped(self, engine, ticker, long_pack):
        engine.start_game(long_pack)
        for _ in range(7):
            open_question(ticker)
            engine.submit_answer(correct_id(engine))
            engine.next_question()
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        assert engine.last_score.streak_bonus == 500

    def test_wrong_answer_resets_streak_keeps_best(self, engine, ticker, long_pack):
        engine.start_game(long_pack)
        for _ in range(3):
            open_question(ticker)
            engine.submit_answer(correct_id(engine))
            engine.next_question()
        open_question(ticker)
        engine.submit_answer(wrong_id(engine))
        assert engine.result.streak == 0
        assert engine.result.best_streak == 3
        engine.next_question()
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        assert engine.result.streak == 1
        assert engine.result.best_streak == 3

    def test_missing_start_time_uses_full_time_limit(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine._question_started_at = None
        engine.submit_answer(wrong_id(engine))
        assert engine.result.answer_times == [20.0]


class TestAdvancing:
    """Test moving between questions, leaderboard and results."""

    def test_next_question_runs_countdown_again(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        engine.next_question()
        assert engine.phase == GamePhase.COUNTDOWN
        assert engine.current_question_index == 1
        assert engine.selected_answer_id is None
        assert engine.countdown_value == 3
        open_question(ticker)
        assert engine.phase == GamePhase.QUESTION
        assert engine.time_remaining == 10

    def test_next_question_only_after_reveal(self, engine, ticker, two_question_pack):
        assert engine.next_question().error == EngineError.INVALID_TRANSITION
        engine.start_game(two_question_pack)
        assert engine.next_question().error == EngineError.INVALID_TRANSITION
        open_question(ticker)
        assert engine.next_question().error == EngineError.INVALID_TRANSITION
        assert engine.current_question_index == 0

    def test_leaderboard_between_questions(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        score = engine.result.total_score
        assert engine.show_leaderboard().accepted is True
        assert engine.phase == GamePhase.LEADERBOARD
        assert engine.result.total_score == score
        assert ticker.active_handles == []
        engine.next_question()
        assert engine.phase == GamePhase.COUNTDOWN
        assert engine.current_question_index == 1

    def test_leaderboard_only_from_reveal(self, engine, ticker, two_question_pack):
        assert engine.show_leaderboard().error == EngineError.INVALID_TRANSITION
        engine.start_game(two_question_pack)
        open_question(ticker)
        assert engine.show_leaderboard().error == EngineError.INVALID_TRANSITION
        assert engine.phase == GamePhase.QUESTION

    def test_last_question_goes_to_results_and_stays(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        for _ in range(2):
            open_question(ticker)
            engine.submit_answer(correct_id(engine))
            engine.next_question()
        assert engine.phase == GamePhase.RESULTS
        for _ in range(3):
            outcome = engine.next_question()
            assert outcome.accepted is False
            assert engine.phase == GamePhase.RESULTS
        assert engine.current_question_index == 1

    def test_leaderboard_after_last_question_then_results(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        engine.next_question()
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        engine.show_leaderboard()
        engine.next_question()
        assert engine.phase == GamePhase.RESULTS

    def test_progress_fraction(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        assert engine.progress_fraction == 0.5
        assert engine.is_last_question is False
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        engine.next_question()
        assert engine.progress_fraction == 1.0
        assert engine.is_last_question is True

    def test_summary(self, engine, ticker, two_question_pack):
        assert engine.summary() is None
        engine.start_game(two_question_pack)
        open_question(ticker)
        engine.submit_answer(correct_id(engine))
        engine.next_question()
        open_question(ticker)
        engine.submit_answer(wrong_id(engine))
        engine.next_question()
        summary = engine.summary()
        assert summary.accuracy == 50.0
        assert summary.stars == 2
        assert summary.question_count == 2

    def test_payload_during_question(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        ticker.tick(5)
        payload = engine.to_payload()
        assert payload["phase"] == "question"
        assert payload["packId"] == "pack-2"
        assert payload["question"]["id"] == "Q1"
        assert payload["timeRemaining"] == 15
        assert payload["timeFraction"] == 0.75
        assert payload["selectedAnswerId"] is None
        assert payload["result"]["totalScore"] == 0


class TestReset:
    """Test returning to the lobby."""

    def test_reset_clears_everything(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        ticker.tick(2)
        engine.submit_answer(correct_id(engine))
        engine.next_question()

        assert engine.reset().accepted is True
        assert engine.phase == GamePhase.LOBBY
        assert engine.pack is None
        assert engine.current_question_index == 0
        assert engine.selected_answer_id is None
        assert engine.result == PlayerResult()
        assert engine.countdown_value == 3
        assert ticker.active_handles == []

    def test_no_tick_fires_after_reset(self, engine, ticker, two_question_pack):
        engine.start_game(two_question_pack)
        open_question(ticker)
        handle = ticker.active_handles[0]
        engine.reset()
        # Even a callback that slipped past cancellation must not mutate state.
        handle.callback()
        ticker.tick(30)
        assert engine.phase == GamePhase.LOBBY
        assert engine.result == PlayerResult()

    def test_reset_is_idempotent(self, engine):
        assert engine.reset().accepted is True
        assert engine.reset().accepted is True
        assert engine.phase == GamePhase.LOBBY

    def test_close_stops_timers(self, ticker, clock, two_question_pack):
        engine = RoundEngine(ticker=ticker, clock=clock)
        engine.start_game(two_question_pack)
        handle = ticker.active_handles[0]
        engine.close()
        handle.callback()
        assert engine.phase == GamePhase.COUNTDOWN
        assert engine.countdown_value == 3
        assert ticker.active_handles == []


class TestStrictMode:
    """Test raising on misuse."""

    def test_submit_outside_question_raises(self, strict_engine):
        with pytest.raises(InvalidTransition):
            strict_engine.submit_answer("x")

    def test_start_question_without_pack_raises(self, strict_engine):
        with pytest.raises(NoActiveQuestion):
            strict_engine.start_question()

    def test_empty_pack_raises(self, strict_engine):
        empty = QuizPack.model_construct(id="e", title="Empty", questions=[])
        with pytest.raises(EmptyPack):
            strict_engine.start_game(empty)

    def test_error_kind(self, strict_engine):
        with pytest.raises(InvalidTransition) as excinfo:
            strict_engine.next_question()
        assert excinfo.value.kind == EngineError.INVALID_TRANSITION


def test_example_round(engine, ticker, two_question_pack):
    """Two-question round: fast correct answer, then a timeout."""
    engine.start_game(two_question_pack)
    open_question(ticker)
    assert engine.current_question.id == "Q1"
    assert engine.time_remaining == 20

    ticker.tick(5)
    assert engine.time_remaining == 15
    engine.submit_answer("Q1-a1")
    assert engine.result.total_score == 875
    assert engine.result.streak == 1

    engine.next_question()
    open_question(ticker)
    assert engine.current_question.id == "Q2"
    assert engine.time_remaining == 10
    ticker.tick(10)
    assert engine.phase == GamePhase.ANSWER_REVEAL
    assert engine.result.incorrect_count == 1
    assert engine.result.streak == 0
    assert engine.result.answer_times == [5.0, 10.0]
    assert engine.result.average_time == 7.5

    engine.next_question()
    assert engine.phase == GamePhase.RESULTS
    assert engine.result.total_score == 875
    assert engine.result.correct_count == 1
    assert engine.result.incorrect_count == 1
    assert engine.result.best_streak == 1


def test_observed_phases_follow_transition_table(engine, ticker, long_pack):
    phases = []
    in_question_phases = []

    def record(event):
        if event["type"] == "PHASE_CHANGED":
            phases.append((event["payload"]["previous"], event["payload"]["phase"]))
        if engine.phase in QUESTION_PHASES:
            in_question_phases.append(engine.current_question)

    engine.subscribe(record)
    engine.start_game(long_pack)
    for i in range(long_pack.question_count):
        open_question(ticker)
        if i % 3 == 0:
            ticker.tick(20)
        else:
            engine.submit_answer(correct_id(engine) if i % 2 else wrong_id(engine))
        if i % 2:
            engine.show_leaderboard()
        engine.next_question()

    assert phases[0] == ("lobby", "countdown")
    assert phases[-1][1] == "results"
    for previous, current in phases:
        assert can_transition(GamePhase(previous), GamePhase(current)), (previous, current)
    assert in_question_phases
    assert all(question is not None for question in in_question_phases)


def test_counts_and_latencies_stay_consistent(engine, ticker, long_pack):
    engine.start_game(long_pack)
    last = (0, 0, 0)
    for i in range(long_pack.question_count):
        open_question(ticker)
        ticker.tick(i)
        if i % 4 == 3:
            ticker.tick(20)
        elif i % 2:
            engine.submit_answer(wrong_id(engine))
        else:
            engine.submit_answer(correct_id(engine))
        result = engine.result
        current = (result.total_score, result.correct_count, result.incorrect_count)
        assert all(now >= before for now, before in zip(current, last))
        last = current
        assert len(result.answer_times) == result.correct_count + result.incorrect_count
        assert result.average_time == pytest.approx(
            sum(result.answer_times) / len(result.answer_times)
        )
        engine.next_question()
