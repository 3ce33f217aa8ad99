"""Change-notification event builders.

The engine publishes one of these events to its subscribers after every
state mutation. Each event is a plain dict with a ``type`` and a
``payload`` so hosts can forward it over any transport.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

PHASE_CHANGED = "PHASE_CHANGED"
COUNTDOWN_TICK = "COUNTDOWN_TICK"
QUESTION_TICK = "QUESTION_TICK"
ANSWER_SCORED = "ANSWER_SCORED"
QUESTION_TIMEOUT = "QUESTION_TIMEOUT"
ROUND_RESET = "ROUND_RESET"

EVENT_TYPES = frozenset(
    {
        PHASE_CHANGED,
        COUNTDOWN_TICK,
        QUESTION_TICK,
        ANSWER_SCORED,
        QUESTION_TIMEOUT,
        ROUND_RESET,
    }
)


def build_phase_changed_event(
    previous: str,
    phase: str,
    question_index: int,
    question_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a PHASE_CHANGED event.

    Args:
        previous: Phase value before the transition
        phase: Phase value after the transition
        question_index: Current 0-based question index
        question_id: ID of the current question, if any

    Returns:
        Dict containing the PHASE_CHANGED event structure
    """
    payload: Dict[str, Any] = {
        "previous": previous,
        "phase": phase,
        "questionIndex": question_index,
    }
    if question_id is not None:
        payload["questionId"] = question_id
    return {
        "type": PHASE_CHANGED,
        "payload": payload,
    }


def build_countdown_tick_event(countdown_value: int) -> Dict[str, Any]:
    return {
        "type": COUNTDOWN_TICK,
        "payload": {"countdownValue": countdown_value},
    }


def build_question_tick_event(time_remaining: int, time_fraction: float) -> Dict[str, Any]:
    return {
        "type": QUESTION_TICK,
        "payload": {
            "timeRemaining": time_remaining,
            "timeFraction": time_fraction,
        },
    }


def build_answer_scored_event(
    question_id: str,
    answer_id: Any,
    correct: bool,
    points: int,
    latency: float,
    result: Dict[str, Any],
) -> Dict[str, Any]:
    """Build an ANSWER_SCORED event for a submitted answer.

    Args:
        question_id: ID of the answered question
        answer_id: The submitted answer id, as given by the host
        correct: Whether the answer was correct
        points: Points added to the total (0 when incorrect)
        latency: Seconds from question start to submission
        result: Player result payload after scoring
    """
    return {
        "type": ANSWER_SCORED,
        "payload": {
            "questionId": question_id,
            "answerId": answer_id,
            "correct": correct,
            "points": points,
            "latency": latency,
            "result": result,
        },
    }


def build_question_timeout_event(
    question_id: str,
    latency: float,
    result: Dict[str, Any],
) -> Dict[str, Any]:
    return {
        "type": QUESTION_TIMEOUT,
        "payload": {
            "questionId": question_id,
            "latency": latency,
            "result": result,
        },
    }


def build_round_reset_event() -> Dict[str, Any]:
    return {
        "type": ROUND_RESET,
        "payload": {},
    }


def event_to_json(event: Dict[str, Any]) -> str:
    """Serialize event to a JSON string.

    Args:
        event: Event dictionary to serialize

    Returns:
        JSON string representation
    """
    return json.dumps(event, ensure_ascii=False, default=str)


def parse_event(json_data: str) -> Optional[Dict[str, Any]]:
    """Parse a serialized event, returning None if it is not a known event."""
    try:
        data = json.loads(json_data)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict) or data.get("type") not in EVENT_TYPES:
        return None
    return data
