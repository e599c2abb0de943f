"""
Attendance punch clock shown in the header.

States: ``none`` (off duty), ``working``, ``break``. Each action is allowed
only from its source states; a transition is applied locally only after the
server accepted the ``createAttendance`` post.
"""
import logging
from typing import Any, Dict, Optional

from lapin_ops.api.envelope import ApiResult

logger = logging.getLogger(__name__)

OFF_DUTY = "none"
WORKING = "working"
ON_BREAK = "break"
STATES = (OFF_DUTY, WORKING, ON_BREAK)

CLOCK_IN = "clock_in"
BREAK_START = "break_start"
BREAK_END = "break_end"
CLOCK_OUT = "clock_out"

# action -> (allowed source states, target state)
TRANSITIONS = {
    CLOCK_IN: ((OFF_DUTY,), WORKING),
    BREAK_START: ((WORKING,), ON_BREAK),
    BREAK_END: ((ON_BREAK,), WORKING),
    CLOCK_OUT: ((WORKING, ON_BREAK), OFF_DUTY),
}

ACTION_LABELS = {
    CLOCK_IN: "出勤",
    BREAK_START: "休憩",
    BREAK_END: "戻り",
    CLOCK_OUT: "退勤",
}

STATE_LABELS = {
    OFF_DUTY: "未出勤",
    WORKING: "勤務中",
    ON_BREAK: "休憩中",
}


class InvalidTransition(ValueError):
    """Action not allowed from the current state."""


def can_apply(state: str, action: str) -> bool:
    sources, _ = TRANSITIONS[action]
    return state in sources


def next_state(state: str, action: str) -> str:
    if action not in TRANSITIONS:
        raise InvalidTransition(f"Unknown attendance action: {action}")
    sources, target = TRANSITIONS[action]
    if state not in sources:
        raise InvalidTransition(f"{action} is not allowed while {state}")
    return target


def state_from_status(payload: Optional[Dict[str, Any]]) -> str:
    """
    Derive the current state from a ``getAttendanceStatus`` payload.

    An explicit ``status`` wins when it is one of the known states;
    otherwise today's punch timestamps decide.
    """
    if not payload:
        return OFF_DUTY
    status = payload.get("status")
    if status in STATES:
        return status
    if payload.get("clock_out"):
        return OFF_DUTY
    if payload.get("break_start") and not payload.get("break_end"):
        return ON_BREAK
    if payload.get("clock_in"):
        return WORKING
    return OFF_DUTY


class PunchClock:
    """
    Punch clock bound to an API client.

    ``api`` only needs ``create_attendance`` and ``get_attendance_status``.
    """

    def __init__(self, api, state: str = OFF_DUTY):
        self.api = api
        self.state = state if state in STATES else OFF_DUTY

    def hydrate(self) -> ApiResult:
        result = self.api.get_attendance_status()
        if result.success:
            self.state = state_from_status(result.data)
        else:
            logger.warning("Attendance status unavailable: %s", result.error_message)
        return result

    def available_actions(self):
        return [a for a in TRANSITIONS if can_apply(self.state, a)]

    def apply(self, action: str) -> ApiResult:
        """Post the punch and move to the target state when the server accepts it."""
        target = next_state(self.state, action)
        result = self.api.create_attendance(action)
        if result.success:
            logger.info("Attendance %s: %s -> %s", action, self.state, target)
            self.state = target
        return result
