"""
Tests for the attendance punch clock.
"""
import pytest

from lapin_ops.api.envelope import ApiResult
from lapin_ops.auth.attendance import (
    OFF_DUTY, WORKING, ON_BREAK, CLOCK_IN, BREAK_START, BREAK_END, CLOCK_OUT,
    InvalidTransition, PunchClock, can_apply, next_state, state_from_status,
)


class FakeAttendanceApi:
    def __init__(self, result=None, status=None):
        self.result = result or ApiResult.ok({})
        self.status = status or ApiResult.ok({})
        self.posted = []

    def create_attendance(self, attendance_type):
        self.posted.append(attendance_type)
        return self.result

    def get_attendance_status(self):
        return self.status


class TestTransitions:
    """Each action only from its source states."""

    def test_full_day(self):
        """none → working → break → working → none."""
        state = OFF_DUTY
        for action in (CLOCK_IN, BREAK_START, BREAK_END, CLOCK_OUT):
            state = next_state(state, action)

        assert state == OFF_DUTY

    def test_clock_out_from_break(self):
        """Leaving while on break is allowed."""
        assert next_state(ON_BREAK, CLOCK_OUT) == OFF_DUTY

    @pytest.mark.parametrize("state,action", [
        (OFF_DUTY, BREAK_START),
        (OFF_DUTY, CLOCK_OUT),
        (WORKING, CLOCK_IN),
        (WORKING, BREAK_END),
        (ON_BREAK, BREAK_START),
    ])
    def test_invalid(self, state, action):
        """Disallowed actions raise."""
        assert can_apply(state, action) is False
        with pytest.raises(InvalidTransition):
            next_state(state, action)


class TestStateFromStatus:
    """Hydration from getAttendanceStatus."""

    def test_explicit_status(self):
        """A known status wins."""
        assert state_from_status({"status": "break", "clock_in": "09:00"}) == ON_BREAK

    def test_from_timestamps(self):
        """Punch timestamps decide without a status."""
        assert state_from_status({"clock_in": "09:00"}) == WORKING
        assert state_from_status({"clock_in": "09:00", "break_start": "12:00"}) == ON_BREAK
        assert state_from_status({"clock_in": "09:00", "break_start": "12:00", "break_end": "13:00"}) == WORKING
        assert state_from_status({"clock_in": "09:00", "clock_out": "18:00"}) == OFF_DUTY
        assert state_from_status(None) == OFF_DUTY


class TestPunchClock:
    """Server-confirmed transitions."""

    def test_apply_posts_and_moves(self):
        """A successful post moves the state."""
        api = FakeAttendanceApi()
        clock = PunchClock(api)

        clock.apply(CLOCK_IN)

        assert api.posted == [CLOCK_IN]
        assert clock.state == WORKING
        assert clock.available_actions() == [BREAK_START, CLOCK_OUT]

    def test_failed_post_keeps_state(self):
        """A rejected post leaves the state unchanged."""
        clock = PunchClock(FakeAttendanceApi(result=ApiResult.fail("http_error", "HTTP 500")))

        result = clock.apply(CLOCK_IN)

        assert result.success is False
        assert clock.state == OFF_DUTY

    def test_invalid_action_never_posts(self):
        """Invalid actions fail before any request."""
        api = FakeAttendanceApi()
        clock = PunchClock(api)

        with pytest.raises(InvalidTransition):
            clock.apply(BREAK_END)
        assert api.posted == []

    def test_hydrate(self):
        """Hydration reads the server state."""
        clock = PunchClock(FakeAttendanceApi(status=ApiResult.ok({"status": "working"})))

        clock.hydrate()

        assert clock.state == WORKING
