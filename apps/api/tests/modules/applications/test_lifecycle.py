"""
Unit tests for the application status state machine.
"""

import pytest

from admissions.modules.applications.exceptions import InvalidTransitionError
from admissions.modules.applications.lifecycle import (
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
    VALID_STATUS_TRANSITIONS,
    can_transition,
    ensure_transition,
    is_editable,
    is_terminal,
)
from admissions.modules.applications.models import ApplicationStatus as S


class TestTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        "current,new",
        [
            (S.DRAFT, S.SUBMITTED),
            (S.SUBMITTED, S.FROZEN),
            (S.FROZEN, S.UNDER_REVIEW),
            (S.UNDER_REVIEW, S.APPROVED),
            (S.UNDER_REVIEW, S.REJECTED),
        ],
    )
    def test_forward_transitions_allowed(self, current, new):
        assert can_transition(current, new)
        ensure_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (S.DRAFT, S.FROZEN),
            (S.DRAFT, S.APPROVED),
            (S.SUBMITTED, S.DRAFT),
            (S.FROZEN, S.SUBMITTED),
            (S.FROZEN, S.APPROVED),
            (S.UNDER_REVIEW, S.FROZEN),
            (S.APPROVED, S.REJECTED),
            (S.REJECTED, S.UNDER_REVIEW),
        ],
    )
    def test_other_transitions_rejected(self, current, new):
        assert not can_transition(current, new)

    def test_same_status_is_not_a_transition(self):
        for status in S:
            assert not can_transition(status, status)

    def test_every_status_has_an_entry(self):
        assert set(VALID_STATUS_TRANSITIONS) == set(S)

    def test_ensure_transition_reports_both_statuses(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_transition(S.FROZEN, S.SUBMITTED)

        err = exc_info.value
        assert err.status_code == 409
        assert err.error_code == "INVALID_TRANSITION"
        assert err.details == {"current_status": "frozen", "requested_status": "submitted"}
        assert "under_review" in err.message


class TestStatusSets:
    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {S.APPROVED, S.REJECTED}
        assert is_terminal(S.APPROVED)
        assert not is_terminal(S.UNDER_REVIEW)

    def test_terminal_statuses_have_no_way_out(self):
        for status in TERMINAL_STATUSES:
            assert all(not can_transition(status, other) for other in S)

    def test_editable_until_final_submission(self):
        assert EDITABLE_STATUSES == {S.DRAFT, S.SUBMITTED}
        assert is_editable(S.DRAFT)
        assert is_editable(S.SUBMITTED)
        for status in (S.FROZEN, S.UNDER_REVIEW, S.APPROVED, S.REJECTED):
            assert not is_editable(status)
