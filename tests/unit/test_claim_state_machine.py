"""
Unit Tests for the Claim Submission State Machine.

Tests:
- Claim-level transition table
- Clearinghouse status transitions and terminal states
- Clearinghouse to claim status mapping
"""

import pytest

from src.core.enums import ClaimStatus, SubmissionStatus
from src.services.claim_state_machine import (
    ALREADY_SUBMITTED_STATUSES,
    ClaimStateMachine,
    TransitionEvent,
    get_claim_state_machine,
    get_status_display_name,
    is_pending_submission_status,
    is_resubmittable,
    is_terminal_submission_status,
    map_clearinghouse_status,
)
from src.utils.errors import InvalidStatusTransitionError


@pytest.fixture
def machine():
    return ClaimStateMachine()


class TestClaimTransitions:
    """Tests for claim-level transitions."""

    @pytest.mark.parametrize("start", [ClaimStatus.DRAFT, ClaimStatus.READY])
    def test_submit_from_draft_or_ready(self, machine, start):
        result = machine.validate_transition(start, ClaimStatus.SUBMITTED)

        assert result.success
        assert result.transition.event == TransitionEvent.SUBMIT

    def test_same_status_is_noop(self, machine):
        result = machine.validate_transition(ClaimStatus.PAID, ClaimStatus.PAID)

        assert result.success
        assert result.is_noop

    def test_paid_is_final(self, machine):
        assert machine.get_next_statuses(ClaimStatus.PAID) == []
        assert not machine.can_transition(ClaimStatus.PAID, ClaimStatus.DENIED)

    def test_resubmission_requires_note(self, machine):
        without_note = machine.validate_transition(ClaimStatus.REJECTED, ClaimStatus.READY)
        with_note = machine.validate_transition(ClaimStatus.REJECTED, ClaimStatus.READY, "corrected")

        assert not without_note.success
        assert with_note.success
        assert with_note.transition.event == TransitionEvent.PREPARE_RESUBMISSION

    def test_remittance_moves(self, machine):
        assert machine.can_transition(ClaimStatus.SUBMITTED, ClaimStatus.PAID)
        assert machine.can_transition(ClaimStatus.ACCEPTED, ClaimStatus.DENIED)
        assert machine.can_transition(ClaimStatus.DENIED, ClaimStatus.PAID)
        assert not machine.can_transition(ClaimStatus.DRAFT, ClaimStatus.PAID)

    def test_require_transition_raises(self, machine):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            machine.require_transition(ClaimStatus.ACCEPTED, ClaimStatus.READY, "note")

        assert exc_info.value.detail == "Invalid status transition: accepted -> ready"

    def test_already_submitted_guard(self):
        assert ALREADY_SUBMITTED_STATUSES == {
            ClaimStatus.SUBMITTED,
            ClaimStatus.ACCEPTED,
            ClaimStatus.PAID,
        }

    def test_resubmittable(self):
        assert is_resubmittable(ClaimStatus.REJECTED)
        assert is_resubmittable(ClaimStatus.DENIED)
        assert not is_resubmittable(ClaimStatus.ACCEPTED)


class TestSubmissionTransitions:
    """Tests for clearinghouse status transitions."""

    def test_pending_paths(self, machine):
        assert machine.can_transition_submission(SubmissionStatus.SUBMITTED, SubmissionStatus.PENDING)
        assert machine.can_transition_submission(SubmissionStatus.PENDING, SubmissionStatus.PENDED)
        assert machine.can_transition_submission(SubmissionStatus.PENDED, SubmissionStatus.ACCEPTED)
        assert machine.can_transition_submission(SubmissionStatus.ACCEPTED, SubmissionStatus.PAID)

    def test_illegal_paths(self, machine):
        assert not machine.can_transition_submission(SubmissionStatus.PAID, SubmissionStatus.DENIED)
        assert not machine.can_transition_submission(SubmissionStatus.ACCEPTED, SubmissionStatus.PENDING)
        assert not machine.can_transition_submission(SubmissionStatus.REJECTED, SubmissionStatus.ACCEPTED)

    @pytest.mark.parametrize(
        "status", [SubmissionStatus.PAID, SubmissionStatus.DENIED, SubmissionStatus.REJECTED]
    )
    def test_terminal(self, status):
        assert is_terminal_submission_status(status)
        assert not is_pending_submission_status(status)

    def test_pending_statuses(self):
        assert is_pending_submission_status(SubmissionStatus.ADDITIONAL_INFO_REQUESTED)
        assert not is_terminal_submission_status(SubmissionStatus.PENDED)


class TestStatusMapping:
    """Tests for clearinghouse to claim status mapping."""

    @pytest.mark.parametrize(
        "clearinghouse_status,claim_status",
        [
            (SubmissionStatus.ACCEPTED, ClaimStatus.ACCEPTED),
            (SubmissionStatus.REJECTED, ClaimStatus.REJECTED),
            (SubmissionStatus.PENDING, ClaimStatus.SUBMITTED),
            (SubmissionStatus.PENDED, ClaimStatus.SUBMITTED),
            (SubmissionStatus.ADDITIONAL_INFO_REQUESTED, ClaimStatus.SUBMITTED),
            (SubmissionStatus.PAID, ClaimStatus.PAID),
            (SubmissionStatus.DENIED, ClaimStatus.REJECTED),
        ],
    )
    def test_mapping(self, clearinghouse_status, claim_status):
        assert map_clearinghouse_status(clearinghouse_status) == claim_status

    def test_display_name(self):
        assert get_status_display_name(SubmissionStatus.PENDED) == "Pended"

    def test_singleton(self):
        assert get_claim_state_machine() is get_claim_state_machine()
