"""
Claim Submission State Machine.

Provides:
- Valid claim-level status transitions
- Valid clearinghouse (submission) status transitions
- Clearinghouse status to claim status mapping
- Transition validation

Verified: 2026-10-19

Claim State Diagram:
    DRAFT | READY -> SUBMITTED
    SUBMITTED -> ACCEPTED | REJECTED | PAID | DENIED
    ACCEPTED -> REJECTED | PAID | DENIED
    REJECTED -> READY | SUBMITTED | PAID | DENIED
    DENIED -> READY | SUBMITTED | PAID

Submission State Diagram:
    SUBMITTED -> ACCEPTED | PENDING | REJECTED
    PENDING -> ACCEPTED | PENDED | ADDITIONAL_INFO_REQUESTED | PAID | DENIED
    PENDED | ADDITIONAL_INFO_REQUESTED -> ACCEPTED | DENIED
    ACCEPTED -> PAID | DENIED
    PAID, DENIED, REJECTED are terminal

Staying in the same status is always allowed and is not a transition.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.core.enums import ClaimStatus, SubmissionStatus
from src.utils.errors import InvalidStatusTransitionError

logger = logging.getLogger(__name__)


class TransitionEvent(str, Enum):
    """Events that trigger claim status transitions."""

    SUBMIT = "submit"
    CLEARINGHOUSE_UPDATE = "clearinghouse_update"
    REMITTANCE = "remittance"
    PREPARE_RESUBMISSION = "prepare_resubmission"


@dataclass(frozen=True)
class Transition:
    """Represents a valid claim status transition."""

    from_status: ClaimStatus
    to_status: ClaimStatus
    event: TransitionEvent
    requires_note: bool = False


@dataclass
class TransitionResult:
    """Result of a transition check."""

    success: bool
    from_status: ClaimStatus
    to_status: Optional[ClaimStatus] = None
    error: Optional[str] = None
    transition: Optional[Transition] = None

    @property
    def is_noop(self) -> bool:
        return self.success and self.from_status == self.to_status and self.transition is None


# =============================================================================
# Valid Transitions Definition
# =============================================================================


VALID_TRANSITIONS: list[Transition] = [
    # From DRAFT / READY
    Transition(ClaimStatus.DRAFT, ClaimStatus.SUBMITTED, TransitionEvent.SUBMIT),
    Transition(ClaimStatus.READY, ClaimStatus.SUBMITTED, TransitionEvent.SUBMIT),

    # From SUBMITTED
    Transition(ClaimStatus.SUBMITTED, ClaimStatus.ACCEPTED, TransitionEvent.CLEARINGHOUSE_UPDATE),
    Transition(ClaimStatus.SUBMITTED, ClaimStatus.REJECTED, TransitionEvent.CLEARINGHOUSE_UPDATE),
    Transition(ClaimStatus.SUBMITTED, ClaimStatus.PAID, TransitionEvent.REMITTANCE),
    Transition(ClaimStatus.SUBMITTED, ClaimStatus.DENIED, TransitionEvent.REMITTANCE),

    # From ACCEPTED
    Transition(ClaimStatus.ACCEPTED, ClaimStatus.REJECTED, TransitionEvent.CLEARINGHOUSE_UPDATE),
    Transition(ClaimStatus.ACCEPTED, ClaimStatus.PAID, TransitionEvent.REMITTANCE),
    Transition(ClaimStatus.ACCEPTED, ClaimStatus.DENIED, TransitionEvent.REMITTANCE),

    # From REJECTED
    Transition(
        ClaimStatus.REJECTED,
        ClaimStatus.READY,
        TransitionEvent.PREPARE_RESUBMISSION,
        requires_note=True,
    ),
    Transition(ClaimStatus.REJECTED, ClaimStatus.SUBMITTED, TransitionEvent.SUBMIT),
    Transition(ClaimStatus.REJECTED, ClaimStatus.PAID, TransitionEvent.REMITTANCE),
    Transition(ClaimStatus.REJECTED, ClaimStatus.DENIED, TransitionEvent.REMITTANCE),

    # From DENIED
    Transition(
        ClaimStatus.DENIED,
        ClaimStatus.READY,
        TransitionEvent.PREPARE_RESUBMISSION,
        requires_note=True,
    ),
    Transition(ClaimStatus.DENIED, ClaimStatus.SUBMITTED, TransitionEvent.SUBMIT),
    Transition(ClaimStatus.DENIED, ClaimStatus.PAID, TransitionEvent.REMITTANCE),
]


SUBMISSION_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.DRAFT: frozenset({SubmissionStatus.SUBMITTED}),
    SubmissionStatus.SUBMITTED: frozenset({
        SubmissionStatus.ACCEPTED,
        SubmissionStatus.PENDING,
        SubmissionStatus.REJECTED,
    }),
    SubmissionStatus.PENDING: frozenset({
        SubmissionStatus.ACCEPTED,
        SubmissionStatus.PENDED,
        SubmissionStatus.ADDITIONAL_INFO_REQUESTED,
        SubmissionStatus.PAID,
        SubmissionStatus.DENIED,
    }),
    SubmissionStatus.PENDED: frozenset({SubmissionStatus.ACCEPTED, SubmissionStatus.DENIED}),
    SubmissionStatus.ADDITIONAL_INFO_REQUESTED: frozenset({
        SubmissionStatus.ACCEPTED,
        SubmissionStatus.DENIED,
    }),
    SubmissionStatus.ACCEPTED: frozenset({SubmissionStatus.PAID, SubmissionStatus.DENIED}),
    SubmissionStatus.PAID: frozenset(),
    SubmissionStatus.DENIED: frozenset(),
    SubmissionStatus.REJECTED: frozenset(),
}


# Clearinghouse status -> claim status
CLEARINGHOUSE_TO_CLAIM_STATUS: dict[SubmissionStatus, ClaimStatus] = {
    SubmissionStatus.DRAFT: ClaimStatus.SUBMITTED,
    SubmissionStatus.SUBMITTED: ClaimStatus.SUBMITTED,
    SubmissionStatus.ACCEPTED: ClaimStatus.ACCEPTED,
    SubmissionStatus.REJECTED: ClaimStatus.REJECTED,
    SubmissionStatus.PENDING: ClaimStatus.SUBMITTED,
    SubmissionStatus.PENDED: ClaimStatus.SUBMITTED,
    SubmissionStatus.ADDITIONAL_INFO_REQUESTED: ClaimStatus.SUBMITTED,
    SubmissionStatus.PAID: ClaimStatus.PAID,
    SubmissionStatus.DENIED: ClaimStatus.REJECTED,
}

# Claim statuses that block a new submission
ALREADY_SUBMITTED_STATUSES = frozenset({
    ClaimStatus.SUBMITTED,
    ClaimStatus.ACCEPTED,
    ClaimStatus.PAID,
})

RESUBMITTABLE_STATUSES = frozenset({ClaimStatus.REJECTED, ClaimStatus.DENIED})

# Submission statuses still awaiting a clearinghouse or payer decision
PENDING_SUBMISSION_STATUSES = frozenset({
    SubmissionStatus.SUBMITTED,
    SubmissionStatus.PENDING,
    SubmissionStatus.PENDED,
    SubmissionStatus.ADDITIONAL_INFO_REQUESTED,
})


# =============================================================================
# State Machine
# =============================================================================


class ClaimStateMachine:
    """
    State machine for claim and submission status transitions.

    Manages valid status transitions and validates transition requests.
    """

    def __init__(self):
        """Initialize state machine with transition map."""
        self._transitions: dict[tuple[ClaimStatus, ClaimStatus], Transition] = {}
        self._from_status_map: dict[ClaimStatus, list[Transition]] = {}

        self._build_transition_maps()

    def _build_transition_maps(self) -> None:
        """Build lookup maps for transitions."""
        for transition in VALID_TRANSITIONS:
            self._transitions[(transition.from_status, transition.to_status)] = transition
            self._from_status_map.setdefault(transition.from_status, []).append(transition)

    def get_valid_transitions(self, status: ClaimStatus) -> list[Transition]:
        """Get all valid transitions from a given status."""
        return self._from_status_map.get(status, [])

    def get_next_statuses(self, status: ClaimStatus) -> list[ClaimStatus]:
        """Get all possible next statuses from current status."""
        return [t.to_status for t in self.get_valid_transitions(status)]

    def can_transition(self, from_status: ClaimStatus, to_status: ClaimStatus) -> bool:
        """Check if moving a claim from one status to another is allowed."""
        return from_status == to_status or (from_status, to_status) in self._transitions

    def validate_transition(
        self,
        from_status: ClaimStatus,
        to_status: ClaimStatus,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """
        Validate a claim status change.

        Returns:
            TransitionResult indicating success/failure
        """
        if from_status == to_status:
            return TransitionResult(success=True, from_status=from_status, to_status=to_status)

        transition = self._transitions.get((from_status, to_status))
        if not transition:
            return TransitionResult(
                success=False,
                from_status=from_status,
                error=f"Invalid transition: {from_status.value} -> {to_status.value}",
            )

        if transition.requires_note and not note:
            return TransitionResult(
                success=False,
                from_status=from_status,
                error="A note is required for this transition",
            )

        return TransitionResult(
            success=True,
            from_status=from_status,
            to_status=to_status,
            transition=transition,
        )

    def require_transition(
        self,
        from_status: ClaimStatus,
        to_status: ClaimStatus,
        note: Optional[str] = None,
    ) -> TransitionResult:
        """Validate a claim status change, raising InvalidStatusTransitionError if refused."""
        result = self.validate_transition(from_status, to_status, note)
        if not result.success:
            raise InvalidStatusTransitionError(from_status.value, to_status.value)
        return result

    def can_transition_submission(
        self,
        from_status: SubmissionStatus,
        to_status: SubmissionStatus,
    ) -> bool:
        """Check if a clearinghouse status change is allowed."""
        if from_status == to_status:
            return True
        return to_status in SUBMISSION_TRANSITIONS.get(from_status, frozenset())


# =============================================================================
# Status Helpers
# =============================================================================


def map_clearinghouse_status(status: SubmissionStatus) -> ClaimStatus:
    """Map a clearinghouse status to the claim-level status."""
    return CLEARINGHOUSE_TO_CLAIM_STATUS.get(status, ClaimStatus.SUBMITTED)


def is_terminal_submission_status(status: SubmissionStatus) -> bool:
    """Check if a submission status accepts no further changes."""
    return not SUBMISSION_TRANSITIONS.get(status)


def is_pending_submission_status(status: SubmissionStatus) -> bool:
    """Check if a submission still awaits a decision."""
    return status in PENDING_SUBMISSION_STATUSES


def is_resubmittable(status: ClaimStatus) -> bool:
    """Check if a claim may be explicitly resubmitted."""
    return status in RESUBMITTABLE_STATUSES


def get_status_display_name(status: SubmissionStatus) -> str:
    """Get human-readable clearinghouse status name."""
    display_names = {
        SubmissionStatus.DRAFT: "Draft",
        SubmissionStatus.SUBMITTED: "Submitted",
        SubmissionStatus.ACCEPTED: "Accepted by Clearinghouse",
        SubmissionStatus.PENDING: "Pending Review",
        SubmissionStatus.PENDED: "Pended",
        SubmissionStatus.ADDITIONAL_INFO_REQUESTED: "Additional Information Requested",
        SubmissionStatus.REJECTED: "Rejected",
        SubmissionStatus.PAID: "Paid",
        SubmissionStatus.DENIED: "Denied",
    }
    return display_names.get(status, status.value)


# =============================================================================
# Singleton Instance
# =============================================================================


_state_machine: Optional[ClaimStateMachine] = None


def get_claim_state_machine() -> ClaimStateMachine:
    """Get singleton state machine instance."""
    global _state_machine
    if _state_machine is None:
        _state_machine = ClaimStateMachine()
    return _state_machine
