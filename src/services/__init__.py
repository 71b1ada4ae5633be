"""
Services Layer for Claims Submission.

Exports claim submission, batch submission, remittance, clearinghouse
configuration and status history services.
"""

from src.services.claim_data_provider import (
    ClaimDataProvider,
    InMemoryClaimDataProvider,
)
from src.services.claim_state_machine import (
    ClaimStateMachine,
    TransitionEvent,
    get_claim_state_machine,
    map_clearinghouse_status,
)
from src.services.status_history import StatusHistoryLog
from src.services.clearinghouse_config_service import ClearinghouseConfigService
from src.services.claim_submission_service import ClaimSubmissionService
from src.services.batch_submission_service import BatchSubmissionService
from src.services.remittance_service import RemittanceService
from src.services.factory import ClaimsSubmissionServices, build_services

__all__ = [
    # Collaborators
    "ClaimDataProvider",
    "InMemoryClaimDataProvider",
    # State machine
    "ClaimStateMachine",
    "TransitionEvent",
    "get_claim_state_machine",
    "map_clearinghouse_status",
    # Services
    "StatusHistoryLog",
    "ClearinghouseConfigService",
    "ClaimSubmissionService",
    "BatchSubmissionService",
    "RemittanceService",
    # Wiring
    "ClaimsSubmissionServices",
    "build_services",
]
