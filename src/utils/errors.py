"""
Custom Exceptions
Claims submission error taxonomy
Verified: 2026-10-19

Configuration and precondition errors are raised before any write, so the
enclosing transaction rolls back with no state change. Transport errors
live with the gateway in src.gateways.base.
"""

from typing import Optional
from uuid import UUID


class ClaimsSubmissionError(Exception):
    """Base class for claims submission errors"""

    def __init__(self, detail: str = "Claims submission error"):
        super().__init__(detail)
        self.detail = detail


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ClaimsSubmissionError):
    """Raised when clearinghouse configuration is missing or unusable"""


class ClearinghouseNotFoundError(ConfigurationError):
    """Raised when the requested clearinghouse is missing or inactive"""

    def __init__(self, clearinghouse_id: Optional[UUID] = None):
        super().__init__("Clearinghouse configuration not found or inactive")
        self.clearinghouse_id = clearinghouse_id


class NoDefaultClearinghouseError(ConfigurationError):
    """Raised when no clearinghouse is given and the tenant has no default"""

    def __init__(self) -> None:
        super().__init__("No clearinghouse specified and no default configured")


class BatchingDisabledError(ConfigurationError):
    """Raised when batch submission is requested for a clearinghouse that disallows it"""

    def __init__(self, clearinghouse_name: str):
        super().__init__(f"Batch submission is disabled for clearinghouse {clearinghouse_name}")
        self.clearinghouse_name = clearinghouse_name


# =============================================================================
# Precondition Errors
# =============================================================================


class PreconditionError(ClaimsSubmissionError):
    """Raised when an operation is not allowed in the current state"""


class ClaimNotFoundError(PreconditionError):
    """Raised when the claim does not exist for the tenant"""

    def __init__(self, claim_id: UUID):
        super().__init__("Claim not found")
        self.claim_id = claim_id


class ClaimAlreadySubmittedError(PreconditionError):
    """Raised when submitting a claim that is submitted, accepted or paid"""

    def __init__(self, status: str):
        super().__init__(f"Claim already {status}")
        self.status = status


class ResubmissionNotAllowedError(PreconditionError):
    """Raised when resubmitting a claim that is not rejected or denied"""

    def __init__(self, status: str):
        super().__init__(f"Cannot resubmit claim with status: {status}")
        self.status = status


class SubmissionNotFoundError(PreconditionError):
    """Raised when a claim has never been submitted"""

    def __init__(self) -> None:
        super().__init__("No submission found for this claim")


class BatchSizeExceededError(PreconditionError):
    """Raised when a batch holds more claims than the clearinghouse accepts"""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"Batch of {size} claims exceeds maximum batch size {max_size}")
        self.size = size
        self.max_size = max_size


class InvalidStatusTransitionError(PreconditionError):
    """Raised when a status change is not in the transition table"""

    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid status transition: {current} -> {target}")
        self.current = current
        self.target = target


# =============================================================================
# Encoding Errors
# =============================================================================


class EncodingError(ClaimsSubmissionError):
    """Raised when an X12 transaction cannot be produced"""


class ClaimContentNotFoundError(EncodingError):
    """Raised when the claim data provider has no content for the claim"""

    def __init__(self, reference: Optional[str]):
        super().__init__(f"No billing content available for encounter {reference}")
        self.reference = reference
