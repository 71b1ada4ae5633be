"""
Pydantic Schemas for Claims Submission.

This module exports the configuration input schemas and the result
schemas returned by the submission services.
"""

from src.schemas.clearinghouse import (
    ClearinghouseConfigCreate,
    ClearinghouseConfigUpdate,
    ClearinghouseConfigResponse,
)
from src.schemas.claim_submission import (
    StatusHistoryEntry,
    SubmissionResult,
    ClaimSubmissionResponse,
    ClaimStatusReport,
    BatchError,
    BatchSubmissionResult,
    PendingClaim,
    X12Preview,
    RemittanceResult,
)

__all__ = [
    # Clearinghouse configuration
    "ClearinghouseConfigCreate",
    "ClearinghouseConfigUpdate",
    "ClearinghouseConfigResponse",
    # Submission results
    "StatusHistoryEntry",
    "SubmissionResult",
    "ClaimSubmissionResponse",
    "ClaimStatusReport",
    "BatchError",
    "BatchSubmissionResult",
    "PendingClaim",
    "X12Preview",
    "RemittanceResult",
]
