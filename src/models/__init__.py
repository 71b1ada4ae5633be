"""
SQLAlchemy Models for Claims Submission.

This module exports all database models so that Base.metadata is complete
once the package is imported.
"""

from src.models.base import Base, TimeStampedModel, UUIDModel
from src.models.claim import Claim, ClaimPayment, ClaimStatusHistory
from src.models.clearinghouse import ClearinghouseConfig
from src.models.remittance import Remittance
from src.models.submission import (
    ClaimSubmission,
    ClaimSubmissionBatch,
    X12ControlNumber,
)

__all__ = [
    # Base
    "Base",
    "TimeStampedModel",
    "UUIDModel",
    # Claims
    "Claim",
    "ClaimPayment",
    "ClaimStatusHistory",
    # Clearinghouse
    "ClearinghouseConfig",
    "ClaimSubmission",
    "ClaimSubmissionBatch",
    "X12ControlNumber",
    # Remittance
    "Remittance",
]
