"""
Core Enumerations for Claims Submission.
Source: ASC X12 005010X222A1 (837P) and 005010X221A1 (835) implementation guides
Verified: 2026-10-19
"""

from enum import Enum


# =============================================================================
# Claim Lifecycle Enums
# =============================================================================


class ClaimStatus(str, Enum):
    """Claim-level lifecycle status.

    State Machine Transitions:
    DRAFT | READY -> SUBMITTED
    SUBMITTED -> ACCEPTED | REJECTED | PAID | DENIED
    ACCEPTED -> REJECTED | PAID | DENIED
    REJECTED | DENIED -> READY (explicit resubmission)
    """

    DRAFT = "draft"
    READY = "ready"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PAID = "paid"
    DENIED = "denied"


class SubmissionStatus(str, Enum):
    """Clearinghouse-reported status of one submission attempt."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    PENDING = "pending"
    PENDED = "pended"  # Payer requested more information
    ADDITIONAL_INFO_REQUESTED = "additional_info_requested"
    REJECTED = "rejected"
    PAID = "paid"
    DENIED = "denied"


class BatchStatus(str, Enum):
    """Aggregate status of a claim submission batch."""

    PENDING = "pending"  # Created, submissions not yet attempted
    SUBMITTED = "submitted"  # Every claim submitted
    PARTIAL = "partial"  # At least one claim failed


class HistorySource(str, Enum):
    """Origin of a status history entry."""

    CLEARINGHOUSE = "clearinghouse"
    ERA_835 = "835"
    USER = "user"


class RemittanceStatus(str, Enum):
    """Processing status of a stored remittance advice."""

    RECEIVED = "received"
    POSTED = "posted"


# =============================================================================
# Clearinghouse Configuration Enums
# =============================================================================


class ClearinghouseType(str, Enum):
    """Supported clearinghouse partners."""

    CHANGE_HEALTHCARE = "change_healthcare"
    AVAILITY = "availity"
    TRIZETTO = "trizetto"
    WAYSTAR = "waystar"
    CUSTOM = "custom"


class SubmissionMethod(str, Enum):
    """How claims reach the clearinghouse."""

    API = "api"
    SFTP = "sftp"


class SubmissionFormat(str, Enum):
    """Wire format sent to the clearinghouse."""

    X12_837P = "837P"


class TransportMode(str, Enum):
    """Clearinghouse transport implementation selected at startup."""

    SIMULATED = "simulated"
    HTTP = "http"
