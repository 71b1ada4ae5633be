"""
Pydantic Schemas for Claim Submission Results.
Verified: 2026-10-19
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.core.enums import BatchStatus, ClaimStatus, HistorySource, SubmissionStatus


class StatusHistoryEntry(BaseModel):
    """One row of a claim's status history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    claim_id: UUID
    status: str
    status_code: Optional[str] = None
    note: Optional[str] = None
    source: HistorySource
    changed_by: Optional[str] = None
    changed_at: datetime


class SubmissionResult(BaseModel):
    """Outcome of a single claim submission."""

    submission_id: UUID
    submission_number: str
    claim_id: UUID
    clearinghouse_id: UUID
    batch_id: Optional[UUID] = None
    status: SubmissionStatus
    claim_status: ClaimStatus
    x12_claim_id: str
    control_number: Optional[str] = Field(None, description="ISA13 of the generated interchange")
    message: Optional[str] = None
    x12_generated: bool = False


class ClaimSubmissionResponse(BaseModel):
    """Stored submission attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    claim_id: UUID
    clearinghouse_id: UUID
    batch_id: Optional[UUID] = None
    submission_number: str
    x12_claim_id: str
    patient_control_number: Optional[str] = None
    isa_control_number: Optional[int] = None
    gs_control_number: Optional[int] = None
    st_control_number: Optional[int] = None
    status: SubmissionStatus
    status_code: Optional[str] = None
    status_message: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    retry_count: int = 0
    submitted_at: datetime
    last_status_check_at: Optional[datetime] = None


class ClaimStatusReport(BaseModel):
    """Result of a clearinghouse status poll."""

    claim_id: UUID
    submission_id: UUID
    status: SubmissionStatus
    status_code: Optional[str] = None
    status_message: Optional[str] = None
    changed: bool = False
    claim_status: ClaimStatus
    last_updated: datetime
    history: list[StatusHistoryEntry] = Field(default_factory=list)


class BatchError(BaseModel):
    """Per-claim failure inside a batch."""

    claim_id: UUID
    error: str


class BatchSubmissionResult(BaseModel):
    """Outcome of a batch submission."""

    batch_id: UUID
    batch_number: str
    status: BatchStatus
    total_claims: int
    submitted: int
    failed: int
    errors: list[BatchError] = Field(default_factory=list)
    submissions: list[SubmissionResult] = Field(default_factory=list)


class PendingClaim(BaseModel):
    """Submission still awaiting a clearinghouse or payer decision."""

    submission_id: UUID
    claim_id: UUID
    claim_number: str
    patient_display_name: Optional[str] = None
    clearinghouse_id: UUID
    clearinghouse_name: str
    status: SubmissionStatus
    submitted_at: datetime
    days_pending: int


class X12Preview(BaseModel):
    """Generated 837P without submission."""

    claim_id: UUID
    x12_content: str
    patient_control_number: str
    isa_control_number: int
    gs_control_number: int
    st_control_number: int
    segment_count: int
    warnings: list[str] = Field(default_factory=list)


class RemittanceResult(BaseModel):
    """Outcome of ingesting one remittance advice."""

    remittance_id: UUID
    remittance_number: str
    claim_id: Optional[UUID] = None
    claim_status: Optional[ClaimStatus] = None
    payment_amount: Decimal
    patient_responsibility: Decimal
    total_adjustments: Decimal
    payment_id: Optional[UUID] = None
    claim_updated: bool = False
