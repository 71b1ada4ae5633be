"""
Claim Submission Models.
Source: ASC X12 005010X222A1 envelope segments (ISA13, GS06, ST02)
Verified: 2026-10-19
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.enums import BatchStatus, SubmissionStatus
from src.models.base import Base, JSONType, TimeStampedModel, UUIDModel, string_enum, utcnow

if TYPE_CHECKING:
    from src.models.clearinghouse import ClearinghouseConfig


# =============================================================================
# Claim Submission Model
# =============================================================================


class ClaimSubmission(Base, UUIDModel, TimeStampedModel):
    """
    One submission attempt of a claim to a clearinghouse.

    Resubmission creates a new row. Only the status-related columns are
    updated after insert.
    """

    __tablename__ = "claim_submissions"

    tenant_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clearinghouse_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clearinghouse_configs.id"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claim_submission_batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Identification
    submission_number: Mapped[str] = mapped_column(String(50), nullable=False)
    x12_claim_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Identifier used with the clearinghouse for status checks",
    )
    patient_control_number: Mapped[Optional[str]] = mapped_column(
        String(38),
        nullable=True,
        index=True,
        comment="CLM01 as sent in the 837P; echoed back in 835 CLP01",
    )

    # Control numbers used
    isa_control_number: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    gs_control_number: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    st_control_number: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    x12_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status
    status: Mapped[SubmissionStatus] = mapped_column(
        string_enum(SubmissionStatus),
        nullable=False,
        index=True,
    )
    status_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Transport response
    response_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    error_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    last_status_check_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    submitted_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    clearinghouse: Mapped["ClearinghouseConfig"] = relationship(
        "ClearinghouseConfig",
        back_populates="submissions",
    )

    __table_args__ = (
        Index("idx_claim_submissions_claim_submitted", "claim_id", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<ClaimSubmission {self.submission_number} ({self.status.value})>"


# =============================================================================
# Claim Submission Batch Model
# =============================================================================


class ClaimSubmissionBatch(Base, UUIDModel, TimeStampedModel):
    """
    Group of claims submitted together.

    Created before any submission is attempted; counts and status are
    written once every attempt has finished.
    """

    __tablename__ = "claim_submission_batches"

    tenant_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    clearinghouse_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clearinghouse_configs.id"),
        nullable=False,
    )

    batch_number: Mapped[str] = mapped_column(String(50), nullable=False)
    claim_ids: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)

    total_claims: Mapped[int] = mapped_column(Integer, nullable=False)
    submitted_claims: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_claims: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)

    status: Mapped[BatchStatus] = mapped_column(
        string_enum(BatchStatus),
        default=BatchStatus.PENDING,
        nullable=False,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<ClaimSubmissionBatch {self.batch_number} ({self.status.value})>"


# =============================================================================
# X12 Control Number Sequence Model
# =============================================================================


class X12ControlNumber(Base, UUIDModel, TimeStampedModel):
    """
    Interchange, group and transaction control number counters.

    One row per (tenant, partner_key). partner_key is the clearinghouse id
    as text, or "*" for the tenant-wide sequence.
    """

    __tablename__ = "x12_control_numbers"

    tenant_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    partner_key: Mapped[str] = mapped_column(String(64), nullable=False)
    clearinghouse_id: Mapped[Optional[UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Counters
    isa_control_number: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    gs_control_number: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    st_control_number: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    # Constraints
    __table_args__ = (
        Index(
            "uq_x12_control_numbers",
            "tenant_id",
            "partner_key",
            unique=True,
        ),
    )
