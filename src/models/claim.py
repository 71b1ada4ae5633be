"""
Claim Models for Claims Submission.
Source: ASC X12 005010X222A1 Loop 2300 (Claim Information)
Verified: 2026-10-19
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.core.enums import ClaimStatus, HistorySource
from src.models.base import Base, TimeStampedModel, UUIDModel, string_enum, utcnow


class Claim(Base, UUIDModel, TimeStampedModel):
    """
    The parent claim as seen by the submission subsystem.

    Owns the claim-level lifecycle status and the financial totals that
    remittance processing updates. Clinical content lives with the
    encounter and is fetched through the claim data provider.
    """

    __tablename__ = "claims"

    # Tenant
    tenant_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="Owning tenant ID",
    )

    # Identification
    claim_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="Human-readable claim number (e.g., CLM-2026-000001)",
    )
    encounter_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Encounter or superbill reference used to fetch claim content",
    )
    patient_display_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )

    # Status
    status: Mapped[ClaimStatus] = mapped_column(
        string_enum(ClaimStatus),
        default=ClaimStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Financials
    total_charges: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    patient_responsibility: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )

    service_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("idx_claims_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Claim {self.claim_number} ({self.status.value})>"


class ClaimStatusHistory(Base, UUIDModel):
    """
    Status change history for a claim.

    Append-only: rows are never updated or deleted.
    """

    __tablename__ = "claim_status_history"

    tenant_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Associated claim ID",
    )

    # Status change
    status: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="Claim or clearinghouse status recorded at this point",
    )
    status_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[HistorySource] = mapped_column(
        string_enum(HistorySource),
        nullable=False,
    )

    # Actor
    changed_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="User or system actor that caused the change",
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ClaimStatusHistory {self.claim_id} -> {self.status}>"


class ClaimPayment(Base, UUIDModel, TimeStampedModel):
    """Payment transaction posted against a claim."""

    __tablename__ = "claim_payments"

    tenant_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    claim_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    remittance_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("remittance_advices.id", ondelete="SET NULL"),
        nullable=True,
    )

    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payer: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    posted_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
