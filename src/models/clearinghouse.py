"""
Clearinghouse Configuration Model.
Source: ASC X12 005010X222A1 interchange envelope (ISA06/ISA08 sender and receiver)
Verified: 2026-10-19
"""

from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.enums import ClearinghouseType, SubmissionFormat, SubmissionMethod
from src.models.base import Base, JSONType, TimeStampedModel, UUIDModel, string_enum

if TYPE_CHECKING:
    from src.models.submission import ClaimSubmission


class ClearinghouseConfig(Base, UUIDModel, TimeStampedModel):
    """
    Clearinghouse partner configuration for a tenant.

    At most one active configuration per tenant carries is_default; the
    config service clears other defaults whenever one is set.
    """

    __tablename__ = "clearinghouse_configs"

    # Tenant
    tenant_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="Owning tenant ID",
    )

    # Partner identity
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name, e.g. 'Availity Production'",
    )
    clearinghouse_type: Mapped[ClearinghouseType] = mapped_column(
        string_enum(ClearinghouseType),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Connectivity
    api_endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Bearer credential for API submission",
    )
    sftp_host: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sftp_port: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sftp_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Interchange identifiers
    sender_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        nullable=True,
        comment="ISA06 interchange sender ID",
    )
    receiver_id: Mapped[Optional[str]] = mapped_column(
        String(15),
        nullable=True,
        comment="ISA08 interchange receiver ID",
    )
    trading_partner_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Submission settings
    submission_format: Mapped[SubmissionFormat] = mapped_column(
        string_enum(SubmissionFormat),
        default=SubmissionFormat.X12_837P,
        nullable=False,
    )
    submission_method: Mapped[SubmissionMethod] = mapped_column(
        string_enum(SubmissionMethod),
        default=SubmissionMethod.API,
        nullable=False,
    )

    # Batch policy
    batch_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    max_batch_size: Mapped[int] = mapped_column(Integer, default=100, nullable=False)

    settings: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        default=dict,
        nullable=False,
        comment="Partner-specific options",
    )

    # Relationships
    submissions: Mapped[list["ClaimSubmission"]] = relationship(
        "ClaimSubmission",
        back_populates="clearinghouse",
    )

    __table_args__ = (
        Index("idx_clearinghouse_configs_tenant_default", "tenant_id", "is_default"),
    )

    def __repr__(self) -> str:
        return f"<ClearinghouseConfig {self.name} ({self.clearinghouse_type.value})>"
