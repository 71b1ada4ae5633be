"""
Remittance Advice Model.
Source: ASC X12 005010X221A1 (835 Health Care Claim Payment/Advice)
Verified: 2026-10-19
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.core.enums import RemittanceStatus
from src.models.base import Base, JSONType, TimeStampedModel, UUIDModel, string_enum, utcnow


class Remittance(Base, UUIDModel, TimeStampedModel):
    """
    A stored 835 remittance advice.

    Adjustment codes and service lines are kept as JSON in the order they
    appeared in the source transaction.
    """

    __tablename__ = "remittance_advices"

    tenant_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    claim_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("claims.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    remittance_number: Mapped[str] = mapped_column(String(50), nullable=False)
    claim_reference: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="CLP01 exactly as received",
    )

    payment_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    patient_responsibility: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    adjustment_codes: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    service_lines: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)

    raw_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[RemittanceStatus] = mapped_column(
        string_enum(RemittanceStatus),
        default=RemittanceStatus.RECEIVED,
        nullable=False,
    )
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    processed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Remittance {self.remittance_number}>"
