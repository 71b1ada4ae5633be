"""
Remittance Service.

Provides:
- 835 ingestion (parse + process)
- Claim resolution from CLP01 (claim id, then patient control number)
- Claim financial update, payment posting and history entry

Source: ASC X12 005010X221A1 (835 Health Care Claim Payment/Advice)
Verified: 2026-10-19
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.enums import ClaimStatus, HistorySource, RemittanceStatus
from src.models.base import utcnow
from src.models.claim import Claim, ClaimPayment
from src.models.remittance import Remittance
from src.models.submission import ClaimSubmission
from src.schemas.claim_submission import RemittanceResult
from src.services.claim_state_machine import ClaimStateMachine, get_claim_state_machine
from src.services.edi.x12_835_parser import RemittanceAdvice, X12835Parser
from src.services.status_history import StatusHistoryLog
from src.utils.logging import get_logger

logger = get_logger(__name__)

ERA_PAYMENT_METHOD = "ERA"
ERA_PAYER = "Insurance"


class RemittanceService:
    """
    Applies remittance advices to claims.

    Usage:
        service = RemittanceService(session_maker)
        result = await service.ingest(tenant_id, era_text)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        parser: Optional[X12835Parser] = None,
        history: Optional[StatusHistoryLog] = None,
        state_machine: Optional[ClaimStateMachine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._parser = parser or X12835Parser()
        self._history = history or StatusHistoryLog()
        self._state_machine = state_machine or get_claim_state_machine()
        self._clock = clock or utcnow

    async def ingest(
        self,
        tenant_id: UUID,
        content: str,
        processed_by: Optional[str] = None,
    ) -> RemittanceResult:
        """Parse raw 835 text and process it."""
        advice = self._parser.parse(content)
        return await self.process(tenant_id, advice, processed_by=processed_by, raw_content=content)

    async def process(
        self,
        tenant_id: UUID,
        advice: RemittanceAdvice,
        processed_by: Optional[str] = None,
        raw_content: Optional[str] = None,
    ) -> RemittanceResult:
        """
        Persist a remittance advice and apply it to its claim.

        With a resolvable claim reference the claim becomes paid (payment
        amount > 0, one payment posted) or denied (no payment). A claim that
        is already paid is never posted again. The advice is stored in every
        case.
        """
        async with self._session_factory() as session:
            async with session.begin():
                claim = None
                if advice.has_claim_reference:
                    claim = await self._resolve_claim(session, tenant_id, advice.claim_reference)
                    if claim is None:
                        logger.warning(
                            f"Remittance {advice.remittance_number}: claim reference "
                            f"{advice.claim_reference} not found, storing unlinked"
                        )

                now = self._clock()
                remittance = Remittance(
                    tenant_id=tenant_id,
                    claim_id=claim.id if claim else None,
                    remittance_number=advice.remittance_number,
                    claim_reference=advice.claim_reference or None,
                    payment_amount=advice.payment_amount,
                    patient_responsibility=advice.patient_responsibility,
                    adjustment_codes=[adj.to_dict() for adj in advice.adjustments],
                    service_lines=[line.to_dict() for line in advice.service_lines],
                    raw_content=raw_content,
                    status=RemittanceStatus.RECEIVED,
                    received_at=now,
                    processed_by=processed_by,
                )
                session.add(remittance)
                await session.flush()

                payment = None
                claim_updated = False
                if claim is not None:
                    target = ClaimStatus.PAID if advice.payment_amount > 0 else ClaimStatus.DENIED
                    if claim.status == ClaimStatus.PAID:
                        logger.warning(
                            f"Remittance {advice.remittance_number}: claim {claim.id} "
                            f"already paid, advice stored without posting"
                        )
                    elif self._state_machine.can_transition(claim.status, target):
                        payment = self._apply(
                            session, tenant_id, claim, remittance, advice, target, now, processed_by
                        )
                        claim_updated = True
                    else:
                        logger.warning(
                            f"Remittance {advice.remittance_number}: claim {claim.id} "
                            f"cannot move {claim.status.value} -> {target.value}, left unchanged"
                        )
                await session.flush()

        logger.info(
            f"Processed remittance {remittance.id} ({advice.remittance_number or 'no TRN'}): "
            f"claim={remittance.claim_id} payment={advice.payment_amount}"
        )
        return RemittanceResult(
            remittance_id=remittance.id,
            remittance_number=remittance.remittance_number,
            claim_id=remittance.claim_id,
            claim_status=claim.status if claim is not None else None,
            payment_amount=advice.payment_amount,
            patient_responsibility=advice.patient_responsibility,
            total_adjustments=advice.total_adjustments,
            payment_id=payment.id if payment is not None else None,
            claim_updated=claim_updated,
        )

    def _apply(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        claim: Claim,
        remittance: Remittance,
        advice: RemittanceAdvice,
        target: ClaimStatus,
        now: datetime,
        processed_by: Optional[str],
    ) -> Optional[ClaimPayment]:
        claim.status = target
        claim.paid_amount = advice.payment_amount
        claim.patient_responsibility = advice.patient_responsibility
        remittance.status = RemittanceStatus.POSTED

        payment = None
        if advice.payment_amount > Decimal("0"):
            payment = ClaimPayment(
                tenant_id=tenant_id,
                claim_id=claim.id,
                remittance_id=remittance.id,
                payment_date=now.date(),
                amount=advice.payment_amount,
                payment_method=ERA_PAYMENT_METHOD,
                payer=ERA_PAYER,
                reference_number=advice.remittance_number or None,
                posted_by=processed_by,
            )
            session.add(payment)

        self._history.append(
            session,
            tenant_id=tenant_id,
            claim_id=claim.id,
            status=target,
            source=HistorySource.ERA_835,
            note=f"ERA {advice.remittance_number}: Payment ${advice.payment_amount:.2f}",
            changed_by=processed_by,
        )
        return payment

    async def _resolve_claim(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        reference: str,
    ) -> Optional[Claim]:
        """CLP01 as a claim id first, then as a submitted patient control number."""
        try:
            claim_id: Optional[UUID] = UUID(reference)
        except ValueError:
            claim_id = None

        if claim_id is not None:
            claim = (
                await session.execute(
                    select(Claim).where(Claim.id == claim_id, Claim.tenant_id == tenant_id)
                )
            ).scalar_one_or_none()
            if claim is not None:
                return claim

        result = await session.execute(
            select(Claim)
            .join(ClaimSubmission, ClaimSubmission.claim_id == Claim.id)
            .where(
                ClaimSubmission.tenant_id == tenant_id,
                ClaimSubmission.patient_control_number == reference,
            )
            .order_by(ClaimSubmission.submitted_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
