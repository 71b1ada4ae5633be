"""
Claim Submission Service.

Provides:
- Claim submission to a clearinghouse (837P generation + transport)
- Clearinghouse status polling with claim status mapping
- Explicit resubmission of rejected/denied claims
- X12 preview without submission
- Pending claims and submission history queries

Source: ASC X12 005010X222A1; claim lifecycle in claim_state_machine
Verified: 2026-10-19

Each operation writes inside one transaction. Control numbers are issued
in their own short transaction; a submission that rolls back leaves a gap
in the sequence, never a duplicate.
"""

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.enums import ClaimStatus, HistorySource, SubmissionStatus
from src.gateways.base import GatewayError
from src.gateways.clearinghouse_gateway import (
    ClaimTransmission,
    ClearinghouseEndpoint,
    ClearinghouseTransport,
)
from src.models.base import utcnow
from src.models.claim import Claim
from src.models.clearinghouse import ClearinghouseConfig
from src.models.submission import ClaimSubmission
from src.schemas.claim_submission import (
    ClaimStatusReport,
    ClaimSubmissionResponse,
    PendingClaim,
    StatusHistoryEntry,
    SubmissionResult,
    X12Preview,
)
from src.services.claim_data_provider import ClaimDataProvider
from src.services.claim_state_machine import (
    ALREADY_SUBMITTED_STATUSES,
    PENDING_SUBMISSION_STATUSES,
    ClaimStateMachine,
    get_claim_state_machine,
    is_resubmittable,
    map_clearinghouse_status,
)
from src.services.clearinghouse_config_service import ClearinghouseConfigService
from src.services.edi.x12_837_generator import EncodedClaim, InterchangeParties, X12837Generator
from src.services.edi.x12_base import X12ValidationError
from src.services.status_history import StatusHistoryLog
from src.utils.errors import (
    ClaimAlreadySubmittedError,
    ClaimContentNotFoundError,
    ClaimNotFoundError,
    EncodingError,
    ResubmissionNotAllowedError,
    SubmissionNotFoundError,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

RESUBMISSION_NOTE = "Claim prepared for resubmission"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ClaimSubmissionService:
    """
    Claim submission lifecycle.

    Usage:
        service = ClaimSubmissionService(session_maker, generator, transport, provider)
        result = await service.submit(tenant_id, claim_id)
        report = await service.poll_status(tenant_id, claim_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: X12837Generator,
        transport: ClearinghouseTransport,
        data_provider: ClaimDataProvider,
        history: Optional[StatusHistoryLog] = None,
        state_machine: Optional[ClaimStateMachine] = None,
        line_separator: str = "\n",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._generator = generator
        self._transport = transport
        self._data_provider = data_provider
        self._history = history or StatusHistoryLog()
        self._state_machine = state_machine or get_claim_state_machine()
        self._line_separator = line_separator
        self._clock = clock or utcnow

    # =========================================================================
    # Submit
    # =========================================================================

    async def submit(
        self,
        tenant_id: UUID,
        claim_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
        submitted_by: Optional[str] = None,
        batch_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Submit a claim to a clearinghouse.

        Raises:
            ClaimNotFoundError: claim does not exist for the tenant
            ClaimAlreadySubmittedError: claim is submitted, accepted or paid
            ClearinghouseNotFoundError / NoDefaultClearinghouseError
            GatewayError: the transport failed; nothing is written
        """
        async with self._session_factory() as session:
            async with session.begin():
                claim = await self._load_claim(session, tenant_id, claim_id, for_update=True)
                if claim.status in ALREADY_SUBMITTED_STATUSES:
                    raise ClaimAlreadySubmittedError(claim.status.value)
                self._state_machine.require_transition(claim.status, ClaimStatus.SUBMITTED)

                config = await ClearinghouseConfigService(session).resolve_config(
                    tenant_id, clearinghouse_id
                )

                encoded = await self._try_encode(tenant_id, claim, config)
                x12_content = encoded.to_x12(self._line_separator) if encoded else None

                response = await self._transport.submit(
                    ClearinghouseEndpoint.from_config(config),
                    ClaimTransmission(
                        claim_id=claim.id,
                        claim_number=claim.claim_number,
                        total_charges=claim.total_charges,
                        x12_content=x12_content,
                        patient_control_number=encoded.claim_identifier if encoded else None,
                    ),
                )

                now = self._clock()
                millis = int(now.timestamp() * 1000)
                x12_claim_id = response.transaction_id or f"ICN-{millis}"

                submission = ClaimSubmission(
                    tenant_id=tenant_id,
                    claim_id=claim.id,
                    clearinghouse_id=config.id,
                    batch_id=batch_id,
                    submission_number=f"SUB-{millis}-{uuid4().hex[:8]}",
                    x12_claim_id=x12_claim_id,
                    patient_control_number=encoded.claim_identifier if encoded else None,
                    isa_control_number=encoded.control_numbers.isa if encoded else None,
                    gs_control_number=encoded.control_numbers.gs if encoded else None,
                    st_control_number=encoded.control_numbers.st if encoded else None,
                    x12_content=x12_content,
                    status=response.status,
                    status_code=response.acknowledgment_code,
                    status_message=response.message,
                    response_data=response.raw or None,
                    submitted_at=now,
                    submitted_by=submitted_by,
                )
                if response.status == SubmissionStatus.REJECTED:
                    submission.error_code = response.acknowledgment_code
                    submission.error_message = response.message
                session.add(submission)

                claim.status = ClaimStatus.SUBMITTED
                claim.submitted_at = now
                self._history.append(
                    session,
                    tenant_id=tenant_id,
                    claim_id=claim.id,
                    status=ClaimStatus.SUBMITTED,
                    source=HistorySource.CLEARINGHOUSE,
                    note=(
                        f"Submitted to {config.name} via {config.clearinghouse_type.value}. "
                        f"Control: {x12_claim_id}"
                    ),
                    changed_by=submitted_by,
                )
                await session.flush()

        logger.info(
            f"Submitted claim {claim.id} to clearinghouse {config.id}: "
            f"submission {submission.id} status={submission.status.value}"
        )
        return SubmissionResult(
            submission_id=submission.id,
            submission_number=submission.submission_number,
            claim_id=claim.id,
            clearinghouse_id=config.id,
            batch_id=batch_id,
            status=submission.status,
            claim_status=claim.status,
            x12_claim_id=x12_claim_id,
            control_number=encoded.control_numbers.isa_formatted if encoded else None,
            message=response.message,
            x12_generated=encoded is not None,
        )

    # =========================================================================
    # Poll
    # =========================================================================

    async def poll_status(
        self,
        tenant_id: UUID,
        claim_id: UUID,
        checked_by: Optional[str] = None,
    ) -> ClaimStatusReport:
        """
        Ask the clearinghouse for the latest status of a claim's last submission.

        Transport failures are logged and leave the status unchanged.

        Raises:
            ClaimNotFoundError, SubmissionNotFoundError
        """
        async with self._session_factory() as session:
            async with session.begin():
                claim = await self._load_claim(session, tenant_id, claim_id, for_update=True)
                submission = await self._latest_submission(session, tenant_id, claim.id)
                if submission is None:
                    raise SubmissionNotFoundError()

                config = await session.get(ClearinghouseConfig, submission.clearinghouse_id)
                try:
                    response = await self._transport.check_status(
                        ClearinghouseEndpoint.from_config(config),
                        submission.x12_claim_id,
                        submission.status,
                    )
                except GatewayError as e:
                    logger.warning(
                        f"Status check failed for submission {submission.id}, keeping "
                        f"{submission.status.value}: {e}"
                    )
                    response = None

                now = self._clock()
                submission_changed = False
                claim_changed = False

                if response is not None:
                    submission.last_status_check_at = now
                    if response.status != submission.status:
                        if self._state_machine.can_transition_submission(
                            submission.status, response.status
                        ):
                            logger.info(
                                f"Submission {submission.id}: "
                                f"{submission.status.value} -> {response.status.value}"
                            )
                            submission.status = response.status
                            submission.status_code = response.status_code
                            submission.status_message = response.message
                            submission.response_data = response.raw or submission.response_data
                            submission_changed = True
                        else:
                            logger.warning(
                                f"Ignoring illegal clearinghouse transition for submission "
                                f"{submission.id}: {submission.status.value} -> {response.status.value}"
                            )

                    target = map_clearinghouse_status(submission.status)
                    if target != claim.status:
                        if self._state_machine.can_transition(claim.status, target):
                            claim.status = target
                            claim_changed = True
                        else:
                            logger.warning(
                                f"Claim {claim.id} stays {claim.status.value}; "
                                f"{target.value} is not reachable"
                            )

                    if submission_changed or claim_changed:
                        self._history.append(
                            session,
                            tenant_id=tenant_id,
                            claim_id=claim.id,
                            status=claim.status,
                            status_code=submission.status_code,
                            source=HistorySource.CLEARINGHOUSE,
                            note=submission.status_message
                            or f"Clearinghouse status: {submission.status.value}",
                            changed_by=checked_by,
                        )

                await session.flush()
                history = await self._history.list_for_claim(session, tenant_id, claim.id)

        return ClaimStatusReport(
            claim_id=claim.id,
            submission_id=submission.id,
            status=submission.status,
            status_code=submission.status_code,
            status_message=submission.status_message,
            changed=submission_changed or claim_changed,
            claim_status=claim.status,
            last_updated=now,
            history=[StatusHistoryEntry.model_validate(entry) for entry in history],
        )

    # =========================================================================
    # Resubmit
    # =========================================================================

    async def resubmit(
        self,
        tenant_id: UUID,
        claim_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
        note: Optional[str] = None,
        resubmitted_by: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Move a rejected or denied claim back to ready, then submit it.

        The reset is committed on its own so the resubmission decision is
        recorded even if the following submission fails.
        """
        note = note or RESUBMISSION_NOTE

        async with self._session_factory() as session:
            async with session.begin():
                claim = await self._load_claim(session, tenant_id, claim_id, for_update=True)
                if not is_resubmittable(claim.status):
                    raise ResubmissionNotAllowedError(claim.status.value)
                self._state_machine.require_transition(claim.status, ClaimStatus.READY, note)
                await ClearinghouseConfigService(session).resolve_config(tenant_id, clearinghouse_id)

                previous = claim.status
                claim.status = ClaimStatus.READY
                self._history.append(
                    session,
                    tenant_id=tenant_id,
                    claim_id=claim.id,
                    status=ClaimStatus.READY,
                    source=HistorySource.USER,
                    note=note,
                    changed_by=resubmitted_by,
                )

        logger.info(f"Claim {claim_id} reset from {previous.value} to ready for resubmission")
        return await self.submit(
            tenant_id,
            claim_id,
            clearinghouse_id=clearinghouse_id,
            submitted_by=resubmitted_by,
        )

    # =========================================================================
    # X12 Preview
    # =========================================================================

    async def generate_x12(
        self,
        tenant_id: UUID,
        claim_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
    ) -> X12Preview:
        """
        Encode a claim's current content without submitting it.

        Consumes control numbers. Without an explicit clearinghouse the
        tenant default is used when one exists, else the tenant-wide sequence.
        """
        async with self._session_factory() as session:
            claim = await self._load_claim(session, tenant_id, claim_id)
            config_service = ClearinghouseConfigService(session)
            if clearinghouse_id is not None:
                config = await config_service.resolve_config(tenant_id, clearinghouse_id)
            else:
                config = await config_service.get_default_config(tenant_id)

        encoded = await self._encode(tenant_id, claim, config)
        numbers = encoded.control_numbers
        return X12Preview(
            claim_id=claim.id,
            x12_content=encoded.to_x12(self._line_separator),
            patient_control_number=encoded.claim_identifier,
            isa_control_number=numbers.isa,
            gs_control_number=numbers.gs,
            st_control_number=numbers.st,
            segment_count=encoded.transaction_segment_count,
            warnings=encoded.warnings,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_pending_claims(
        self,
        tenant_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[PendingClaim]:
        """Submissions still awaiting a decision, oldest first."""
        query = (
            select(ClaimSubmission, Claim, ClearinghouseConfig)
            .join(Claim, Claim.id == ClaimSubmission.claim_id)
            .join(ClearinghouseConfig, ClearinghouseConfig.id == ClaimSubmission.clearinghouse_id)
            .where(
                ClaimSubmission.tenant_id == tenant_id,
                ClaimSubmission.status.in_(PENDING_SUBMISSION_STATUSES),
            )
            .order_by(ClaimSubmission.submitted_at.asc())
            .limit(limit)
        )
        if clearinghouse_id is not None:
            query = query.where(ClaimSubmission.clearinghouse_id == clearinghouse_id)

        async with self._session_factory() as session:
            rows = (await session.execute(query)).all()

        now = self._clock()
        pending = []
        for submission, claim, config in rows:
            submitted_at = as_utc(submission.submitted_at)
            pending.append(
                PendingClaim(
                    submission_id=submission.id,
                    claim_id=claim.id,
                    claim_number=claim.claim_number,
                    patient_display_name=claim.patient_display_name,
                    clearinghouse_id=config.id,
                    clearinghouse_name=config.name,
                    status=submission.status,
                    submitted_at=submitted_at,
                    days_pending=(now - submitted_at).days,
                )
            )
        return pending

    async def get_submissions(
        self,
        tenant_id: UUID,
        claim_id: UUID,
    ) -> list[ClaimSubmissionResponse]:
        """All submission attempts of a claim, newest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ClaimSubmission)
                .where(
                    ClaimSubmission.tenant_id == tenant_id,
                    ClaimSubmission.claim_id == claim_id,
                )
                .order_by(ClaimSubmission.submitted_at.desc())
            )
            return [ClaimSubmissionResponse.model_validate(s) for s in result.scalars().all()]

    async def get_status_history(
        self,
        tenant_id: UUID,
        claim_id: UUID,
    ) -> list[StatusHistoryEntry]:
        async with self._session_factory() as session:
            entries = await self._history.list_for_claim(session, tenant_id, claim_id)
            return [StatusHistoryEntry.model_validate(e) for e in entries]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_claim(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        claim_id: UUID,
        for_update: bool = False,
    ) -> Claim:
        query = select(Claim).where(Claim.id == claim_id, Claim.tenant_id == tenant_id)
        if for_update:
            query = query.with_for_update()
        claim = (await session.execute(query)).scalar_one_or_none()
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    async def _latest_submission(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        claim_id: UUID,
    ) -> Optional[ClaimSubmission]:
        result = await session.execute(
            select(ClaimSubmission)
            .where(
                ClaimSubmission.tenant_id == tenant_id,
                ClaimSubmission.claim_id == claim_id,
            )
            .order_by(ClaimSubmission.submitted_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _encode(
        self,
        tenant_id: UUID,
        claim: Claim,
        config: Optional[ClearinghouseConfig],
    ) -> EncodedClaim:
        content = None
        if claim.encounter_id:
            content = await self._data_provider.fetch(tenant_id, claim.encounter_id)
        if content is None:
            raise ClaimContentNotFoundError(claim.encounter_id)

        parties = InterchangeParties(
            sender_id=(config.sender_id if config else None) or content.provider.npi,
            receiver_id=(config.receiver_id if config else None) or content.payer.payer_id,
        )
        return await self._generator.encode(
            tenant_id,
            content,
            clearinghouse_id=config.id if config else None,
            parties=parties,
        )

    async def _try_encode(
        self,
        tenant_id: UUID,
        claim: Claim,
        config: ClearinghouseConfig,
    ) -> Optional[EncodedClaim]:
        """Encode for submission; a failure is logged and yields no payload."""
        try:
            encoded = await self._encode(tenant_id, claim, config)
        except (EncodingError, X12ValidationError, ValueError) as e:
            logger.warning(f"X12 generation failed for claim {claim.id}, submitting without payload: {e}")
            return None
        for warning in encoded.warnings:
            logger.warning(f"Claim {claim.id}: {warning}")
        return encoded
