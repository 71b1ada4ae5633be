"""
Batch Submission Service.

Submits many claims under one batch record. The batch row is committed
before any claim is attempted, every claim is attempted independently,
and per-claim failures are collected instead of aborting the batch.
Clearinghouse submission cannot be rolled back, so a partially
successful batch is a normal outcome (status "partial").

Verified: 2026-10-19
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.enums import BatchStatus
from src.models.base import utcnow
from src.models.submission import ClaimSubmissionBatch
from src.schemas.claim_submission import BatchError, BatchSubmissionResult, SubmissionResult
from src.services.claim_submission_service import ClaimSubmissionService
from src.services.clearinghouse_config_service import ClearinghouseConfigService
from src.utils.errors import BatchingDisabledError, BatchSizeExceededError
from src.utils.logging import get_logger

logger = get_logger(__name__)

ClaimOutcome = Union[SubmissionResult, BatchError]


class BatchSubmissionService:
    """
    Batch submission coordinator.

    max_concurrency=1 submits claims one after another; higher values
    submit up to that many at once. Results are reported in input order
    either way.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        submission_service: ClaimSubmissionService,
        max_concurrency: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._submissions = submission_service
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock or utcnow

    async def submit_batch(
        self,
        tenant_id: UUID,
        claim_ids: Sequence[UUID],
        clearinghouse_id: Optional[UUID] = None,
        submitted_by: Optional[str] = None,
    ) -> BatchSubmissionResult:
        """
        Submit claims as one batch.

        Raises (before any batch row is written):
            ClearinghouseNotFoundError / NoDefaultClearinghouseError
            BatchingDisabledError: clearinghouse does not accept batches
            BatchSizeExceededError: more claims than max_batch_size
        """
        claim_ids = list(claim_ids)

        async with self._session_factory() as session:
            async with session.begin():
                config = await ClearinghouseConfigService(session).resolve_config(
                    tenant_id, clearinghouse_id
                )
                if not config.batch_enabled:
                    raise BatchingDisabledError(config.name)
                if len(claim_ids) > config.max_batch_size:
                    raise BatchSizeExceededError(len(claim_ids), config.max_batch_size)

                batch = ClaimSubmissionBatch(
                    tenant_id=tenant_id,
                    clearinghouse_id=config.id,
                    batch_number=f"BATCH-{int(self._clock().timestamp() * 1000)}",
                    claim_ids=[str(claim_id) for claim_id in claim_ids],
                    total_claims=len(claim_ids),
                    status=BatchStatus.PENDING,
                    created_by=submitted_by,
                )
                session.add(batch)

        logger.info(
            f"Batch {batch.batch_number} created with {batch.total_claims} claims "
            f"for clearinghouse {config.id}"
        )

        outcomes = await self._submit_all(tenant_id, batch, config.id, claim_ids, submitted_by)
        submissions = [o for o in outcomes if isinstance(o, SubmissionResult)]
        errors = [o for o in outcomes if isinstance(o, BatchError)]
        status = BatchStatus.SUBMITTED if len(submissions) == len(claim_ids) else BatchStatus.PARTIAL

        async with self._session_factory() as session:
            async with session.begin():
                stored = await session.get(ClaimSubmissionBatch, batch.id)
                stored.submitted_claims = len(submissions)
                stored.failed_claims = len(errors)
                stored.errors = [{"claim_id": str(e.claim_id), "error": e.error} for e in errors]
                stored.status = status
                stored.submitted_at = self._clock()

        logger.info(
            f"Batch {batch.batch_number} finished: {len(submissions)} submitted, "
            f"{len(errors)} failed ({status.value})"
        )
        return BatchSubmissionResult(
            batch_id=batch.id,
            batch_number=batch.batch_number,
            status=status,
            total_claims=len(claim_ids),
            submitted=len(submissions),
            failed=len(errors),
            errors=errors,
            submissions=submissions,
        )

    async def _submit_all(
        self,
        tenant_id: UUID,
        batch: ClaimSubmissionBatch,
        clearinghouse_id: UUID,
        claim_ids: list[UUID],
        submitted_by: Optional[str],
    ) -> list[ClaimOutcome]:
        async def attempt(claim_id: UUID) -> ClaimOutcome:
            try:
                return await self._submissions.submit(
                    tenant_id,
                    claim_id,
                    clearinghouse_id=clearinghouse_id,
                    submitted_by=submitted_by,
                    batch_id=batch.id,
                )
            except Exception as e:
                logger.exception(f"Batch {batch.batch_number}: claim {claim_id} failed: {e}")
                return BatchError(claim_id=claim_id, error=getattr(e, "detail", None) or str(e))

        if self._max_concurrency == 1:
            return [await attempt(claim_id) for claim_id in claim_ids]

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(claim_id: UUID) -> ClaimOutcome:
            async with semaphore:
                return await attempt(claim_id)

        return list(await asyncio.gather(*(bounded(claim_id) for claim_id in claim_ids)))
