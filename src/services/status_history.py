"""
Claim Status History Log.

Append-only audit trail of claim status changes. Entries are written in
the caller's transaction so a history row exists exactly when the status
change it describes is committed.
"""

from enum import Enum
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.enums import HistorySource
from src.models.base import utcnow
from src.models.claim import ClaimStatusHistory
from src.utils.logging import get_logger

logger = get_logger(__name__)


class StatusHistoryLog:
    """Writes and reads claim_status_history rows."""

    def append(
        self,
        session: AsyncSession,
        *,
        tenant_id: UUID,
        claim_id: UUID,
        status: Union[str, Enum],
        source: HistorySource,
        note: Optional[str] = None,
        status_code: Optional[str] = None,
        changed_by: Optional[str] = None,
    ) -> ClaimStatusHistory:
        """
        Add a history entry to the session.

        The row is flushed with the rest of the unit of work; it is never
        updated afterwards.
        """
        entry = ClaimStatusHistory(
            tenant_id=tenant_id,
            claim_id=claim_id,
            status=status.value if isinstance(status, Enum) else status,
            status_code=status_code,
            note=note,
            source=source,
            changed_by=changed_by,
            changed_at=utcnow(),
        )
        session.add(entry)
        logger.debug(f"History entry for claim {claim_id}: {entry.status} ({source.value})")
        return entry

    async def list_for_claim(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        claim_id: UUID,
        limit: Optional[int] = None,
    ) -> list[ClaimStatusHistory]:
        """History of one claim, newest first."""
        query = (
            select(ClaimStatusHistory)
            .where(
                ClaimStatusHistory.tenant_id == tenant_id,
                ClaimStatusHistory.claim_id == claim_id,
            )
            .order_by(ClaimStatusHistory.changed_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await session.execute(query)
        return list(result.scalars().all())
