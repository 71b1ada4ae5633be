"""
X12 Control Number Sequencer.

Issues interchange (ISA13), functional group (GS06) and transaction set
(ST02) control numbers per (tenant, clearinghouse).

The increment is a single INSERT ... ON CONFLICT DO UPDATE ... RETURNING
statement, so concurrent callers can never observe the same counter value.
Each call commits in its own short transaction; numbers consumed by a
submission that later rolls back leave a gap, never a duplicate.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models.base import utcnow
from src.models.submission import X12ControlNumber

logger = logging.getLogger(__name__)

TENANT_WIDE_PARTNER_KEY = "*"

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class ControlNumbers:
    """One issued control number triple."""

    isa: int
    gs: int
    st: int

    @property
    def isa_formatted(self) -> str:
        """ISA13: nine digits, zero padded."""
        return str(self.isa).zfill(9)

    @property
    def st_formatted(self) -> str:
        """ST02: at least four digits, zero padded."""
        return str(self.st).zfill(4)


def partner_key_for(clearinghouse_id: Optional[UUID]) -> str:
    """Sequence key for a clearinghouse, or the tenant-wide key."""
    return str(clearinghouse_id) if clearinghouse_id else TENANT_WIDE_PARTNER_KEY


class ControlNumberSequencer:
    """
    Atomic control number issuance backed by the x12_control_numbers table.

    Example:
        >>> sequencer = ControlNumberSequencer(session_maker)
        >>> numbers = await sequencer.next(tenant_id, clearinghouse_id)
        >>> numbers.isa_formatted
        '000000001'
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def next(
        self,
        tenant_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
    ) -> ControlNumbers:
        """
        Issue the next control number triple for (tenant, clearinghouse).

        The first call for a key yields (1, 1, 1).
        """
        table = X12ControlNumber.__table__

        async with self._session_factory() as session:
            dialect = session.bind.dialect.name
            insert = _INSERT_BY_DIALECT.get(dialect)
            if insert is None:
                raise NotImplementedError(
                    f"Control number upsert is not supported on dialect {dialect}"
                )

            stmt = insert(table).values(
                tenant_id=tenant_id,
                partner_key=partner_key_for(clearinghouse_id),
                clearinghouse_id=clearinghouse_id,
                isa_control_number=1,
                gs_control_number=1,
                st_control_number=1,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.tenant_id, table.c.partner_key],
                set_={
                    "isa_control_number": table.c.isa_control_number + 1,
                    "gs_control_number": table.c.gs_control_number + 1,
                    "st_control_number": table.c.st_control_number + 1,
                    "updated_at": utcnow(),
                },
            ).returning(
                table.c.isa_control_number,
                table.c.gs_control_number,
                table.c.st_control_number,
            )

            async with session.begin():
                row = (await session.execute(stmt)).one()

        numbers = ControlNumbers(isa=row[0], gs=row[1], st=row[2])
        logger.debug(
            f"Issued control numbers isa={numbers.isa} gs={numbers.gs} "
            f"st={numbers.st} for tenant {tenant_id}"
        )
        return numbers
