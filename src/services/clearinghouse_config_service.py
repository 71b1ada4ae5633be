"""
Clearinghouse Configuration Service.

Provides:
- Tenant-scoped create/update/remove/list of clearinghouse configurations
- Single-default enforcement (setting a default clears the others)
- Resolution of the clearinghouse used for a submission

Verified: 2026-10-19
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.clearinghouse import ClearinghouseConfig
from src.models.submission import ClaimSubmission
from src.schemas.clearinghouse import ClearinghouseConfigCreate, ClearinghouseConfigUpdate
from src.utils.errors import ClearinghouseNotFoundError, NoDefaultClearinghouseError
from src.utils.logging import get_logger

logger = get_logger(__name__)


class ClearinghouseConfigService:
    """
    Clearinghouse configuration management.

    Write methods commit; read methods only query, so they can run inside
    a caller's transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_config(
        self,
        tenant_id: UUID,
        data: ClearinghouseConfigCreate,
    ) -> ClearinghouseConfig:
        """Create a configuration; a new default replaces the previous one."""
        if data.is_default:
            await self._clear_defaults(tenant_id)

        config = ClearinghouseConfig(tenant_id=tenant_id, **data.model_dump())
        self.session.add(config)
        await self.session.commit()
        await self.session.refresh(config)

        logger.info(
            f"Created clearinghouse config {config.id} "
            f"({config.clearinghouse_type.value}, default={config.is_default}) for tenant {tenant_id}"
        )
        return config

    async def update_config(
        self,
        tenant_id: UUID,
        config_id: UUID,
        data: ClearinghouseConfigUpdate,
    ) -> ClearinghouseConfig:
        """Apply a partial update."""
        config = await self._get(tenant_id, config_id)
        if config is None:
            raise ClearinghouseNotFoundError(config_id)

        updates = data.model_dump(exclude_unset=True)
        if updates.get("is_default"):
            await self._clear_defaults(tenant_id, exclude_id=config_id)

        for field_name, value in updates.items():
            setattr(config, field_name, value)

        await self.session.commit()
        await self.session.refresh(config)

        logger.info(f"Updated clearinghouse config {config_id}: {sorted(updates)}")
        return config

    async def remove_config(self, tenant_id: UUID, config_id: UUID) -> bool:
        """
        Remove a configuration.

        Configurations referenced by a submission are deactivated instead of
        deleted. Returns True for a soft delete, False for a hard delete.
        """
        config = await self._get(tenant_id, config_id)
        if config is None:
            raise ClearinghouseNotFoundError(config_id)

        usage = (
            await self.session.execute(
                select(func.count())
                .select_from(ClaimSubmission)
                .where(ClaimSubmission.clearinghouse_id == config_id)
            )
        ).scalar_one()

        if usage:
            config.is_active = False
            config.is_default = False
            await self.session.commit()
            logger.info(f"Deactivated clearinghouse config {config_id} ({usage} submissions)")
            return True

        await self.session.delete(config)
        await self.session.commit()
        logger.info(f"Deleted clearinghouse config {config_id}")
        return False

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_configs(
        self,
        tenant_id: UUID,
        active_only: bool = False,
    ) -> list[ClearinghouseConfig]:
        """Configurations for a tenant, default first, then by name."""
        query = select(ClearinghouseConfig).where(ClearinghouseConfig.tenant_id == tenant_id)
        if active_only:
            query = query.where(ClearinghouseConfig.is_active.is_(True))
        query = query.order_by(
            ClearinghouseConfig.is_default.desc(),
            ClearinghouseConfig.name,
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_active_config(
        self,
        tenant_id: UUID,
        config_id: UUID,
    ) -> Optional[ClearinghouseConfig]:
        result = await self.session.execute(
            select(ClearinghouseConfig).where(
                ClearinghouseConfig.id == config_id,
                ClearinghouseConfig.tenant_id == tenant_id,
                ClearinghouseConfig.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_default_config(self, tenant_id: UUID) -> Optional[ClearinghouseConfig]:
        result = await self.session.execute(
            select(ClearinghouseConfig)
            .where(
                ClearinghouseConfig.tenant_id == tenant_id,
                ClearinghouseConfig.is_default.is_(True),
                ClearinghouseConfig.is_active.is_(True),
            )
            .order_by(ClearinghouseConfig.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_config(
        self,
        tenant_id: UUID,
        clearinghouse_id: Optional[UUID] = None,
    ) -> ClearinghouseConfig:
        """
        The clearinghouse to submit to.

        Raises:
            ClearinghouseNotFoundError: explicit id is unknown or inactive
            NoDefaultClearinghouseError: no id given and no active default
        """
        if clearinghouse_id is not None:
            config = await self.get_active_config(tenant_id, clearinghouse_id)
            if config is None:
                raise ClearinghouseNotFoundError(clearinghouse_id)
            return config

        config = await self.get_default_config(tenant_id)
        if config is None:
            raise NoDefaultClearinghouseError()
        return config

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get(self, tenant_id: UUID, config_id: UUID) -> Optional[ClearinghouseConfig]:
        result = await self.session.execute(
            select(ClearinghouseConfig).where(
                ClearinghouseConfig.id == config_id,
                ClearinghouseConfig.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def _clear_defaults(self, tenant_id: UUID, exclude_id: Optional[UUID] = None) -> None:
        stmt = (
            update(ClearinghouseConfig)
            .where(
                ClearinghouseConfig.tenant_id == tenant_id,
                ClearinghouseConfig.is_default.is_(True),
            )
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        if exclude_id is not None:
            stmt = stmt.where(ClearinghouseConfig.id != exclude_id)
        await self.session.execute(stmt)
