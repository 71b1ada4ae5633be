"""
Claims Submission Service Factory.

Composition root: builds the sequencer, generator, transport and services
from settings and wires them together. Callers own the returned bundle
and close it on shutdown.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config import SubmissionSettings, get_claims_settings
from src.db.connection import get_session_maker
from src.gateways.clearinghouse_gateway import (
    ClearinghouseTransport,
    create_clearinghouse_transport,
)
from src.services.batch_submission_service import BatchSubmissionService
from src.services.claim_data_provider import ClaimDataProvider
from src.services.claim_submission_service import ClaimSubmissionService
from src.services.clearinghouse_config_service import ClearinghouseConfigService
from src.services.edi.control_numbers import ControlNumberSequencer
from src.services.edi.x12_837_generator import X12837Generator
from src.services.edi.x12_base import X12Delimiters
from src.services.remittance_service import RemittanceService
from src.services.status_history import StatusHistoryLog
from src.utils.logging import setup_logging_from_settings


@dataclass
class ClaimsSubmissionServices:
    """Wired service bundle."""

    session_factory: async_sessionmaker[AsyncSession]
    sequencer: ControlNumberSequencer
    generator: X12837Generator
    transport: ClearinghouseTransport
    submissions: ClaimSubmissionService
    batches: BatchSubmissionService
    remittances: RemittanceService

    def config_service(self, session: AsyncSession) -> ClearinghouseConfigService:
        return ClearinghouseConfigService(session)

    async def close(self) -> None:
        await self.transport.close()


def build_services(
    data_provider: ClaimDataProvider,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    transport: Optional[ClearinghouseTransport] = None,
    settings: Optional[SubmissionSettings] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], datetime]] = None,
    configure_logging: bool = True,
) -> ClaimsSubmissionServices:
    """
    Build the claims submission services.

    Args:
        data_provider: Source of claim content
        session_factory: Defaults to the process-wide session maker
        transport: Defaults to the transport selected by CLAIMS_TRANSPORT_MODE
        settings: Defaults to get_claims_settings()
        rng: Random source for CLM01/BHT identifiers
        clock: Time source shared by generator and services
        configure_logging: Install the CLAIMS_LOG_* sinks unless the host
            process has already configured logging
    """
    settings = settings or get_claims_settings()
    if configure_logging:
        setup_logging_from_settings(settings)
    session_factory = session_factory or get_session_maker()
    transport = transport or create_clearinghouse_transport(settings)

    sequencer = ControlNumberSequencer(session_factory)
    generator = X12837Generator(
        sequencer=sequencer,
        delimiters=X12Delimiters(
            element=settings.X12_ELEMENT_SEPARATOR,
            component=settings.X12_COMPONENT_SEPARATOR,
            segment=settings.X12_SEGMENT_TERMINATOR,
            repetition=settings.X12_REPETITION_SEPARATOR,
        ),
        usage_indicator=settings.X12_USAGE_INDICATOR,
        default_place_of_service=settings.X12_DEFAULT_PLACE_OF_SERVICE,
        clock=clock,
        rng=rng,
    )
    history = StatusHistoryLog()

    submissions = ClaimSubmissionService(
        session_factory,
        generator=generator,
        transport=transport,
        data_provider=data_provider,
        history=history,
        line_separator=settings.X12_LINE_SEPARATOR,
        clock=clock,
    )
    return ClaimsSubmissionServices(
        session_factory=session_factory,
        sequencer=sequencer,
        generator=generator,
        transport=transport,
        submissions=submissions,
        batches=BatchSubmissionService(
            session_factory,
            submissions,
            max_concurrency=settings.BATCH_MAX_CONCURRENCY,
            clock=clock,
        ),
        remittances=RemittanceService(session_factory, history=history, clock=clock),
    )
