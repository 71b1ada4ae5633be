"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.
"""

import random
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from src.core.enums import ClaimStatus, ClearinghouseType
from src.db.connection import create_engine_from_url, create_schema, create_session_maker
from src.models.claim import Claim
from src.schemas.clearinghouse import ClearinghouseConfigCreate
from src.services.batch_submission_service import BatchSubmissionService
from src.services.claim_data_provider import InMemoryClaimDataProvider
from src.services.claim_submission_service import ClaimSubmissionService
from src.services.clearinghouse_config_service import ClearinghouseConfigService
from src.services.edi.control_numbers import ControlNumberSequencer
from src.services.edi.x12_837_generator import ClaimContent, X12837Generator
from src.services.remittance_service import RemittanceService
from tests.factories import FIXED_NOW, ScriptedTransport, build_claim_content


# =============================================================================
# Claim Content
# =============================================================================


@pytest.fixture
def claim_content() -> ClaimContent:
    return build_claim_content()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite database with the full schema."""
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'claims.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_maker(db_engine)


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture
async def clearinghouse(session_factory, tenant_id):
    """Active default clearinghouse for the tenant."""
    async with session_factory() as session:
        return await ClearinghouseConfigService(session).create_config(
            tenant_id,
            ClearinghouseConfigCreate(
                name="Availity Test",
                clearinghouse_type=ClearinghouseType.AVAILITY,
                is_default=True,
                sender_id="SUBMITTER01",
                receiver_id="AVAILITY",
                max_batch_size=10,
            ),
        )


@pytest.fixture
def make_claim(session_factory, tenant_id):
    """Insert a claim row; returns an async factory."""

    async def _make_claim(
        status: ClaimStatus = ClaimStatus.READY,
        encounter_id: Optional[str] = "ENC-1001",
        total_charges: Decimal = Decimal("225.00"),
    ) -> Claim:
        async with session_factory() as session:
            claim = Claim(
                tenant_id=tenant_id,
                claim_number=f"CLM-2026-{uuid4().hex[:6].upper()}",
                encounter_id=encounter_id,
                patient_display_name="Jane Doe",
                status=status,
                total_charges=total_charges,
                service_date=date(2026, 10, 1),
            )
            session.add(claim)
            await session.commit()
            return claim

    return _make_claim


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def data_provider(tenant_id, claim_content) -> InMemoryClaimDataProvider:
    return InMemoryClaimDataProvider([(tenant_id, claim_content)])


@pytest.fixture
def sequencer(session_factory) -> ControlNumberSequencer:
    return ControlNumberSequencer(session_factory)


@pytest.fixture
def submission_service(session_factory, sequencer, transport, data_provider, seeded_rng):
    generator = X12837Generator(sequencer=sequencer, rng=seeded_rng)
    return ClaimSubmissionService(
        session_factory,
        generator=generator,
        transport=transport,
        data_provider=data_provider,
    )


@pytest.fixture
def batch_service(session_factory, submission_service) -> BatchSubmissionService:
    return BatchSubmissionService(session_factory, submission_service)


@pytest.fixture
def remittance_service(session_factory) -> RemittanceService:
    return RemittanceService(session_factory)


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
