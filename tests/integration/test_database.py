"""
Integration Tests for Database Operations
Tests schema creation, constraints and session behaviour
"""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from src.core.enums import ClaimStatus
from src.models.claim import Claim
from src.models.clearinghouse import ClearinghouseConfig
from src.models.submission import ClaimSubmission, X12ControlNumber


@pytest.mark.integration
@pytest.mark.asyncio
async def test_database_query(session_factory):
    """Test basic database query"""
    async with session_factory() as session:
        result = await session.execute(text("SELECT 1 as num"))
        row = result.first()
        assert row[0] == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_schema_tables(db_engine):
    """All claims submission tables are created"""
    async with db_engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    assert {
        "claims",
        "claim_status_history",
        "claim_payments",
        "clearinghouse_configs",
        "claim_submissions",
        "claim_submission_batches",
        "x12_control_numbers",
        "remittance_advices",
    } <= set(tables)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_control_number_key_unique(session_factory, tenant_id):
    async with session_factory() as session:
        session.add(X12ControlNumber(tenant_id=tenant_id, partner_key="*"))
        session.add(X12ControlNumber(tenant_id=tenant_id, partner_key="*"))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_database_transaction(session_factory, tenant_id):
    """Test database transaction rollback"""
    async with session_factory() as session:
        session.add(Claim(tenant_id=tenant_id, claim_number="CLM-2", status=ClaimStatus.DRAFT))
        await session.flush()
        await session.rollback()

    async with session_factory() as session:
        count = (await session.execute(text("SELECT COUNT(*) FROM claims"))).scalar_one()
    assert count == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_submission_relationships_load(
    session_factory, submission_service, clearinghouse, make_claim, tenant_id
):
    """Submissions and their clearinghouse load through the mapped relationships"""
    claim = await make_claim()
    result = await submission_service.submit(tenant_id, claim.id)

    def load(sync_session):
        submission = sync_session.get(ClaimSubmission, result.submission_id)
        config = sync_session.get(ClearinghouseConfig, clearinghouse.id)
        return submission.clearinghouse.name, [s.id for s in config.submissions]

    async with session_factory() as session:
        name, submission_ids = await session.run_sync(load)

    assert name == "Availity Test"
    assert submission_ids == [result.submission_id]
