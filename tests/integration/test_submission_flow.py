"""
Integration Tests for the Claims Submission Flow
Submit, poll and remit through the wired service bundle
"""

import random
from decimal import Decimal

import pytest

from src.core.config import SubmissionSettings
from src.core.enums import BatchStatus, ClaimStatus, SubmissionStatus
from src.gateways.clearinghouse_gateway import (
    SimulatedClearinghouseTransport,
    StatusCheckResponse,
)
from src.services.claim_state_machine import map_clearinghouse_status
from src.services.factory import build_services


@pytest.fixture
def settings():
    return SubmissionSettings(
        _env_file=None,
        ENVIRONMENT="testing",
        X12_USAGE_INDICATOR="T",
        BATCH_MAX_CONCURRENCY=2,
    )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_submit_poll_remit(
    session_factory, data_provider, transport, settings, clearinghouse, make_claim, tenant_id
):
    """A claim goes ready -> submitted -> accepted -> paid."""
    services = build_services(
        data_provider,
        session_factory=session_factory,
        transport=transport,
        settings=settings,
        rng=random.Random(5),
    )
    claim = await make_claim()

    submitted = await services.submissions.submit(tenant_id, claim.id)
    assert submitted.claim_status == ClaimStatus.SUBMITTED
    assert "*T*:~" in transport.submitted[0].x12_content.splitlines()[0]

    accepted = await services.submissions.poll_status(tenant_id, claim.id)
    assert accepted.claim_status == ClaimStatus.ACCEPTED

    pcn = transport.submitted[0].patient_control_number
    remit = await services.remittances.ingest(
        tenant_id,
        f"TRN*1*ERA-1*1512345678~CLP*{pcn}*1*225.00*180.00*45.00~CAS*PR*1*45.00~",
    )
    assert remit.claim_status == ClaimStatus.PAID
    assert remit.payment_amount == Decimal("180.00")

    history = await services.submissions.get_status_history(tenant_id, claim.id)
    assert [h.status for h in history] == ["paid", "accepted", "submitted"]

    await services.close()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_batch_through_bundle(
    session_factory, data_provider, transport, settings, clearinghouse, make_claim, tenant_id
):
    services = build_services(
        data_provider, session_factory=session_factory, transport=transport, settings=settings
    )
    claims = [await make_claim() for _ in range(3)]

    result = await services.batches.submit_batch(tenant_id, [c.id for c in claims])

    assert result.status == BatchStatus.SUBMITTED
    assert sorted(s.control_number for s in result.submissions) == [
        "000000001",
        "000000002",
        "000000003",
    ]
    pending = await services.submissions.get_pending_claims(tenant_id)
    assert pending == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_simulated_transport_flow(
    session_factory, data_provider, settings, clearinghouse, make_claim, tenant_id
):
    """Seeded simulated transport drives claims to statuses consistent with their submission."""
    services = build_services(
        data_provider,
        session_factory=session_factory,
        transport=SimulatedClearinghouseTransport(seed=2026),
        settings=settings,
    )
    claims = [await make_claim() for _ in range(5)]

    for claim in claims:
        result = await services.submissions.submit(tenant_id, claim.id)
        assert result.status in (
            SubmissionStatus.ACCEPTED,
            SubmissionStatus.PENDING,
            SubmissionStatus.REJECTED,
        )

    for claim in claims:
        for _ in range(4):
            report = await services.submissions.poll_status(tenant_id, claim.id)
        assert report.claim_status == map_clearinghouse_status(report.status)

    await services.close()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_denied_then_resubmitted(
    session_factory, data_provider, transport, settings, clearinghouse, make_claim, tenant_id
):
    services = build_services(
        data_provider, session_factory=session_factory, transport=transport, settings=settings
    )
    claim = await make_claim()
    await services.submissions.submit(tenant_id, claim.id)
    await services.remittances.ingest(tenant_id, f"TRN*1*ERA-2~CLP*{claim.id}*4*225*0*0~")

    result = await services.submissions.resubmit(tenant_id, claim.id, note="Added modifier")

    assert result.claim_status == ClaimStatus.SUBMITTED
    assert len(await services.submissions.get_submissions(tenant_id, claim.id)) == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_poll_status_sequence(
    session_factory, data_provider, transport, settings, clearinghouse, make_claim, tenant_id
):
    services = build_services(
        data_provider, session_factory=session_factory, transport=transport, settings=settings
    )
    claim = await make_claim()
    await services.submissions.submit(tenant_id, claim.id)
    transport.status_outcomes.extend(
        [
            StatusCheckResponse(status=SubmissionStatus.ACCEPTED),
            StatusCheckResponse(status=SubmissionStatus.DENIED, status_code="D1"),
        ]
    )

    first = await services.submissions.poll_status(tenant_id, claim.id)
    second = await services.submissions.poll_status(tenant_id, claim.id)

    assert first.claim_status == ClaimStatus.ACCEPTED
    assert second.status == SubmissionStatus.DENIED
    assert second.claim_status == ClaimStatus.REJECTED
