"""
Unit Tests for the Claim Submission Service.

Tests:
- Submission happy path and persisted state
- Preconditions and transport failures leave no state behind
- Status polling and reconciliation
- Resubmission, X12 preview and pending queries
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from src.core.enums import ClaimStatus, HistorySource, SubmissionStatus
from src.gateways.base import ProviderTimeoutError, ProviderUnavailableError
from src.gateways.clearinghouse_gateway import StatusCheckResponse, SubmissionResponse
from src.models.claim import Claim, ClaimStatusHistory
from src.models.submission import ClaimSubmission
from src.utils.errors import (
    ClaimAlreadySubmittedError,
    ClaimContentNotFoundError,
    ClaimNotFoundError,
    ClearinghouseNotFoundError,
    NoDefaultClearinghouseError,
    ResubmissionNotAllowedError,
    SubmissionNotFoundError,
)


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def reload_claim(session_factory, claim_id) -> Claim:
    async with session_factory() as session:
        return await session.get(Claim, claim_id)


REJECTED_AT_SUBMIT = SubmissionResponse(
    status=SubmissionStatus.REJECTED,
    message="Subscriber not found",
    acknowledgment_code="R",
    raw={"status": "rejected"},
)

PENDING_AT_SUBMIT = SubmissionResponse(status=SubmissionStatus.PENDING, transaction_id="TXN-P1")


# =============================================================================
# Submit
# =============================================================================


class TestSubmit:
    """Tests for submit()."""

    @pytest.mark.asyncio
    async def test_submit_success(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()

        result = await submission_service.submit(tenant_id, claim.id, submitted_by="biller@clinic")

        assert result.status == SubmissionStatus.ACCEPTED
        assert result.claim_status == ClaimStatus.SUBMITTED
        assert result.clearinghouse_id == clearinghouse.id
        assert result.x12_claim_id == "TXN-0001"
        assert result.control_number == "000000001"
        assert result.x12_generated
        assert result.submission_number.startswith("SUB-")

        stored = await reload_claim(session_factory, claim.id)
        assert stored.status == ClaimStatus.SUBMITTED
        assert stored.submitted_at is not None

        transmission = transport.submitted[0]
        assert transmission.x12_content.startswith("ISA*")
        assert "ISA*00*" in transmission.x12_content
        assert "*SUBMITTER01    *" in transmission.x12_content

    @pytest.mark.asyncio
    async def test_submit_persists_submission(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()

        result = await submission_service.submit(tenant_id, claim.id)

        async with session_factory() as session:
            submission = await session.get(ClaimSubmission, result.submission_id)
        assert submission.isa_control_number == 1
        assert submission.st_control_number == 1
        assert submission.patient_control_number == transport.submitted[0].patient_control_number
        assert submission.status_code == "A"
        assert submission.response_data == {"status": "accepted"}
        assert submission.error_code is None

    @pytest.mark.asyncio
    async def test_submit_writes_history(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim()

        await submission_service.submit(tenant_id, claim.id, submitted_by="biller@clinic")
        history = await submission_service.get_status_history(tenant_id, claim.id)

        assert len(history) == 1
        assert history[0].status == "submitted"
        assert history[0].source == HistorySource.CLEARINGHOUSE
        assert history[0].note == "Submitted to Availity Test via availity. Control: TXN-0001"
        assert history[0].changed_by == "biller@clinic"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [ClaimStatus.SUBMITTED, ClaimStatus.ACCEPTED, ClaimStatus.PAID]
    )
    async def test_already_submitted_is_refused(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport, status
    ):
        claim = await make_claim(status=status)

        with pytest.raises(ClaimAlreadySubmittedError) as exc_info:
            await submission_service.submit(tenant_id, claim.id)

        assert exc_info.value.detail == f"Claim already {status.value}"
        assert transport.submitted == []
        assert await count_rows(session_factory, ClaimSubmission) == 0
        assert await count_rows(session_factory, ClaimStatusHistory) == 0

    @pytest.mark.asyncio
    async def test_unknown_claim(self, submission_service, clearinghouse, tenant_id):
        with pytest.raises(ClaimNotFoundError):
            await submission_service.submit(tenant_id, uuid4())

    @pytest.mark.asyncio
    async def test_other_tenant_claim_not_visible(
        self, submission_service, clearinghouse, make_claim
    ):
        claim = await make_claim()

        with pytest.raises(ClaimNotFoundError):
            await submission_service.submit(uuid4(), claim.id)

    @pytest.mark.asyncio
    async def test_no_default_clearinghouse(
        self, submission_service, session_factory, make_claim, tenant_id
    ):
        claim = await make_claim()

        with pytest.raises(NoDefaultClearinghouseError):
            await submission_service.submit(tenant_id, claim.id)

        stored = await reload_claim(session_factory, claim.id)
        assert stored.status == ClaimStatus.READY

    @pytest.mark.asyncio
    async def test_unknown_clearinghouse(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim()

        with pytest.raises(ClearinghouseNotFoundError):
            await submission_service.submit(tenant_id, claim.id, clearinghouse_id=uuid4())

    @pytest.mark.asyncio
    async def test_transport_failure_leaves_no_state(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = ProviderUnavailableError("unreachable", provider="availity")

        with pytest.raises(ProviderUnavailableError):
            await submission_service.submit(tenant_id, claim.id)

        stored = await reload_claim(session_factory, claim.id)
        assert stored.status == ClaimStatus.READY
        assert await count_rows(session_factory, ClaimSubmission) == 0
        assert await count_rows(session_factory, ClaimStatusHistory) == 0

    @pytest.mark.asyncio
    async def test_missing_content_submits_without_payload(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim(encounter_id="ENC-404")

        result = await submission_service.submit(tenant_id, claim.id)

        assert not result.x12_generated
        assert result.control_number is None
        assert transport.submitted[0].x12_content is None
        async with session_factory() as session:
            submission = await session.get(ClaimSubmission, result.submission_id)
        assert submission.x12_content is None
        assert submission.isa_control_number is None

    @pytest.mark.asyncio
    async def test_rejected_at_submit(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = REJECTED_AT_SUBMIT

        result = await submission_service.submit(tenant_id, claim.id)

        assert result.status == SubmissionStatus.REJECTED
        assert result.claim_status == ClaimStatus.SUBMITTED
        assert result.x12_claim_id.startswith("ICN-")
        async with session_factory() as session:
            submission = await session.get(ClaimSubmission, result.submission_id)
        assert submission.error_code == "R"
        assert submission.error_message == "Subscriber not found"

    @pytest.mark.asyncio
    async def test_draft_claim_can_be_submitted(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim(status=ClaimStatus.DRAFT)

        result = await submission_service.submit(tenant_id, claim.id)

        assert result.claim_status == ClaimStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_control_numbers_increase_per_submission(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        first = await make_claim()
        second = await make_claim()

        one = await submission_service.submit(tenant_id, first.id)
        two = await submission_service.submit(tenant_id, second.id)

        assert (one.control_number, two.control_number) == ("000000001", "000000002")


# =============================================================================
# Poll
# =============================================================================


class TestPollStatus:
    """Tests for poll_status()."""

    @pytest.mark.asyncio
    async def test_poll_applies_new_status(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        await submission_service.submit(tenant_id, claim.id)
        transport.status_outcomes.append(
            StatusCheckResponse(status=SubmissionStatus.PAID, status_code="F1", message="Finalized/Payment")
        )

        report = await submission_service.poll_status(tenant_id, claim.id, checked_by="poller")

        assert report.changed
        assert report.status == SubmissionStatus.PAID
        assert report.status_code == "F1"
        assert report.claim_status == ClaimStatus.PAID
        assert [entry.status for entry in report.history] == ["paid", "submitted"]
        assert report.history[0].changed_by == "poller"
        assert transport.status_checks == [("TXN-0001", SubmissionStatus.ACCEPTED)]

    @pytest.mark.asyncio
    async def test_poll_without_change(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim()
        await submission_service.submit(tenant_id, claim.id)
        # Claim moves to accepted to match the accepted submission
        await submission_service.poll_status(tenant_id, claim.id)

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert not report.changed
        assert report.claim_status == ClaimStatus.ACCEPTED
        assert len(report.history) == 2

    @pytest.mark.asyncio
    async def test_poll_transport_error_keeps_status(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        await submission_service.submit(tenant_id, claim.id)
        transport.status_outcomes.append(ProviderTimeoutError("timed out"))

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert not report.changed
        assert report.status == SubmissionStatus.ACCEPTED
        assert report.claim_status == ClaimStatus.SUBMITTED
        async with session_factory() as session:
            submission = await session.get(ClaimSubmission, report.submission_id)
        assert submission.last_status_check_at is None

    @pytest.mark.asyncio
    async def test_poll_ignores_illegal_transition(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        await submission_service.submit(tenant_id, claim.id)
        transport.status_outcomes.append(StatusCheckResponse(status=SubmissionStatus.PENDING))

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert report.status == SubmissionStatus.ACCEPTED
        assert report.claim_status == ClaimStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_poll_reconciles_rejected_at_submit(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = REJECTED_AT_SUBMIT
        await submission_service.submit(tenant_id, claim.id)

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert report.changed
        assert report.status == SubmissionStatus.REJECTED
        assert report.claim_status == ClaimStatus.REJECTED

    @pytest.mark.asyncio
    async def test_denied_maps_to_rejected(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        await submission_service.submit(tenant_id, claim.id)
        transport.status_outcomes.append(
            StatusCheckResponse(status=SubmissionStatus.DENIED, status_code="D1")
        )

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert report.status == SubmissionStatus.DENIED
        assert report.claim_status == ClaimStatus.REJECTED
        assert report.history[0].status == "rejected"
        assert report.history[0].status_code == "D1"
        assert report.history[0].note == "Clearinghouse status: denied"

    @pytest.mark.asyncio
    async def test_pending_history_records_claim_status(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = PENDING_AT_SUBMIT
        await submission_service.submit(tenant_id, claim.id)
        transport.status_outcomes.append(
            StatusCheckResponse(status=SubmissionStatus.PENDED, message="Pended for review")
        )

        report = await submission_service.poll_status(tenant_id, claim.id)

        assert report.changed
        assert report.status == SubmissionStatus.PENDED
        assert report.claim_status == ClaimStatus.SUBMITTED
        assert [entry.status for entry in report.history] == ["submitted", "submitted"]
        assert report.history[0].note == "Pended for review"

    @pytest.mark.asyncio
    async def test_poll_without_submission(
        self, submission_service, make_claim, tenant_id
    ):
        claim = await make_claim()

        with pytest.raises(SubmissionNotFoundError):
            await submission_service.poll_status(tenant_id, claim.id)


# =============================================================================
# Resubmit
# =============================================================================


class TestResubmit:
    """Tests for resubmit()."""

    @pytest.mark.asyncio
    async def test_accepted_claim_cannot_be_resubmitted(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim(status=ClaimStatus.ACCEPTED)

        with pytest.raises(ResubmissionNotAllowedError) as exc_info:
            await submission_service.resubmit(tenant_id, claim.id)

        assert exc_info.value.detail == "Cannot resubmit claim with status: accepted"

    @pytest.mark.asyncio
    async def test_rejected_claim_resubmitted(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = REJECTED_AT_SUBMIT
        first = await submission_service.submit(tenant_id, claim.id)
        await submission_service.poll_status(tenant_id, claim.id)
        del transport.submit_outcomes[claim.id]

        result = await submission_service.resubmit(
            tenant_id, claim.id, note="Corrected member ID", resubmitted_by="biller@clinic"
        )

        assert result.submission_id != first.submission_id
        assert result.status == SubmissionStatus.ACCEPTED
        assert result.claim_status == ClaimStatus.SUBMITTED

        submissions = await submission_service.get_submissions(tenant_id, claim.id)
        assert [s.id for s in submissions] == [result.submission_id, first.submission_id]

        history = await submission_service.get_status_history(tenant_id, claim.id)
        assert history[1].status == "ready"
        assert history[1].source == HistorySource.USER
        assert history[1].note == "Corrected member ID"

    @pytest.mark.asyncio
    async def test_default_resubmission_note(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim(status=ClaimStatus.DENIED)

        await submission_service.resubmit(tenant_id, claim.id)

        history = await submission_service.get_status_history(tenant_id, claim.id)
        assert history[-1].note == "Claim prepared for resubmission"

    @pytest.mark.asyncio
    async def test_missing_config_leaves_claim_untouched(
        self, submission_service, session_factory, make_claim, tenant_id
    ):
        claim = await make_claim(status=ClaimStatus.REJECTED)

        with pytest.raises(NoDefaultClearinghouseError):
            await submission_service.resubmit(tenant_id, claim.id)

        stored = await reload_claim(session_factory, claim.id)
        assert stored.status == ClaimStatus.REJECTED


# =============================================================================
# X12 Preview and Queries
# =============================================================================


class TestGenerateX12:
    """Tests for generate_x12()."""

    @pytest.mark.asyncio
    async def test_preview_does_not_submit(
        self, submission_service, session_factory, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()

        preview = await submission_service.generate_x12(tenant_id, claim.id)

        assert preview.x12_content.startswith("ISA*")
        assert preview.isa_control_number == 1
        assert preview.warnings == []
        assert transport.submitted == []
        assert await count_rows(session_factory, ClaimSubmission) == 0
        stored = await reload_claim(session_factory, claim.id)
        assert stored.status == ClaimStatus.READY

    @pytest.mark.asyncio
    async def test_preview_consumes_control_numbers(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim()

        await submission_service.generate_x12(tenant_id, claim.id)
        result = await submission_service.submit(tenant_id, claim.id)

        assert result.control_number == "000000002"

    @pytest.mark.asyncio
    async def test_preview_without_clearinghouse(
        self, submission_service, make_claim, tenant_id
    ):
        claim = await make_claim()

        preview = await submission_service.generate_x12(tenant_id, claim.id)

        assert "*1234567893     *" in preview.x12_content

    @pytest.mark.asyncio
    async def test_preview_without_content(
        self, submission_service, clearinghouse, make_claim, tenant_id
    ):
        claim = await make_claim(encounter_id=None)

        with pytest.raises(ClaimContentNotFoundError):
            await submission_service.generate_x12(tenant_id, claim.id)


class TestQueries:
    """Tests for pending claims and submission listings."""

    @pytest.mark.asyncio
    async def test_pending_claims(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        accepted = await make_claim()
        pending = await make_claim()
        transport.submit_outcomes[pending.id] = SubmissionResponse(
            status=SubmissionStatus.PENDING, transaction_id="TXN-P", acknowledgment_code="A"
        )
        await submission_service.submit(tenant_id, accepted.id)
        await submission_service.submit(tenant_id, pending.id)

        results = await submission_service.get_pending_claims(tenant_id)

        assert [p.claim_id for p in results] == [pending.id]
        assert results[0].clearinghouse_name == "Availity Test"
        assert results[0].patient_display_name == "Jane Doe"
        assert results[0].days_pending == 0

    @pytest.mark.asyncio
    async def test_pending_claims_filtered_by_clearinghouse(
        self, submission_service, clearinghouse, make_claim, tenant_id, transport
    ):
        claim = await make_claim()
        transport.submit_outcomes[claim.id] = SubmissionResponse(status=SubmissionStatus.PENDING)
        await submission_service.submit(tenant_id, claim.id)

        assert len(await submission_service.get_pending_claims(tenant_id, clearinghouse.id)) == 1
        assert await submission_service.get_pending_claims(tenant_id, uuid4()) == []

    @pytest.mark.asyncio
    async def test_submissions_empty_for_new_claim(
        self, submission_service, make_claim, tenant_id
    ):
        claim = await make_claim()

        assert await submission_service.get_submissions(tenant_id, claim.id) == []
