"""
Shared test data and test doubles.
"""

from collections import deque
from datetime import date, datetime
from decimal import Decimal
from typing import Union
from uuid import UUID

from src.core.enums import SubmissionStatus
from src.gateways.clearinghouse_gateway import (
    ClaimTransmission,
    ClearinghouseEndpoint,
    ClearinghouseTransport,
    StatusCheckResponse,
    SubmissionResponse,
)
from src.services.edi.x12_837_generator import (
    ChargeLine,
    ClaimContent,
    Diagnosis,
    PatientInfo,
    PayerInfo,
    ProviderInfo,
)


FIXED_NOW = datetime(2026, 10, 19, 14, 30, 5)


# =============================================================================
# Test Doubles
# =============================================================================


class ScriptedTransport(ClearinghouseTransport):
    """
    Clearinghouse transport with scripted answers.

    Submissions default to accepted; a claim id mapped in submit_outcomes
    gets that response or exception instead. Status checks pop from
    status_outcomes and otherwise echo the current status.
    """

    def __init__(self) -> None:
        self.submit_outcomes: dict[UUID, Union[SubmissionResponse, Exception]] = {}
        self.status_outcomes: deque[Union[StatusCheckResponse, Exception]] = deque()
        self.submitted: list[ClaimTransmission] = []
        self.status_checks: list[tuple[str, SubmissionStatus]] = []
        self._counter = 0

    async def submit(
        self,
        endpoint: ClearinghouseEndpoint,
        transmission: ClaimTransmission,
    ) -> SubmissionResponse:
        outcome = self.submit_outcomes.get(transmission.claim_id)
        if isinstance(outcome, Exception):
            raise outcome
        self.submitted.append(transmission)
        if outcome is not None:
            return outcome
        self._counter += 1
        return SubmissionResponse(
            status=SubmissionStatus.ACCEPTED,
            message=f"Claim accepted by {endpoint.clearinghouse_type.value}",
            transaction_id=f"TXN-{self._counter:04d}",
            acknowledgment_code="A",
            raw={"status": "accepted"},
        )

    async def check_status(
        self,
        endpoint: ClearinghouseEndpoint,
        x12_claim_id: str,
        current_status: SubmissionStatus,
    ) -> StatusCheckResponse:
        self.status_checks.append((x12_claim_id, current_status))
        if not self.status_outcomes:
            return StatusCheckResponse(status=current_status)
        outcome = self.status_outcomes.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# =============================================================================
# Claim Content
# =============================================================================


def build_claim_content(reference: str = "ENC-1001", **overrides) -> ClaimContent:
    """Billing content for an office visit with two diagnoses and two lines."""
    values = dict(
        reference=reference,
        service_date=date(2026, 10, 1),
        total_charges=Decimal("225.00"),
        diagnoses=(
            Diagnosis(code="E11.9", description="Type 2 diabetes", is_primary=True),
            Diagnosis(code="I10", description="Essential hypertension"),
        ),
        charge_lines=(
            ChargeLine(
                cpt_code="99214",
                charge_amount=Decimal("175.00"),
                modifiers=("25",),
                diagnosis_pointers=(1, 2),
            ),
            ChargeLine(cpt_code="82947", charge_amount=Decimal("50.00"), diagnosis_pointers=(1,)),
        ),
        patient=PatientInfo(
            first_name="Jane",
            last_name="Doe",
            member_id="MEM123456",
            date_of_birth=date(1980, 1, 15),
            sex="F",
            group_number="GRP01",
            address="456 Oak Ave",
            city="Springfield",
            state="IL",
            zip_code="62704",
        ),
        provider=ProviderInfo(
            npi="1234567893",
            tax_id="123456789",
            organization_name="Springfield Family Practice",
            phone="2175551234",
            address="123 Main St",
            city="Springfield",
            state="IL",
            zip_code="62701",
        ),
        payer=PayerInfo(payer_id="87726", payer_name="United Healthcare"),
    )
    values.update(overrides)
    return ClaimContent(**values)

