"""
X12 837P Professional Claim Generator.

Source: ASC X12 005010X222A1 Health Care Claim: Professional
Verified: 2026-10-19

Generates one interchange (ISA..IEA) holding a single 837P transaction per
claim from a claim content snapshot.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from uuid import UUID
import logging
import random
import re

from src.services.edi.control_numbers import ControlNumbers, ControlNumberSequencer
from src.services.edi.x12_base import (
    X12Delimiters,
    format_x12_amount,
    format_x12_date,
    format_x12_time,
    validate_npi,
)

logger = logging.getLogger(__name__)

IMPLEMENTATION_GUIDE = "005010X222A1"
INTERCHANGE_VERSION = "00501"


# =============================================================================
# Data Models
# =============================================================================


@dataclass(frozen=True)
class Diagnosis:
    """ICD-10-CM diagnosis attached to the claim."""

    code: str
    description: str = ""
    is_primary: bool = False


@dataclass(frozen=True)
class ChargeLine:
    """
    One billed procedure.

    diagnosis_pointers are 1-based positions in the claim's ordered
    (primary-first) diagnosis list.
    """

    cpt_code: str
    charge_amount: Decimal
    units: int = 1
    modifiers: Tuple[str, ...] = ()
    diagnosis_pointers: Tuple[int, ...] = (1,)
    description: str = ""


@dataclass(frozen=True)
class PatientInfo:
    """Subscriber (patient) demographics and insurance membership."""

    first_name: str
    last_name: str
    member_id: str
    date_of_birth: Optional[date] = None
    sex: str = "U"
    group_number: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class ProviderInfo:
    """Billing provider identity."""

    npi: str
    tax_id: str = ""
    organization_name: str = ""
    first_name: str = ""
    last_name: str = ""
    taxonomy: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    @property
    def display_name(self) -> str:
        """Organization name, or 'LAST FIRST' for an individual."""
        if self.organization_name:
            return self.organization_name
        return f"{self.last_name} {self.first_name}".strip()


@dataclass(frozen=True)
class PayerInfo:
    """Destination payer."""

    payer_id: str
    payer_name: str
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class ClaimContent:
    """
    Billing-ready snapshot of an encounter (superbill).

    Built fresh for every submission attempt and never cached.
    """

    reference: str
    service_date: date
    total_charges: Decimal
    diagnoses: Tuple[Diagnosis, ...]
    charge_lines: Tuple[ChargeLine, ...]
    patient: PatientInfo
    provider: ProviderInfo
    payer: PayerInfo
    place_of_service: Optional[str] = None

    def ordered_diagnoses(self) -> List[Diagnosis]:
        """Diagnoses with primary first, otherwise in input order."""
        return sorted(self.diagnoses, key=lambda dx: not dx.is_primary)


@dataclass(frozen=True)
class InterchangeParties:
    """ISA06/ISA08 and GS02/GS03 identifiers."""

    sender_id: str
    receiver_id: str


@dataclass
class EncodedClaim:
    """Result of encoding one claim."""

    segments: List[str]
    control_numbers: ControlNumbers
    claim_identifier: str  # CLM01 patient control number
    bht_reference: str
    generated_at: datetime
    segment_terminator: str = "~"
    warnings: List[str] = field(default_factory=list)

    def to_x12(self, line_separator: str = "") -> str:
        """Join the terminated segments, optionally one per line."""
        return line_separator.join(self.segments)

    @property
    def transaction_segment_count(self) -> int:
        """Segments from ST through SE inclusive."""
        return len(self.segments) - 4  # ISA, GS, GE, IEA


# =============================================================================
# Generator
# =============================================================================


class X12837Generator:
    """
    Generator for X12 837P professional claims.

    The claim identifier (CLM01) and BHT reference are random; pass a
    seeded random.Random and a fixed clock for reproducible output.

    Usage:
        generator = X12837Generator(sequencer=sequencer)
        encoded = await generator.encode(tenant_id, content, clearinghouse_id)
        x12_text = encoded.to_x12("\\n")
    """

    def __init__(
        self,
        sequencer: Optional[ControlNumberSequencer] = None,
        delimiters: Optional[X12Delimiters] = None,
        usage_indicator: str = "P",
        default_place_of_service: str = "11",
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.sequencer = sequencer
        self.delimiters = delimiters or X12Delimiters()
        self.usage_indicator = usage_indicator
        self.default_place_of_service = default_place_of_service
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()

    async def encode(
        self,
        tenant_id: UUID,
        content: ClaimContent,
        clearinghouse_id: Optional[UUID] = None,
        parties: Optional[InterchangeParties] = None,
    ) -> EncodedClaim:
        """Issue control numbers for (tenant, clearinghouse) and generate."""
        if self.sequencer is None:
            raise RuntimeError("X12837Generator.encode requires a control number sequencer")
        control_numbers = await self.sequencer.next(tenant_id, clearinghouse_id)
        return self.generate(content, control_numbers, parties)

    def generate(
        self,
        content: ClaimContent,
        control_numbers: ControlNumbers,
        parties: Optional[InterchangeParties] = None,
    ) -> EncodedClaim:
        """
        Generate the 837P interchange for one claim.

        Args:
            content: Claim content snapshot
            control_numbers: ISA/GS/ST numbers issued for this interchange
            parties: Interchange sender/receiver; defaults to the billing
                provider NPI and the payer ID

        Returns:
            EncodedClaim with terminated segments in transmission order
        """
        now = self._clock()
        parties = parties or InterchangeParties(
            sender_id=content.provider.npi,
            receiver_id=content.payer.payer_id,
        )
        claim_identifier = self._random_hex(16)
        bht_reference = self._random_hex(8)
        warnings = self._check_content(content)

        segments: List[str] = []

        # Envelope headers
        segments.append(self._build_isa(parties, control_numbers, now))
        segments.append(self._build_gs(parties, control_numbers, now))
        segments.append(self._build_st(control_numbers))
        segments.append(self._build_bht(bht_reference, now))

        # Loop 1000A - Submitter, Loop 1000B - Receiver
        segments.extend(self._build_loop_1000a(content.provider))
        segments.extend(self._build_loop_1000b(content.payer))

        # Loop 2000A - Billing Provider
        segments.extend(self._build_loop_2000a(content.provider))

        # Loop 2000B - Subscriber
        segments.extend(self._build_loop_2000b(content.patient, content.payer))

        # Loop 2300 - Claim Information
        segments.extend(self._build_loop_2300(content, claim_identifier))

        # Loop 2400 - Service Lines
        for line_number, line in enumerate(content.charge_lines, start=1):
            segments.extend(self._build_loop_2400(line, line_number, content.service_date))

        # SE counts ST through SE inclusive; ISA and GS precede ST
        segment_count = len(segments) - 2 + 1
        segments.append(self._build_segment("SE", str(segment_count), control_numbers.st_formatted))
        segments.append(self._build_segment("GE", "1", str(control_numbers.gs)))
        segments.append(self._build_segment("IEA", "1", control_numbers.isa_formatted))

        logger.debug(
            f"Generated 837P with {segment_count} transaction segments, "
            f"{len(content.charge_lines)} service lines, ISA {control_numbers.isa_formatted}"
        )

        return EncodedClaim(
            segments=segments,
            control_numbers=control_numbers,
            claim_identifier=claim_identifier,
            bht_reference=bht_reference,
            generated_at=now,
            segment_terminator=self.delimiters.segment,
            warnings=warnings,
        )

    # =========================================================================
    # Segment builders
    # =========================================================================

    def _build_segment(self, segment_id: str, *elements: str) -> str:
        """Build a terminated segment from ID and elements."""
        return self.delimiters.build_segment(segment_id, [e if e is not None else "" for e in elements])

    def _text(self, value: Optional[str]) -> str:
        return self.delimiters.clean(value)

    def _build_isa(self, parties: InterchangeParties, numbers: ControlNumbers, now: datetime) -> str:
        """Build ISA (Interchange Control Header) segment."""
        return self._build_segment(
            "ISA",
            "00",  # Authorization qualifier
            " " * 10,  # Authorization info
            "00",  # Security qualifier
            " " * 10,  # Security info
            "ZZ",  # Sender qualifier
            self._text(parties.sender_id)[:15].ljust(15),  # Sender ID
            "ZZ",  # Receiver qualifier
            self._text(parties.receiver_id)[:15].ljust(15),  # Receiver ID
            format_x12_date(now.date(), short=True),  # YYMMDD
            format_x12_time(now),  # HHMM
            self.delimiters.repetition,  # Repetition separator
            INTERCHANGE_VERSION,
            numbers.isa_formatted,  # Control number
            "0",  # Ack requested
            self.usage_indicator,  # P=Production, T=Test
            self.delimiters.component,  # Component separator
        )

    def _build_gs(self, parties: InterchangeParties, numbers: ControlNumbers, now: datetime) -> str:
        """Build GS (Functional Group Header) segment."""
        return self._build_segment(
            "GS",
            "HC",  # Functional ID (HC=Health Care Claim)
            self._text(parties.sender_id),
            self._text(parties.receiver_id),
            format_x12_date(now.date()),
            format_x12_time(now, with_seconds=True),
            str(numbers.gs),
            "X",  # Responsible agency
            IMPLEMENTATION_GUIDE,
        )

    def _build_st(self, numbers: ControlNumbers) -> str:
        """Build ST (Transaction Set Header) segment."""
        return self._build_segment("ST", "837", numbers.st_formatted, IMPLEMENTATION_GUIDE)

    def _build_bht(self, reference: str, now: datetime) -> str:
        """Build BHT (Beginning of Hierarchical Transaction) segment."""
        return self._build_segment(
            "BHT",
            "0019",  # Information source, subscriber, dependent
            "00",  # Original
            reference,
            format_x12_date(now.date()),
            format_x12_time(now, with_seconds=True),
            "CH",  # Chargeable
        )

    def _build_address(self, address: str, city: str, state: str, zip_code: str) -> List[str]:
        """N3 when a street is known; N4 only with city, state and ZIP."""
        segments = []
        if address:
            segments.append(self._build_segment("N3", self._text(address)))
        if city and state and zip_code:
            segments.append(
                self._build_segment("N4", self._text(city), self._text(state), self._text(zip_code))
            )
        return segments

    def _build_loop_1000a(self, provider: ProviderInfo) -> List[str]:
        """Build Loop 1000A - Submitter Name."""
        segments = [
            self._build_segment(
                "NM1", "41", "2", self._text(provider.display_name), "", "", "", "", "46", self._text(provider.npi)
            )
        ]
        phone = re.sub(r"\D", "", provider.phone or "")
        if phone:
            segments.append(self._build_segment("PER", "IC", "BILLING DEPT", "TE", phone))
        return segments

    def _build_loop_1000b(self, payer: PayerInfo) -> List[str]:
        """Build Loop 1000B - Receiver Name."""
        return [
            self._build_segment(
                "NM1", "40", "2", self._text(payer.payer_name), "", "", "", "", "46", self._text(payer.payer_id)
            )
        ]

    def _build_loop_2000a(self, provider: ProviderInfo) -> List[str]:
        """Build Loop 2000A/2010AA - Billing Provider."""
        segments = [self._build_segment("HL", "1", "", "20", "1")]

        if provider.taxonomy:
            segments.append(self._build_segment("PRV", "BI", "PXC", self._text(provider.taxonomy)))

        if provider.organization_name:
            segments.append(self._build_segment(
                "NM1", "85", "2", self._text(provider.organization_name), "", "", "", "", "XX", self._text(provider.npi)
            ))
        else:
            segments.append(self._build_segment(
                "NM1",
                "85",
                "1",
                self._text(provider.last_name),
                self._text(provider.first_name),
                "",
                "",
                "",
                "XX",
                self._text(provider.npi),
            ))

        segments.extend(self._build_address(provider.address, provider.city, provider.state, provider.zip_code))

        if provider.tax_id:
            segments.append(self._build_segment("REF", "EI", self._text(provider.tax_id)))

        return segments

    def _build_loop_2000b(self, patient: PatientInfo, payer: PayerInfo) -> List[str]:
        """Build Loop 2000B/2010BA/2010BB - Subscriber and Payer."""
        segments = [
            self._build_segment("HL", "2", "1", "22", "0"),
            # Primary payer, self, commercial insurance
            self._build_segment("SBR", "P", "18", self._text(patient.group_number), "", "", "", "", "", "CI"),
            self._build_segment(
                "NM1",
                "IL",
                "1",
                self._text(patient.last_name),
                self._text(patient.first_name),
                "",
                "",
                "",
                "MI",
                self._text(patient.member_id),
            ),
        ]

        segments.extend(self._build_address(patient.address, patient.city, patient.state, patient.zip_code))

        if patient.date_of_birth:
            sex = (patient.sex or "").upper()[:1]
            gender_code = sex if sex in ("M", "F") else "U"
            segments.append(self._build_segment("DMG", "D8", format_x12_date(patient.date_of_birth), gender_code))

        segments.append(self._build_segment(
            "NM1", "PR", "2", self._text(payer.payer_name), "", "", "", "", "PI", self._text(payer.payer_id)
        ))
        segments.extend(self._build_address(payer.address, payer.city, payer.state, payer.zip_code))

        return segments

    def _build_loop_2300(self, content: ClaimContent, claim_identifier: str) -> List[str]:
        """Build Loop 2300 - Claim Information."""
        comp = self.delimiters.component
        place_of_service = content.place_of_service or self.default_place_of_service
        segments = [
            self._build_segment(
                "CLM",
                claim_identifier,
                format_x12_amount(content.total_charges),
                "",
                "",
                comp.join([place_of_service, "B", "1"]),  # Facility code, qualifier, frequency
                "Y",  # Provider signature on file
                "A",  # Assignment accepted
                "Y",  # Benefits assigned
                "Y",  # Release of information
            ),
            self._build_segment("DTP", "431", "D8", format_x12_date(content.service_date)),
        ]

        diagnosis_codes = [
            comp.join(["ABK" if index == 0 else "ABF", self._text(dx.code).replace(".", "")])
            for index, dx in enumerate(content.ordered_diagnoses())
        ]
        if diagnosis_codes:
            segments.append(self._build_segment("HI", *diagnosis_codes))

        return segments

    def _build_loop_2400(self, line: ChargeLine, line_number: int, service_date: date) -> List[str]:
        """Build Loop 2400 - Service Line."""
        comp = self.delimiters.component
        procedure = comp.join(
            ["HC", self._text(line.cpt_code), *[self._text(m) for m in line.modifiers if m]]
        )
        pointers = comp.join(str(p) for p in line.diagnosis_pointers)

        return [
            self._build_segment("LX", str(line_number)),
            self._build_segment(
                "SV1",
                procedure,
                format_x12_amount(line.charge_amount),
                "UN",  # Unit
                str(line.units),
                "",
                "",
                pointers,
            ),
            self._build_segment("DTP", "472", "D8", format_x12_date(service_date)),
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _random_hex(self, digits: int) -> str:
        return f"{self._rng.getrandbits(digits * 4):0{digits}X}"

    def _check_content(self, content: ClaimContent) -> List[str]:
        """Collect non-fatal content problems; the claim is still encoded."""
        warnings = []
        if not validate_npi(content.provider.npi):
            warnings.append("Billing provider NPI fails the check digit")
        diagnosis_count = len(content.diagnoses)
        for line_number, line in enumerate(content.charge_lines, start=1):
            if any(p < 1 or p > diagnosis_count for p in line.diagnosis_pointers):
                warnings.append(f"Service line {line_number} points at a missing diagnosis")
        for message in warnings:
            logger.warning(f"837P content warning for {content.reference}: {message}")
        return warnings
