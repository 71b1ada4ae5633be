"""
X12 835 Remittance Advice Parser.

Source: ASC X12 005010X221A1 Health Care Claim Payment/Advice
Verified: 2026-10-19

Parses payer remittance text into a RemittanceAdvice. The parser never
raises on malformed input: missing amounts become zero, missing
identifiers become empty strings, and unknown segments are skipped.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from src.services.edi.x12_base import (
    SegmentID,
    X12ParseError,
    X12Segment,
    X12Tokenizer,
    parse_x12_amount,
)

logger = logging.getLogger(__name__)

# CAS carries up to six (reason, amount, quantity) triplets after the group code
MAX_CAS_TRIPLETS = 6


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class AdjustmentCode:
    """One CAS adjustment (group code + CARC reason + amount)."""

    group_code: str
    reason_code: str
    amount: Decimal
    quantity: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group_code,
            "reason": self.reason_code,
            "amount": str(self.amount),
            "quantity": str(self.quantity) if self.quantity is not None else None,
        }


@dataclass
class ServiceLineResult:
    """Loop 2110 service payment."""

    line_number: int
    cpt_code: str
    charge_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    modifiers: List[str] = field(default_factory=list)
    adjustments: List[AdjustmentCode] = field(default_factory=list)
    remark_codes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_number": self.line_number,
            "cpt_code": self.cpt_code,
            "modifiers": list(self.modifiers),
            "charge_amount": str(self.charge_amount),
            "paid_amount": str(self.paid_amount),
            "adjustments": [adj.to_dict() for adj in self.adjustments],
            "remark_codes": list(self.remark_codes),
        }


@dataclass
class RemittanceAdvice:
    """
    Structured remittance for a single claim payment.

    claim_reference is CLP01 as sent back by the payer, normally the
    patient control number (CLM01) of the original 837.
    """

    remittance_number: str = ""
    claim_reference: str = ""
    payment_amount: Decimal = Decimal("0")
    patient_responsibility: Decimal = Decimal("0")
    total_charge: Decimal = Decimal("0")
    claim_status_code: str = ""
    payer_claim_number: str = ""
    adjustments: List[AdjustmentCode] = field(default_factory=list)
    service_lines: List[ServiceLineResult] = field(default_factory=list)
    remark_codes: List[str] = field(default_factory=list)

    @property
    def total_adjustments(self) -> Decimal:
        """Sum of claim-level adjustment amounts."""
        return sum((adj.amount for adj in self.adjustments), Decimal("0"))

    @property
    def has_claim_reference(self) -> bool:
        return bool(self.claim_reference)


# =============================================================================
# Parser
# =============================================================================


class X12835Parser:
    """
    Parser for X12 835 remittance advice.

    Recognized segments: TRN, CLP, CAS, SVC, LQ. A CAS or LQ following an
    SVC belongs to that service line; before any SVC it is claim-level.
    Only the first CLP is read; later claim payments are skipped.

    Usage:
        parser = X12835Parser()
        advice = parser.parse(era_text)
    """

    def parse(self, content: str) -> RemittanceAdvice:
        """
        Parse X12 835 content into a RemittanceAdvice.

        Args:
            content: Raw 835 text (with or without ISA envelope)

        Returns:
            RemittanceAdvice; fields absent from the input keep their defaults
        """
        tokenizer = X12Tokenizer()
        segments = self._tokenize(tokenizer, content or "")
        advice = RemittanceAdvice()

        current_line: Optional[ServiceLineResult] = None
        claim_count = 0

        for segment in segments:
            segment_id = segment.segment_id

            if segment_id == SegmentID.CLP:
                claim_count += 1
                if claim_count == 1:
                    self._parse_clp(segment, advice)
                current_line = None
                continue

            # Segments belonging to a second or later claim payment
            if claim_count > 1:
                continue

            if segment_id == SegmentID.TRN:
                advice.remittance_number = segment.get_element(1)

            elif segment_id == SegmentID.CAS:
                adjustments = self._parse_cas(segment)
                if current_line is not None:
                    current_line.adjustments.extend(adjustments)
                else:
                    advice.adjustments.extend(adjustments)

            elif segment_id == SegmentID.SVC:
                current_line = self._parse_svc(
                    segment,
                    line_number=len(advice.service_lines) + 1,
                    component_separator=tokenizer.component_separator,
                )
                advice.service_lines.append(current_line)

            elif segment_id == SegmentID.LQ:
                if segment.get_element(0) == "HE" and segment.get_element(1):
                    remark = segment.get_element(1)
                    if current_line is not None:
                        current_line.remark_codes.append(remark)
                    else:
                        advice.remark_codes.append(remark)

        if claim_count > 1:
            logger.warning(f"835 contained {claim_count} claim payments; only the first was read")

        logger.debug(
            f"Parsed 835 {advice.remittance_number or '<no TRN>'}: "
            f"{len(advice.adjustments)} adjustments, {len(advice.service_lines)} service lines"
        )
        return advice

    def _tokenize(self, tokenizer: X12Tokenizer, content: str) -> List[X12Segment]:
        """Tokenize, falling back to default delimiters when the ISA is malformed."""
        try:
            return tokenizer.tokenize(content)
        except X12ParseError as e:
            logger.warning(f"835 ISA unusable, assuming default delimiters: {e}")
            return X12Tokenizer().tokenize(content, auto_detect=False)

    def _parse_clp(self, segment: X12Segment, advice: RemittanceAdvice) -> None:
        """Parse CLP - Claim Payment Information."""
        advice.claim_reference = segment.get_element(0)
        advice.claim_status_code = segment.get_element(1)
        advice.total_charge = segment.get_element_amount(2)
        advice.payment_amount = segment.get_element_amount(3)
        advice.patient_responsibility = segment.get_element_amount(4)
        advice.payer_claim_number = segment.get_element(6)

    def _parse_cas(self, segment: X12Segment) -> List[AdjustmentCode]:
        """Parse CAS - Claim Adjustment into one entry per triplet."""
        group_code = segment.get_element(0)
        adjustments = []
        if not group_code:
            return adjustments

        for triplet in range(MAX_CAS_TRIPLETS):
            base = 1 + triplet * 3
            reason_code = segment.get_element(base)
            amount = segment.get_element(base + 1)
            if not reason_code or not amount:
                continue
            quantity = segment.get_element(base + 2)
            adjustments.append(
                AdjustmentCode(
                    group_code=group_code,
                    reason_code=reason_code,
                    amount=parse_x12_amount(amount),
                    quantity=parse_x12_amount(quantity) if quantity else None,
                )
            )
        return adjustments

    def _parse_svc(
        self,
        segment: X12Segment,
        line_number: int,
        component_separator: str,
    ) -> ServiceLineResult:
        """Parse SVC - Service Payment Information."""
        # SVC01: qualifier:procedure[:modifier...]
        procedure = segment.get_composite(0, component_separator)
        cpt_code = procedure[1] if len(procedure) > 1 else ""
        return ServiceLineResult(
            line_number=line_number,
            cpt_code=cpt_code,
            modifiers=[m for m in procedure[2:] if m],
            charge_amount=segment.get_element_amount(1),
            paid_amount=segment.get_element_amount(2),
        )
