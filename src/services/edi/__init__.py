"""
X12 EDI Services for Claims Submission.

Source: ASC X12 005010X222A1 (837P) and 005010X221A1 (835)
Verified: 2026-10-19

Provides:
- 837P professional claim generation (outbound)
- 835 remittance advice parsing (inbound)
- Atomic ISA/GS/ST control number issuance
"""

from src.services.edi.x12_base import (
    X12Delimiters,
    X12Segment,
    X12Tokenizer,
    X12ValidationError,
    X12ParseError,
)
from src.services.edi.control_numbers import (
    ControlNumbers,
    ControlNumberSequencer,
)
from src.services.edi.x12_837_generator import (
    X12837Generator,
    ClaimContent,
    ChargeLine,
    Diagnosis,
    EncodedClaim,
    InterchangeParties,
    PatientInfo,
    PayerInfo,
    ProviderInfo,
)
from src.services.edi.x12_835_parser import (
    X12835Parser,
    AdjustmentCode,
    RemittanceAdvice,
    ServiceLineResult,
)

__all__ = [
    # Base
    "X12Delimiters",
    "X12Segment",
    "X12Tokenizer",
    "X12ValidationError",
    "X12ParseError",
    # Control numbers
    "ControlNumbers",
    "ControlNumberSequencer",
    # 837P
    "X12837Generator",
    "ClaimContent",
    "ChargeLine",
    "Diagnosis",
    "EncodedClaim",
    "InterchangeParties",
    "PatientInfo",
    "PayerInfo",
    "ProviderInfo",
    # 835
    "X12835Parser",
    "AdjustmentCode",
    "RemittanceAdvice",
    "ServiceLineResult",
]
