"""
X12 EDI Base Tokenizer and Models.

Source: ASC X12 005010 envelope structure (ISA/GS/ST)
Verified: 2026-10-19

Provides core X12 functionality shared by the 837P generator and the 835
parser:
- Delimiter set and segment building
- Tokenizer for segment/element parsing
- Date, time and amount formatting
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class SegmentID(str, Enum):
    """X12 segment identifiers used by the 837P and 835 transactions."""

    # Envelope
    ISA = "ISA"  # Interchange Control Header
    IEA = "IEA"  # Interchange Control Trailer
    GS = "GS"  # Functional Group Header
    GE = "GE"  # Functional Group Trailer
    ST = "ST"  # Transaction Set Header
    SE = "SE"  # Transaction Set Trailer

    # Header
    BHT = "BHT"  # Beginning of Hierarchical Transaction
    HL = "HL"  # Hierarchical Level

    # Names and Identification
    NM1 = "NM1"  # Individual or Organizational Name
    N3 = "N3"  # Party Location (Address)
    N4 = "N4"  # Geographic Location
    REF = "REF"  # Reference Information
    PER = "PER"  # Administrative Communications Contact
    PRV = "PRV"  # Provider Information

    # Subscriber
    SBR = "SBR"  # Subscriber Information
    DMG = "DMG"  # Demographic Information

    # Claim
    CLM = "CLM"  # Claim Information
    DTP = "DTP"  # Date/Time Period
    HI = "HI"  # Health Care Information Codes (Diagnoses)

    # Service Line
    LX = "LX"  # Service Line Number
    SV1 = "SV1"  # Professional Service

    # 835 Specific
    BPR = "BPR"  # Financial Information
    TRN = "TRN"  # Reassociation Trace Number
    CLP = "CLP"  # Claim Payment Information
    CAS = "CAS"  # Claim Adjustment
    SVC = "SVC"  # Service Payment Information
    LQ = "LQ"  # Health Care Remark Codes


# =============================================================================
# Exceptions
# =============================================================================


class X12ValidationError(Exception):
    """X12 validation error with detailed context."""

    def __init__(
        self,
        message: str,
        segment_id: Optional[str] = None,
        segment_position: Optional[int] = None,
        element_position: Optional[int] = None,
        raw_segment: Optional[str] = None,
    ):
        self.message = message
        self.segment_id = segment_id
        self.segment_position = segment_position
        self.element_position = element_position
        self.raw_segment = raw_segment
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.segment_id:
            parts.append(f"Segment: {self.segment_id}")
        if self.segment_position is not None:
            parts.append(f"Position: {self.segment_position}")
        if self.element_position is not None:
            parts.append(f"Element: {self.element_position}")
        return " | ".join(parts)


class X12ParseError(X12ValidationError):
    """Error during X12 parsing."""

    pass


# =============================================================================
# Data Models
# =============================================================================


@dataclass(frozen=True)
class X12Delimiters:
    """
    Delimiter set for one interchange.

    The component separator travels in ISA16 and the repetition separator
    in ISA11; element separator and segment terminator are implied by the
    ISA layout itself.
    """

    element: str = "*"
    component: str = ":"
    segment: str = "~"
    repetition: str = "^"

    def __post_init__(self) -> None:
        chars = (self.element, self.component, self.segment, self.repetition)
        if any(len(c) != 1 for c in chars):
            raise ValueError("X12 delimiters must be single characters")
        if len(set(chars)) != len(chars):
            raise ValueError("X12 delimiters must be distinct")

    def clean(self, value: Optional[str]) -> str:
        """Strip delimiter characters and line breaks from free text."""
        if not value:
            return ""
        for ch in (self.element, self.component, self.segment, self.repetition, "\r", "\n"):
            value = value.replace(ch, "")
        return value.strip()

    def build_segment(self, segment_id: str, elements: Sequence[str]) -> str:
        """Join a segment ID and its elements and append the terminator."""
        return self.element.join([segment_id, *elements]) + self.segment


@dataclass
class X12Segment:
    """
    Represents a single X12 segment.

    Example: NM1*IL*1*DOE*JOHN****MI*12345~
    - segment_id: NM1
    - elements: ['IL', '1', 'DOE', 'JOHN', '', '', '', 'MI', '12345']
    """

    segment_id: str
    elements: List[str]
    position: int = 0

    def get_element(self, index: int, default: str = "") -> str:
        """Get element at index (0-based after segment ID)."""
        if 0 <= index < len(self.elements):
            return self.elements[index]
        return default

    def get_element_amount(self, index: int) -> Decimal:
        """Get element as a monetary amount (zero when missing or malformed)."""
        return parse_x12_amount(self.get_element(index))

    def get_composite(self, index: int, separator: str = ":") -> List[str]:
        """Get composite element as list of sub-elements."""
        value = self.get_element(index)
        if value:
            return value.split(separator)
        return []

    def __str__(self) -> str:
        return f"{self.segment_id}*{'*'.join(self.elements)}"


# =============================================================================
# Tokenizer
# =============================================================================


class X12Tokenizer:
    """
    X12 EDI tokenizer.

    Handles parsing of raw X12 content into segments and elements.
    Automatically detects delimiters from ISA segment.
    """

    # Default delimiters
    DEFAULT_ELEMENT_SEPARATOR = "*"
    DEFAULT_SEGMENT_TERMINATOR = "~"
    DEFAULT_COMPONENT_SEPARATOR = ":"
    DEFAULT_REPETITION_SEPARATOR = "^"

    def __init__(
        self,
        element_separator: Optional[str] = None,
        segment_terminator: Optional[str] = None,
        component_separator: Optional[str] = None,
        repetition_separator: Optional[str] = None,
    ):
        self.element_separator = element_separator or self.DEFAULT_ELEMENT_SEPARATOR
        self.segment_terminator = segment_terminator or self.DEFAULT_SEGMENT_TERMINATOR
        self.component_separator = component_separator or self.DEFAULT_COMPONENT_SEPARATOR
        self.repetition_separator = repetition_separator or self.DEFAULT_REPETITION_SEPARATOR

    def detect_delimiters(self, content: str) -> Tuple[str, str, str, str]:
        """
        Detect delimiters from ISA segment.

        ISA is always 106 characters with fixed positions:
        - Element separator: position 3
        - Component separator: position 104
        - Segment terminator: position 105
        """
        if not content.startswith("ISA"):
            raise X12ParseError("Content must start with ISA segment")

        if len(content) < 106:
            raise X12ParseError("ISA segment must be at least 106 characters")

        element_sep = content[3]
        component_sep = content[104]
        segment_term = content[105]

        if element_sep.isalnum() or component_sep.isalnum() or segment_term.isalnum():
            raise X12ParseError("ISA delimiters are not in their fixed positions", segment_id="ISA")

        # Repetition separator is ISA11
        isa_elements = content[:105].split(element_sep)
        if len(isa_elements) >= 12 and len(isa_elements[11]) == 1:
            rep_sep = isa_elements[11]
        else:
            rep_sep = self.DEFAULT_REPETITION_SEPARATOR

        return element_sep, segment_term, component_sep, rep_sep

    def tokenize(self, content: str, auto_detect: bool = True) -> List[X12Segment]:
        """
        Tokenize X12 content into segments.

        Args:
            content: Raw X12 EDI content
            auto_detect: Automatically detect delimiters from ISA

        Returns:
            List of X12Segment objects

        When the segment terminator never occurs, each line is taken as
        one segment.
        """
        content = content.strip()

        if auto_detect and content.startswith("ISA"):
            (
                self.element_separator,
                self.segment_terminator,
                self.component_separator,
                self.repetition_separator,
            ) = self.detect_delimiters(content)

        if self.segment_terminator in content:
            raw_segments = content.split(self.segment_terminator)
        else:
            raw_segments = content.splitlines()

        segments = []
        for position, raw in enumerate(raw_segments):
            # Handle newlines within segments
            raw = raw.replace("\n", "").replace("\r", "").strip()
            if not raw:
                continue

            elements = raw.split(self.element_separator)
            segments.append(
                X12Segment(
                    segment_id=elements[0].strip(),
                    elements=elements[1:],
                    position=position,
                )
            )

        return segments


# =============================================================================
# Utility Functions
# =============================================================================


def format_x12_date(d: date, short: bool = False) -> str:
    """Format date as X12 CCYYMMDD (or YYMMDD for ISA09)."""
    return d.strftime("%y%m%d" if short else "%Y%m%d")


def format_x12_time(t: datetime, with_seconds: bool = False) -> str:
    """Format time as X12 HHMM (ISA10) or HHMMSS (GS05)."""
    return t.strftime("%H%M%S" if with_seconds else "%H%M")


def parse_x12_amount(amount_str: str) -> Decimal:
    """Parse X12 monetary amount; missing or malformed values are zero."""
    if not amount_str:
        return Decimal("0")
    try:
        amount = Decimal(amount_str.strip())
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def format_x12_amount(amount: Decimal) -> str:
    """Format amount for X12 (2 decimal places, half cents round up)."""
    return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def validate_npi(npi: str) -> bool:
    """
    Validate NPI using Luhn algorithm.

    NPI is a 10-digit identifier for healthcare providers.
    """
    if not npi or len(npi) != 10:
        return False

    if not npi.isdigit():
        return False

    # Apply Luhn algorithm with healthcare prefix (80840)
    prefix = "80840"
    full_number = prefix + npi

    total = 0
    for i, digit in enumerate(reversed(full_number)):
        d = int(digit)
        if i % 2 == 0:
            total += d
        else:
            doubled = d * 2
            total += doubled if doubled < 10 else doubled - 9

    return total % 10 == 0
