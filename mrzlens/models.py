"""
Data structures shared by every MRZ Lens module.

A decode call always returns an MRZResult, even for unreadable input.
Checksum validity (Validations) and semantic findings (Risk) are kept
apart: a document can pass every check digit and still carry risks.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Literal, NamedTuple


# Layout families. TD3/MRV_A share the 2x44 grid, TD2/MRV_B the 2x36 grid.
DocumentFormat = Literal["TD1", "TD2", "TD3", "MRV_A", "MRV_B", "CN_CARD", "UNKNOWN"]

# Coarse classification shown to the user
DocumentType = Literal["PASSPORT", "VISA", "CARD", "UNKNOWN"]

RiskLevel = Literal["warn", "critical"]


class CheckResult(NamedTuple):
    """Outcome of one check digit comparison."""
    computed: int
    valid: bool


@dataclass
class Risk:
    """
    A single semantic finding about the document.

    Attributes:
        level: "warn" (odd but explainable) or "critical" (logical
            contradiction, likely tampering).
        code: Stable identifier, e.g. "risk_name_mismatch".
            Used for filtering and as a message key by the UI.
        details: Short diagnostic string, e.g. "Tag=2, SuffixVowels=0".

    Example:
        >>> Risk("critical", "risk_truncation_vowel", "Tag=2, SuffixVowels=0")
    """
    level: RiskLevel
    code: str
    details: str = ""


@dataclass
class DecodedFields:
    """
    Raw field slices extracted from the MRZ lines.

    Check characters and raw slices keep their filler characters; surname
    and given_names have fillers turned into spaces. Everything is None on
    an unrecognized input.
    """
    document_number: str | None = None
    document_number_check: str | None = None
    nationality: str | None = None
    birth_date: str | None = None
    birth_date_check: str | None = None
    sex: str | None = None
    expiry_date: str | None = None
    expiry_date_check: str | None = None
    optional_data: str | None = None
    optional_data_check: str | None = None
    optional_data_2: str | None = None
    document_type_raw: str | None = None
    detailed_type: str | None = None
    issuing_state: str | None = None
    surname: str | None = None
    given_names: str | None = None
    composite_check: str | None = None


@dataclass
class Validations:
    """One flag per checked field plus the composite check."""
    document_number: bool = False
    birth_date: bool = False
    expiry_date: bool = False
    optional_data: bool = False
    composite: bool = False


@dataclass
class ExtendedData:
    """
    What the optional data field turned out to contain.

    Attributes:
        title_key: Label key for the UI ("lbl_struct_check",
            "lbl_personal_no", "lbl_chn_id").
        text: Display string (personal number, decoded name, ...).
        truncated: Chinese passports only: how many characters of the
            native name were left out of the buffer. None if not declared.
    """
    title_key: str
    text: str
    truncated: int | None = None


@dataclass
class ParsedData:
    """Values derived from the raw fields."""
    birth_date: datetime | None = None
    expiry_date: datetime | None = None
    days_remaining: int | None = None
    age: int | None = None
    extended_data: ExtendedData | None = None


@dataclass
class MRZResult:
    """
    Complete result of one decode call.

    Attributes:
        valid: True only if every check digit (including the composite) passed
        format: Layout family that was detected
        type: Coarse document class
        raw_lines: Lines as they were parsed (after OCR fixes, if enabled)
        fields: Extracted field slices
        validations: Per-field check results
        parsed: Derived dates, age and extended data
        logs: Notes about the input (unrecognized shape, OCR fixes, ...)
        calc_logs: One line per check digit computation
        risks: Semantic findings, in the order they were raised
    """
    valid: bool = False
    format: DocumentFormat = "UNKNOWN"
    type: DocumentType = "UNKNOWN"
    raw_lines: list[str] = field(default_factory=list)
    fields: DecodedFields = field(default_factory=DecodedFields)
    validations: Validations = field(default_factory=Validations)
    parsed: ParsedData = field(default_factory=ParsedData)
    logs: list[str] = field(default_factory=list)
    calc_logs: list[str] = field(default_factory=list)
    risks: list[Risk] = field(default_factory=list)

    def to_dict(self) -> dict:
        """
        Plain dict with camelCase keys, ready for JSON.

        Dates become ISO strings so the dict can be dumped as is.
        """
        return _camelize(asdict(self))


@dataclass
class MRZSummary:
    """
    Short verdict plus bullet findings for display.

    Attributes:
        verdict: One sentence, e.g. "This document looks consistent."
        risk_level: "LOW", "MEDIUM", "HIGH" or "CRITICAL"
        bullets: One finding per entry
    """
    verdict: str
    risk_level: Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
    bullets: list[str] = field(default_factory=list)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(value):
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value
