"""
Format detection and layout engines.

An MRZ is a fixed-width grid. Each supported format is described once as
a Layout: where every field sits, which fields carry a check digit, which
spans feed the composite check, and where the OCR auto-fix may act.
A single generic routine (parse_layout) extracts and checks any of them.

Supported grids:
- TD3 / MRV-A: 2 lines x 44 chars (passports, type A visas)
- TD2 / MRV-B: 2 lines x 36 chars (older ID cards, type B visas)
- TD1:         3 lines x 30 chars (ID cards, passport cards)
- CN_CARD:     1 line  x 30 chars (Chinese exit-entry permits for HK/MO/TW)

Offsets below are 0-based and end-exclusive, like Python slices.
"""

import logging
from dataclasses import dataclass

from mrzlens.models import DecodedFields, MRZResult, Validations
from mrzlens.modules.checksum import FILLER, check_field, format_check_log
from mrzlens.modules.ocr_fix import Range, apply_ocr_fixes

logger = logging.getLogger(__name__)


# =============================================================================
# LAYOUT DESCRIPTORS
# =============================================================================

@dataclass(frozen=True)
class FieldSpan:
    """
    A named slice of one MRZ line.

    Attributes:
        name: Attribute name in DecodedFields (and Validations when checked)
        line: Line index (0-based)
        start: First character offset
        end: End offset (exclusive)
        check: Offset of the check digit on the same line, or None
        label: Tag used in the check digit log ("DOC_NUM", "DOB", ...)
    """
    name: str
    line: int
    start: int
    end: int
    check: int | None = None
    label: str = ""

    def read(self, lines: list[str]) -> str:
        return lines[self.line][self.start:self.end]

    def read_check(self, lines: list[str]) -> str | None:
        if self.check is None:
            return None
        return lines[self.line][self.check:self.check + 1] or None


@dataclass(frozen=True)
class Layout:
    """
    Declarative description of one MRZ grid.

    Attributes:
        name: Base format name ("TD3", "TD2", "TD1", "CN_CARD")
        line_count / width: Grid shape used for detection
        checked: Fields with a check digit, in log order
        composite: Spans concatenated for the composite check
        composite_check: (line, offset) of the composite check digit
        issuer: Issuing state span, None when implied by the format
        fixed_issuer: Issuing state for formats without an issuer span
        nationality / fixed_nationality: Same idea for nationality
        sex: (line, offset) of the sex marker, or None
        names: Span holding SURNAME<<GIVEN<NAMES, or None
        optional: Optional data segments (first -> optional_data,
            second -> optional_data_2)
        numeric_fix / alpha_fix: OCR auto-fix ranges
        fix_type_code: Repair a "P0" type code into the passport code "PO"
        visa_format: Format name when the type code starts with "V"
        document_type: Coarse type when not a visa
    """
    name: str
    line_count: int
    width: int
    checked: tuple[FieldSpan, ...]
    composite: tuple[Range, ...]
    composite_check: tuple[int, int]
    issuer: FieldSpan | None = None
    fixed_issuer: str | None = None
    nationality: FieldSpan | None = None
    fixed_nationality: str | None = None
    sex: tuple[int, int] | None = None
    names: FieldSpan | None = None
    optional: tuple[FieldSpan, ...] = ()
    numeric_fix: tuple[Range, ...] = ()
    alpha_fix: tuple[Range, ...] = ()
    fix_type_code: bool = False
    visa_format: str | None = None
    document_type: str = "CARD"


TD3 = Layout(
    name="TD3",
    line_count=2,
    width=44,
    checked=(
        FieldSpan("document_number", 1, 0, 9, check=9, label="DOC_NUM"),
        FieldSpan("birth_date", 1, 13, 19, check=19, label="DOB"),
        FieldSpan("expiry_date", 1, 21, 27, check=27, label="EXPIRY"),
        FieldSpan("optional_data", 1, 28, 42, check=42, label="OPT_DATA"),
    ),
    composite=((1, 0, 10), (1, 13, 20), (1, 21, 43)),
    composite_check=(1, 43),
    issuer=FieldSpan("issuing_state", 0, 2, 5),
    nationality=FieldSpan("nationality", 1, 10, 13),
    sex=(1, 20),
    names=FieldSpan("names", 0, 5, 44),
    optional=(FieldSpan("optional_data", 1, 28, 42),),
    numeric_fix=((1, 9, 10), (1, 13, 20), (1, 21, 28), (1, 42, 44)),
    alpha_fix=((0, 5, 44), (1, 10, 13)),
    fix_type_code=True,
    visa_format="MRV_A",
    document_type="PASSPORT",
)

TD2 = Layout(
    name="TD2",
    line_count=2,
    width=36,
    checked=(
        FieldSpan("document_number", 1, 0, 9, check=9, label="DOC_NUM"),
        FieldSpan("birth_date", 1, 13, 19, check=19, label="DOB"),
        FieldSpan("expiry_date", 1, 21, 27, check=27, label="EXPIRY"),
    ),
    composite=((1, 0, 10), (1, 13, 20), (1, 21, 35)),
    composite_check=(1, 35),
    issuer=FieldSpan("issuing_state", 0, 2, 5),
    nationality=FieldSpan("nationality", 1, 10, 13),
    sex=(1, 20),
    names=FieldSpan("names", 0, 5, 36),
    optional=(FieldSpan("optional_data", 1, 28, 35),),
    numeric_fix=((1, 9, 10), (1, 13, 20), (1, 21, 28), (1, 35, 36)),
    alpha_fix=((0, 5, 36), (1, 10, 13)),
    visa_format="MRV_B",
)

TD1 = Layout(
    name="TD1",
    line_count=3,
    width=30,
    checked=(
        FieldSpan("document_number", 0, 5, 14, check=14, label="DOC_NUM"),
        FieldSpan("birth_date", 1, 0, 6, check=6, label="DOB"),
        FieldSpan("expiry_date", 1, 8, 14, check=14, label="EXPIRY"),
    ),
    composite=((0, 5, 30), (1, 0, 29)),
    composite_check=(1, 29),
    issuer=FieldSpan("issuing_state", 0, 2, 5),
    nationality=FieldSpan("nationality", 1, 15, 18),
    sex=(1, 7),
    names=FieldSpan("names", 2, 0, 30),
    optional=(
        FieldSpan("optional_data", 0, 15, 30),
        FieldSpan("optional_data_2", 1, 18, 29),
    ),
    numeric_fix=((0, 14, 15), (1, 0, 7), (1, 8, 15), (1, 29, 30)),
    alpha_fix=((1, 15, 18), (2, 0, 30)),
)

# Single line permit: type(2) doc#(9)+check, filler, expiry(6)+check,
# filler, birth(6)+check, filler, composite. Always issued by China.
CN_CARD = Layout(
    name="CN_CARD",
    line_count=1,
    width=30,
    checked=(
        FieldSpan("document_number", 0, 2, 11, check=11, label="DOC_NUM"),
        FieldSpan("expiry_date", 0, 13, 19, check=19, label="EXPIRY"),
        FieldSpan("birth_date", 0, 21, 27, check=27, label="DOB"),
    ),
    composite=((0, 2, 12), (0, 13, 20), (0, 21, 28)),
    composite_check=(0, 29),
    fixed_issuer="CHN",
    fixed_nationality="CHN",
    numeric_fix=((0, 2, 11), (0, 13, 19), (0, 21, 27), (0, 29, 30)),
)

# Most trailing fillers an OCR tool may add to a line
MAX_FILLER_OVERFLOW = 2

LAYOUTS: tuple[Layout, ...] = (TD3, TD1, TD2, CN_CARD)


# =============================================================================
# FORMAT DETECTION
# =============================================================================

def fit_line(line: str, width: int) -> str | None:
    """
    Fit one line to a grid width.

    A line may overflow the width by at most MAX_FILLER_OVERFLOW filler
    characters (OCR tools often read one '<' too many at the end of the
    name line).

    Returns:
        The line trimmed to width, or None if it does not fit.
    """
    if len(line) == width:
        return line
    overflow = line[width:]
    if 0 < len(overflow) <= MAX_FILLER_OVERFLOW and set(overflow) == {FILLER}:
        return line[:width]
    return None


def match_layout(lines: list[str]) -> tuple[Layout | None, list[str]]:
    """
    Find the layout whose grid shape matches the lines.

    Returns:
        Tuple of (layout, fitted_lines). layout is None when nothing matches,
        in which case the lines are returned unchanged.
    """
    for layout in LAYOUTS:
        if len(lines) != layout.line_count:
            continue
        fitted = [fit_line(line, layout.width) for line in lines]
        if all(line is not None for line in fitted):
            return layout, fitted

    return None, list(lines)


def detect_format(lines: list[str]) -> str:
    """
    Classify normalized lines by line count and width.

    Returns:
        "TD3", "TD1", "TD2", "CN_CARD" or "UNKNOWN". Visa variants
        (MRV_A/MRV_B) are told apart later from the type code.

    Examples:
        >>> detect_format(["P" * 44, "1" * 44])
        'TD3'
        >>> detect_format([])
        'UNKNOWN'
    """
    layout, _ = match_layout(lines)
    return layout.name if layout else "UNKNOWN"


# =============================================================================
# FIELD HELPERS
# =============================================================================

def clean_name(text: str) -> str:
    """Replace fillers with spaces and trim."""
    return text.replace(FILLER, " ").strip()


def split_names(name_field: str) -> tuple[str, str]:
    """
    Split SURNAME<<GIVEN<NAMES into (surname, given_names).

    Example:
        >>> split_names("ERIKSSON<<ANNA<MARIA<<<<<<")
        ('ERIKSSON', 'ANNA MARIA')
    """
    parts = name_field.split(FILLER * 2)
    surname = parts[0]
    given = parts[1] if len(parts) > 1 else ""
    return clean_name(surname), clean_name(given)


def pad_lines(lines: list[str], layout: Layout) -> list[str]:
    """
    Make sure the lines fill the whole grid.

    Missing lines (a TD1 card scanned without its name line) become filler
    lines, and short lines are padded, so slicing never runs off the end.
    """
    padded = [line.ljust(layout.width, FILLER) for line in lines[:layout.line_count]]
    while len(padded) < layout.line_count:
        padded.append(FILLER * layout.width)
    return padded


# =============================================================================
# GENERIC ENGINE
# =============================================================================

def parse_layout(layout: Layout, lines: list[str], auto_fix: bool = False) -> MRZResult:
    """
    Extract and check every field of a known layout.

    Decoding is permissive: failed checks are reported in validations and
    calc_logs but never stop the extraction.

    The returned result carries fields, validations, format, type and logs.
    Classification, dates and optional data mining are done by the caller
    (see mrzlens.analyzer).

    Args:
        layout: One of the LAYOUTS descriptors
        lines: Lines already fitted to the layout width
        auto_fix: Apply the OCR auto-fix ranges of the layout first

    Returns:
        MRZResult
    """
    lines = pad_lines(lines, layout)
    logs = []

    if auto_fix:
        lines, fix_logs = apply_ocr_fixes(
            lines, layout.numeric_fix, layout.alpha_fix, type_code=layout.fix_type_code
        )
        logs.extend(fix_logs)

    fields = DecodedFields()
    validations = Validations(optional_data=True)
    calc_logs = []

    # Per-field check digits
    for span in layout.checked:
        value = span.read(lines)
        actual = span.read_check(lines)
        result = check_field(value, actual)

        setattr(fields, span.name, value)
        setattr(fields, f"{span.name}_check", actual)
        setattr(validations, span.name, result.valid)
        calc_logs.append(format_check_log(span.label, actual, result.computed))

    # Composite check digit over non-contiguous spans
    composite_span = "".join(lines[line][start:end] for line, start, end in layout.composite)
    final_line, final_pos = layout.composite_check
    final_actual = lines[final_line][final_pos:final_pos + 1] or None
    composite = check_field(composite_span, final_actual)
    validations.composite = composite.valid
    fields.composite_check = final_actual
    calc_logs.append(format_check_log("FINAL", final_actual, composite.computed))

    # Unchecked fields
    type_code = lines[0][0:2]
    fields.document_type_raw = type_code
    fields.issuing_state = layout.issuer.read(lines) if layout.issuer else layout.fixed_issuer
    fields.nationality = (
        layout.nationality.read(lines) if layout.nationality else layout.fixed_nationality
    )

    if layout.sex is not None:
        sex_line, sex_pos = layout.sex
        fields.sex = lines[sex_line][sex_pos]

    for span in layout.optional:
        setattr(fields, span.name, span.read(lines))

    if layout.names is not None:
        fields.surname, fields.given_names = split_names(layout.names.read(lines))

    # Overall validity: every checked field plus the composite
    valid = all(getattr(validations, span.name) for span in layout.checked) and validations.composite

    is_visa = layout.visa_format is not None and type_code.startswith("V")
    document_format = layout.visa_format if is_visa else layout.name
    document_type = "VISA" if is_visa else layout.document_type

    logger.debug(f"Parsed {document_format}: valid={valid}")

    return MRZResult(
        valid=valid,
        format=document_format,
        type=document_type,
        raw_lines=lines,
        fields=fields,
        validations=validations,
        logs=logs,
        calc_logs=calc_logs,
    )
